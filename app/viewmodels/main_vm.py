"""ViewModel coordinating the photo store, filters, grouping and UI selection."""

from __future__ import annotations

from datetime import date

from loguru import logger

from core.models import Bounds, LocationGroup, PhotoRecord, User
from core.services import view_state as vs
from core.services.filter_service import FilterState, apply_filters, manage_filter
from core.services.hierarchy_service import build_hierarchy, location_count, region_counts
from core.services.interfaces import OperationResult, PhotoStore, StoreError
from core.services.spatial_service import ViewportFit, ViewportTracker, group_by_coordinate


class MainVM:
    """Main application view-model.

    Owns the transient `ViewState` and mediates between the store and the
    map/gallery surfaces. Derived data is recomputed only when the store
    revision or the filters change.
    """

    def __init__(
        self,
        store: PhotoStore,
        tracker: ViewportTracker | None = None,
        user: User | None = None,
    ) -> None:
        """Create a MainVM.

        Args:
            store: Any `PhotoStore` implementation.
            tracker: Viewport tracker (defaults to `ViewportTracker()`).
            user: Signed-in user; new photos are attributed to them.
        """
        self._store = store
        self._tracker = tracker or ViewportTracker()
        self.user = user
        self.state = vs.ViewState()
        self._derived_key: tuple[int, FilterState] | None = None
        self._filtered: list[PhotoRecord] = []
        self._groups: list[LocationGroup] = []
        self._hierarchy_key: int | None = None
        self._hierarchy: dict[str, set[str]] = {}
        self._region_counts: dict[str, int] = {}

    def load(self) -> list[PhotoRecord]:
        """Load the collection from the store and reset the viewport memory."""
        photos = self._store.load()
        self._tracker.reset()
        return photos

    # Derived data

    def _refresh_derived(self) -> None:
        key = (self._store.revision, self.state.filters)
        if key == self._derived_key:
            return
        self._filtered = apply_filters(self._store.photos, self.state.filters)
        self._groups = group_by_coordinate(self._filtered)
        self._derived_key = key

    def _refresh_hierarchy(self) -> None:
        if self._hierarchy_key == self._store.revision:
            return
        photos = self._store.photos
        self._hierarchy = build_hierarchy(photos)
        self._region_counts = region_counts(photos)
        self._hierarchy_key = self._store.revision

    @property
    def photos(self) -> list[PhotoRecord]:
        return self._store.photos

    @property
    def filtered(self) -> list[PhotoRecord]:
        self._refresh_derived()
        return list(self._filtered)

    @property
    def groups(self) -> list[LocationGroup]:
        self._refresh_derived()
        return list(self._groups)

    @property
    def hierarchy(self) -> dict[str, set[str]]:
        self._refresh_hierarchy()
        return {region: set(countries) for region, countries in self._hierarchy.items()}

    @property
    def region_counts(self) -> dict[str, int]:
        self._refresh_hierarchy()
        return dict(self._region_counts)

    @property
    def location_count(self) -> int:
        return location_count(self.filtered)

    def manage_list(self, query: str = "") -> list[PhotoRecord]:
        """Rows for the management view (unaffected by browse filters)."""
        return manage_filter(self._store.photos, query)

    # Filters

    def set_search(self, query: str) -> None:
        self.state = vs.set_search(self.state, query)

    def select_all_regions(self) -> None:
        self.state = vs.select_all_regions(self.state)

    def select_region(self, region: str | None) -> None:
        self.state = vs.select_region(self.state, region)

    def select_country(self, country: str | None) -> None:
        self.state = vs.select_country(self.state, country)

    def set_date_range(self, start: date | None, end: date | None) -> None:
        self.state = vs.set_date_range(self.state, start, end)

    def clear_filters(self) -> None:
        self.state = vs.clear_filters(self.state)

    # Gallery, preview, editor, views

    def open_marker(self, group: LocationGroup) -> None:
        self.state = vs.open_marker(self.state, group)

    def close_group(self) -> None:
        self.state = vs.close_group(self.state)

    def focus_photo(self, photo: PhotoRecord) -> None:
        self.state = vs.focus_photo(self.state, photo)

    def close_photo(self) -> None:
        self.state = vs.close_photo(self.state)

    def begin_edit(self, photo: PhotoRecord) -> None:
        self.state = vs.begin_edit(self.state, photo)

    def end_edit(self) -> None:
        self.state = vs.end_edit(self.state)

    def switch_view(self, view: str) -> None:
        self.state = vs.switch_view(self.state, view)

    # Rectangle selection

    @property
    def map_allows_panning(self) -> bool:
        """Map dragging is suspended while a selection rectangle is drawn."""
        return not self.state.selection_mode

    def enter_selection_mode(self) -> None:
        self.state = vs.enter_selection_mode(self.state)

    def cancel_selection_mode(self) -> None:
        self.state = vs.cancel_selection_mode(self.state)

    def select_rectangle(self, bounds: Bounds) -> bool:
        """Complete a rectangle over the filtered photos; True when a gallery opened."""
        if not self.state.selection_mode:
            return False
        self.state = vs.complete_selection(self.state, self.filtered, bounds)
        opened = self.state.open_group is not None and self.state.open_group.is_area_selection
        logger.info("Area selection {} -> {}", bounds, "opened" if opened else "empty")
        return opened

    # Viewport

    def viewport_update(self) -> ViewportFit | None:
        """Camera move for the map, only when the visible id set changed."""
        return self._tracker.update(self.filtered)

    # Store mutations

    def add_photo(self, record: PhotoRecord) -> OperationResult:
        try:
            committed = self._store.add(record)
        except StoreError as ex:
            logger.error("Add photo failed: {}", ex)
            return OperationResult(ok=False, message=f"Failed to save photo: {ex}")
        return OperationResult(ok=True, message="Photo saved", record=committed)

    def update_photo(self, record: PhotoRecord) -> OperationResult:
        try:
            committed = self._store.update(record)
        except StoreError as ex:
            logger.error("Update photo {} failed: {}", record.id, ex)
            return OperationResult(ok=False, message=f"Failed to update photo: {ex}")
        if committed is None:
            logger.warning("Update ignored, photo {} not found", record.id)
            return OperationResult(ok=False, message="Photo no longer exists")
        self.state = vs.on_record_updated(self.state, committed)
        return OperationResult(ok=True, message="Photo updated", record=committed)

    def delete_photo(self, photo_id: str) -> OperationResult:
        try:
            removed = self._store.remove(photo_id)
        except StoreError as ex:
            logger.error("Delete photo {} failed: {}", photo_id, ex)
            return OperationResult(ok=False, message=f"Failed to delete photo: {ex}")
        if not removed:
            return OperationResult(ok=False, message="Photo no longer exists")
        self.state = vs.on_record_removed(self.state, photo_id)
        return OperationResult(ok=True, message="Photo deleted")
