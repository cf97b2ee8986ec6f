"""Serializable UI selection state and its pure transitions.

Each function takes a `ViewState` and returns a new one; none of them
touch the photo collection.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date

from core.models import Bounds, LocationGroup, PhotoRecord
from core.services.filter_service import FilterState
from core.services.spatial_service import select_by_bounds

MAP_VIEW = "map"
MANAGE_VIEW = "manage"


@dataclass(frozen=True)
class ViewState:
    """Transient UI state.

    Attributes:
        filters: Active browse filters.
        selection_mode: True while the user is drawing a selection rectangle.
        open_group: Gallery currently shown, if any.
        focused_photo: Photo opened in the large preview, if any.
        edit_target: Photo opened in the editor, if any.
        active_view: `"map"` or `"manage"`.
    """

    filters: FilterState = field(default_factory=FilterState)
    selection_mode: bool = False
    open_group: LocationGroup | None = None
    focused_photo: PhotoRecord | None = None
    edit_target: PhotoRecord | None = None
    active_view: str = MAP_VIEW


# Filters


def set_search(state: ViewState, query: str) -> ViewState:
    return replace(state, filters=replace(state.filters, search_query=query or ""))


def select_all_regions(state: ViewState) -> ViewState:
    return replace(
        state, filters=replace(state.filters, active_region=None, active_country=None)
    )


def select_region(state: ViewState, region: str | None) -> ViewState:
    """Select `region` and drop any country selection."""
    if not region:
        return select_all_regions(state)
    return replace(
        state, filters=replace(state.filters, active_region=region, active_country=None)
    )


def select_country(state: ViewState, country: str | None) -> ViewState:
    """Select `country` under the active region; ignored when no region is active."""
    if state.filters.active_region is None:
        return state
    return replace(state, filters=replace(state.filters, active_country=country or None))


def set_date_range(state: ViewState, start: date | None, end: date | None) -> ViewState:
    return replace(state, filters=replace(state.filters, start_date=start, end_date=end))


def clear_filters(state: ViewState) -> ViewState:
    return replace(state, filters=FilterState())


# Gallery / preview / editor


def open_group(state: ViewState, group: LocationGroup | None) -> ViewState:
    return replace(state, open_group=group)


def close_group(state: ViewState) -> ViewState:
    return replace(state, open_group=None)


def open_marker(state: ViewState, group: LocationGroup) -> ViewState:
    """Marker click; rectangle selection mode takes precedence."""
    if state.selection_mode:
        return state
    return open_group(state, group)


def focus_photo(state: ViewState, photo: PhotoRecord | None) -> ViewState:
    return replace(state, focused_photo=photo)


def close_photo(state: ViewState) -> ViewState:
    return replace(state, focused_photo=None)


def begin_edit(state: ViewState, photo: PhotoRecord) -> ViewState:
    return replace(state, edit_target=photo)


def end_edit(state: ViewState) -> ViewState:
    return replace(state, edit_target=None)


def switch_view(state: ViewState, view: str) -> ViewState:
    if view not in (MAP_VIEW, MANAGE_VIEW):
        raise ValueError(f"Unknown view: {view}")
    return replace(state, active_view=view)


# Rectangle selection


def enter_selection_mode(state: ViewState) -> ViewState:
    return replace(state, selection_mode=True)


def cancel_selection_mode(state: ViewState) -> ViewState:
    return replace(state, selection_mode=False)


def complete_selection(
    state: ViewState, visible: list[PhotoRecord], bounds: Bounds
) -> ViewState:
    """Finish a rectangle drag over the currently filtered photos.

    Leaves selection mode in every case; opens the area group only when
    the rectangle caught at least one photo.
    """
    group = select_by_bounds(visible, bounds)
    next_state = replace(state, selection_mode=False)
    if group is None:
        return next_state
    return replace(next_state, open_group=group)


# Store notifications


def _swap_in_group(group: LocationGroup | None, record: PhotoRecord) -> LocationGroup | None:
    if group is None or record.id not in group.photo_ids:
        return group
    photos = [record if p.id == record.id else p for p in group.photos]
    return replace(group, photos=photos)


def _drop_from_group(group: LocationGroup | None, photo_id: str) -> LocationGroup | None:
    if group is None or photo_id not in group.photo_ids:
        return group
    photos = [p for p in group.photos if p.id != photo_id]
    if not photos:
        return None
    return replace(group, photos=photos)


def on_record_updated(state: ViewState, record: PhotoRecord) -> ViewState:
    """Refresh every reference to `record` so no view shows stale content."""
    focused = state.focused_photo
    edit_target = state.edit_target
    return replace(
        state,
        focused_photo=record if focused is not None and focused.id == record.id else focused,
        edit_target=(
            record if edit_target is not None and edit_target.id == record.id else edit_target
        ),
        open_group=_swap_in_group(state.open_group, record),
    )


def on_record_removed(state: ViewState, photo_id: str) -> ViewState:
    """Evict a deleted record from focus, editor and the open gallery."""
    focused = state.focused_photo
    edit_target = state.edit_target
    return replace(
        state,
        focused_photo=None if focused is not None and focused.id == photo_id else focused,
        edit_target=None if edit_target is not None and edit_target.id == photo_id else edit_target,
        open_group=_drop_from_group(state.open_group, photo_id),
    )
