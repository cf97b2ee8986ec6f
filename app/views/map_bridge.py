"""Qt bridge between `MainVM` and an external map/gallery surface.

The map widget itself (tiles, markers, animation) lives outside this
project; it listens to the signals below and calls the slots on user input.
"""

from __future__ import annotations

from typing import Any

from PySide6.QtCore import QObject, Signal, Slot
from loguru import logger

from app.viewmodels.main_vm import MainVM
from core.geo import normalize_bounds
from core.models import LocationGroup


def marker_payload(group: LocationGroup) -> dict[str, Any]:
    """Plain-data description of one map marker."""
    thumb = group.representative
    return {
        "name": group.name,
        "lat": group.lat,
        "lng": group.lng,
        "count": len(group.photos),
        "thumbnail": thumb.url if thumb else "",
    }


class MapBridge(QObject):
    markersChanged = Signal(list)
    viewportRequested = Signal(object)
    galleryRequested = Signal(object)
    panningEnabledChanged = Signal(bool)

    def __init__(self, vm: MainVM) -> None:
        super().__init__()
        self._vm = vm
        self._groups: list[LocationGroup] = []
        self._panning: bool | None = None
        self._gallery: LocationGroup | None = None

    def refresh(self) -> None:
        """Push markers, a viewport move (when the visible set changed) and mode."""
        self._groups = self._vm.groups
        self.markersChanged.emit([marker_payload(g) for g in self._groups])
        fit = self._vm.viewport_update()
        if fit is not None:
            self.viewportRequested.emit(fit)
        self._sync_mode()

    def _sync_mode(self) -> None:
        panning = self._vm.map_allows_panning
        if panning != self._panning:
            self._panning = panning
            self.panningEnabledChanged.emit(panning)
        group = self._vm.state.open_group
        if group is not self._gallery:
            self._gallery = group
            if group is not None:
                self.galleryRequested.emit(group)

    @Slot(int)
    def on_marker_clicked(self, index: int) -> None:
        if not 0 <= index < len(self._groups):
            logger.warning("Marker index {} out of range", index)
            return
        self._vm.open_marker(self._groups[index])
        self._sync_mode()

    @Slot(bool)
    def on_selection_mode_toggled(self, enabled: bool) -> None:
        if enabled:
            self._vm.enter_selection_mode()
        else:
            self._vm.cancel_selection_mode()
        self._sync_mode()

    @Slot(float, float, float, float)
    def on_rectangle_drawn(self, a_lat: float, a_lng: float, b_lat: float, b_lng: float) -> None:
        self._vm.select_rectangle(normalize_bounds(a_lat, a_lng, b_lat, b_lng))
        self._sync_mode()

    @Slot()
    def on_gallery_closed(self) -> None:
        self._vm.close_group()
        self._sync_mode()
