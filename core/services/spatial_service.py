"""Coordinate bucketing, rectangle queries and viewport fitting.

Photos with invalid coordinates are skipped by every function here; they
still appear in text/date filtered lists elsewhere.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from core.geo import bounds_of, bucket_key, has_valid_location
from core.models import Bounds, LocationGroup, PhotoRecord

AREA_SELECTION_NAME = "Selected area"
NEIGHBORHOOD_ZOOM = 10
MAX_FIT_ZOOM = 12
FIT_PADDING_PX = 50


@dataclass(frozen=True)
class ViewportFit:
    """Camera move for the map surface.

    Either `center` + `zoom` (all photos at one point) or `bounds` with
    `padding` and a `max_zoom` ceiling.
    """

    center: tuple[float, float] | None = None
    zoom: int | None = None
    bounds: Bounds | None = None
    padding: int = 0
    max_zoom: int | None = None

    @property
    def is_point(self) -> bool:
        return self.bounds is None


def group_by_coordinate(photos: Iterable[PhotoRecord]) -> list[LocationGroup]:
    """Bucket photos by coordinate rounded to 3 decimals.

    Groups come out in first-seen order and take their name and position
    from their first member.
    """
    groups: dict[tuple[float, float], LocationGroup] = {}
    for photo in photos:
        if not has_valid_location(photo):
            continue
        lat = float(photo.location.lat)  # type: ignore[arg-type]
        lng = float(photo.location.lng)  # type: ignore[arg-type]
        key = bucket_key(lat, lng)
        group = groups.get(key)
        if group is None:
            group = LocationGroup(name=photo.location.name, lat=lat, lng=lng)
            groups[key] = group
        group.photos.append(photo)
    return list(groups.values())


def photos_in_bounds(photos: Iterable[PhotoRecord], bounds: Bounds) -> list[PhotoRecord]:
    """Photos whose valid coordinates fall inside `bounds` (inclusive)."""
    return [
        p
        for p in photos
        if has_valid_location(p)
        and bounds.contains(float(p.location.lat), float(p.location.lng))  # type: ignore[arg-type]
    ]


def select_by_bounds(photos: Iterable[PhotoRecord], bounds: Bounds) -> LocationGroup | None:
    """Wrap the photos inside `bounds` in a group centred on the rectangle.

    Returns None when nothing matches so callers never open an empty gallery.
    """
    members = photos_in_bounds(photos, bounds)
    if not members:
        return None
    lat, lng = bounds.center
    return LocationGroup(
        name=AREA_SELECTION_NAME, lat=lat, lng=lng, photos=members, is_area_selection=True
    )


def fit_viewport(
    photos: Iterable[PhotoRecord],
    *,
    neighborhood_zoom: int = NEIGHBORHOOD_ZOOM,
    max_zoom: int = MAX_FIT_ZOOM,
    padding: int = FIT_PADDING_PX,
) -> ViewportFit | None:
    """Compute the camera move that shows every valid coordinate."""
    box = bounds_of(photos)
    if box is None:
        return None
    if box.is_point:
        return ViewportFit(center=(box.south, box.west), zoom=neighborhood_zoom)
    return ViewportFit(bounds=box, padding=padding, max_zoom=max_zoom)


def photo_id_fingerprint(photos: Iterable[PhotoRecord]) -> tuple[str, ...]:
    """Order-independent identity of a photo set."""
    return tuple(sorted(p.id for p in photos))


class ViewportTracker:
    """Emits a viewport fit only when the set of visible photo ids changes."""

    def __init__(
        self,
        *,
        neighborhood_zoom: int = NEIGHBORHOOD_ZOOM,
        max_zoom: int = MAX_FIT_ZOOM,
        padding: int = FIT_PADDING_PX,
    ) -> None:
        self._neighborhood_zoom = neighborhood_zoom
        self._max_zoom = max_zoom
        self._padding = padding
        self._last: tuple[str, ...] | None = None

    def update(self, photos: Iterable[PhotoRecord]) -> ViewportFit | None:
        """Return a new fit, or None when the id set is unchanged or empty."""
        items = list(photos)
        fingerprint = photo_id_fingerprint(items)
        if fingerprint == self._last:
            return None
        self._last = fingerprint
        if not items:
            return None
        return fit_viewport(
            items,
            neighborhood_zoom=self._neighborhood_zoom,
            max_zoom=self._max_zoom,
            padding=self._padding,
        )

    def reset(self) -> None:
        self._last = None
