"""Geolocation helpers shared by grouping and spatial queries.

Nothing here raises on malformed input: invalid coordinates simply do not
take part in spatial computations.
"""

from __future__ import annotations

from collections.abc import Iterable
import math
from typing import Any

from core.models import Bounds, PhotoRecord

BUCKET_PRECISION = 3  # ~110 m


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    """True when both values are finite numbers within lat/lng ranges."""
    flat = _as_float(lat)
    flng = _as_float(lng)
    if flat is None or flng is None:
        return False
    if not (math.isfinite(flat) and math.isfinite(flng)):
        return False
    return -90.0 <= flat <= 90.0 and -180.0 <= flng <= 180.0


def has_valid_location(photo: PhotoRecord) -> bool:
    location = getattr(photo, "location", None)
    if location is None:
        return False
    return is_valid_coordinate(getattr(location, "lat", None), getattr(location, "lng", None))


def bucket_key(lat: float, lng: float, precision: int = BUCKET_PRECISION) -> tuple[float, float]:
    """Coordinate bucket used to group nearby photos."""
    # -0.0 and 0.0 must land in the same bucket
    return (round(lat, precision) + 0.0, round(lng, precision) + 0.0)


def bounds_of(photos: Iterable[PhotoRecord]) -> Bounds | None:
    """Bounding box over photos with valid coordinates, or None when there are none."""
    south = west = math.inf
    north = east = -math.inf
    found = False
    for photo in photos:
        if not has_valid_location(photo):
            continue
        lat = float(photo.location.lat)  # type: ignore[arg-type]
        lng = float(photo.location.lng)  # type: ignore[arg-type]
        south, north = min(south, lat), max(north, lat)
        west, east = min(west, lng), max(east, lng)
        found = True
    if not found:
        return None
    return Bounds(south=south, west=west, north=north, east=east)


def normalize_bounds(a_lat: float, a_lng: float, b_lat: float, b_lng: float) -> Bounds:
    """Rectangle from two drag corners given in any order."""
    return Bounds(
        south=min(a_lat, b_lat),
        west=min(a_lng, b_lng),
        north=max(a_lat, b_lat),
        east=max(a_lng, b_lng),
    )
