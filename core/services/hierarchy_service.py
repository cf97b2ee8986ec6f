"""Region -> country taxonomy derived from the full photo collection."""

from __future__ import annotations

from collections.abc import Iterable

from core.models import PhotoRecord

OTHER_REGION = "Others"
UNKNOWN_COUNTRY = "Unknown"


def region_of(photo: PhotoRecord) -> str:
    location = getattr(photo, "location", None)
    return (getattr(location, "region", None) or OTHER_REGION) if location else OTHER_REGION


def country_of(photo: PhotoRecord) -> str:
    location = getattr(photo, "location", None)
    return (getattr(location, "country", None) or UNKNOWN_COUNTRY) if location else UNKNOWN_COUNTRY


def build_hierarchy(photos: Iterable[PhotoRecord]) -> dict[str, set[str]]:
    """Map each region label to the set of country labels found under it.

    Built from the unfiltered collection so the browser always shows the
    complete taxonomy. Regions keep first-appearance order.
    """
    hierarchy: dict[str, set[str]] = {}
    for photo in photos:
        hierarchy.setdefault(region_of(photo), set()).add(country_of(photo))
    return hierarchy


def region_counts(photos: Iterable[PhotoRecord]) -> dict[str, int]:
    """Number of photos per region label."""
    counts: dict[str, int] = {}
    for photo in photos:
        region = region_of(photo)
        counts[region] = counts.get(region, 0) + 1
    return counts


def country_counts(photos: Iterable[PhotoRecord]) -> dict[tuple[str, str], int]:
    """Number of photos per (region, country) pair."""
    counts: dict[tuple[str, str], int] = {}
    for photo in photos:
        key = (region_of(photo), country_of(photo))
        counts[key] = counts.get(key, 0) + 1
    return counts


def location_count(photos: Iterable[PhotoRecord]) -> int:
    """Distinct location names among `photos`."""
    return len({p.location.name for p in photos if getattr(p, "location", None)})
