"""Compound view filter over the photo collection.

Four independent predicates are combined with AND semantics: free-text
search, region, country and an inclusive date range. Filtering preserves
collection order and never raises on malformed records.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from core.models import PhotoRecord


@dataclass(frozen=True)
class FilterState:
    """Active browse filters. `active_country` only applies with a region."""

    search_query: str = ""
    active_region: str | None = None
    active_country: str | None = None
    start_date: date | None = None
    end_date: date | None = None

    @property
    def is_empty(self) -> bool:
        return self == FilterState()


def parse_calendar_date(value: Any) -> date | None:
    """Parse `value` as a calendar date, dropping any time of day.

    Accepts `date`/`datetime` objects and ISO 8601 date or datetime strings.
    Returns None for anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _text(value: Any) -> str:
    return value.lower() if isinstance(value, str) else ""


def matches_text(photo: PhotoRecord, query: str) -> bool:
    """Case-insensitive substring match on title, location name or any tag."""
    needle = (query or "").lower()
    if not needle:
        return True
    if needle in _text(getattr(photo, "title", None)):
        return True
    location = getattr(photo, "location", None)
    if location is not None and needle in _text(getattr(location, "name", None)):
        return True
    return any(needle in _text(tag) for tag in (getattr(photo, "tags", None) or ()))


def matches_region(photo: PhotoRecord, region: str | None) -> bool:
    if not region:
        return True
    location = getattr(photo, "location", None)
    return getattr(location, "region", None) == region


def matches_country(photo: PhotoRecord, country: str | None) -> bool:
    if not country:
        return True
    location = getattr(photo, "location", None)
    return getattr(location, "country", None) == country


def matches_date_range(photo: PhotoRecord, start: date | None, end: date | None) -> bool:
    """Inclusive day-granularity range check; unbounded sides always match."""
    if start is None and end is None:
        return True
    captured = parse_calendar_date(getattr(photo, "captured_date", None))
    if captured is None:
        return False
    if start is not None and captured < start:
        return False
    if end is not None and captured > end:
        return False
    return True


def apply_filters(photos: Iterable[PhotoRecord], state: FilterState) -> list[PhotoRecord]:
    """Return a new list of the photos matching every active predicate."""
    return [
        p
        for p in photos
        if matches_text(p, state.search_query)
        and matches_region(p, state.active_region)
        and matches_country(p, state.active_country)
        and matches_date_range(p, state.start_date, state.end_date)
    ]


def manage_filter(photos: Iterable[PhotoRecord], query: str) -> list[PhotoRecord]:
    """Search used by the management list: title, location name or owner name."""
    needle = (query or "").lower()
    if not needle:
        return list(photos)
    result: list[PhotoRecord] = []
    for p in photos:
        location = getattr(p, "location", None)
        haystacks = (
            _text(getattr(p, "title", None)),
            _text(getattr(location, "name", None)),
            _text(getattr(p, "owner_name", None)),
        )
        if any(needle in h for h in haystacks):
            result.append(p)
    return result
