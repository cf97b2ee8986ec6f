"""Core domain models for geo-tagged photo records and derived groups."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class GeoLocation:
    """Where a photo was taken.

    `lat`/`lng` may be missing or non-finite for records imported from
    incomplete sources; spatial code checks them via `core.geo`.
    """

    lat: float | None
    lng: float | None
    name: str
    country: str | None = None
    region: str | None = None


@dataclass(frozen=True)
class ShootingParameters:
    """Camera settings, kept as opaque display strings."""

    camera: str | None = None
    aperture: str | None = None
    shutter_speed: str | None = None
    iso: str | None = None
    focal_length: str | None = None


@dataclass(frozen=True)
class PhotoRecord:
    """A single journal entry. Changed only by replacement."""

    id: str
    url: str
    title: str
    description: str
    captured_date: str
    location: GeoLocation
    tags: tuple[str, ...] = ()
    parameters: ShootingParameters | None = None
    owner_id: str | None = None
    owner_name: str | None = None

    def with_tags(self, tags: Iterable[str]) -> PhotoRecord:
        """Return a copy with `tags` normalized (see `normalize_tags`)."""
        return replace(self, tags=normalize_tags(tags))


@dataclass
class LocationGroup:
    """Photos sharing a rounded coordinate, or the result of an area query."""

    name: str
    lat: float
    lng: float
    photos: list[PhotoRecord] = field(default_factory=list)
    is_area_selection: bool = False

    @property
    def representative(self) -> PhotoRecord | None:
        """First member, used as the marker thumbnail."""
        return self.photos[0] if self.photos else None

    @property
    def photo_ids(self) -> list[str]:
        return [p.id for p in self.photos]


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned lat/lng rectangle (no antimeridian wrapping)."""

    south: float
    west: float
    north: float
    east: float

    def contains(self, lat: float, lng: float) -> bool:
        """Inclusive containment test."""
        return self.south <= lat <= self.north and self.west <= lng <= self.east

    @property
    def center(self) -> tuple[float, float]:
        return ((self.south + self.north) / 2.0, (self.west + self.east) / 2.0)

    @property
    def is_point(self) -> bool:
        return self.south == self.north and self.west == self.east


@dataclass(frozen=True)
class User:
    """Signed-in user as produced by the auth layer."""

    id: str
    name: str
    email: str


def normalize_tags(tags: Iterable[str]) -> tuple[str, ...]:
    """Strip, drop empties and de-duplicate case-insensitively (first spelling wins)."""
    seen: set[str] = set()
    result: list[str] = []
    for raw in tags:
        tag = str(raw).strip()
        if not tag:
            continue
        key = tag.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(tag)
    return tuple(result)
