"""Local JSON cache for the full photo collection.

A single file holds the serialized collection as a JSON array using the
journal's camelCase record shape. It is read once at startup and
overwritten wholesale after each mutation.
"""

from __future__ import annotations

from collections.abc import Iterable
import json
import math
import os
from pathlib import Path
import tempfile
from typing import Any

from loguru import logger

from core.models import GeoLocation, PhotoRecord, ShootingParameters, normalize_tags
from core.services.interfaces import CacheReadError

CACHE_FILE_NAME = "geosnap_photos.json"


def _opt_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _opt_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _finite_or_none(value: float | None) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return value


def record_to_dict(record: PhotoRecord) -> dict[str, Any]:
    """Serialize `record` to the cache's JSON shape."""
    loc = record.location
    data: dict[str, Any] = {
        "id": record.id,
        "url": record.url,
        "title": record.title,
        "description": record.description,
        "date": record.captured_date,
        "location": {
            "lat": _finite_or_none(loc.lat),
            "lng": _finite_or_none(loc.lng),
            "name": loc.name,
            "country": loc.country,
            "region": loc.region,
        },
        "tags": list(record.tags),
        "user_id": record.owner_id,
        "user_name": record.owner_name,
    }
    if record.parameters is not None:
        p = record.parameters
        data["parameters"] = {
            "camera": p.camera,
            "aperture": p.aperture,
            "shutterSpeed": p.shutter_speed,
            "iso": p.iso,
            "focalLength": p.focal_length,
        }
    return data


def record_from_dict(data: dict[str, Any]) -> PhotoRecord:
    """Build a record from its JSON shape.

    Raises:
        ValueError: when `data` has no usable id or location object.
    """
    if not isinstance(data, dict):
        raise ValueError("record must be an object")
    photo_id = _opt_str(data.get("id"))
    if photo_id is None:
        raise ValueError("record has no id")
    raw_loc = data.get("location")
    if not isinstance(raw_loc, dict):
        raise ValueError(f"record {photo_id} has no location")
    location = GeoLocation(
        lat=_opt_float(raw_loc.get("lat")),
        lng=_opt_float(raw_loc.get("lng")),
        name=str(raw_loc.get("name") or ""),
        country=_opt_str(raw_loc.get("country")),
        region=_opt_str(raw_loc.get("region")),
    )
    raw_params = data.get("parameters")
    parameters = None
    if isinstance(raw_params, dict):
        parameters = ShootingParameters(
            camera=_opt_str(raw_params.get("camera")),
            aperture=_opt_str(raw_params.get("aperture")),
            shutter_speed=_opt_str(raw_params.get("shutterSpeed")),
            iso=_opt_str(raw_params.get("iso")),
            focal_length=_opt_str(raw_params.get("focalLength")),
        )
    raw_tags = data.get("tags")
    tags = normalize_tags(raw_tags) if isinstance(raw_tags, list) else ()
    return PhotoRecord(
        id=photo_id,
        url=str(data.get("url") or ""),
        title=str(data.get("title") or ""),
        description=str(data.get("description") or ""),
        captured_date=str(data.get("date") or ""),
        location=location,
        tags=tags,
        parameters=parameters,
        owner_id=_opt_str(data.get("user_id")),
        owner_name=_opt_str(data.get("user_name")),
    )


class JsonPhotoCache:
    """Read and write the photo collection as one JSON file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> list[PhotoRecord] | None:
        """Return cached records, or None when no cache file exists.

        Malformed entries are skipped with a warning.

        Raises:
            CacheReadError: the file exists but is not a readable JSON array.
        """
        if not self._path.exists():
            return None
        try:
            with self._path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as ex:
            raise CacheReadError(f"Cannot read cache {self._path}: {ex}") from ex
        if not isinstance(raw, list):
            raise CacheReadError(f"Cache {self._path} does not hold a list")

        records: list[PhotoRecord] = []
        for entry in raw:
            try:
                records.append(record_from_dict(entry))
            except (ValueError, TypeError) as ex:
                logger.warning("Skipping malformed cache entry: {} | entry={}", ex, entry)
        return records

    def write(self, photos: Iterable[PhotoRecord]) -> None:
        """Replace the cache file atomically with `photos`."""
        payload = [record_to_dict(p) for p in photos]
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=str(self._path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2, allow_nan=False)
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
