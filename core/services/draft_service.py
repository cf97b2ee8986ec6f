"""Add/edit form drafts: validation, metadata merging and record building.

Validation happens before any I/O; metadata read from the image only fills
fields the user left empty.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
import threading
import time

from core.models import GeoLocation, PhotoRecord, ShootingParameters, normalize_tags
from core.services.filter_service import parse_calendar_date
from core.services.interfaces import DraftValidationError


@dataclass(frozen=True)
class ExtractedMetadata:
    """Best-effort values read from an image file; any field may be None."""

    make: str | None = None
    model: str | None = None
    f_number: float | None = None
    exposure_time: float | None = None
    iso: int | None = None
    focal_length: float | None = None
    date_time_original: datetime | None = None
    latitude: float | None = None
    longitude: float | None = None


@dataclass(frozen=True)
class PhotoDraft:
    """Form fields of the add/edit dialogs, all kept as entered."""

    title: str = ""
    description: str = ""
    captured_date: str = ""
    url: str = ""
    location_name: str = ""
    lat: float | None = 0.0
    lng: float | None = 0.0
    country: str = ""
    region: str = ""
    tags: str = ""
    camera: str = ""
    aperture: str = ""
    shutter_speed: str = ""
    iso: str = ""
    focal_length: str = ""


def new_draft(today: date | None = None) -> PhotoDraft:
    """Empty draft dated today."""
    return PhotoDraft(captured_date=(today or date.today()).isoformat())


def has_position(draft: PhotoDraft) -> bool:
    """False when the draft has no usable coordinate; (0, 0) counts as "not entered"."""
    if draft.lat is None or draft.lng is None:
        return False
    return not (draft.lat == 0 and draft.lng == 0)


def parse_tags(text: str) -> tuple[str, ...]:
    """Split a comma-separated tag field."""
    return normalize_tags((text or "").split(","))


def format_shutter_speed(exposure_time: float | None) -> str:
    """Render an exposure time in seconds as `1/250s` or `2.5s`."""
    if not exposure_time or exposure_time <= 0:
        return ""
    if exposure_time >= 1:
        return f"{round(exposure_time * 10) / 10:g}s"
    return f"1/{round(1 / exposure_time)}s"


def _format_number(value: float) -> str:
    return f"{value:g}"


def validate_draft(draft: PhotoDraft, *, require_image: bool) -> list[str]:
    """Return the names of missing required fields (empty when valid)."""
    missing: list[str] = []
    if require_image and not draft.url.strip():
        missing.append("image")
    if not draft.title.strip():
        missing.append("title")
    if parse_calendar_date(draft.captured_date) is None:
        missing.append("date")
    if not draft.location_name.strip():
        missing.append("location name")
    return missing


def require_valid(draft: PhotoDraft, *, require_image: bool) -> None:
    """Raise `DraftValidationError` when required fields are missing."""
    missing = validate_draft(draft, require_image=require_image)
    if missing:
        raise DraftValidationError(missing)


def merge_metadata(
    draft: PhotoDraft, meta: ExtractedMetadata, *, default_date: str | None = None
) -> PhotoDraft:
    """Fill empty draft fields from extracted metadata.

    Values the user already entered are never overwritten. A missing or
    (0, 0) coordinate counts as "not entered", and so does a date still equal to
    `default_date` (the value the form was pre-filled with).
    """
    changes: dict[str, object] = {}
    if not draft.camera:
        camera = " ".join(part for part in (meta.make, meta.model) if part)
        if camera:
            changes["camera"] = camera
    if not draft.aperture and meta.f_number:
        changes["aperture"] = f"f/{_format_number(meta.f_number)}"
    if not draft.shutter_speed and meta.exposure_time:
        changes["shutter_speed"] = format_shutter_speed(meta.exposure_time)
    if not draft.iso and meta.iso:
        changes["iso"] = str(meta.iso)
    if not draft.focal_length and meta.focal_length:
        changes["focal_length"] = f"{_format_number(meta.focal_length)}mm"
    if meta.date_time_original is not None and draft.captured_date in ("", default_date):
        changes["captured_date"] = meta.date_time_original.date().isoformat()
    has_gps = meta.latitude is not None and meta.longitude is not None
    if has_gps and not has_position(draft):
        changes["lat"] = meta.latitude
        changes["lng"] = meta.longitude
    return replace(draft, **changes) if changes else draft


def draft_from_record(record: PhotoRecord) -> PhotoDraft:
    params = record.parameters or ShootingParameters()
    location = record.location
    return PhotoDraft(
        title=record.title,
        description=record.description,
        captured_date=record.captured_date,
        url=record.url,
        location_name=location.name,
        lat=location.lat,
        lng=location.lng,
        country=location.country or "",
        region=location.region or "",
        tags=", ".join(record.tags),
        camera=params.camera or "",
        aperture=params.aperture or "",
        shutter_speed=params.shutter_speed or "",
        iso=params.iso or "",
        focal_length=params.focal_length or "",
    )


_id_lock = threading.Lock()
_last_id = 0


def new_photo_id() -> str:
    """Creation-time id in milliseconds, strictly increasing within the process."""
    global _last_id  # pylint: disable=global-statement
    with _id_lock:
        _last_id = max(time.time_ns() // 1_000_000, _last_id + 1)
        return str(_last_id)


def draft_to_record(
    draft: PhotoDraft,
    *,
    base: PhotoRecord | None = None,
    owner_id: str | None = None,
    owner_name: str | None = None,
) -> PhotoRecord:
    """Build a record from `draft`.

    With `base` the result keeps the base id, URL and owner (edit flow);
    otherwise a fresh id is assigned (add flow).
    """
    location = GeoLocation(
        lat=draft.lat,
        lng=draft.lng,
        name=draft.location_name.strip(),
        country=draft.country.strip() or None,
        region=draft.region.strip() or None,
    )
    parameters = ShootingParameters(
        camera=draft.camera or None,
        aperture=draft.aperture or None,
        shutter_speed=draft.shutter_speed or None,
        iso=draft.iso or None,
        focal_length=draft.focal_length or None,
    )
    fields = {
        "title": draft.title.strip(),
        "description": draft.description,
        "captured_date": draft.captured_date,
        "location": location,
        "tags": parse_tags(draft.tags),
        "parameters": parameters,
    }
    if base is not None:
        return replace(base, **fields)
    return PhotoRecord(
        id=new_photo_id(),
        url=draft.url,
        owner_id=owner_id,
        owner_name=owner_name,
        **fields,
    )
