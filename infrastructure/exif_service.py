"""Best-effort shooting metadata extraction via Pillow.

Reads camera make/model, exposure settings, the original capture time and
GPS position from EXIF. Nothing here raises on bad input: callers get
`None` when the image cannot be opened or carries no EXIF at all.
"""

from __future__ import annotations

from datetime import datetime
import io
from pathlib import Path
from typing import Any

from PIL import Image, UnidentifiedImageError
from loguru import logger

from core.services.draft_service import ExtractedMetadata

try:  # pragma: no cover - optional dependency
    from pillow_heif import register_heif_opener  # type: ignore

    register_heif_opener()
    PIL_HEIF_AVAILABLE = True
except ImportError:  # pragma: no cover - optional dependency
    PIL_HEIF_AVAILABLE = False

# Base IFD
TAG_MAKE = 271
TAG_MODEL = 272
TAG_DATETIME = 306
# Exif sub-IFD
IFD_EXIF = 0x8769
TAG_EXPOSURE_TIME = 33434
TAG_F_NUMBER = 33437
TAG_ISO = 34855
TAG_DATETIME_ORIGINAL = 36867
TAG_FOCAL_LENGTH = 37386
# GPS sub-IFD
IFD_GPS = 0x8825
GPS_LAT_REF = 1
GPS_LAT = 2
GPS_LNG_REF = 3
GPS_LNG = 4

EXIF_DT_FMT = "%Y:%m:%d %H:%M:%S"


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    text = str(value).replace("\x00", "").strip()
    return text or None


def _number(value: Any) -> float | None:
    if isinstance(value, tuple) and value:
        value = value[0]
    try:
        result = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    return result if result == result else None  # NaN from 0/0 rationals


def _parse_exif_datetime(value: Any) -> datetime | None:
    text = _text(value)
    if not text:
        return None
    try:
        return datetime.strptime(text[:19], EXIF_DT_FMT)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("/", "-"))
    except ValueError:
        logger.debug("Unparseable EXIF datetime: {}", text)
        return None


def _dms_to_degrees(dms: Any, ref: Any) -> float | None:
    try:
        degrees, minutes, seconds = (float(v) for v in dms)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    value = degrees + minutes / 60.0 + seconds / 3600.0
    if _text(ref) in {"S", "W"}:
        value = -value
    return value


class ExifService:
    """Extracts `ExtractedMetadata` from image files or in-memory bytes."""

    def extract(self, source: str | Path | bytes) -> ExtractedMetadata | None:
        """Return metadata for `source`, or None when nothing could be read."""
        try:
            fp: Any = io.BytesIO(source) if isinstance(source, bytes) else str(source)
            with Image.open(fp) as im:
                exif = im.getexif()
                if not exif:
                    return None
                exif_ifd = exif.get_ifd(IFD_EXIF)
                gps_ifd = exif.get_ifd(IFD_GPS)
                return self._build(exif, exif_ifd, gps_ifd)
        except (OSError, UnidentifiedImageError, ValueError, TypeError) as ex:
            logger.warning("Metadata extraction failed: {}", ex)
            return None

    @staticmethod
    def _build(base: Any, exif_ifd: Any, gps_ifd: Any) -> ExtractedMetadata:
        iso = _number(exif_ifd.get(TAG_ISO))
        latitude = longitude = None
        if gps_ifd:
            latitude = _dms_to_degrees(gps_ifd.get(GPS_LAT), gps_ifd.get(GPS_LAT_REF))
            longitude = _dms_to_degrees(gps_ifd.get(GPS_LNG), gps_ifd.get(GPS_LNG_REF))
            if latitude is None or longitude is None:
                latitude = longitude = None
        return ExtractedMetadata(
            make=_text(base.get(TAG_MAKE)),
            model=_text(base.get(TAG_MODEL)),
            f_number=_number(exif_ifd.get(TAG_F_NUMBER)),
            exposure_time=_number(exif_ifd.get(TAG_EXPOSURE_TIME)),
            iso=int(iso) if iso else None,
            focal_length=_number(exif_ifd.get(TAG_FOCAL_LENGTH)),
            date_time_original=_parse_exif_datetime(
                exif_ifd.get(TAG_DATETIME_ORIGINAL) or base.get(TAG_DATETIME)
            ),
            latitude=latitude,
            longitude=longitude,
        )
