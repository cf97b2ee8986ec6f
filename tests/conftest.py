from __future__ import annotations

import io
from pathlib import Path

from PIL import Image
from PIL.TiffImagePlugin import IFDRational
from PySide6.QtCore import QCoreApplication
import pytest

from core.models import GeoLocation, PhotoRecord, ShootingParameters
from infrastructure.exif_service import IFD_EXIF, IFD_GPS
from infrastructure.json_cache import JsonPhotoCache
from infrastructure.persistence_queue import ImmediateWriter


def make_photo(
    photo_id: str,
    *,
    lat: float | None = 48.8581,
    lng: float | None = 2.2941,
    name: str = "Paris, France",
    country: str | None = "France",
    region: str | None = "Europe",
    title: str | None = None,
    captured: str = "2024-03-15",
    tags: tuple[str, ...] = (),
    owner_name: str | None = None,
) -> PhotoRecord:
    return PhotoRecord(
        id=photo_id,
        url=f"https://example.test/{photo_id}.jpg",
        title=title if title is not None else f"Photo {photo_id}",
        description="",
        captured_date=captured,
        location=GeoLocation(lat=lat, lng=lng, name=name, country=country, region=region),
        tags=tags,
        parameters=ShootingParameters(camera="Leica Q2"),
        owner_name=owner_name,
    )


@pytest.fixture
def photo_factory():
    return make_photo


@pytest.fixture
def world_photos() -> list[PhotoRecord]:
    """Two Paris shots in one bucket, one in Tokyo, one in Rome."""
    return [
        make_photo("p1", title="Eiffel at dawn", tags=("sunrise",)),
        make_photo("p2", lat=48.8583, lng=2.2943, title="Eiffel at dusk"),
        make_photo(
            "t1",
            lat=35.6595,
            lng=139.7005,
            name="Tokyo, Japan",
            country="Japan",
            region="Asia",
            title="Shibuya Crossing",
            captured="2024-04-10",
        ),
        make_photo(
            "r1",
            lat=41.8902,
            lng=12.4922,
            name="Rome, Italy",
            country="Italy",
            region="Europe",
            title="The Colosseum",
            captured="2024-02-05",
        ),
    ]


@pytest.fixture
def cache(tmp_path: Path) -> JsonPhotoCache:
    return JsonPhotoCache(tmp_path / "photos.json")


@pytest.fixture
def writer(cache: JsonPhotoCache) -> ImmediateWriter:
    return ImmediateWriter(cache.write)


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


def make_jpeg(with_exif: bool = True) -> bytes:
    exif = Image.Exif()
    if with_exif:
        exif[271] = "FUJIFILM"
        exif[272] = "X-T4"
        exif[IFD_EXIF] = {
            33434: IFDRational(1, 250),
            33437: IFDRational(28, 10),
            34855: 400,
            36867: "2023:07:01 18:30:05",
            37386: IFDRational(23, 1),
        }
        exif[IFD_GPS] = {
            1: "N",
            2: (IFDRational(35, 1), IFDRational(39, 1), IFDRational(3420, 100)),
            3: "W",
            4: (IFDRational(73, 1), IFDRational(58, 1), IFDRational(0, 1)),
        }
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color="navy").save(buffer, "JPEG", exif=exif)
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes():
    """Builder for a small JPEG, with camera, exposure and GPS tags by default."""
    return make_jpeg
