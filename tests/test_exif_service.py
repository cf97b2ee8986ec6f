from __future__ import annotations

from datetime import datetime

import pytest

from infrastructure.exif_service import ExifService


def test_extract_reads_camera_exposure_and_gps(jpeg_bytes):
    meta = ExifService().extract(jpeg_bytes())
    assert meta is not None
    assert (meta.make, meta.model) == ("FUJIFILM", "X-T4")
    assert meta.f_number == pytest.approx(2.8)
    assert meta.exposure_time == pytest.approx(1 / 250)
    assert meta.iso == 400
    assert meta.focal_length == pytest.approx(23.0)
    assert meta.date_time_original == datetime(2023, 7, 1, 18, 30, 5)
    assert meta.latitude == pytest.approx(35.6595, abs=1e-4)
    assert meta.longitude == pytest.approx(-73.9667, abs=1e-4)


def test_extract_from_path(tmp_path, jpeg_bytes):
    path = tmp_path / "shot.jpg"
    path.write_bytes(jpeg_bytes())
    assert ExifService().extract(path).make == "FUJIFILM"


def test_image_without_exif_yields_none(jpeg_bytes):
    assert ExifService().extract(jpeg_bytes(with_exif=False)) is None


def test_unreadable_input_yields_none(tmp_path):
    assert ExifService().extract(b"definitely not an image") is None
    assert ExifService().extract(tmp_path / "missing.jpg") is None
