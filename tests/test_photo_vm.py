from __future__ import annotations

from dataclasses import replace

from app.viewmodels.photo_vm import PLACEHOLDER, PhotoVM
from core.seed import SEED_PHOTOS


def test_display_properties():
    vm = PhotoVM(SEED_PHOTOS[0])
    assert vm.camera == "Sony A7R IV"
    assert vm.shutter_speed == "1/200s"
    assert vm.hashtags == ["#landmark", "#sunrise"]
    assert vm.display_date == "March 15, 2024"
    assert vm.location_label == "Paris, France"
    assert vm.is_mappable


def test_localized_date():
    assert PhotoVM(SEED_PHOTOS[1], language="zh").display_date == "2024年4月10日"


def test_placeholders_for_missing_parameters(photo_factory):
    vm = PhotoVM(replace(photo_factory("a", lat=None, captured="unknown"), parameters=None))
    assert vm.camera == "Unknown"
    assert vm.aperture == PLACEHOLDER
    assert vm.iso == PLACEHOLDER
    assert vm.display_date == "unknown"
    assert not vm.is_mappable
