from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from core.services.draft_service import (
    ExtractedMetadata,
    PhotoDraft,
    draft_from_record,
    draft_to_record,
    format_shutter_speed,
    has_position,
    merge_metadata,
    new_draft,
    new_photo_id,
    parse_tags,
    require_valid,
    validate_draft,
)
from core.services.interfaces import DraftValidationError

META = ExtractedMetadata(
    make="FUJIFILM",
    model="X-T4",
    f_number=2.8,
    exposure_time=1 / 250,
    iso=400,
    focal_length=23.0,
    date_time_original=datetime(2023, 7, 1, 18, 30),
    latitude=35.6595,
    longitude=139.7005,
)


@pytest.mark.parametrize(
    "value,expected",
    [(1 / 250, "1/250s"), (1 / 3, "1/3s"), (2.5, "2.5s"), (1.0, "1s"), (0, ""), (None, "")],
)
def test_format_shutter_speed(value, expected):
    assert format_shutter_speed(value) == expected


def test_validation_lists_missing_fields():
    draft = new_draft(date(2024, 5, 1))
    assert validate_draft(draft, require_image=True) == ["image", "title", "location name"]
    assert validate_draft(draft, require_image=False) == ["title", "location name"]
    bad_date = PhotoDraft(title="t", location_name="x", captured_date="soon")
    assert validate_draft(bad_date, require_image=False) == ["date"]


def test_require_valid_raises_with_missing_names():
    with pytest.raises(DraftValidationError) as info:
        require_valid(PhotoDraft(captured_date="2024-05-01"), require_image=True)
    assert info.value.missing == ["image", "title", "location name"]


def test_merge_fills_empty_fields():
    draft = new_draft(date(2024, 5, 1))
    merged = merge_metadata(draft, META, default_date=draft.captured_date)
    assert merged.camera == "FUJIFILM X-T4"
    assert merged.aperture == "f/2.8"
    assert merged.shutter_speed == "1/250s"
    assert merged.iso == "400"
    assert merged.focal_length == "23mm"
    assert merged.captured_date == "2023-07-01"
    assert (merged.lat, merged.lng) == (35.6595, 139.7005)


def test_merge_never_overwrites_user_values():
    draft = PhotoDraft(
        camera="My camera", captured_date="2022-01-01", lat=10.0, lng=20.0, iso="100"
    )
    merged = merge_metadata(draft, META, default_date="2024-05-01")
    assert merged.camera == "My camera"
    assert merged.captured_date == "2022-01-01"
    assert (merged.lat, merged.lng) == (10.0, 20.0)
    assert merged.iso == "100"
    assert merged.aperture == "f/2.8"


def test_merge_without_metadata_returns_same_draft():
    draft = PhotoDraft(title="x")
    assert merge_metadata(draft, ExtractedMetadata()) is draft


def test_parse_tags():
    assert parse_tags(" beach, Beach ,, sunset ") == ("beach", "sunset")
    assert parse_tags("") == ()


def test_new_record_from_draft():
    draft = PhotoDraft(
        title=" Lake ",
        captured_date="2024-05-01",
        url="data:image/png;base64,AA==",
        location_name="Bled, Slovenia",
        lat=46.36,
        lng=14.09,
        country="Slovenia",
        region="",
        tags="lake, alps",
    )
    record = draft_to_record(draft, owner_id="u1", owner_name="Alex")
    assert record.id.isdigit()
    assert record.title == "Lake"
    assert record.location.region is None
    assert record.location.country == "Slovenia"
    assert record.tags == ("lake", "alps")
    assert record.owner_name == "Alex"


def test_edit_round_trip_keeps_identity(world_photos):
    original = world_photos[0]
    draft = draft_from_record(original)
    assert draft.tags == "sunrise"
    assert draft.camera == "Leica Q2"
    edited = draft_to_record(replace(draft, title="New"), base=original)
    assert edited.id == original.id
    assert edited.url == original.url
    assert edited.title == "New"
    assert edited.location == original.location


def test_missing_coordinates_survive_an_edit(photo_factory):
    unplaced = photo_factory("u1", lat=None, lng=None)
    draft = draft_from_record(unplaced)
    assert (draft.lat, draft.lng) == (None, None)
    edited = draft_to_record(replace(draft, title="Renamed"), base=unplaced)
    assert (edited.location.lat, edited.location.lng) == (None, None)


@pytest.mark.parametrize(
    "lat,lng,expected",
    [(None, None, False), (46.36, None, False), (0.0, 0.0, False), (0.0, 14.09, True)],
)
def test_has_position(lat, lng, expected):
    assert has_position(PhotoDraft(lat=lat, lng=lng)) is expected


def test_merge_fills_missing_coordinates():
    merged = merge_metadata(PhotoDraft(lat=None, lng=None), META)
    assert (merged.lat, merged.lng) == (35.6595, 139.7005)


def test_photo_ids_are_unique_and_increasing():
    ids = [int(new_photo_id()) for _ in range(500)]
    assert len(set(ids)) == 500
    assert ids == sorted(ids)
