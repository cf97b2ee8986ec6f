from __future__ import annotations

from datetime import date, datetime

import pytest

from app.viewmodels.editor_vm import (
    CAPTION,
    EXTRACTION,
    GEOCODE,
    STATUS_ERROR,
    STATUS_IDLE,
    STATUS_SUCCESS,
    EditorVM,
)
from app.viewmodels.main_vm import MainVM
from app.views.task_runner import InlineRunner
from core.models import User
from core.services.draft_service import ExtractedMetadata
from infrastructure.geocoding_service import GeocodeResult
from infrastructure.photo_store import LocalPhotoStore

PNG_URL = "data:image/png;base64,iVBORw0KGgo="


class DeferredRunner:
    """Holds submitted calls until the test completes them."""

    def __init__(self):
        self.calls = []

    def submit(self, token, fn, callback):
        self.calls.append((token, fn, callback))
        return token

    def finish(self, index):
        token, fn, callback = self.calls[index]
        callback(token, fn(), None)


class FakeExtractor:
    def __init__(self, meta):
        self.meta = meta

    def extract(self, source):
        return self.meta


class FakeGeocoder:
    def __init__(self, *names):
        self.names = list(names)

    def reverse(self, lat, lng, language="en"):
        name = self.names.pop(0)
        return GeocodeResult(name=name, country="Slovenia", region="Europe")


class FakeCaptioner:
    def generate(self, location_name, notes=""):
        return f"A quiet morning in {location_name}."


class BrokenCaptioner:
    def generate(self, location_name, notes=""):
        raise RuntimeError("quota exceeded")


@pytest.fixture
def main_vm(cache, writer, world_photos) -> MainVM:
    vm = MainVM(
        LocalPhotoStore(cache, writer, seed=world_photos),
        user=User(id="u1", name="Alex", email="alex@example.test"),
    )
    vm.load()
    return vm


META = ExtractedMetadata(
    make="Canon",
    model="EOS R5",
    f_number=4.0,
    date_time_original=datetime(2023, 9, 2, 7, 15),
    latitude=46.3625,
    longitude=14.0936,
)


def test_add_flow_with_metadata_geocode_and_caption(main_vm):
    editor = EditorVM(
        main_vm,
        InlineRunner(),
        extractor=FakeExtractor(META),
        geocoder=FakeGeocoder("Bled, Slovenia"),
        captioner=FakeCaptioner(),
    )
    editor.open_new(date(2024, 5, 1))
    assert editor.status == {
        EXTRACTION: STATUS_IDLE,
        GEOCODE: STATUS_IDLE,
        CAPTION: STATUS_IDLE,
    }
    editor.set_image(PNG_URL, b"raw image bytes")
    assert editor.status[EXTRACTION] == STATUS_SUCCESS
    assert editor.draft.camera == "Canon EOS R5"
    assert editor.draft.captured_date == "2023-09-02"
    assert (editor.draft.lat, editor.draft.lng) == (46.3625, 14.0936)

    editor.request_geocode()
    assert editor.draft.location_name == "Bled, Slovenia"
    assert editor.draft.region == "Europe"
    editor.request_caption()
    assert editor.draft.description == "A quiet morning in Bled, Slovenia."

    editor.update_fields(title="Lake Bled", tags="lake, alps")
    result = editor.submit()
    assert result.ok
    assert not editor.is_open
    assert editor.message == "Photo saved"
    added = main_vm.photos[0]
    assert added.title == "Lake Bled"
    assert added.owner_id == "u1"
    assert added.owner_name == "Alex"
    assert added.tags == ("lake", "alps")


def test_submit_reports_missing_fields(main_vm):
    editor = EditorVM(main_vm, InlineRunner())
    editor.open_new(date(2024, 5, 1))
    result = editor.submit()
    assert not result.ok
    assert editor.message == "Please fill in: image, title, location name"
    assert editor.is_open
    assert len(main_vm.photos) == 4


def test_metadata_does_not_overwrite_typed_values(main_vm):
    editor = EditorVM(main_vm, InlineRunner(), extractor=FakeExtractor(META))
    editor.open_new(date(2024, 5, 1))
    editor.update_fields(camera="Film camera", captured_date="2020-01-01")
    editor.use_current_position(45.0, 7.0)
    editor.set_image(PNG_URL, b"raw")
    assert editor.draft.camera == "Film camera"
    assert editor.draft.captured_date == "2020-01-01"
    assert (editor.draft.lat, editor.draft.lng) == (45.0, 7.0)
    assert editor.draft.aperture == "f/4"


def test_only_latest_geocode_result_is_applied(main_vm):
    runner = DeferredRunner()
    editor = EditorVM(main_vm, runner, geocoder=FakeGeocoder("First", "Second"))
    editor.open_new(date(2024, 5, 1))
    editor.use_current_position(46.0, 14.0)
    editor.request_geocode()
    editor.use_current_position(46.5, 14.5)
    editor.request_geocode()
    runner.finish(0)
    assert editor.draft.location_name == ""
    runner.finish(1)
    assert editor.draft.location_name == "Second"


def test_results_after_close_are_discarded(main_vm):
    runner = DeferredRunner()
    editor = EditorVM(main_vm, runner, captioner=FakeCaptioner())
    editor.open_new(date(2024, 5, 1))
    editor.update_fields(location_name="Rome", description="notes")
    editor.request_caption()
    editor.close()
    editor.open_new(date(2024, 5, 1))
    runner.finish(0)
    assert editor.draft.description == ""
    assert editor.status[CAPTION] == STATUS_IDLE


def test_geocode_and_caption_preconditions(main_vm):
    runner = DeferredRunner()
    editor = EditorVM(main_vm, runner, geocoder=FakeGeocoder(), captioner=FakeCaptioner())
    editor.open_new(date(2024, 5, 1))
    assert editor.request_geocode() is None
    assert editor.request_caption() is None
    assert runner.calls == []


def test_collaborator_failure_sets_error_status(main_vm):
    editor = EditorVM(main_vm, InlineRunner(), captioner=BrokenCaptioner())
    editor.open_new(date(2024, 5, 1))
    editor.update_fields(location_name="Rome", description="mine")
    editor.request_caption()
    assert editor.status[CAPTION] == STATUS_ERROR
    assert editor.draft.description == "mine"


def test_edit_flow_keeps_id_and_refreshes_focus(main_vm):
    paris = main_vm.photos[0]
    main_vm.focus_photo(paris)
    editor = EditorVM(main_vm, InlineRunner())
    editor.open_existing(paris)
    assert main_vm.state.edit_target == paris
    editor.update_fields(title="Paris again")
    assert editor.submit().ok
    assert main_vm.state.edit_target is None
    assert main_vm.state.focused_photo.id == paris.id
    assert main_vm.state.focused_photo.title == "Paris again"
    assert main_vm.photos[0].url == paris.url


def test_delete_from_editor(main_vm):
    rome = main_vm.photos[3]
    main_vm.focus_photo(rome)
    editor = EditorVM(main_vm, InlineRunner())
    editor.open_existing(rome)
    assert editor.delete().ok
    assert not editor.is_open
    assert main_vm.state.focused_photo is None
    assert main_vm.state.edit_target is None
    assert "r1" not in [p.id for p in main_vm.photos]
    assert not editor.delete().ok


def test_editing_title_keeps_missing_coordinates_off_the_map(
    cache, writer, world_photos, photo_factory
):
    unplaced = photo_factory("u1", lat=None, lng=None, name="Somewhere", title="Old scan")
    vm = MainVM(LocalPhotoStore(cache, writer, seed=[*world_photos, unplaced]))
    vm.load()
    runner = DeferredRunner()
    editor = EditorVM(vm, runner, geocoder=FakeGeocoder("Null Island"))
    editor.open_existing(unplaced)
    assert (editor.draft.lat, editor.draft.lng) == (None, None)
    assert editor.request_geocode() is None
    assert runner.calls == []

    editor.update_fields(title="Restored scan")
    assert editor.submit().ok
    saved = next(p for p in vm.photos if p.id == "u1")
    assert saved.title == "Restored scan"
    assert (saved.location.lat, saved.location.lng) == (None, None)
    assert all("u1" not in g.photo_ids for g in vm.groups)
    assert "u1" in [p.id for p in vm.filtered]


def test_back_to_back_adds_get_distinct_ids(main_vm):
    editor = EditorVM(main_vm, InlineRunner())
    for title in ("First", "Second"):
        editor.open_new(date(2024, 5, 1))
        editor.set_image(PNG_URL)
        editor.update_fields(title=title, location_name="Bled, Slovenia")
        assert editor.submit().ok
    added = [p for p in main_vm.photos if p.title in ("First", "Second")]
    assert len({p.id for p in added}) == 2
