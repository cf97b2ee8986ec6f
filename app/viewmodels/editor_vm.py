"""ViewModel for the add/edit photo forms.

Holds the draft being edited and runs the enrichment collaborators
(metadata extraction, reverse geocoding, caption generation) through a task
runner. Each request gets a token; a result is applied only if its token is
still the latest for that kind and the editor has not been closed since.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any

from loguru import logger

from app.viewmodels.main_vm import MainVM
from core.geo import is_valid_coordinate
from core.models import PhotoRecord
from core.services.draft_service import (
    ExtractedMetadata,
    PhotoDraft,
    draft_from_record,
    draft_to_record,
    has_position,
    merge_metadata,
    new_draft,
    require_valid,
)
from core.services.interfaces import DraftValidationError, OperationResult, TaskRunnerProtocol

STATUS_IDLE = "idle"
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

EXTRACTION = "extraction"
GEOCODE = "geocode"
CAPTION = "caption"


class EditorVM:
    """Add/edit form state with soft-failing enrichment."""

    def __init__(
        self,
        main_vm: MainVM,
        runner: TaskRunnerProtocol,
        *,
        extractor: Any | None = None,
        geocoder: Any | None = None,
        captioner: Any | None = None,
        language: str = "en",
    ) -> None:
        self._main = main_vm
        self._runner = runner
        self._extractor = extractor
        self._geocoder = geocoder
        self._captioner = captioner
        self.language = language
        self.draft = PhotoDraft()
        self.status: dict[str, str] = {}
        self.message = ""
        self._base: PhotoRecord | None = None
        self._default_date: str | None = None
        self._open = False
        self._generation = 0
        self._serial = 0
        self._pending: dict[str, str] = {}

    # Lifecycle

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def is_editing(self) -> bool:
        return self._base is not None

    def _reset(self) -> None:
        self._generation += 1
        self._pending.clear()
        self.status = {EXTRACTION: STATUS_IDLE, GEOCODE: STATUS_IDLE, CAPTION: STATUS_IDLE}
        self.message = ""

    def open_new(self, today: date | None = None) -> None:
        self._reset()
        self._base = None
        self.draft = new_draft(today)
        self._default_date = self.draft.captured_date
        self._open = True

    def open_existing(self, record: PhotoRecord) -> None:
        self._reset()
        self._base = record
        self.draft = draft_from_record(record)
        self._default_date = None
        self._open = True
        self._main.begin_edit(record)

    def close(self) -> None:
        """Close the form; results of in-flight requests are discarded."""
        self._reset()
        if self._base is not None:
            self._main.end_edit()
        self._base = None
        self._open = False

    def update_fields(self, **changes: Any) -> None:
        self.draft = replace(self.draft, **changes)

    def use_current_position(self, lat: float, lng: float) -> None:
        if is_valid_coordinate(lat, lng):
            self.draft = replace(self.draft, lat=lat, lng=lng)

    # Enrichment

    def _next_token(self, kind: str) -> str:
        self._serial += 1
        token = f"{kind}|{self._generation}|{self._serial}"
        self._pending[kind] = token
        return token

    def _is_current(self, kind: str, token: str) -> bool:
        if self._open and self._pending.get(kind) == token:
            del self._pending[kind]
            return True
        logger.debug("Discarding stale {} result {}", kind, token)
        return False

    def set_image(self, url: str, source: str | Path | bytes | None = None) -> str | None:
        """Attach the image and extract its metadata when a source is given."""
        self.draft = replace(self.draft, url=url)
        if source is None:
            return None
        return self.request_extraction(source)

    def request_extraction(self, source: str | Path | bytes) -> str | None:
        if self._extractor is None or not self._open:
            return None
        extractor = self._extractor
        token = self._next_token(EXTRACTION)
        return self._runner.submit(token, lambda: extractor.extract(source), self._on_extraction)

    def _on_extraction(self, token: str, result: object, error: Exception | None) -> None:
        if not self._is_current(EXTRACTION, token):
            return
        if error is not None or not isinstance(result, ExtractedMetadata):
            self.status[EXTRACTION] = STATUS_ERROR
            return
        self.draft = merge_metadata(self.draft, result, default_date=self._default_date)
        self.status[EXTRACTION] = STATUS_SUCCESS

    def request_geocode(self) -> str | None:
        """Look up name/country/region for the draft coordinate."""
        if self._geocoder is None or not self._open:
            return None
        lat, lng = self.draft.lat, self.draft.lng
        if not has_position(self.draft) or not is_valid_coordinate(lat, lng):
            return None
        geocoder = self._geocoder
        language = self.language
        token = self._next_token(GEOCODE)
        return self._runner.submit(
            token, lambda: geocoder.reverse(lat, lng, language), self._on_geocode
        )

    def _on_geocode(self, token: str, result: object, error: Exception | None) -> None:
        if not self._is_current(GEOCODE, token):
            return
        if error is not None or result is None:
            self.status[GEOCODE] = STATUS_ERROR
            return
        self.draft = replace(
            self.draft,
            location_name=getattr(result, "name", self.draft.location_name),
            country=getattr(result, "country", self.draft.country),
            region=getattr(result, "region", self.draft.region),
        )
        self.status[GEOCODE] = STATUS_SUCCESS

    def request_caption(self) -> str | None:
        if self._captioner is None or not self._open or not self.draft.location_name.strip():
            return None
        captioner = self._captioner
        name, notes = self.draft.location_name, self.draft.description
        token = self._next_token(CAPTION)
        return self._runner.submit(token, lambda: captioner.generate(name, notes), self._on_caption)

    def _on_caption(self, token: str, result: object, error: Exception | None) -> None:
        if not self._is_current(CAPTION, token):
            return
        if error is not None or not isinstance(result, str) or not result:
            self.status[CAPTION] = STATUS_ERROR
            return
        self.draft = replace(self.draft, description=result)
        self.status[CAPTION] = STATUS_SUCCESS

    # Submission

    def submit(self) -> OperationResult:
        """Validate and save the draft through the main view-model."""
        try:
            require_valid(self.draft, require_image=not self.is_editing)
        except DraftValidationError as ex:
            self.message = f"Please fill in: {', '.join(ex.missing)}"
            return OperationResult(ok=False, message=self.message)

        if self._base is not None:
            record = draft_to_record(self.draft, base=self._base)
            result = self._main.update_photo(record)
        else:
            user = self._main.user
            record = draft_to_record(
                self.draft,
                owner_id=user.id if user else None,
                owner_name=user.name if user else None,
            )
            result = self._main.add_photo(record)

        if result.ok:
            self.close()
        self.message = result.message
        return result

    def delete(self) -> OperationResult:
        if self._base is None:
            return OperationResult(ok=False, message="Nothing to delete")
        result = self._main.delete_photo(self._base.id)
        if result.ok:
            self._base = None
            self.close()
        self.message = result.message
        return result
