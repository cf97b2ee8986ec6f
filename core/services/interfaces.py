"""Core service interfaces, errors and shared result structures.

The store protocol lets view code work against either the local-only store
or the remote-backed one without knowing which is active.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from core.models import PhotoRecord


class StoreError(Exception):
    """A store mutation could not be completed; local state is unchanged."""


class DuplicatePhotoError(StoreError):
    """An added record reuses an id that already exists in the collection."""


class RemoteStoreError(StoreError):
    """The remote store rejected a request or did not answer."""


class CacheReadError(Exception):
    """The local cache exists but could not be read or parsed."""


class DraftValidationError(ValueError):
    """A draft is missing required fields.

    Attributes:
        missing: Names of the missing fields, in form order.
    """

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Missing required fields: {', '.join(missing)}")
        self.missing = missing


@dataclass
class OperationResult:
    """Outcome of a user-initiated store operation.

    Attributes:
        ok: Whether the mutation was committed.
        message: User-visible status text (empty on silent success).
        record: The committed record for add/update, when available.
    """

    ok: bool
    message: str = ""
    record: PhotoRecord | None = None


class PhotoStore(Protocol):
    """Capability set shared by every photo store implementation."""

    @property
    def photos(self) -> list[PhotoRecord]:
        """Current collection, newest first."""
        ...

    @property
    def revision(self) -> int:
        """Counter bumped on every committed change."""
        ...

    def load(self) -> list[PhotoRecord]:
        """Load the collection at startup; never raises."""
        ...

    def add(self, record: PhotoRecord) -> PhotoRecord:
        """Prepend `record` and return it as committed (id may be reassigned)."""
        ...

    def update(self, record: PhotoRecord) -> PhotoRecord | None:
        """Replace the record with the same id; None when no such record."""
        ...

    def remove(self, photo_id: str) -> bool:
        """Remove by id; False when no such record."""
        ...


class SnapshotWriter(Protocol):
    """Schedules a full-collection write to the local cache."""

    def submit(self, photos: list[PhotoRecord]) -> None:
        """Queue a write of `photos`; must not raise."""
        ...


class TaskRunnerProtocol(Protocol):
    """Runs a callable and reports `(token, result, error)` to a callback."""

    def submit(
        self,
        token: str,
        fn: Callable[[], object],
        callback: Callable[[str, object, Exception | None], None],
    ) -> str:
        """Schedule `fn`; return `token`."""
        ...
