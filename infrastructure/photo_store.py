"""Photo collection stores.

`LocalPhotoStore` keeps the collection in memory and mirrors it to the
local JSON cache. `RemotePhotoStore` writes through to the remote store
first and only then commits locally with the remote-assigned id. Both
share the same public surface so callers never branch on which is active.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
import threading

from loguru import logger

from core.models import PhotoRecord
from core.seed import SEED_PHOTOS
from core.services.draft_service import new_photo_id
from core.services.interfaces import (
    CacheReadError,
    DuplicatePhotoError,
    RemoteStoreError,
    SnapshotWriter,
)
from infrastructure.json_cache import JsonPhotoCache
from infrastructure.remote_store import (
    RestRemoteStore,
    decode_data_uri,
    record_to_row,
    row_to_record,
)


class LocalPhotoStore:
    """Ordered, newest-first collection persisted to the local cache."""

    def __init__(
        self,
        cache: JsonPhotoCache,
        writer: SnapshotWriter,
        seed: Iterable[PhotoRecord] = SEED_PHOTOS,
    ) -> None:
        self._cache = cache
        self._writer = writer
        self._seed = tuple(seed)
        self._photos: list[PhotoRecord] = []
        self._revision = 0
        self._lock = threading.Lock()

    @property
    def photos(self) -> list[PhotoRecord]:
        return list(self._photos)

    @property
    def revision(self) -> int:
        return self._revision

    def get(self, photo_id: str) -> PhotoRecord | None:
        for photo in self._photos:
            if photo.id == photo_id:
                return photo
        return None

    # Loading

    def _read_cache(self) -> list[PhotoRecord]:
        try:
            cached = self._cache.read()
        except CacheReadError as ex:
            logger.error("Local cache unreadable, using seed set: {}", ex)
            return list(self._seed)
        if cached is None:
            logger.info("No local cache at {}, using seed set", self._cache.path)
            return list(self._seed)
        return _dedupe(cached)

    def load(self) -> list[PhotoRecord]:
        """Read the cached collection, falling back to the seed set."""
        photos = self._read_cache()
        self._replace_all(photos, persist=False)
        logger.info("Loaded {} photos", len(photos))
        return self.photos

    # Commit helpers (local state only)

    def _replace_all(self, photos: list[PhotoRecord], *, persist: bool) -> None:
        with self._lock:
            self._photos = list(photos)
            self._revision += 1
            snapshot = list(self._photos)
        if persist:
            self._writer.submit(snapshot)

    def _commit_add(self, record: PhotoRecord) -> PhotoRecord:
        with self._lock:
            if any(p.id == record.id for p in self._photos):
                raise DuplicatePhotoError(f"Photo id already exists: {record.id}")
            self._photos = [record, *self._photos]
            self._revision += 1
            snapshot = list(self._photos)
        self._writer.submit(snapshot)
        logger.info("Added photo {} ({})", record.id, record.title)
        return record

    def _commit_update(self, record: PhotoRecord) -> PhotoRecord | None:
        with self._lock:
            index = next((i for i, p in enumerate(self._photos) if p.id == record.id), None)
            if index is None:
                return None
            photos = list(self._photos)
            photos[index] = record
            self._photos = photos
            self._revision += 1
            snapshot = list(self._photos)
        self._writer.submit(snapshot)
        logger.info("Updated photo {}", record.id)
        return record

    def _commit_remove(self, photo_id: str) -> bool:
        with self._lock:
            kept = [p for p in self._photos if p.id != photo_id]
            if len(kept) == len(self._photos):
                return False
            self._photos = kept
            self._revision += 1
            snapshot = list(self._photos)
        self._writer.submit(snapshot)
        logger.info("Removed photo {}", photo_id)
        return True

    # Public mutations

    def add(self, record: PhotoRecord) -> PhotoRecord:
        """Prepend `record`; an empty id is replaced by a timestamp id.

        Raises:
            DuplicatePhotoError: a record with the same id already exists.
        """
        if not record.id:
            record = replace(record, id=new_photo_id())
        return self._commit_add(record)

    def update(self, record: PhotoRecord) -> PhotoRecord | None:
        """Replace the record with the same id; None when it is not present."""
        return self._commit_update(record)

    def remove(self, photo_id: str) -> bool:
        return self._commit_remove(photo_id)


class RemotePhotoStore(LocalPhotoStore):
    """Remote-backed store with the local cache as a startup mirror.

    Every mutation hits the remote store first; if that fails a
    `RemoteStoreError` is raised and the in-memory list is left untouched.
    """

    def __init__(
        self,
        remote: RestRemoteStore,
        cache: JsonPhotoCache,
        writer: SnapshotWriter,
        seed: Iterable[PhotoRecord] = SEED_PHOTOS,
    ) -> None:
        super().__init__(cache, writer, seed)
        self._remote = remote

    def load(self) -> list[PhotoRecord]:
        """Load the cached collection, then reconcile with the remote table."""
        super().load()
        try:
            rows = self._remote.select_all()
        except RemoteStoreError as ex:
            logger.warning("Remote load failed, keeping cached collection: {}", ex)
            return self.photos

        photos: list[PhotoRecord] = []
        for row in rows:
            try:
                photos.append(row_to_record(row))
            except (ValueError, TypeError) as ex:
                logger.warning("Skipping malformed remote row: {} | row={}", ex, row)
        self._replace_all(_dedupe(photos), persist=True)
        logger.info("Reconciled {} photos from remote store", len(photos))
        return self.photos

    def add(self, record: PhotoRecord) -> PhotoRecord:
        """Upload the image if needed, insert the row, then commit locally."""
        url = record.url
        if url.startswith("data:"):
            try:
                data, content_type = decode_data_uri(url)
            except ValueError as ex:
                raise RemoteStoreError(f"Cannot upload image: {ex}") from ex
            url = self._remote.upload_image(data, content_type, record.owner_id)
        stored = self._remote.insert(record_to_row(replace(record, url=url), include_id=False))
        try:
            committed = row_to_record(stored)
        except (ValueError, TypeError) as ex:
            raise RemoteStoreError(f"Remote store returned an unusable row: {ex}") from ex
        return self._commit_add(committed)

    def update(self, record: PhotoRecord) -> PhotoRecord | None:
        if self.get(record.id) is None:
            return None
        self._remote.update(record.id, record_to_row(record))
        return self._commit_update(record)

    def remove(self, photo_id: str) -> bool:
        if self.get(photo_id) is None:
            return False
        self._remote.delete(photo_id)
        return self._commit_remove(photo_id)


def _dedupe(photos: Iterable[PhotoRecord]) -> list[PhotoRecord]:
    """Drop later records that reuse an earlier id."""
    seen: set[str] = set()
    result: list[PhotoRecord] = []
    for photo in photos:
        if photo.id in seen:
            logger.warning("Dropping duplicate photo id {}", photo.id)
            continue
        seen.add(photo.id)
        result.append(photo)
    return result
