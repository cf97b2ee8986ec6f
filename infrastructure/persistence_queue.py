"""Background snapshot writes for the local cache.

Writes run on a private single-thread `QThreadPool`, so they execute in
submission order and the most recent snapshot is always the last one
written. Failures are logged and never reach the caller.
"""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QRunnable, QThreadPool
from loguru import logger

from core.models import PhotoRecord

WriteFn = Callable[[list[PhotoRecord]], None]


class _SnapshotTask(QRunnable):
    """QRunnable that writes one collection snapshot."""

    def __init__(self, *, write: WriteFn, photos: list[PhotoRecord], serial: int) -> None:
        super().__init__()
        self._write = write
        self._photos = photos
        self._serial = serial

    def run(self) -> None:  # type: ignore[override]
        try:
            self._write(self._photos)
            logger.debug("Cache snapshot #{} written ({} photos)", self._serial, len(self._photos))
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("Cache snapshot #{} failed: {}", self._serial, ex)


class PersistenceQueue:
    """Fire-and-forget writer of full-collection snapshots."""

    def __init__(self, write: WriteFn) -> None:
        self._write = write
        self._pool = QThreadPool()
        self._pool.setMaxThreadCount(1)
        self._serial = 0

    def submit(self, photos: list[PhotoRecord]) -> None:
        """Queue a write of a copy of `photos`."""
        self._serial += 1
        task = _SnapshotTask(write=self._write, photos=list(photos), serial=self._serial)
        self._pool.start(task)

    def wait_for_done(self, timeout_ms: int = -1) -> bool:
        """Block until queued writes finish; used at shutdown."""
        return bool(self._pool.waitForDone(timeout_ms))


class ImmediateWriter:
    """Writes snapshots inline on the caller's thread, logging failures."""

    def __init__(self, write: WriteFn) -> None:
        self._write = write

    def submit(self, photos: list[PhotoRecord]) -> None:
        try:
            self._write(list(photos))
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("Cache snapshot failed: {}", ex)

    def wait_for_done(self, timeout_ms: int = -1) -> bool:  # pylint: disable=unused-argument
        return True
