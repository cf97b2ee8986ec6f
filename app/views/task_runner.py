from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal, Slot
from loguru import logger

Callback = Callable[[str, object, "Exception | None"], None]


class _Task(QRunnable):
    """QRunnable for one background call.

    Emits `receiver.taskFinished(token, result, error)` upon completion; the
    receiver lives on the GUI thread so the callback runs there too.
    """

    def __init__(self, *, token: str, fn: Callable[[], object], receiver: TaskRunner) -> None:
        super().__init__()
        self._token = token
        self._fn = fn
        self._receiver = receiver

    def run(self) -> None:  # type: ignore[override]
        result: object = None
        error: Exception | None = None
        try:
            result = self._fn()
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("Background task {} failed: {}", self._token, ex)
            error = ex
        self._receiver.taskFinished.emit(self._token, result, error)


class TaskRunner(QObject):
    """Dispatches collaborator calls to the global thread pool.

    Results come back through a queued signal, so callbacks never run
    concurrently with UI code.
    """

    taskFinished = Signal(str, object, object)

    def __init__(self, pool: QThreadPool | None = None) -> None:
        super().__init__()
        self._pool = pool or QThreadPool.globalInstance()
        self._callbacks: dict[str, Callback] = {}
        self.taskFinished.connect(self._on_finished)

    def submit(self, token: str, fn: Callable[[], object], callback: Callback) -> str:
        """Run `fn` in the background and call `callback` with its outcome."""
        self._callbacks[token] = callback
        self._pool.start(_Task(token=token, fn=fn, receiver=self))
        return token

    @Slot(str, object, object)
    def _on_finished(self, token: str, result: object, error: object) -> None:
        callback = self._callbacks.pop(token, None)
        if callback is None:
            return
        callback(token, result, error if isinstance(error, Exception) else None)


class InlineRunner:
    """Runs calls synchronously; for scripts and tests."""

    def submit(self, token: str, fn: Callable[[], object], callback: Callback) -> str:
        try:
            result = fn()
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("Task {} failed: {}", token, ex)
            callback(token, None, ex)
            return token
        callback(token, result, None)
        return token
