from __future__ import annotations

import logging
import traceback
from typing import Callable

from PySide6.QtCore import QObject, QThread, Signal, Slot

from frontdesk.application.network_monitor import Task, run_inline

logger = logging.getLogger(__name__)


class SyncWorker(QObject):
    finished = Signal(object)
    failed = Signal(object)

    def __init__(self, operation: Callable[[], object]) -> None:
        super().__init__()
        self._operation = operation

    @Slot()
    def run(self) -> None:
        try:
            result = self._operation()
        except Exception as exc:
            logger.exception("Sync worker failed")
            self.failed.emit({"error": exc, "details": traceback.format_exc()})
            return
        self.finished.emit(result)


class _TaskWorker(QObject):
    def __init__(self, task: Task) -> None:
        super().__init__()
        self._task = task

    @Slot()
    def run(self) -> None:
        run_inline(self._task)
        # quit() is thread-safe; a queued quit would wait for the UI event loop.
        self.thread().quit()


class QThreadDispatcher(QObject):
    """Runs drains triggered by reconnects and saves off the UI thread.

    Overlapping drains are harmless: the queue answers the second one with
    a "busy" result.
    """

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._running: dict[QThread, _TaskWorker] = {}

    def __call__(self, task: Task) -> None:
        self._prune()
        thread = QThread()
        worker = _TaskWorker(task)
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        self._running[thread] = worker
        thread.start()

    def active_count(self) -> int:
        self._prune()
        return len(self._running)

    def wait_all(self, timeout_ms: int = 5000) -> None:
        for thread in list(self._running):
            thread.wait(timeout_ms)
        self._prune()

    def _prune(self) -> None:
        # Python owns finished threads and workers; dropping them frees both.
        for thread in [thread for thread in self._running if thread.isFinished()]:
            del self._running[thread]
