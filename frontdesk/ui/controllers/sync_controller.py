from __future__ import annotations

import logging

from PySide6.QtCore import QThread

from frontdesk.application.offline_sync_service import OfflineSyncService
from frontdesk.bootstrap.logging import log_operational_error
from frontdesk.core.observability import OperationContext, log_event
from frontdesk.domain.sync_models import DrainResult
from frontdesk.ui.workers.sync_workers import SyncWorker

logger = logging.getLogger(__name__)


def describe_result(result: DrainResult) -> str:
    if result.skipped_offline:
        return "Offline: changes stay saved on this device."
    if result.skipped_busy:
        return "A sync is already running."
    if result.error:
        return f"Sync failed: {result.error}"
    if result.attempted == 0:
        return "Nothing to sync."
    if result.failed:
        return f"Synced {result.succeeded} of {result.attempted}; {result.failed} will retry."
    return f"Synced {result.succeeded} change(s)."


class SyncController:
    """Manual "Retry sync" from the window, one drain at a time."""

    def __init__(self, window, sync_service: OfflineSyncService) -> None:
        self.window = window
        self._sync_service = sync_service
        self._thread: QThread | None = None
        self._worker: SyncWorker | None = None

    @property
    def in_progress(self) -> bool:
        return self._thread is not None

    def on_retry_sync(self) -> None:
        if self.in_progress:
            return
        if not self._sync_service.is_online:
            self.window.show_message(describe_result(DrainResult.offline()))
            return

        operation_context = OperationContext("sync_ui")
        log_event(
            logger,
            "manual_sync_requested",
            {"pending": self._sync_service.pending_count()},
            operation_context.correlation_id,
        )
        self.window.set_sync_in_progress(True)

        self._thread = QThread()
        self._worker = SyncWorker(self._sync_service.sync_data)
        self._worker.moveToThread(self._thread)
        self._thread.started.connect(self._worker.run)
        self._worker.finished.connect(self._on_finished)
        self._worker.failed.connect(self._on_failed)
        self._worker.finished.connect(self._thread.quit)
        self._worker.failed.connect(self._thread.quit)
        self._worker.finished.connect(self._worker.deleteLater)
        self._worker.failed.connect(self._worker.deleteLater)
        self._thread.finished.connect(self._thread.deleteLater)
        self._thread.finished.connect(self._clear_thread)
        self._thread.start()

    def _on_finished(self, result: DrainResult) -> None:
        self.window.set_sync_in_progress(False)
        self.window.show_message(describe_result(result))

    def _on_failed(self, payload: dict) -> None:
        error = payload.get("error")
        log_operational_error(logger, "Manual sync failed", exc=error if isinstance(error, Exception) else None)
        self.window.set_sync_in_progress(False)
        self.window.show_message(f"Sync failed: {error}")

    def _clear_thread(self) -> None:
        self._thread = None
        self._worker = None
