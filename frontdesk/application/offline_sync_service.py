from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from frontdesk.application.network_monitor import Dispatcher, NetworkMonitor, run_inline
from frontdesk.application.sync_queue import SyncQueue
from frontdesk.bootstrap.logging import log_operational_error
from frontdesk.domain.ports import ConnectivitySourcePort, LocalStorePort, ReplayTransportPort, Unsubscribe
from frontdesk.domain.sync_errors import StoreUnavailableError
from frontdesk.domain.sync_models import (
    MIRROR_PARTITIONS,
    ConnectivityState,
    DrainResult,
    Payload,
    SyncOperation,
    SyncRecord,
    SyncStatus,
    SyncStatusSnapshot,
)

logger = logging.getLogger(__name__)

StatusListener = Callable[[SyncStatusSnapshot], None]


class OfflineSyncService:
    """Connectivity-aware save/read API used by the front desk screens.

    If the local store cannot be opened the service keeps working in
    online-only mode: saves go straight to the API and offline reads are
    empty.
    """

    def __init__(
        self,
        store: LocalStorePort,
        transport: ReplayTransportPort,
        connectivity: ConnectivitySourcePort,
        *,
        dispatcher: Dispatcher = run_inline,
    ) -> None:
        self._store = store
        self._transport = transport
        self._dispatcher = dispatcher
        self._monitor = NetworkMonitor(connectivity, self.sync_data, dispatcher=dispatcher)
        self._queue = SyncQueue(store, transport, lambda: self._monitor.is_online)
        self._offline_enabled = False
        self._status = SyncStatus.IDLE
        self._status_lock = threading.Lock()
        self._listeners: list[StatusListener] = []
        self._monitor_unsubscribe: Unsubscribe | None = None

    @property
    def queue(self) -> SyncQueue:
        return self._queue

    @property
    def offline_enabled(self) -> bool:
        return self._offline_enabled

    @property
    def is_online(self) -> bool:
        return self._monitor.is_online

    @property
    def connectivity(self) -> ConnectivityState:
        return self._monitor.state

    @property
    def sync_status(self) -> SyncStatus:
        with self._status_lock:
            return self._status

    def start(self) -> None:
        try:
            self._store.open()
            self._offline_enabled = True
        except StoreUnavailableError as exc:
            self._offline_enabled = False
            log_operational_error(logger, "Offline storage disabled, running online-only", exc=exc)
        if self._monitor_unsubscribe is None:
            self._monitor_unsubscribe = self._monitor.subscribe(lambda _state: self._notify())
        self._monitor.start()
        self._notify()

    def stop(self) -> None:
        self._monitor.stop()
        if self._monitor_unsubscribe is not None:
            self._monitor_unsubscribe()
            self._monitor_unsubscribe = None
        self._store.close()

    def save_offline(
        self,
        model: str,
        data: Payload,
        operation: SyncOperation | str = SyncOperation.CREATE,
        *,
        keep_local_copy: bool = False,
    ) -> SyncRecord:
        """Queue a mutation for ``model`` and try to send it right away when online.

        With ``keep_local_copy`` the data also goes into the model's mirror,
        marked ``pendingSync``, until the next refresh brings the server copy.
        """
        if not self._offline_enabled:
            record = SyncRecord.new(operation, model, data)
            self._transport.replay(record)
            return record

        try:
            record = self._queue.enqueue(operation, model, data)
        except Exception as exc:
            log_operational_error(logger, "Failed to save offline data", exc=exc, extra={"model": model})
            raise
        if keep_local_copy:
            self._store_pending_copy(record)
        self._notify()
        if self.is_online:
            self._dispatcher(self.sync_data)
        return record

    def _store_pending_copy(self, record: SyncRecord) -> None:
        if record.model not in MIRROR_PARTITIONS or not isinstance(record.payload, dict):
            return
        try:
            self._store.put(record.model, {"id": record.id, **record.payload, "pendingSync": True})
        except StoreUnavailableError as exc:
            log_operational_error(logger, "Could not keep a local copy", exc=exc, extra={"record_id": record.id})

    def get_offline_records(self, model: str) -> list[dict[str, Any]]:
        if model not in MIRROR_PARTITIONS:
            logger.warning("No local mirror for %r", model)
            return []
        if not self._offline_enabled:
            return []
        try:
            return self._store.get_all(model)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to get offline data for %s", model)
            return []

    def save_mirror_record(self, model: str, record: dict[str, Any]) -> None:
        if model not in MIRROR_PARTITIONS:
            raise ValueError(f"No local mirror for {model!r}")
        self._store.put(model, record)

    def refresh_mirror(self, model: str) -> int:
        if model not in MIRROR_PARTITIONS or not self._offline_enabled or not self.is_online:
            return 0
        try:
            rows = self._transport.fetch_collection(model)
            stored = self._store.replace_all(model, [row for row in rows if row.get("id") is not None])
        except Exception as exc:  # noqa: BLE001
            log_operational_error(logger, "Mirror refresh failed", exc=exc, extra={"model": model})
            return 0
        logger.info("Mirror %s refreshed with %s record(s)", model, stored)
        return stored

    def refresh_mirrors(self) -> dict[str, int]:
        return {model: self.refresh_mirror(model) for model in MIRROR_PARTITIONS}

    def sync_data(self) -> DrainResult:
        if not self.is_online:
            return DrainResult.offline()
        if not self._offline_enabled:
            return DrainResult()

        try:
            result = self._queue.drain(on_started=lambda: self._set_status(SyncStatus.SYNCING))
        except Exception as exc:  # noqa: BLE001
            log_operational_error(logger, "Sync failed", exc=exc)
            self._set_status(SyncStatus.ERROR)
            return DrainResult.aborted(str(exc))

        if result.skipped_busy or result.skipped_offline:
            return result
        if not result.has_failures and self.pending_count() == 0:
            # Local rows written while offline are replaced by the server's copy.
            self.refresh_mirrors()
        self._set_status(SyncStatus.ERROR if result.has_failures else SyncStatus.IDLE)
        return result

    def pending_count(self) -> int:
        if not self._offline_enabled:
            return 0
        try:
            return self._queue.pending_count()
        except StoreUnavailableError:
            logger.exception("Could not count pending records")
            return 0

    def snapshot(self) -> SyncStatusSnapshot:
        return SyncStatusSnapshot(
            connectivity=self.connectivity,
            sync_status=self.sync_status,
            pending=self.pending_count(),
            offline_enabled=self._offline_enabled,
        )

    def subscribe_status(self, listener: StatusListener) -> Unsubscribe:
        with self._status_lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._status_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _set_status(self, status: SyncStatus) -> None:
        with self._status_lock:
            self._status = status
        self._notify()

    def _notify(self) -> None:
        with self._status_lock:
            listeners = list(self._listeners)
        if not listeners:
            return
        snapshot = self.snapshot()
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:  # noqa: BLE001
                logger.exception("Sync status listener failed")
