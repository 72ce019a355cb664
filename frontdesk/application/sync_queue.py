from __future__ import annotations

import logging
import threading
import uuid
from typing import Callable

from frontdesk.bootstrap.logging import log_operational_error
from frontdesk.core.metrics import measure_time, metrics_registry
from frontdesk.core.observability import OperationContext, log_event
from frontdesk.domain.ports import LocalStorePort, ReplayTransportPort
from frontdesk.domain.sync_errors import StoreUnavailableError
from frontdesk.domain.sync_models import SYNC_QUEUE_PARTITION, DrainResult, Payload, SyncOperation, SyncRecord

logger = logging.getLogger(__name__)


class SyncQueue:
    """Buffers mutations in the local store and replays them oldest first.

    Delivery is at-least-once: a record leaves the queue only after the API
    accepted it, and a failed record never stops the rest of the drain.
    Drains never overlap; a second caller gets ``DrainResult.busy()`` back
    instead of waiting.
    """

    def __init__(
        self,
        store: LocalStorePort,
        transport: ReplayTransportPort,
        is_online: Callable[[], bool],
    ) -> None:
        self._store = store
        self._transport = transport
        self._is_online = is_online
        self._drain_lock = threading.Lock()

    def enqueue(self, operation: SyncOperation | str, model: str, payload: Payload) -> SyncRecord:
        record = SyncRecord.new(operation, model, payload)
        self._store.put(SYNC_QUEUE_PARTITION, record.to_row())
        metrics_registry.increment("sync.enqueued")
        logger.info("Queued %s %s as %s", record.operation.value, record.model, record.id)
        return record

    def pending(self) -> list[SyncRecord]:
        return [SyncRecord.from_row(row) for row in self._store.get_all(SYNC_QUEUE_PARTITION)]

    def pending_count(self) -> int:
        return self._store.count(SYNC_QUEUE_PARTITION)

    @measure_time("latency.sync_drain_ms")
    def drain(self, on_started: Callable[[], None] | None = None) -> DrainResult:
        """Replay every queued record oldest first.

        ``on_started`` is called only when this call actually runs the drain,
        never for a skipped one.
        """
        if not self._is_online():
            logger.debug("Drain skipped: offline")
            return DrainResult.offline()
        if not self._drain_lock.acquire(blocking=False):
            logger.debug("Drain skipped: another drain is running")
            return DrainResult.busy()
        try:
            if on_started is not None:
                on_started()
            with OperationContext("sync_drain") as operation:
                return self._drain_pending(operation)
        finally:
            self._drain_lock.release()

    def replay_one(self, record: SyncRecord) -> bool:
        try:
            self._transport.replay(record)
        except Exception as exc:  # noqa: BLE001
            self._record_failure(record, exc)
            return False

        try:
            self._store.delete(SYNC_QUEUE_PARTITION, record.id)
        except StoreUnavailableError as exc:
            # Delivered but still queued: the next drain sends it again.
            log_operational_error(
                logger,
                "Replayed record could not be removed from the queue",
                exc=exc,
                extra={"record_id": record.id, "model": record.model},
            )
            return False
        metrics_registry.increment("sync.replayed")
        return True

    def _drain_pending(self, operation: OperationContext) -> DrainResult:
        drain_id = uuid.uuid4().hex[:12]
        operation.bind_drain(drain_id)
        correlation_id = operation.correlation_id
        records = self.pending()
        log_event(logger, "drain_started", {"drain_id": drain_id, "pending": len(records)}, correlation_id)

        succeeded = 0
        failed_ids: list[str] = []
        for record in records:
            if self.replay_one(record):
                succeeded += 1
            else:
                failed_ids.append(record.id)

        result = DrainResult(
            attempted=len(records),
            succeeded=succeeded,
            failed=len(failed_ids),
            failed_ids=tuple(failed_ids),
        )
        log_event(
            logger,
            "drain_finished",
            {
                "drain_id": drain_id,
                "attempted": result.attempted,
                "succeeded": result.succeeded,
                "failed": result.failed,
            },
            correlation_id,
        )
        return result

    def _record_failure(self, record: SyncRecord, exc: Exception) -> None:
        metrics_registry.increment("sync.replay_failed")
        log_event(
            logger,
            "record_replay_failed",
            {
                "record_id": record.id,
                "operation": record.operation.value,
                "model": record.model,
                "attempts": record.attempts + 1,
                "error": str(exc),
                "status_code": getattr(exc, "status_code", None),
            },
        )
        logger.warning("Replay of %s failed: %s", record.id, exc)
        failed = record.with_failure(str(exc))
        try:
            still_queued = self._store.record_attempt(failed.id, failed.attempts, failed.last_error)
        except StoreUnavailableError as store_exc:
            log_operational_error(
                logger,
                "Could not record replay failure",
                exc=store_exc,
                extra={"record_id": record.id},
            )
            return
        if not still_queued:
            logger.info("%s left the queue during the drain; nothing to update", record.id)
