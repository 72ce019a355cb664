from __future__ import annotations

import copy
import json
import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

SYNC_QUEUE_PARTITION = "sync_queue"
CHECKINS_PARTITION = "checkins"
ACCOMMODATIONS_PARTITION = "accommodations"
MIRROR_PARTITIONS = (CHECKINS_PARTITION, ACCOMMODATIONS_PARTITION)

# Any JSON value: object, array, string, number, bool or null.
Payload = Any


class SyncOperation(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    @property
    def http_method(self) -> str:
        return _HTTP_METHODS[self]

    @classmethod
    def parse(cls, value: "SyncOperation | str") -> "SyncOperation":
        if isinstance(value, SyncOperation):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            raise ValueError(f"Unsupported sync operation: {value!r}") from exc


_HTTP_METHODS = {
    SyncOperation.CREATE: "POST",
    SyncOperation.UPDATE: "PUT",
    SyncOperation.DELETE: "DELETE",
}


class ConnectivityState(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def generate_record_id(model: str, timestamp_ms: int) -> str:
    return f"{model}_{timestamp_ms}_{uuid.uuid4().hex}"


def _detached_payload(payload: Payload) -> Payload:
    """Deep copy of ``payload``, so later edits by the caller never reach the queue."""
    try:
        json.dumps(payload)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"payload must be JSON serialisable: {exc}") from exc
    return copy.deepcopy(payload)


@dataclass(frozen=True)
class SyncRecord:
    """A local mutation waiting to be replayed against the API.

    ``attempts`` and ``last_error`` are bookkeeping for diagnostics; they never
    affect replay order or removal, which depend only on ``enqueued_at`` and
    on the replay outcome.
    """

    id: str
    operation: SyncOperation
    model: str
    payload: Payload
    enqueued_at: int
    attempts: int = 0
    last_error: str | None = None

    @classmethod
    def new(
        cls,
        operation: SyncOperation | str,
        model: str,
        payload: Payload,
        *,
        timestamp_ms: int | None = None,
    ) -> "SyncRecord":
        if not model or not model.strip():
            raise ValueError("model is required")
        enqueued_at = now_ms() if timestamp_ms is None else timestamp_ms
        clean_model = model.strip()
        return cls(
            id=generate_record_id(clean_model, enqueued_at),
            operation=SyncOperation.parse(operation),
            model=clean_model,
            payload=_detached_payload(payload),
            enqueued_at=enqueued_at,
        )

    @property
    def endpoint(self) -> str:
        return f"/api/{self.model}"

    def with_failure(self, error: str) -> "SyncRecord":
        return replace(self, attempts=self.attempts + 1, last_error=error)

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "operation": self.operation.value,
            "model": self.model,
            "payload": self.payload,
            "enqueued_at": self.enqueued_at,
            "attempts": self.attempts,
            "last_error": self.last_error,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "SyncRecord":
        return cls(
            id=str(row["id"]),
            operation=SyncOperation.parse(row["operation"]),
            model=str(row["model"]),
            payload=row.get("payload"),
            enqueued_at=int(row["enqueued_at"]),
            attempts=int(row.get("attempts") or 0),
            last_error=row.get("last_error"),
        )


@dataclass(frozen=True)
class DrainResult:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped_offline: bool = False
    skipped_busy: bool = False
    failed_ids: tuple[str, ...] = field(default_factory=tuple)
    error: str | None = None

    @property
    def has_failures(self) -> bool:
        return self.failed > 0 or self.error is not None

    @classmethod
    def offline(cls) -> "DrainResult":
        return cls(skipped_offline=True)

    @classmethod
    def busy(cls) -> "DrainResult":
        return cls(skipped_busy=True)

    @classmethod
    def aborted(cls, error: str) -> "DrainResult":
        return cls(error=error)


@dataclass(frozen=True)
class SyncStatusSnapshot:
    connectivity: ConnectivityState
    sync_status: SyncStatus
    pending: int
    offline_enabled: bool = True

    @property
    def is_online(self) -> bool:
        return self.connectivity == ConnectivityState.ONLINE


@dataclass(frozen=True)
class HealthCheckItem:
    key: str
    status: str
    message: str
    category: str


@dataclass(frozen=True)
class HealthReport:
    generated_at: str
    checks: tuple[HealthCheckItem, ...]

    @property
    def ok(self) -> bool:
        return all(item.status != "ERROR" for item in self.checks)
