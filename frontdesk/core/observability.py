from __future__ import annotations

import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_drain_id: ContextVar[str | None] = ContextVar("drain_id", default=None)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def get_drain_id() -> str | None:
    return _drain_id.get()


class OperationContext:
    """Binds a correlation id (and, during a drain, a drain id) to log records.

    Drains run on worker threads; context variables keep their ids from
    leaking into the UI thread that requested them. Everything bound inside
    the block is restored on exit.
    """

    def __init__(self, operation_name: str, *, correlation_id: str | None = None) -> None:
        self.operation_name = operation_name
        self.correlation_id = correlation_id or generate_correlation_id()
        self.drain_id: str | None = None
        self._tokens: list[tuple[ContextVar[str | None], Token[str | None]]] = []

    def bind_drain(self, drain_id: str) -> None:
        self.drain_id = drain_id
        self._tokens.append((_drain_id, _drain_id.set(drain_id)))

    def __enter__(self) -> "OperationContext":
        self._tokens.append((_correlation_id, _correlation_id.set(self.correlation_id)))
        self._tokens.append((_drain_id, _drain_id.set(None)))
        return self

    def __exit__(self, exc_type: object, exc: object, exc_tb: object) -> None:
        while self._tokens:
            variable, token = self._tokens.pop()
            variable.reset(token)


def log_event(logger: Any, event_name: str, payload: dict[str, Any], correlation_id: str | None = None) -> dict[str, Any]:
    """Emit ``event_name`` as an INFO record and return the structured event."""
    resolved_correlation_id = correlation_id or get_correlation_id()
    drain_id = payload.get("drain_id") or get_drain_id()
    event = {
        "event": event_name,
        "correlation_id": resolved_correlation_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "payload": payload,
    }
    logger.info(
        event_name,
        extra={"correlation_id": resolved_correlation_id, "drain_id": drain_id, "extra": event},
    )
    return event
