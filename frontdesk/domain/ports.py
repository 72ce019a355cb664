from __future__ import annotations

from typing import Any, Callable, Iterable, Protocol

from frontdesk.domain.sync_models import ConnectivityState, SyncRecord

Unsubscribe = Callable[[], None]
ConnectivityListener = Callable[[ConnectivityState], None]


class LocalStorePort(Protocol):
    def open(self) -> "LocalStorePort":
        ...

    def close(self) -> None:
        ...

    def get_all(self, partition: str) -> list[dict[str, Any]]:
        ...

    def put(self, partition: str, record: dict[str, Any]) -> None:
        ...

    def delete(self, partition: str, key: str) -> None:
        ...

    def record_attempt(self, key: str, attempts: int, last_error: str | None) -> bool:
        """Update bookkeeping of a queued record; never re-inserts a removed one."""
        ...

    def replace_all(self, partition: str, records: Iterable[dict[str, Any]]) -> int:
        ...

    def count(self, partition: str) -> int:
        ...


class ReplayTransportPort(Protocol):
    def replay(self, record: SyncRecord) -> None:
        """Raises on any non-2xx response or network failure."""
        ...

    def fetch_collection(self, model: str) -> list[dict[str, Any]]:
        ...


class ConnectivitySourcePort(Protocol):
    def current_state(self) -> ConnectivityState:
        ...

    def subscribe(self, listener: ConnectivityListener) -> Unsubscribe:
        ...


class ApiConfigStorePort(Protocol):
    def load(self) -> Any:
        ...


class LocalStoreProbe(Protocol):
    def check(self) -> dict[str, tuple[bool, str]]:
        ...


class ApiConnectivityProbe(Protocol):
    def check(self) -> tuple[bool, float | None, str]:
        ...
