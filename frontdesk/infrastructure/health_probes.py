from __future__ import annotations

import time

import requests

from frontdesk.domain.sync_models import MIRROR_PARTITIONS, SYNC_QUEUE_PARTITION
from frontdesk.infrastructure.api_client import RestApiClient
from frontdesk.infrastructure.local_store import SQLiteLocalStore
from frontdesk.infrastructure.migrations import latest_schema_version


class ApiReachabilityProbe:
    def __init__(self, api_client: RestApiClient) -> None:
        self._api_client = api_client

    def check(self) -> tuple[bool, float | None, str]:
        started = time.perf_counter()
        try:
            status_code = self._api_client.ping()
        except requests.exceptions.RequestException as exc:
            return False, None, f"API not reachable at {self._api_client.base_url}: {exc}"
        latency_ms = (time.perf_counter() - started) * 1000
        if status_code >= 500:
            return False, latency_ms, f"API answered {status_code} ({latency_ms:.0f} ms)."
        return True, latency_ms, f"API reachable ({latency_ms:.0f} ms)."


class SQLiteLocalStoreProbe:
    def __init__(self, store: SQLiteLocalStore, *, pending_warning_threshold: int = 50) -> None:
        self._store = store
        self._pending_warning_threshold = pending_warning_threshold

    def check(self) -> dict[str, tuple[bool, str]]:
        try:
            self._store.open()
            schema_version = self._store.applied_schema_version()
            pending = self._store.count(SYNC_QUEUE_PARTITION)
            mirrored = {partition: self._store.count(partition) for partition in MIRROR_PARTITIONS}
        except Exception as exc:  # noqa: BLE001
            return {
                "local_store": (False, f"Local store not accessible: {exc}"),
                "migrations": (False, "Could not read the schema version."),
                "pending_queue": (False, "Could not read the sync queue."),
            }

        expected_version = latest_schema_version()
        pending_ok = pending < self._pending_warning_threshold
        mirrors_summary = ", ".join(f"{name}={total}" for name, total in mirrored.items())
        return {
            "local_store": (True, f"Local store accessible ({mirrors_summary})."),
            "migrations": (
                schema_version >= expected_version,
                "Schema up to date." if schema_version >= expected_version else "Pending schema migrations.",
            ),
            "pending_queue": (
                pending_ok,
                f"{pending} mutation(s) waiting to sync."
                if pending_ok
                else f"{pending} mutation(s) waiting to sync; check API access.",
            ),
        }

