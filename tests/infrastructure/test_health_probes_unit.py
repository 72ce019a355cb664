from __future__ import annotations

from unittest.mock import Mock

import requests

from frontdesk.domain.sync_models import SyncRecord, SYNC_QUEUE_PARTITION
from frontdesk.infrastructure.db import get_connection
from frontdesk.infrastructure.health_probes import ApiReachabilityProbe, SQLiteLocalStoreProbe
from frontdesk.infrastructure.local_store import SQLiteLocalStore


def test_api_probe_reports_reachable() -> None:
    client = Mock(base_url="http://api.test")
    client.ping.return_value = 200

    ok, latency_ms, message = ApiReachabilityProbe(client).check()

    assert ok is True
    assert latency_ms is not None
    assert "reachable" in message


def test_api_probe_reports_server_errors_and_network_failures() -> None:
    client = Mock(base_url="http://api.test")
    client.ping.return_value = 503
    assert ApiReachabilityProbe(client).check()[0] is False

    client.ping.side_effect = requests.exceptions.ConnectionError("refused")
    ok, latency_ms, _message = ApiReachabilityProbe(client).check()
    assert ok is False
    assert latency_ms is None


def test_store_probe_healthy(store) -> None:
    checks = SQLiteLocalStoreProbe(store).check()

    assert all(ok for ok, _message in checks.values())
    assert set(checks) == {"local_store", "migrations", "pending_queue"}


def test_store_probe_flags_backlog(store) -> None:
    for index in range(3):
        store.put(SYNC_QUEUE_PARTITION, SyncRecord.new("CREATE", "checkins", {"n": index}).to_row())

    checks = SQLiteLocalStoreProbe(store, pending_warning_threshold=2).check()

    assert checks["pending_queue"][0] is False


def test_store_probe_reports_unavailable_store() -> None:
    def _factory():
        raise OSError("read-only file system")

    checks = SQLiteLocalStoreProbe(SQLiteLocalStore(_factory)).check()

    assert checks["local_store"][0] is False


def test_store_probe_opens_store_lazily(tmp_path) -> None:
    store = SQLiteLocalStore(lambda: get_connection(tmp_path / "probe.db"))

    checks = SQLiteLocalStoreProbe(store).check()
    store.close()

    assert checks["migrations"][0] is True
