from __future__ import annotations

from time import sleep

import pytest

from frontdesk.core import metrics


def test_increment_counter() -> None:
    registry = metrics.MetricsRegistry()

    registry.increment("sync.enqueued")
    registry.increment("sync.enqueued", 2)

    assert registry.counter("sync.enqueued") == 3


def test_snapshot_aggregates_timings() -> None:
    registry = metrics.MetricsRegistry()

    registry.record_timing("latency.sync_drain_ms", 10)
    registry.record_timing("latency.sync_drain_ms", 30)

    timing = registry.snapshot()["timings_ms"]["latency.sync_drain_ms"]
    assert timing["count"] == 2
    assert timing["avg"] == 20
    assert timing["max"] == 30
    assert timing["last"] == 30


def test_decorator_measures_real_time(monkeypatch) -> None:
    registry = metrics.MetricsRegistry()
    monkeypatch.setattr(metrics, "metrics_registry", registry)

    @metrics.measure_time("latency.decorator_ms")
    def _operation() -> str:
        sleep(0.01)
        return "ok"

    assert _operation() == "ok"
    assert registry.snapshot()["timings_ms"]["latency.decorator_ms"]["last"] > 0


def test_reset_clears_everything() -> None:
    registry = metrics.MetricsRegistry()
    registry.increment("x")
    registry.record_timing("y", 1)

    registry.reset()

    assert registry.snapshot() == {"counters": {}, "timings_ms": {}}


def test_timings_keep_only_the_recent_window() -> None:
    registry = metrics.MetricsRegistry(timing_window=3)

    for value in (100, 1, 2, 3):
        registry.record_timing("latency.sync_drain_ms", value)

    summary = registry.timing("latency.sync_drain_ms")
    assert summary.count == 3
    assert summary.max == 3
    assert summary.last == 3


def test_unknown_timing_is_empty() -> None:
    assert metrics.MetricsRegistry().timing("missing") == metrics.TimingSummary(0, 0.0, 0.0, 0.0)


def test_decorator_records_failed_calls(monkeypatch) -> None:
    registry = metrics.MetricsRegistry()
    monkeypatch.setattr(metrics, "metrics_registry", registry)

    @metrics.measure_time("latency.failing_ms")
    def _operation() -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        _operation()

    assert registry.timing("latency.failing_ms").count == 1
