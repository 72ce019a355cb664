from __future__ import annotations

from frontdesk.application.network_monitor import NetworkMonitor, run_inline
from frontdesk.domain.sync_models import ConnectivityState
from frontdesk.infrastructure.connectivity import ManualConnectivitySource


class _Counter:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


def test_offline_to_online_triggers_exactly_one_drain() -> None:
    source = ManualConnectivitySource(ConnectivityState.OFFLINE)
    drain = _Counter()
    monitor = NetworkMonitor(source, drain)
    monitor.start()

    source.set_online(True)

    assert drain.calls == 1
    assert monitor.is_online is True


def test_repeated_online_signals_do_not_trigger_more_drains() -> None:
    source = ManualConnectivitySource(ConnectivityState.OFFLINE)
    drain = _Counter()
    monitor = NetworkMonitor(source, drain)
    monitor.start()

    source.set_online(True)
    monitor._on_signal(ConnectivityState.ONLINE)
    monitor._on_signal(ConnectivityState.ONLINE)

    assert drain.calls == 1


def test_going_offline_does_not_drain() -> None:
    source = ManualConnectivitySource(ConnectivityState.ONLINE)
    dispatched: list[object] = []
    monitor = NetworkMonitor(source, lambda: None, dispatcher=dispatched.append)
    monitor.start()

    source.set_online(False)

    assert len(dispatched) == 1
    assert monitor.state is ConnectivityState.OFFLINE


def test_each_reconnect_drains_once() -> None:
    source = ManualConnectivitySource(ConnectivityState.OFFLINE)
    drain = _Counter()
    monitor = NetworkMonitor(source, drain)
    monitor.start()

    for _ in range(3):
        source.set_online(True)
        source.set_online(False)

    assert drain.calls == 3


def test_start_drains_immediately_when_already_online() -> None:
    drain = _Counter()
    monitor = NetworkMonitor(ManualConnectivitySource(ConnectivityState.ONLINE), drain)

    monitor.start()
    monitor.start()

    assert drain.calls == 1


def test_stop_detaches_from_source() -> None:
    source = ManualConnectivitySource(ConnectivityState.OFFLINE)
    drain = _Counter()
    monitor = NetworkMonitor(source, drain)
    monitor.start()

    monitor.stop()
    source.set_online(True)

    assert drain.calls == 0
    assert monitor.started is False


def test_listener_unsubscribe_stops_notifications() -> None:
    source = ManualConnectivitySource(ConnectivityState.OFFLINE)
    monitor = NetworkMonitor(source, lambda: None)
    monitor.start()
    seen: list[ConnectivityState] = []

    unsubscribe = monitor.subscribe(seen.append)
    source.set_online(True)
    unsubscribe()
    source.set_online(False)

    assert seen == [ConnectivityState.ONLINE]


def test_failing_listener_does_not_block_drain() -> None:
    source = ManualConnectivitySource(ConnectivityState.OFFLINE)
    drain = _Counter()
    monitor = NetworkMonitor(source, drain)
    monitor.start()

    def _boom(_state) -> None:
        raise RuntimeError("listener failed")

    monitor.subscribe(_boom)
    source.set_online(True)

    assert drain.calls == 1


def test_run_inline_contains_task_errors(caplog) -> None:
    def _boom() -> None:
        raise RuntimeError("drain exploded")

    run_inline(_boom)

    assert "Background sync task failed" in caplog.text


class _FlipsWhileSubscribing(ManualConnectivitySource):
    """Goes online right as the monitor subscribes, without delivering a signal."""

    def subscribe(self, listener):
        self._state = ConnectivityState.ONLINE
        return super().subscribe(listener)


def test_change_during_start_is_not_lost() -> None:
    source = _FlipsWhileSubscribing(ConnectivityState.OFFLINE)
    drain = _Counter()
    monitor = NetworkMonitor(source, drain)

    monitor.start()

    assert monitor.is_online is True
    assert drain.calls == 1
