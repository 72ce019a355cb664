from __future__ import annotations

from frontdesk.domain.sync_models import ConnectivityState, SyncStatus, SyncStatusSnapshot
from tests.ui.conftest import require_qt

require_qt()

from frontdesk.ui.components import ConnectionStatus, StatusBadge  # noqa: E402
from frontdesk.ui.components.connection_status import describe_pending  # noqa: E402


def test_status_badge_uppercases_and_tracks_variant(qapp) -> None:
    badge = StatusBadge("online", "success")

    badge.set_variant("bogus")

    assert badge.text() == "ONLINE"
    assert badge.variant() == "neutral"


def test_connection_status_reflects_snapshot(qapp) -> None:
    widget = ConnectionStatus()

    widget.apply_snapshot(SyncStatusSnapshot(ConnectivityState.OFFLINE, SyncStatus.IDLE, pending=3))

    assert widget.connectivity_badge.text() == "OFFLINE"
    assert widget.sync_badge.text() == "PENDING"
    assert widget.pending_label.text() == "3 changes waiting to sync"


def test_connection_status_sync_error(qapp) -> None:
    widget = ConnectionStatus()

    widget.apply_snapshot(SyncStatusSnapshot(ConnectivityState.ONLINE, SyncStatus.ERROR, pending=1))

    assert widget.connectivity_badge.variant() == "success"
    assert widget.sync_badge.variant() == "error"


def test_online_only_mode_is_flagged(qapp) -> None:
    widget = ConnectionStatus()

    widget.apply_snapshot(
        SyncStatusSnapshot(ConnectivityState.ONLINE, SyncStatus.IDLE, pending=0, offline_enabled=False)
    )

    assert widget.connectivity_badge.text() == "ONLINE ONLY"
    assert describe_pending(1) == "1 change waiting to sync"
