from __future__ import annotations

from PySide6.QtCore import Signal, Slot
from PySide6.QtWidgets import QHBoxLayout, QLabel, QWidget

from frontdesk.domain.sync_models import SyncStatus, SyncStatusSnapshot
from frontdesk.ui.components.status_badge import StatusBadge

_SYNC_TONES = {
    SyncStatus.IDLE: ("Synced", "success"),
    SyncStatus.SYNCING: ("Syncing", "info"),
    SyncStatus.ERROR: ("Sync error", "error"),
}


def describe_connectivity(snapshot: SyncStatusSnapshot) -> tuple[str, str]:
    if not snapshot.offline_enabled:
        if snapshot.is_online:
            return "Online only", "warning"
        return "Offline, not saving", "error"
    if snapshot.is_online:
        return "Online", "success"
    return "Offline", "warning"


def describe_sync(snapshot: SyncStatusSnapshot) -> tuple[str, str]:
    if snapshot.sync_status == SyncStatus.IDLE and snapshot.pending:
        return "Pending", "neutral"
    return _SYNC_TONES[snapshot.sync_status]


def describe_pending(pending: int) -> str:
    if pending == 0:
        return "All changes synced"
    if pending == 1:
        return "1 change waiting to sync"
    return f"{pending} changes waiting to sync"


class ConnectionStatus(QWidget):
    """Connectivity badge, sync badge and pending-changes counter.

    ``snapshot_changed`` may be emitted from any thread; Qt queues the update
    onto the thread that owns the widget.
    """

    snapshot_changed = Signal(object)

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.connectivity_badge = StatusBadge("Offline", "warning", self)
        self.sync_badge = StatusBadge("Synced", "success", self)
        self.pending_label = QLabel(describe_pending(0), self)
        self.pending_label.setProperty("role", "secondary")

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self.connectivity_badge)
        layout.addWidget(self.sync_badge)
        layout.addWidget(self.pending_label)
        layout.addStretch(1)

        self.snapshot_changed.connect(self.apply_snapshot)

    @Slot(object)
    def apply_snapshot(self, snapshot: SyncStatusSnapshot) -> None:
        self.connectivity_badge.set_state(*describe_connectivity(snapshot))
        self.sync_badge.set_state(*describe_sync(snapshot))
        self.pending_label.setText(describe_pending(snapshot.pending))
