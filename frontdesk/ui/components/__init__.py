from frontdesk.ui.components.connection_status import ConnectionStatus
from frontdesk.ui.components.status_badge import StatusBadge

__all__ = ["ConnectionStatus", "StatusBadge"]
