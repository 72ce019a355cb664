from __future__ import annotations

import logging

from PySide6.QtCore import QObject, Slot
from PySide6.QtNetwork import QNetworkInformation

from frontdesk.domain.ports import ConnectivityListener, Unsubscribe
from frontdesk.domain.sync_models import ConnectivityState

logger = logging.getLogger(__name__)


class QtConnectivitySource(QObject):
    """Connectivity signal from the OS through ``QNetworkInformation``.

    When no backend is available the source reports ONLINE and never changes;
    failed requests then keep records queued until a manual retry.
    """

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._listeners: list[ConnectivityListener] = []
        self._info: QNetworkInformation | None = None
        if QNetworkInformation.loadDefaultBackend():
            self._info = QNetworkInformation.instance()
        if self._info is None:
            logger.warning("No network information backend; assuming online")
            self._state = ConnectivityState.ONLINE
            return
        self._state = self._map(self._info.reachability())
        self._info.reachabilityChanged.connect(self._on_reachability_changed)

    def current_state(self) -> ConnectivityState:
        return self._state

    def subscribe(self, listener: ConnectivityListener) -> Unsubscribe:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @Slot(QNetworkInformation.Reachability)
    def _on_reachability_changed(self, reachability: QNetworkInformation.Reachability) -> None:
        state = self._map(reachability)
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    @staticmethod
    def _map(reachability: QNetworkInformation.Reachability) -> ConnectivityState:
        if reachability == QNetworkInformation.Reachability.Online:
            return ConnectivityState.ONLINE
        # Unknown counts as online so a missing signal never blocks syncing.
        if reachability == QNetworkInformation.Reachability.Unknown:
            return ConnectivityState.ONLINE
        return ConnectivityState.OFFLINE
