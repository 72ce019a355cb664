from __future__ import annotations

import logging
import threading

from frontdesk.domain.ports import ConnectivityListener, Unsubscribe
from frontdesk.domain.sync_models import ConnectivityState

logger = logging.getLogger(__name__)


class ManualConnectivitySource:
    """Connectivity signal driven by code: headless runs and tests.

    Listeners are called on the thread that calls ``set_state`` and only when
    the state actually changes.
    """

    def __init__(self, initial: ConnectivityState = ConnectivityState.OFFLINE) -> None:
        self._state = initial
        self._listeners: list[ConnectivityListener] = []
        self._lock = threading.Lock()

    def current_state(self) -> ConnectivityState:
        with self._lock:
            return self._state

    def subscribe(self, listener: ConnectivityListener) -> Unsubscribe:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def set_state(self, state: ConnectivityState) -> None:
        with self._lock:
            if state == self._state:
                return
            self._state = state
            listeners = list(self._listeners)
        logger.debug("Connectivity set to %s", state.value)
        for listener in listeners:
            listener(state)

    def set_online(self, online: bool = True) -> None:
        self.set_state(ConnectivityState.ONLINE if online else ConnectivityState.OFFLINE)
