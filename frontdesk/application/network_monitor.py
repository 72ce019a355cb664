from __future__ import annotations

import logging
import threading
from typing import Callable

from frontdesk.core.observability import log_event
from frontdesk.domain.ports import ConnectivityListener, ConnectivitySourcePort, Unsubscribe
from frontdesk.domain.sync_models import ConnectivityState

logger = logging.getLogger(__name__)

Task = Callable[[], object]
Dispatcher = Callable[[Task], None]


def run_inline(task: Task) -> None:
    """Default dispatcher: runs the task now and keeps its errors contained."""
    try:
        task()
    except Exception:  # noqa: BLE001
        logger.exception("Background sync task failed")


class NetworkMonitor:
    """Turns connectivity signals into drains.

    Only an OFFLINE -> ONLINE transition triggers ``on_reconnect``; going
    offline just updates the state. Repeated signals carrying the current
    state are not transitions.
    """

    def __init__(
        self,
        source: ConnectivitySourcePort,
        on_reconnect: Task,
        *,
        dispatcher: Dispatcher = run_inline,
    ) -> None:
        self._source = source
        self._on_reconnect = on_reconnect
        self._dispatcher = dispatcher
        self._state = source.current_state()
        self._listeners: list[ConnectivityListener] = []
        self._lock = threading.Lock()
        self._source_unsubscribe: Unsubscribe | None = None

    @property
    def state(self) -> ConnectivityState:
        with self._lock:
            return self._state

    @property
    def is_online(self) -> bool:
        return self.state == ConnectivityState.ONLINE

    @property
    def started(self) -> bool:
        return self._source_unsubscribe is not None

    def start(self) -> None:
        if self._source_unsubscribe is not None:
            return
        # Subscribe before reading the state so a change in between is not lost.
        self._source_unsubscribe = self._source.subscribe(self._on_signal)
        with self._lock:
            self._state = self._source.current_state()
            initial_state = self._state
        logger.info("Network monitor started (%s)", initial_state.value)
        if initial_state == ConnectivityState.ONLINE:
            # Flush whatever a previous session left queued.
            self._dispatcher(self._on_reconnect)

    def stop(self) -> None:
        if self._source_unsubscribe is None:
            return
        self._source_unsubscribe()
        self._source_unsubscribe = None
        logger.info("Network monitor stopped")

    def subscribe(self, listener: ConnectivityListener) -> Unsubscribe:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _on_signal(self, state: ConnectivityState) -> None:
        with self._lock:
            previous = self._state
            if state == previous:
                return
            self._state = state
            listeners = list(self._listeners)

        log_event(logger, "connectivity_changed", {"from": previous.value, "to": state.value})
        for listener in listeners:
            try:
                listener(state)
            except Exception:  # noqa: BLE001
                logger.exception("Connectivity listener failed")

        if previous == ConnectivityState.OFFLINE and state == ConnectivityState.ONLINE:
            self._dispatcher(self._on_reconnect)
