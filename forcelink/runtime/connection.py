# forcelink/runtime/connection.py
from __future__ import annotations

import logging
from typing import Optional

from .environment import Environment, gating_state
from .state import (
    CONNECTED,
    CONNECTING,
    DISCONNECTED,
    SCANNING,
    ConnectionState,
    ConnectionStatus,
    ObservableValue,
)


class ConnectionStateMachine:
    """
    Sole owner of the ConnectionState value.

    Disconnected -> Scanning -> Connecting -> Connected -> Disconnected,
    any state -> Error(message) on scan/connect failure, and the gating
    states computed from the Environment on each scan request.
    """

    def __init__(self, environment: Environment, *, logger: Optional[logging.Logger] = None):
        self._env = environment
        self._log = logger or logging.getLogger(__name__)
        self._state: ObservableValue[ConnectionState] = ObservableValue(DISCONNECTED, logger=self._log)

    @property
    def observable(self) -> ObservableValue[ConnectionState]:
        return self._state

    @property
    def current(self) -> ConnectionState:
        return self._state.value

    def pending_gate(self) -> Optional[ConnectionState]:
        """The gating state the environment imposes right now, without publishing it."""
        return gating_state(self._env)

    def check_environment(self) -> Optional[ConnectionState]:
        """Publish and return the gating state if the environment blocks scanning."""
        gate = self.pending_gate()
        if gate is not None:
            self.gated(gate)
        return gate

    def gated(self, gate: ConnectionState) -> None:
        self._set(gate)

    def scanning(self) -> None:
        self._set(SCANNING)

    def connecting(self) -> bool:
        return self._set_from(ConnectionStatus.SCANNING, CONNECTING)

    def connected(self) -> bool:
        return self._set_from(ConnectionStatus.CONNECTING, CONNECTED)

    def disconnected(self) -> None:
        self._set(DISCONNECTED)

    def failed(self, message: str) -> None:
        self._set(ConnectionState.error(message))

    def scan_failed(self, message: str) -> bool:
        """Error only if the scan is still the current activity (not cancelled meanwhile)."""
        return self._set_from(ConnectionStatus.SCANNING, ConnectionState.error(message))

    # ---------------- Helpers ----------------
    def _set(self, new: ConnectionState) -> None:
        old = self._state.value
        self._state.set(new)
        if old != new:
            self._log.info("STATE_TRANSITION from=%s to=%s", old, new)

    def _set_from(self, expected: ConnectionStatus, new: ConnectionState) -> bool:
        ok = self._state.set_if(lambda cur: cur.status is expected, new)
        if ok:
            self._log.info("STATE_TRANSITION from=%s to=%s", expected.value, new)
        else:
            self._log.debug(
                "STATE_TRANSITION_SKIPPED expected=%s current=%s wanted=%s",
                expected.value,
                self._state.value,
                new,
            )
        return ok
