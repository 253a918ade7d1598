from __future__ import annotations

from forcelink.runtime.connection import ConnectionStateMachine
from forcelink.runtime.environment import StaticEnvironment, gating_state
from forcelink.runtime.state import (
    BLUETOOTH_DISABLED,
    BLUETOOTH_NOT_SUPPORTED,
    CONNECTED,
    CONNECTING,
    DISCONNECTED,
    PERMISSIONS_REQUIRED,
    SCANNING,
    ConnectionState,
    ConnectionStatus,
)


def _machine(**env):
    m = ConnectionStateMachine(StaticEnvironment(**env))
    seen = []
    m.observable.subscribe(seen.append)
    return m, seen


def test_initial_state_is_disconnected():
    m, _ = _machine()
    assert m.current == DISCONNECTED


def test_happy_path_transitions():
    m, seen = _machine()

    assert m.check_environment() is None
    m.scanning()
    assert m.connecting() is True
    assert m.connected() is True
    m.disconnected()

    assert seen == [SCANNING, CONNECTING, CONNECTED, DISCONNECTED]


def test_connecting_requires_scanning():
    m, seen = _machine()
    assert m.connecting() is False
    assert m.current == DISCONNECTED
    assert seen == []


def test_connected_requires_connecting():
    m, _ = _machine()
    m.scanning()
    assert m.connected() is False
    assert m.current == SCANNING


def test_failed_from_any_state():
    m, _ = _machine()
    m.scanning()
    m.failed("Scan failed: boom")
    assert m.current == ConnectionState.error("Scan failed: boom")

    m.scanning()
    assert m.connecting()
    m.failed("Connection failed: refused")
    assert m.current.status is ConnectionStatus.ERROR
    assert m.current.message == "Connection failed: refused"


def test_gating_order_supported_then_permissions_then_enabled():
    assert gating_state(StaticEnvironment(supported=False, permissions_granted=False, enabled=False)) == BLUETOOTH_NOT_SUPPORTED
    assert gating_state(StaticEnvironment(permissions_granted=False, enabled=False)) == PERMISSIONS_REQUIRED
    assert gating_state(StaticEnvironment(enabled=False)) == BLUETOOTH_DISABLED
    assert gating_state(StaticEnvironment()) is None


def test_check_environment_publishes_gate_and_is_reevaluated():
    env = StaticEnvironment(enabled=False)
    m = ConnectionStateMachine(env)

    assert m.check_environment() == BLUETOOTH_DISABLED
    assert m.current == BLUETOOTH_DISABLED

    env.enabled = True
    assert m.check_environment() is None
    # no gate -> state left for the caller to move on
    assert m.current == BLUETOOTH_DISABLED


def test_pending_gate_does_not_publish():
    m, seen = _machine(enabled=False)
    assert m.pending_gate() == BLUETOOTH_DISABLED
    assert m.current == DISCONNECTED
    assert seen == []

    m.gated(BLUETOOTH_DISABLED)
    assert seen == [BLUETOOTH_DISABLED]


def test_scan_failed_only_while_scanning():
    m, seen = _machine()
    m.scanning()
    m.disconnected()

    assert m.scan_failed("Device 'X' not found") is False
    assert m.current == DISCONNECTED
    assert seen == [SCANNING, DISCONNECTED]

    m.scanning()
    assert m.scan_failed("Device 'X' not found") is True
    assert m.current == ConnectionState.error("Device 'X' not found")
