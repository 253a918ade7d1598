from .connection import ConnectionStateMachine
from .device_link import DeviceLink, LinkListener, Session
from .discovery import DiscoveryController
from .environment import Environment, StaticEnvironment, gating_state
from .state import ConnectionState, ConnectionStatus, ObservableValue

__all__ = [
    "ConnectionState", "ConnectionStatus", "ObservableValue",
    "ConnectionStateMachine",
    "Environment", "StaticEnvironment", "gating_state",
    "DiscoveryController",
    "DeviceLink", "LinkListener", "Session",
]
