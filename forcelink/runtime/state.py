# forcelink/runtime/state.py
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")


class ConnectionStatus(Enum):
    DISCONNECTED = "disconnected"
    SCANNING = "scanning"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"
    BLUETOOTH_DISABLED = "bluetooth_disabled"
    BLUETOOTH_NOT_SUPPORTED = "bluetooth_not_supported"
    PERMISSIONS_REQUIRED = "permissions_required"


@dataclass(frozen=True)
class ConnectionState:
    """
    Current link status. Only ERROR carries a message.
    """
    status: ConnectionStatus
    message: Optional[str] = None

    @classmethod
    def error(cls, message: str) -> "ConnectionState":
        return cls(ConnectionStatus.ERROR, str(message))

    @property
    def is_connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    @property
    def is_gating(self) -> bool:
        return self.status in GATING_STATUSES

    def __str__(self) -> str:
        if self.message is not None:
            return f"{self.status.value}: {self.message}"
        return self.status.value


GATING_STATUSES = frozenset(
    {
        ConnectionStatus.BLUETOOTH_DISABLED,
        ConnectionStatus.BLUETOOTH_NOT_SUPPORTED,
        ConnectionStatus.PERMISSIONS_REQUIRED,
    }
)

DISCONNECTED = ConnectionState(ConnectionStatus.DISCONNECTED)
SCANNING = ConnectionState(ConnectionStatus.SCANNING)
CONNECTING = ConnectionState(ConnectionStatus.CONNECTING)
CONNECTED = ConnectionState(ConnectionStatus.CONNECTED)
BLUETOOTH_DISABLED = ConnectionState(ConnectionStatus.BLUETOOTH_DISABLED)
BLUETOOTH_NOT_SUPPORTED = ConnectionState(ConnectionStatus.BLUETOOTH_NOT_SUPPORTED)
PERMISSIONS_REQUIRED = ConnectionState(ConnectionStatus.PERMISSIONS_REQUIRED)


class ObservableValue(Generic[T]):
    """
    Thread-safe value holder with change subscribers.

    Writes and their notifications happen under one re-entrant lock, so every
    subscriber sees values in the same total order they were set.
    """

    def __init__(self, initial: T, *, logger: Optional[logging.Logger] = None):
        self._value = initial
        self._lock = threading.RLock()
        self._subscribers: List[Callable[[T], None]] = []
        self._log = logger or logging.getLogger(__name__)

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value
            self._notify(value)

    def set_if(self, predicate: Callable[[T], bool], value: T) -> bool:
        """Set value only if predicate(current) holds; returns whether it was set."""
        with self._lock:
            if not predicate(self._value):
                return False
            self._value = value
            self._notify(value)
            return True

    def subscribe(self, cb: Callable[[T], None]) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(cb)

        def _unsubscribe() -> None:
            with self._lock:
                if cb in self._subscribers:
                    self._subscribers.remove(cb)

        return _unsubscribe

    def _notify(self, value: T) -> None:
        for cb in list(self._subscribers):
            try:
                cb(value)
            except Exception:
                self._log.exception("SUBSCRIBER_CALLBACK_ERROR")
