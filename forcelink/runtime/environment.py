# forcelink/runtime/environment.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from .state import (
    BLUETOOTH_DISABLED,
    BLUETOOTH_NOT_SUPPORTED,
    PERMISSIONS_REQUIRED,
    ConnectionState,
)


class Environment(Protocol):
    """Host capability queries, asked again on every scan request."""
    def is_supported(self) -> bool: ...
    def has_permissions(self) -> bool: ...
    def is_enabled(self) -> bool: ...


@dataclass
class StaticEnvironment:
    """Environment answers fixed by configuration (or flipped by tests)."""
    supported: bool = True
    permissions_granted: bool = True
    enabled: bool = True

    def is_supported(self) -> bool:
        return self.supported

    def has_permissions(self) -> bool:
        return self.permissions_granted

    def is_enabled(self) -> bool:
        return self.enabled


def gating_state(env: Environment) -> Optional[ConnectionState]:
    """Return the gating state that blocks a scan, or None when scanning is allowed."""
    if not env.is_supported():
        return BLUETOOTH_NOT_SUPPORTED
    if not env.has_permissions():
        return PERMISSIONS_REQUIRED
    if not env.is_enabled():
        return BLUETOOTH_DISABLED
    return None
