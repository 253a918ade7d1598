from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DeviceIdentity:
    """A discovery candidate. address is what the transport opens (a port path)."""
    address: str
    name: str
