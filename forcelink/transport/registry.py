from __future__ import annotations

from typing import Dict, Type

from .base import Transport
from .errors import TransportError
from .simulated import SimulatedTransport
from .uart import UARTTransport


class TransportDriverRegistry:
    """
    Maps driver keys -> concrete transport classes.

    Every driver class takes the device address as its first argument
    (`port`) and driver-specific keyword params after it.
    """

    def __init__(self, drivers: Dict[str, Type[Transport]]):
        # normalize keys to be case-insensitive
        self._drivers: Dict[str, Type[Transport]] = {k.lower(): v for k, v in drivers.items()}

    @classmethod
    def default(cls) -> "TransportDriverRegistry":
        return cls(
            drivers={
                "serial": UARTTransport,
                "sim": SimulatedTransport,
            }
        )

    def names(self) -> list[str]:
        return sorted(self._drivers)

    def has(self, driver: str) -> bool:
        return driver.lower() in self._drivers

    def get_class(self, driver: str) -> Type[Transport]:
        key = driver.lower()
        if key not in self._drivers:
            raise TransportError(f"Transport driver '{driver}' not registered")
        return self._drivers[key]

    def create(self, driver: str, port: str, **params) -> Transport:
        transport_cls = self.get_class(driver)
        return transport_cls(port, **params)
