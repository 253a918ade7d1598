# forcelink/transport/factory.py
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from forcelink.core.errors import ConfigError
from forcelink.model.device import DeviceIdentity
from forcelink.transport.base import Transport
from forcelink.transport.errors import TransportError
from forcelink.transport.registry import TransportDriverRegistry


class TransportFactory:
    """
    Constructs a transport for a discovered device.
    Note: does NOT open the transport.
    """

    def __init__(
        self,
        driver: str,
        params: Optional[Mapping[str, Any]] = None,
        drivers: Optional[TransportDriverRegistry] = None,
    ):
        self._driver = driver
        self._params: Dict[str, Any] = dict(params or {})
        self._drivers = drivers or TransportDriverRegistry.default()

        if not self._drivers.has(driver):
            raise ConfigError(
                f"Unknown transport driver '{driver}'.",
                hint=f"Valid drivers: {self._drivers.names()}",
                details={"driver": driver},
            )

    @property
    def driver(self) -> str:
        return self._driver

    def create(self, identity: DeviceIdentity) -> Transport:
        try:
            return self._drivers.create(self._driver, identity.address, **self._params)
        except (TransportError, TypeError) as e:
            # unknown driver key or constructor mismatch
            raise ConfigError(
                f"Failed to construct transport (driver='{self._driver}').",
                hint=str(e),
                details={
                    "driver": self._driver,
                    "address": identity.address,
                    "params": dict(self._params),
                },
            ) from None
