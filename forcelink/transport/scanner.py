# forcelink/transport/scanner.py
from __future__ import annotations

import threading
from typing import Callable, Protocol

from serial.tools import list_ports

from forcelink.model.device import DeviceIdentity

FoundCallback = Callable[[DeviceIdentity], None]


class DeviceScanner(Protocol):
    """
    Discovery backend.

    scan(on_found) reports candidates until the backend is exhausted or
    stop() is called (stop() may be called from inside on_found).
    """
    def scan(self, on_found: FoundCallback) -> None: ...
    def stop(self) -> None: ...


class SerialPortScanner:
    """
    Enumerate serial ports via pyserial.

    The OS exposes a bound SPP link as a serial port; the device name is
    taken from the USB product string if present, else the port description,
    else the bare port name.
    """

    def __init__(self, *, include_links: bool = False):
        self._include_links = include_links
        self._stop = threading.Event()

    def scan(self, on_found: FoundCallback) -> None:
        self._stop.clear()
        for port in list_ports.comports(include_links=self._include_links):
            if self._stop.is_set():
                break
            on_found(DeviceIdentity(address=port.device, name=self.name_of(port)))

    def stop(self) -> None:
        self._stop.set()

    @staticmethod
    def name_of(port) -> str:
        for attr in ("product", "description", "name"):
            value = getattr(port, attr, None)
            if value and value != "n/a":
                return str(value)
        return str(port.device)


class SimulatedScanner:
    """Reports a single simulated device."""

    def __init__(self, name: str, address: str = "sim://force"):
        self._identity = DeviceIdentity(address=address, name=name)

    def scan(self, on_found: FoundCallback) -> None:
        on_found(self._identity)

    def stop(self) -> None:
        return None
