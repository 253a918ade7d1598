# forcelink/transport/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Transport(ABC):
    """
    Byte pipe between the host and one force meter.

    A transport is bound to a single discovered device address (the SPP
    serial port, or the in-process simulator) and carries the raw telemetry
    frames in and the ASCII tare/calibration commands out. The session owns
    it: a worker thread opens and drains it while teardown may close it
    from another thread.

    Contract:
      - open() blocks until the device link is up or raises TransportOpenError;
        a failed open leaves nothing held.
      - close() is idempotent, may race with a blocked read() and must make
        that read return or raise promptly so the read loop can exit.
      - read(n) returns 0..n bytes; b"" only means the read timeout expired.
        End of stream raises TransportEOFError, any other failure
        TransportIOError (after releasing the device).
      - write(data) returns the number of command bytes accepted.
      - flush() pushes accepted command bytes out to the device.
    """

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def read(self, n: int) -> bytes: ...

    @abstractmethod
    def write(self, data: bytes) -> int: ...

    @abstractmethod
    def flush(self) -> None: ...

    def __enter__(self) -> "Transport":
        self.open()
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
