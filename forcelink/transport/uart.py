# forcelink/transport/uart.py
from __future__ import annotations

import threading
from typing import Optional

import serial
from serial import SerialException

from .base import Transport
from .errors import TransportEOFError, TransportIOError, TransportOpenError


class UARTTransport(Transport):
    """
    Serial-port transport implemented via pyserial.

    An SPP link bound by the OS (/dev/rfcomm0, COM7, ...) is a plain serial
    port from the host's point of view, so this is the production transport.

    read(n) returns whatever arrived before the read timeout (possibly b"").
    close() may be called from another thread to abort a blocked read.
    """

    def __init__(self, port: str, baudrate: int = 115200, timeout: float = 0.1):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.ser: Optional[serial.Serial] = None
        self._close_lock = threading.Lock()

    def open(self) -> None:
        try:
            ser = serial.Serial(
                self.port,
                baudrate=self.baudrate,
                timeout=self.timeout,
                write_timeout=self.timeout,
            )
        except SerialException as e:
            self.ser = None
            raise TransportOpenError(str(e)) from None

        try:
            ser.reset_input_buffer()
            ser.reset_output_buffer()
        except (SerialException, OSError) as e:
            self.ser = None
            self._release(ser)
            raise TransportOpenError(f"UART buffer reset failed: {e}") from None

        self.ser = ser

    def close(self) -> None:
        with self._close_lock:
            ser, self.ser = self.ser, None
        if ser is not None:
            self._release(ser)

    def is_open(self) -> bool:
        ser = self.ser
        return ser is not None and ser.is_open

    def read(self, n: int) -> bytes:
        ser = self.ser
        if ser is None or not ser.is_open:
            raise TransportEOFError("read while transport not open")

        try:
            return ser.read(n)
        except (SerialException, OSError, TypeError) as e:
            # TypeError: the fd was torn down by a concurrent close()
            if self.ser is None:
                raise TransportEOFError(f"UART closed during read: {e}") from None
            self.close()
            raise TransportIOError(f"UART read failed: {e}") from None

    def write(self, data: bytes) -> int:
        ser = self.ser
        if ser is None:
            raise TransportIOError("write while transport not open")

        try:
            return ser.write(data)
        except SerialException as e:
            raise TransportIOError(f"UART write failed: {e}") from None

    def flush(self) -> None:
        ser = self.ser
        if ser is None:
            raise TransportIOError("flush while transport not open")

        try:
            ser.flush()
        except SerialException as e:
            raise TransportIOError(f"UART flush failed: {e}") from None

    @staticmethod
    def _release(ser: serial.Serial) -> None:
        # Wake up a reader blocked inside ser.read() (POSIX backends only).
        cancel_read = getattr(ser, "cancel_read", None)
        if cancel_read is not None:
            try:
                cancel_read()
            except (SerialException, OSError):
                pass
        try:
            ser.close()
        except (SerialException, OSError):
            pass
