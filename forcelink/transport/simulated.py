# forcelink/transport/simulated.py
from __future__ import annotations

import random
import threading
import time
from typing import Dict, Optional

from forcelink.model.reading import ForceReading
from forcelink.protocol.commands import CALIBRATE_CHANNEL_A, CALIBRATE_CHANNEL_B, TARE
from forcelink.protocol.defs import ACK
from forcelink.protocol.frame import encode_frame

from .base import Transport
from .errors import TransportEOFError, TransportIOError, TransportOpenError


class SimulatedTransport(Transport):
    """
    In-process stand-in for the sensor, for development without hardware.

    Emits a random reading every period_s, answers tare with an ACK followed
    by a zeroed reading, and acknowledges calibration commands.
    """

    def __init__(
        self,
        port: str = "sim://force",
        period_s: float = 0.5,
        timeout: float = 0.1,
        seed: Optional[int] = None,
        fail_open: bool = False,
    ):
        self.port = port
        self.period_s = float(period_s)
        self.timeout = float(timeout)
        self.fail_open = fail_open

        self.calibration: Dict[str, float] = {}
        self.writes: list[bytes] = []

        self._rng = random.Random(seed)
        self._cond = threading.Condition()
        self._rx = bytearray()
        self._cmd_buf = bytearray()
        self._open = False
        self._next_frame_at = 0.0

    def open(self) -> None:
        if self.fail_open:
            raise TransportOpenError(f"simulated open failure on {self.port}")
        with self._cond:
            self._open = True
            self._rx.clear()
            self._cmd_buf.clear()
            self._next_frame_at = time.monotonic()

    def close(self) -> None:
        with self._cond:
            self._open = False
            self._cond.notify_all()

    def is_open(self) -> bool:
        return self._open

    def read(self, n: int) -> bytes:
        with self._cond:
            deadline = time.monotonic() + self.timeout
            while True:
                if not self._open:
                    raise TransportEOFError("simulator closed")
                if self._rx:
                    break

                now = time.monotonic()
                if now >= self._next_frame_at:
                    self._rx += encode_frame(self._random_reading())
                    self._next_frame_at = now + self.period_s
                    break
                if now >= deadline:
                    return b""
                self._cond.wait(min(deadline, self._next_frame_at) - now)

            out = bytes(self._rx[:n])
            del self._rx[:n]
            return out

    def write(self, data: bytes) -> int:
        with self._cond:
            if not self._open:
                raise TransportIOError("write while transport not open")
            self.writes.append(bytes(data))
            self._cmd_buf += data
            while b"\n" in self._cmd_buf:
                line, _, rest = bytes(self._cmd_buf).partition(b"\n")
                self._cmd_buf = bytearray(rest)
                self._handle_command(line.decode("ascii", errors="replace").strip())
            self._cond.notify_all()
        return len(data)

    def flush(self) -> None:
        if not self._open:
            raise TransportIOError("flush while transport not open")

    def _handle_command(self, line: str) -> None:
        if line == TARE:
            self._rx.append(ACK)
            self._rx += encode_frame(ForceReading(0.0, 0.0, 0.0))
            return

        key, sep, value = line.partition("=")
        if sep and key in (CALIBRATE_CHANNEL_A, CALIBRATE_CHANNEL_B):
            try:
                self.calibration[key] = float(value)
            except ValueError:
                return
            self._rx.append(ACK)

    def _random_reading(self) -> ForceReading:
        primary = self._rng.random() * 25.0 + 20.0
        secondary = self._rng.random() * 40.0 + 30.0
        ratio = primary / secondary if secondary != 0 else 0.0
        return ForceReading(primary, secondary, ratio)
