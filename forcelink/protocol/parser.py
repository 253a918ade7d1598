from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from forcelink.model.reading import ForceReading

from .defs import ACK, FRAME_SIZE, LEN_IDX, PAYLOAD_LEN, STX
from .errors import FrameRejected
from .frame import BAD_LENGTH, decode_frame


class ParserState(Enum):
    AWAITING_START = "awaiting_start"
    COLLECTING = "collecting"


@dataclass
class ParserStats:
    """Diagnostics only; frame corruption is never surfaced as an error."""
    frames_ok: int = 0
    acks: int = 0
    rejected: Dict[str, int] = field(default_factory=dict)

    @property
    def rejected_total(self) -> int:
        return sum(self.rejected.values())


class FrameParser:
    """
    Incremental parser for the 16-byte STX/LEN/PAYLOAD/CHECKSUM/ETX frame.

    Bytes may be fed one at a time or in chunks. The parser is not
    thread-safe; it is meant to live inside a single read loop.
    """

    def __init__(
        self,
        *,
        on_ack: Optional[Callable[[], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.state = ParserState.AWAITING_START
        self.buffer = bytearray()
        self.stats = ParserStats()
        self.on_ack = on_ack
        self._log = logger or logging.getLogger(__name__)
        self._replay_depth = 0

    # ---------------- Public API ----------------
    def feed(self, data: bytes) -> List[ForceReading]:
        """Feed raw bytes and return every reading completed by them."""
        out: List[ForceReading] = []
        for b in data:
            self._step(b & 0xFF, out)
        return out

    def feed_byte(self, b: int) -> Optional[ForceReading]:
        out: List[ForceReading] = []
        self._step(b & 0xFF, out)
        return out[0] if out else None

    def reset(self) -> None:
        self.buffer.clear()
        self.state = ParserState.AWAITING_START

    # ---------------- State machine ----------------
    def _step(self, b: int, out: List[ForceReading]) -> None:
        if self.state is ParserState.AWAITING_START:
            if b == STX:
                self.buffer.clear()
                self.buffer.append(b)
                self.state = ParserState.COLLECTING
            elif b == ACK and not self._replay_depth:
                self._handle_ack()
            return

        self.buffer.append(b)
        n = len(self.buffer)

        if n == LEN_IDX + 1 and b != PAYLOAD_LEN:
            self._reject(FrameRejected(BAD_LENGTH, f"len=0x{b:02X}"), out)
            return

        if n < FRAME_SIZE:
            return

        try:
            reading = decode_frame(bytes(self.buffer))
        except FrameRejected as e:
            self._reject(e, out)
            return

        self.reset()
        self.stats.frames_ok += 1
        out.append(reading)

    def _reject(self, err: FrameRejected, out: List[ForceReading]) -> None:
        """Drop the frame, then rescan its bytes after the STX for a new start marker."""
        tail = bytes(self.buffer[1:])
        self.reset()

        self.stats.rejected[err.reason] = self.stats.rejected.get(err.reason, 0) + 1
        self._log.debug("FRAME_REJECTED reason=%s %s", err.reason, err.detail)

        idx = tail.find(bytes([STX]))
        if idx < 0:
            return

        # Replayed bytes belong to a broken frame: never report them as ACKs.
        self._replay_depth += 1
        try:
            for b in tail[idx:]:
                self._step(b, out)
        finally:
            self._replay_depth -= 1

    def _handle_ack(self) -> None:
        self.stats.acks += 1
        self._log.debug("ACK_RECEIVED count=%d", self.stats.acks)
        cb = self.on_ack
        if cb is None:
            return
        try:
            cb()
        except Exception:
            self._log.exception("ON_ACK_CALLBACK_ERROR")
