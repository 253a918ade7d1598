# forcelink/protocol/frame.py
from __future__ import annotations

from forcelink.model.reading import ForceReading

from .checksum import xor_checksum
from .defs import (
    CHECKSUM_IDX,
    ETX,
    ETX_IDX,
    FRAME_SIZE,
    LEN_IDX,
    PAYLOAD_END,
    PAYLOAD_LEN,
    PAYLOAD_START,
    PAYLOAD_STRUCT,
    STX,
)
from .errors import FrameRejected

# Rejection reasons (ParserStats keys)
BAD_LENGTH = "bad_length"
BAD_ETX = "bad_etx"
BAD_CHECKSUM = "bad_checksum"


def encode_payload(primary: float, secondary: float, ratio: float) -> bytes:
    return PAYLOAD_STRUCT.pack(primary, secondary, ratio)


def encode_frame(reading: ForceReading) -> bytes:
    """Build a complete, valid 16-byte telemetry frame for a reading."""
    payload = encode_payload(reading.primary, reading.secondary, reading.ratio)
    return bytes([STX, PAYLOAD_LEN]) + payload + bytes([xor_checksum(payload), ETX])


def decode_frame(frame: bytes) -> ForceReading:
    """
    Validate a complete frame and decode its payload.

    Raises FrameRejected(reason) when the frame is structurally wrong or its
    checksum does not match.
    """
    if len(frame) != FRAME_SIZE or frame[0] != STX:
        raise FrameRejected(BAD_LENGTH, f"size={len(frame)}")
    if frame[LEN_IDX] != PAYLOAD_LEN:
        raise FrameRejected(BAD_LENGTH, f"len=0x{frame[LEN_IDX]:02X}")
    if frame[ETX_IDX] != ETX:
        raise FrameRejected(BAD_ETX, f"etx=0x{frame[ETX_IDX]:02X}")

    payload = frame[PAYLOAD_START:PAYLOAD_END]
    calc = xor_checksum(payload)
    rx = frame[CHECKSUM_IDX]
    if calc != rx:
        raise FrameRejected(BAD_CHECKSUM, f"calc=0x{calc:02X} rx=0x{rx:02X}")

    primary, secondary, ratio = PAYLOAD_STRUCT.unpack(payload)
    return ForceReading(primary=primary, secondary=secondary, ratio=ratio)
