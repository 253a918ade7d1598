# protocol/__init__.py

from .checksum import xor_checksum
from .commands import encode_calibrate_channel_a, encode_calibrate_channel_b, encode_tare
from .frame import decode_frame, encode_frame
from .parser import FrameParser, ParserState, ParserStats

__all__ = [
    "xor_checksum",
    "encode_frame", "decode_frame",
    "FrameParser", "ParserState", "ParserStats",
    "encode_tare", "encode_calibrate_channel_a", "encode_calibrate_channel_b",
]
