# forcelink/protocol/defs.py
from __future__ import annotations

import struct

# Frame markers
STX = 0x02
ETX = 0x03
ACK = 0x06

# STX(1) + LEN(1) + PAYLOAD(12) + CHECKSUM(1) + ETX(1)
PAYLOAD_LEN = 0x0C
FRAME_SIZE = 16

# Byte offsets inside a frame
LEN_IDX = 1
PAYLOAD_START = 2
PAYLOAD_END = PAYLOAD_START + PAYLOAD_LEN
CHECKSUM_IDX = PAYLOAD_END
ETX_IDX = FRAME_SIZE - 1

# primary, secondary, ratio as little-endian float32
PAYLOAD_STRUCT = struct.Struct("<fff")

DEFAULT_DEVICE_NAME = "ESP32_Fuerza_HQ"
