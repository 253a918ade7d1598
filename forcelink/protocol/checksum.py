def xor_checksum(buf: bytes) -> int:
    crc = 0
    for b in buf:
        crc ^= b & 0xFF
    return crc
