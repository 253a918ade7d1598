from __future__ import annotations

import pytest

from forcelink.model.reading import ForceReading
from forcelink.protocol.frame import BAD_CHECKSUM, BAD_ETX, BAD_LENGTH, encode_frame
from forcelink.protocol.parser import FrameParser, ParserState

SAMPLE_FRAME = bytes.fromhex("02 0C 00 00 20 41 00 00 A0 41 00 00 00 3F BF 03")
SAMPLE = ForceReading(10.0, 20.0, 0.5)


def test_parser_decodes_valid_frame():
    p = FrameParser()
    assert p.feed(SAMPLE_FRAME) == [SAMPLE]
    assert p.state is ParserState.AWAITING_START
    assert p.stats.frames_ok == 1
    assert p.stats.rejected_total == 0


def test_parser_byte_at_a_time():
    p = FrameParser()
    out = [p.feed_byte(b) for b in SAMPLE_FRAME]
    assert out[:-1] == [None] * 15
    assert out[-1] == SAMPLE


def test_parser_handles_arbitrary_chunking():
    stream = SAMPLE_FRAME + encode_frame(ForceReading(1.5, 3.0, 0.5)) + SAMPLE_FRAME
    for size in (1, 3, 7, 16, 17, len(stream)):
        p = FrameParser()
        got = []
        for i in range(0, len(stream), size):
            got.extend(p.feed(stream[i:i + size]))
        assert got == [SAMPLE, ForceReading(1.5, 3.0, 0.5), SAMPLE], size


def test_parser_ignores_noise_before_stx():
    p = FrameParser()
    assert p.feed(b"\xFF\x00\x03\x41" + SAMPLE_FRAME) == [SAMPLE]
    assert p.stats.rejected_total == 0


def test_parser_bad_length_resyncs_on_next_frame():
    p = FrameParser()
    assert p.feed(b"\x02\x05") == []
    assert p.state is ParserState.AWAITING_START
    assert p.feed(SAMPLE_FRAME) == [SAMPLE]
    assert p.stats.rejected == {BAD_LENGTH: 1}


def test_parser_bit_flip_rejected_then_next_frame_accepted():
    corrupt = bytearray(SAMPLE_FRAME)
    corrupt[4] ^= 0x01  # 0x20 -> 0x21 inside the payload

    p = FrameParser()
    assert p.feed(bytes(corrupt)) == []
    assert p.state is ParserState.AWAITING_START
    assert p.stats.rejected == {BAD_CHECKSUM: 1}

    assert p.feed(SAMPLE_FRAME) == [SAMPLE]
    assert p.state is ParserState.AWAITING_START


def test_parser_recovers_frame_that_starts_inside_broken_one():
    # Truncated frame: its 16-byte window ends inside the real frame, with a bad ETX.
    p = FrameParser()
    assert p.feed(b"\x02\x0C\x00\x00" + SAMPLE_FRAME) == [SAMPLE]
    assert p.stats.rejected == {BAD_ETX: 1}
    assert p.stats.frames_ok == 1


def test_parser_reports_ack_outside_frame():
    acks = []
    p = FrameParser(on_ack=lambda: acks.append(1))
    assert p.feed(b"\x06") == []
    assert acks == [1]
    assert p.stats.acks == 1
    assert p.state is ParserState.AWAITING_START


def test_parser_ack_byte_inside_frame_is_payload():
    payload = bytes([0x06] * 12)  # XOR of twelve 0x06 bytes is 0
    frame = b"\x02\x0C" + payload + b"\x00\x03"

    acks = []
    p = FrameParser(on_ack=lambda: acks.append(1))
    out = p.feed(frame)
    assert len(out) == 1
    assert acks == []


def test_parser_ack_between_frames():
    acks = []
    p = FrameParser(on_ack=lambda: acks.append(1))
    out = p.feed(SAMPLE_FRAME + b"\x06" + SAMPLE_FRAME)
    assert out == [SAMPLE, SAMPLE]
    assert acks == [1]


def test_parser_ack_callback_error_does_not_break_parsing():
    def boom():
        raise RuntimeError("listener failed")

    p = FrameParser(on_ack=boom)
    assert p.feed(b"\x06" + SAMPLE_FRAME) == [SAMPLE]
    assert p.stats.acks == 1


def test_parser_reset_discards_partial_frame():
    p = FrameParser()
    p.feed(SAMPLE_FRAME[:8])
    assert p.state is ParserState.COLLECTING
    p.reset()
    assert p.state is ParserState.AWAITING_START
    assert p.feed(SAMPLE_FRAME) == [SAMPLE]


def test_parser_full_frame_with_len_0d_then_good_frame():
    bad = bytearray(SAMPLE_FRAME)
    bad[1] = 0x0D

    p = FrameParser()
    assert p.feed(bytes(bad)) == []
    assert p.state is ParserState.AWAITING_START
    assert p.feed(SAMPLE_FRAME) == [SAMPLE]
    assert p.stats.rejected == {BAD_LENGTH: 1}
    assert p.stats.acks == 0


@pytest.mark.parametrize("bit", range(96))
def test_parser_rejects_every_single_payload_bit_flip(bit):
    corrupt = bytearray(SAMPLE_FRAME)
    corrupt[2 + bit // 8] ^= 1 << (bit % 8)

    p = FrameParser()
    assert p.feed(bytes(corrupt)) == []
    assert p.stats.rejected_total >= 1
    assert p.state is ParserState.AWAITING_START

    assert p.feed(SAMPLE_FRAME) == [SAMPLE]
    assert p.stats.frames_ok == 1
    assert p.state is ParserState.AWAITING_START
