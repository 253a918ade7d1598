from __future__ import annotations

import pytest

from forcelink.model.reading import ForceReading
from forcelink.protocol.defs import ACK
from forcelink.protocol.frame import encode_frame
from forcelink.protocol.parser import FrameParser
from forcelink.transport.errors import TransportEOFError, TransportIOError, TransportOpenError
from forcelink.transport.simulated import SimulatedTransport


def _drain(t: SimulatedTransport, n: int = 64) -> bytes:
    out = bytearray()
    while True:
        chunk = t.read(n)
        if not chunk:
            return bytes(out)
        out += chunk


def test_first_read_yields_a_valid_frame():
    t = SimulatedTransport(period_s=10.0, timeout=0.05, seed=1)
    t.open()
    try:
        readings = FrameParser().feed(t.read(64))
    finally:
        t.close()

    assert len(readings) == 1
    r = readings[0]
    assert 20.0 <= r.primary <= 45.0
    assert 30.0 <= r.secondary <= 70.0
    assert r.ratio == pytest.approx(r.primary / r.secondary, rel=1e-5)


def test_read_times_out_with_empty_bytes():
    t = SimulatedTransport(period_s=10.0, timeout=0.02, seed=1)
    t.open()
    try:
        t.read(64)  # initial frame
        assert t.read(64) == b""
    finally:
        t.close()


def test_tare_answers_ack_then_zero_frame():
    t = SimulatedTransport(period_s=10.0, timeout=0.02, seed=1)
    t.open()
    try:
        _drain(t)
        t.write(b"t\n")
        data = _drain(t)
    finally:
        t.close()

    assert data[0] == ACK
    assert data[1:] == encode_frame(ForceReading(0.0, 0.0, 0.0))
    assert t.writes == [b"t\n"]


def test_calibration_commands_are_acked_and_recorded():
    t = SimulatedTransport(period_s=10.0, timeout=0.02, seed=1)
    t.open()
    try:
        _drain(t)
        t.write(b"i=1.5\nq=")
        t.write(b"2.0\n")
        data = _drain(t)
    finally:
        t.close()

    assert data == bytes([ACK, ACK])
    assert t.calibration == {"i": 1.5, "q": 2.0}


def test_read_after_close_raises_eof():
    t = SimulatedTransport(timeout=0.02)
    t.open()
    t.close()
    with pytest.raises(TransportEOFError):
        t.read(1)


def test_write_when_closed_raises():
    t = SimulatedTransport()
    with pytest.raises(TransportIOError):
        t.write(b"t\n")


def test_fail_open():
    t = SimulatedTransport(fail_open=True)
    with pytest.raises(TransportOpenError):
        t.open()


def test_context_manager_opens_and_closes():
    t = SimulatedTransport(period_s=10.0, timeout=0.02, seed=1)
    assert t.is_open() is False
    with t as opened:
        assert opened is t
        assert t.is_open() is True
    assert t.is_open() is False
