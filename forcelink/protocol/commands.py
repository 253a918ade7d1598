# forcelink/protocol/commands.py
from __future__ import annotations

import math
from decimal import Decimal

TARE = "t"
CALIBRATE_CHANNEL_A = "i"
CALIBRATE_CHANNEL_B = "q"

TERMINATOR = "\n"

# Factors in [1e-3, 1e7) are sent as plain decimals, others as <d.ddd>E<exp>.
PLAIN_MIN = 1e-3
PLAIN_MAX = 1e7


def _format_factor(factor: float) -> str:
    """
    Render a calibration factor with the fewest digits that parse back to it.

    1.5 -> "1.5", 2 -> "2.0", 1e16 -> "1.0E16", 1e-05 -> "1.0E-5".
    """
    value = float(factor)
    if not math.isfinite(value):
        raise ValueError(f"Calibration factor must be finite, got {factor!r}")
    if value == 0.0 or PLAIN_MIN <= abs(value) < PLAIN_MAX:
        return repr(value)

    sign, digits, exponent = Decimal(repr(value)).normalize().as_tuple()
    text = "".join(str(d) for d in digits)
    mantissa = f"{text[0]}.{text[1:] or '0'}"
    return f"{'-' if sign else ''}{mantissa}E{exponent + len(digits) - 1}"


def encode_tare() -> bytes:
    return (TARE + TERMINATOR).encode("ascii")


def encode_calibrate_channel_a(factor: float) -> bytes:
    return f"{CALIBRATE_CHANNEL_A}={_format_factor(factor)}{TERMINATOR}".encode("ascii")


def encode_calibrate_channel_b(factor: float) -> bytes:
    return f"{CALIBRATE_CHANNEL_B}={_format_factor(factor)}{TERMINATOR}".encode("ascii")
