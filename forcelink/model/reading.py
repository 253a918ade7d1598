# forcelink/model/reading.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ForceReading:
    """
    One decoded telemetry sample.

    primary / secondary: the two independently measured force channels
    ratio: the ratio channel as sent by the device (not recomputed here)
    """
    primary: float
    secondary: float
    ratio: float

    def computed_ratio(self) -> float:
        """primary / secondary computed on the host; 0.0 when secondary is 0."""
        if self.secondary == 0:
            return 0.0
        return self.primary / self.secondary

    def as_dict(self) -> dict:
        return {
            "primary": self.primary,
            "secondary": self.secondary,
            "ratio": self.ratio,
        }
