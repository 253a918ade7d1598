# forcelink/core/errors.py
from __future__ import annotations


class ForceLinkError(Exception):
    """
    Base class for all expected operational errors in forcelink.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, UI messages, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration / setup errors (no hardware access yet)
# ---------------------------------------------------------------------------

class ConfigError(ForceLinkError):
    """
    Configuration is invalid or inconsistent.

    Examples:
      - unknown transport driver
      - invalid / unknown transport parameters
      - malformed YAML config file
    """
    code = "config_error"


# ---------------------------------------------------------------------------
# Discovery / connection lifecycle errors
# ---------------------------------------------------------------------------

class ScanError(ForceLinkError):
    """
    Device discovery failed before any candidate could be matched.

    Examples:
      - port enumeration raised
      - scanner backend unavailable
    """
    code = "scan_error"


class DeviceConnectError(ForceLinkError):
    """
    The serial session to the matched device could not be opened.

    Examples:
      - rfcomm port not bound
      - permission denied
      - device already in use
    """
    code = "device_connect_error"


# ---------------------------------------------------------------------------
# Command errors
# ---------------------------------------------------------------------------

class CommandError(ForceLinkError):
    """
    An outbound command could not be encoded or sent.

    Examples:
      - calibration factor is NaN / infinite
      - command issued while not connected (CLI only)
    """
    code = "command_error"
