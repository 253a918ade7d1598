# forcelink/transport/errors.py
from __future__ import annotations

class TransportError(Exception):
    """Failure on the byte link to the force meter."""

class TransportOpenError(TransportError):
    """The device port could not be opened."""

class TransportIOError(TransportError):
    """I/O on an open device link failed."""

class TransportEOFError(TransportIOError):
    """The device stream ended: the port vanished or was closed underneath the reader."""
