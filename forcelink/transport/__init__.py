from .base import Transport
from .errors import TransportEOFError, TransportError, TransportIOError, TransportOpenError
from .factory import TransportFactory
from .registry import TransportDriverRegistry

__all__ = [
    "Transport",
    "TransportError", "TransportOpenError", "TransportIOError", "TransportEOFError",
    "TransportFactory", "TransportDriverRegistry",
]
