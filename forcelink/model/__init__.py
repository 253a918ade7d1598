from .device import DeviceIdentity
from .reading import ForceReading

__all__ = ["DeviceIdentity", "ForceReading"]
