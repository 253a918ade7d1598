from typing import Protocol

from forcelink.model.reading import ForceReading


class ReadingSink(Protocol):
    def on_reading(self, reading: ForceReading) -> None: ...
    def close(self) -> None: ...
