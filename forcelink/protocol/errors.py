# forcelink/protocol/errors.py

class ProtocolError(Exception):
    """Base for protocol-level failures (framing/decoding/command encoding)."""

class FrameRejected(ProtocolError):
    def __init__(self, reason: str, detail: str = ""):
        super().__init__(f"frame rejected ({reason}){': ' + detail if detail else ''}")
        self.reason = reason
        self.detail = detail
