# forcelink/runtime/_internal/connect_worker.py
from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from forcelink.transport.errors import TransportError

if TYPE_CHECKING:
    from forcelink.runtime.device_link import Session


class ConnectWorker(threading.Thread):
    """Thread that performs the blocking transport open, then brings the session live."""

    def __init__(self, session: "Session"):
        super().__init__(daemon=True, name=f"forcelink-connect[{session.identity.address}]")
        self.session = session

    def run(self) -> None:
        s = self.session
        s.log.info("CONNECT_START address=%s name=%s", s.identity.address, s.identity.name)
        try:
            s.transport.open()
        except TransportError as e:
            self._fail(f"Connection failed: {e}")
            return
        except Exception as e:
            s.log.exception("CONNECT_EXCEPTION address=%s", s.identity.address)
            self._fail(f"Connection failed: {e}")
            return

        s.go_live()

    def _fail(self, message: str) -> None:
        s = self.session
        try:
            s.transport.close()
        except Exception:
            s.log.exception("TRANSPORT_CLOSE_ERROR address=%s", s.identity.address)
        s.log.warning("CONNECT_FAILED address=%s err=%s", s.identity.address, message)
        s.notify_connect_failed(message)
