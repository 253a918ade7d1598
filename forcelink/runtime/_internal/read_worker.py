# forcelink/runtime/_internal/read_worker.py
from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from forcelink.protocol.parser import FrameParser
from forcelink.transport.errors import TransportEOFError, TransportError

if TYPE_CHECKING:
    from forcelink.runtime.device_link import Session


class ReadWorker(threading.Thread):
    """Thread that reads the session's transport and feeds the frame parser byte by byte."""

    def __init__(self, session: "Session", *, chunk_size: int = 64):
        super().__init__(daemon=True, name=f"forcelink-read[{session.identity.address}]")
        self.session = session
        self.chunk_size = int(chunk_size)
        self.parser = FrameParser(on_ack=session.publish_ack, logger=session.log)

    def run(self) -> None:
        s = self.session
        reason = "stopped"
        try:
            while not s.closing:
                try:
                    data = s.transport.read(self.chunk_size)
                except TransportEOFError:
                    reason = "eof"
                    break
                except TransportError as e:
                    reason = "io_error"
                    if not s.closing:
                        s.log.warning("READ_FAILED address=%s err=%s", s.identity.address, e)
                    break

                for b in data:
                    reading = self.parser.feed_byte(b)
                    if reading is not None:
                        s.publish_reading(reading)
        except Exception:
            reason = "error"
            s.log.exception("READ_LOOP_EXCEPTION address=%s", s.identity.address)
        finally:
            try:
                s.transport.close()
            except Exception:
                s.log.exception("TRANSPORT_CLOSE_ERROR address=%s", s.identity.address)

            stats = self.parser.stats
            s.log.info(
                "READ_LOOP_ENDED address=%s reason=%s frames_ok=%d rejected=%d acks=%d",
                s.identity.address,
                reason,
                stats.frames_ok,
                stats.rejected_total,
                stats.acks,
            )
            s.notify_closed(reason)
