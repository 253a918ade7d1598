# forcelink/runtime/device_link.py
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Protocol

from forcelink.model.device import DeviceIdentity
from forcelink.model.reading import ForceReading
from forcelink.protocol.parser import ParserStats
from forcelink.transport.base import Transport
from forcelink.transport.errors import TransportError
from forcelink.transport.factory import TransportFactory

from ._internal.connect_worker import ConnectWorker
from ._internal.read_worker import ReadWorker


class LinkListener(Protocol):
    """Session events, delivered on the session's worker threads."""
    def on_connected(self, session: "Session") -> None: ...
    def on_connect_failed(self, session: "Session", message: str) -> None: ...
    def on_reading(self, session: "Session", reading: ForceReading) -> None: ...
    def on_ack(self, session: "Session") -> None: ...
    def on_closed(self, session: "Session", reason: str) -> None: ...


class Session:
    """
    One connection attempt and, if it succeeds, one live read loop.

    Owns the transport and both worker threads. Once cancel() has marked the
    session closing, no further events reach the listener.
    """

    def __init__(
        self,
        identity: DeviceIdentity,
        transport: Transport,
        listener: LinkListener,
        *,
        read_chunk_size: int = 64,
        logger: Optional[logging.Logger] = None,
    ):
        self.identity = identity
        self.transport = transport
        self.log = logger or logging.getLogger(__name__)

        self._listener = listener
        self._read_chunk_size = int(read_chunk_size)
        self._closing = threading.Event()
        # Guards every listener delivery against a concurrent cancel().
        self._publish_lock = threading.RLock()

        self.connect_worker: Optional[ConnectWorker] = None
        self.read_worker: Optional[ReadWorker] = None

    @property
    def closing(self) -> bool:
        return self._closing.is_set()

    @property
    def is_reading(self) -> bool:
        w = self.read_worker
        return w is not None and w.is_alive()

    @property
    def parser_stats(self) -> Optional[ParserStats]:
        w = self.read_worker
        return w.parser.stats if w is not None else None

    # ---------------- Lifecycle ----------------
    def start(self) -> None:
        self.connect_worker = ConnectWorker(self)
        self.connect_worker.start()

    def go_live(self) -> None:
        """Start the read loop and report the connection (called by the connect worker)."""
        with self._publish_lock:
            if self.closing:
                self._close_transport()
                return
            self.read_worker = ReadWorker(self, chunk_size=self._read_chunk_size)
            self.read_worker.start()
            self.log.info("CONNECTED address=%s", self.identity.address)
            self._deliver("on_connected")

    def cancel(self, timeout_s: float) -> bool:
        """
        Close the transport and wait (bounded) for both workers.

        Returns False if a worker is still alive after timeout_s; it is left
        to exit on its own against the already-closed transport.
        """
        with self._publish_lock:
            self._closing.set()
        self._close_transport()

        finished = True
        me = threading.current_thread()
        for w in (self.connect_worker, self.read_worker):
            if w is None or w is me or not w.is_alive():
                continue
            w.join(timeout_s)
            if w.is_alive():
                finished = False
                self.log.warning(
                    "WORKER_JOIN_TIMEOUT worker=%s timeout_s=%.3f",
                    w.name,
                    timeout_s,
                )
        return finished

    # ---------------- Events (worker threads) ----------------
    def publish_reading(self, reading: ForceReading) -> None:
        self._deliver("on_reading", reading)

    def publish_ack(self) -> None:
        self._deliver("on_ack")

    def notify_connect_failed(self, message: str) -> None:
        self._deliver("on_connect_failed", message)

    def notify_closed(self, reason: str) -> None:
        self._deliver("on_closed", reason)

    def _deliver(self, event: str, *args) -> None:
        with self._publish_lock:
            if self.closing:
                return
            try:
                getattr(self._listener, event)(self, *args)
            except Exception:
                self.log.exception("LINK_LISTENER_ERROR event=%s", event)

    def _close_transport(self) -> None:
        try:
            self.transport.close()
        except Exception:
            self.log.exception("TRANSPORT_CLOSE_ERROR address=%s", self.identity.address)


class DeviceLink:
    """
    Owns at most one Session at a time.

    connect() tears down any previous session before starting the new one;
    close() is idempotent and safe to call from several threads at once.
    """

    def __init__(
        self,
        factory: TransportFactory,
        listener: LinkListener,
        *,
        join_timeout_s: float = 0.5,
        read_chunk_size: int = 64,
        logger: Optional[logging.Logger] = None,
    ):
        self._factory = factory
        self._listener = listener
        self.join_timeout_s = float(join_timeout_s)
        self._read_chunk_size = int(read_chunk_size)
        self._log = logger or logging.getLogger(__name__)

        # _lock guards the session reference and is also taken by worker
        # threads (discard). _teardown_lock serializes whole teardowns and is
        # never taken by workers.
        self._lock = threading.RLock()
        self._teardown_lock = threading.Lock()
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def is_current(self, session: Session) -> bool:
        return self._session is session and not session.closing

    def connect(self, identity: DeviceIdentity) -> Session:
        transport = self._factory.create(identity)
        session = Session(
            identity,
            transport,
            self._listener,
            read_chunk_size=self._read_chunk_size,
            logger=self._log,
        )

        with self._teardown():
            with self._lock:
                old, self._session = self._session, session
            if old is not None:
                self._log.info("SESSION_REPLACE old=%s new=%s", old.identity.address, identity.address)
                old.cancel(self.join_timeout_s)

        session.start()
        return session

    def discard(self, session: Session) -> bool:
        """Forget a session that ended on its own. Returns True if it was current."""
        with self._lock:
            if self._session is not session:
                return False
            self._session = None
            return True

    def write(self, data: bytes) -> bool:
        session = self._session
        if session is None or session.closing or not session.is_reading:
            self._log.warning("WRITE_SKIPPED reason=not_connected len=%d", len(data))
            return False

        try:
            session.transport.write(data)
            try:
                session.transport.flush()
            except TransportError as e:
                # write() already accepted the bytes
                self._log.warning("FLUSH_FAILED address=%s err=%s", session.identity.address, e)
        except TransportError as e:
            self._log.error("WRITE_FAILED address=%s len=%d err=%s", session.identity.address, len(data), e)
            return False

        self._log.debug("WRITE_OK address=%s raw=%r", session.identity.address, data)
        return True

    def close(self) -> bool:
        """
        Tear down the current session. Returns False if there was none.

        A caller that races another close() waits (bounded) for that teardown
        to finish before returning.
        """
        with self._teardown():
            with self._lock:
                session, self._session = self._session, None
            if session is None:
                return False

            self._log.info("SESSION_CLOSE address=%s", session.identity.address)
            session.cancel(self.join_timeout_s)
            return True

    @contextmanager
    def _teardown(self) -> Iterator[None]:
        # Bounded: a close() re-entered from a listener callback must not hang.
        acquired = self._teardown_lock.acquire(timeout=self.join_timeout_s * 2)
        if not acquired:
            self._log.warning("TEARDOWN_LOCK_TIMEOUT timeout_s=%.3f", self.join_timeout_s * 2)
        try:
            yield
        finally:
            if acquired:
                self._teardown_lock.release()
