# forcelink/app/repository.py
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from forcelink.app.config import ForceLinkConfig
from forcelink.core.errors import CommandError, ConfigError, ScanError
from forcelink.interfaces.reading_sink import ReadingSink
from forcelink.model.device import DeviceIdentity
from forcelink.model.reading import ForceReading
from forcelink.protocol.commands import (
    encode_calibrate_channel_a,
    encode_calibrate_channel_b,
    encode_tare,
)
from forcelink.protocol.parser import ParserStats
from forcelink.runtime.connection import ConnectionStateMachine
from forcelink.runtime.device_link import DeviceLink, Session
from forcelink.runtime.discovery import DiscoveryController
from forcelink.runtime.environment import Environment
from forcelink.runtime.state import ConnectionState, ObservableValue
from forcelink.transport.factory import TransportFactory
from forcelink.transport.scanner import DeviceScanner


class ForceMeterRepository:
    """
    Public facade over discovery, the device link and the connection state.

    Observable outputs:
      - connection_state: ObservableValue[ConnectionState]
      - force_data: ObservableValue[Optional[ForceReading]]
      - acks: ObservableValue[int], count of ACK bytes from the device
    """

    def __init__(
        self,
        config: ForceLinkConfig,
        *,
        scanner: DeviceScanner,
        environment: Environment,
        factory: Optional[TransportFactory] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._log = logger or logging.getLogger(__name__)

        self._states = ConnectionStateMachine(environment, logger=self._log)
        self._force_data: ObservableValue[Optional[ForceReading]] = ObservableValue(None, logger=self._log)
        self._acks: ObservableValue[int] = ObservableValue(0, logger=self._log)

        self._link = DeviceLink(
            factory or TransportFactory(config.driver, config.transport_params),
            self,
            join_timeout_s=config.join_timeout_s,
            read_chunk_size=config.read_chunk_size,
            logger=self._log,
        )
        self._discovery = DiscoveryController(
            scanner,
            config.target_name,
            self._connect,
            logger=self._log,
        )

        self._sinks_lock = threading.Lock()
        self._reading_sinks: List[ReadingSink] = []

    # ---------------- Observables ----------------
    @property
    def config(self) -> ForceLinkConfig:
        return self._config

    @property
    def connection_state(self) -> ObservableValue[ConnectionState]:
        return self._states.observable

    @property
    def force_data(self) -> ObservableValue[Optional[ForceReading]]:
        return self._force_data

    @property
    def acks(self) -> ObservableValue[int]:
        return self._acks

    def parser_stats(self) -> Optional[ParserStats]:
        session = self._link.session
        return session.parser_stats if session is not None else None

    def add_sink(self, sink: ReadingSink) -> None:
        with self._sinks_lock:
            if sink not in self._reading_sinks:
                self._reading_sinks.append(sink)

    def remove_sink(self, sink: ReadingSink) -> None:
        with self._sinks_lock:
            if sink in self._reading_sinks:
                self._reading_sinks.remove(sink)

    # ---------------- Outbound operations ----------------
    def start_scan(self) -> None:
        """
        Scan for the configured device and connect to the first match.

        Returns once discovery is over; the connect itself completes in the
        background and is reported through connection_state.
        """
        gate = self._states.pending_gate()

        # A new scan, or a gate, always starts from a clean link.
        if self._link.close():
            self._force_data.set(None)

        if gate is not None:
            self._log.warning("SCAN_BLOCKED state=%s", gate)
            self._states.gated(gate)
            return

        self._states.scanning()
        try:
            match = self._discovery.start_scan()
        except ScanError as e:
            self._states.scan_failed(e.message)
            return

        # A disconnect() during the scan already moved the state on.
        if match is None:
            self._states.scan_failed(f"Device '{self._discovery.target_name}' not found")

    def send_tare_command(self) -> bool:
        return self._send("TARE", encode_tare())

    def calibrate_channel_a(self, factor: float) -> bool:
        return self._send("CALIBRATE_A", self._encode_factor(encode_calibrate_channel_a, factor))

    def calibrate_channel_b(self, factor: float) -> bool:
        return self._send("CALIBRATE_B", self._encode_factor(encode_calibrate_channel_b, factor))

    def validate_calibration_factor(self, factor: float) -> None:
        """Raise CommandError if factor cannot be sent as a calibration command."""
        self._encode_factor(encode_calibrate_channel_a, factor)

    def disconnect(self) -> None:
        self._discovery.stop_scan()
        # Socket first, then state: late readings are dropped by the closed session.
        self._link.close()
        self._force_data.set(None)
        self._states.disconnected()

    def release(self) -> None:
        self.disconnect()

        with self._sinks_lock:
            sinks, self._reading_sinks = list(self._reading_sinks), []
        for s in sinks:
            try:
                s.close()
            except Exception:
                self._log.exception("SINK_CLOSE_ERROR")

    def __enter__(self) -> "ForceMeterRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    # ---------------- LinkListener ----------------
    def on_connected(self, session: Session) -> None:
        if not self._link.is_current(session):
            return
        if not self._states.connected():
            self._log.warning("CONNECTED_OUT_OF_STATE state=%s, closing session", self._states.current)
            self._link.close()

    def on_connect_failed(self, session: Session, message: str) -> None:
        if self._link.discard(session):
            self._states.failed(message)

    def on_reading(self, session: Session, reading: ForceReading) -> None:
        if not self._link.is_current(session):
            return
        self._force_data.set(reading)

        with self._sinks_lock:
            sinks = list(self._reading_sinks)
        for s in sinks:
            try:
                s.on_reading(reading)
            except Exception:
                self._log.exception("SINK_ON_READING_ERROR")

    def on_ack(self, session: Session) -> None:
        if self._link.is_current(session):
            self._acks.set(self._acks.value + 1)

    def on_closed(self, session: Session, reason: str) -> None:
        if not self._link.discard(session):
            return
        self._log.info("SESSION_ENDED address=%s reason=%s", session.identity.address, reason)
        self._force_data.set(None)
        self._states.disconnected()

    # ---------------- Helpers ----------------
    def _connect(self, identity: DeviceIdentity) -> None:
        if not self._states.connecting():
            self._log.info("CONNECT_SKIPPED address=%s state=%s", identity.address, self._states.current)
            return
        try:
            self._link.connect(identity)
        except ConfigError as e:
            self._log.warning("CONNECT_SETUP_FAILED address=%s err=%s", identity.address, e.message)
            self._states.failed(f"Connection failed: {e.message}")

    def _send(self, name: str, data: bytes) -> bool:
        state = self._states.current
        if not state.is_connected:
            self._log.warning("COMMAND_SKIPPED cmd=%s state=%s", name, state)
            return False

        ok = self._link.write(data)
        if ok:
            self._log.info("COMMAND_SENT cmd=%s raw=%r", name, data)
        return ok

    @staticmethod
    def _encode_factor(encode: Callable[[float], bytes], factor: float) -> bytes:
        try:
            return encode(factor)
        except (TypeError, ValueError) as e:
            raise CommandError(
                "Invalid calibration factor.",
                hint=str(e),
                details={"factor": factor},
            ) from None
