# forcelink/cli/commands.py
from __future__ import annotations

import logging
import sys
import threading
import time
from pathlib import Path
from typing import Callable

from forcelink.app.config import ForceLinkConfig, load_config
from forcelink.app.repository import ForceMeterRepository
from forcelink.app.runner import build_repository, build_scanner
from forcelink.core.errors import CommandError, DeviceConnectError
from forcelink.interfaces.reading_sink import ReadingSink
from forcelink.model.device import DeviceIdentity
from forcelink.model.reading import ForceReading
from forcelink.runtime.state import ConnectionState, ConnectionStatus


# ---------------- Reading sink ----------------

class PrintReadingSink(ReadingSink):
    """Print decoded readings to stdout."""
    def on_reading(self, reading: ForceReading) -> None:
        d = reading.as_dict()
        print(
            f"READING primary={d['primary']:.3f} "
            f"secondary={d['secondary']:.3f} ratio={d['ratio']:.4f}"
        )

    def close(self) -> None:
        return None

# ---------------- Logging ----------------

def configure_file_logging(app_log_path: Path) -> None:
    """
    Add a file handler to the root logger (idempotent).
    Kept in CLI (presentation-layer concern).
    """
    root = logging.getLogger()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(app_log_path.resolve())

    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(app_log_path, encoding="utf-8", delay=True)
    fh.setLevel(logging.INFO)
    fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    root.addHandler(fh)

    if root.level > logging.INFO:
        root.setLevel(logging.INFO)


def configure_console_logging(verbose: bool) -> None:
    if not verbose:
        return
    root = logging.getLogger()
    for h in root.handlers:
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler):
            return

    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(logging.DEBUG)
    sh.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    root.addHandler(sh)
    root.setLevel(logging.DEBUG)

# ---------------- Helpers ----------------

def load_cli_config(args) -> ForceLinkConfig:
    cfg = load_config(args.config) if args.config is not None else ForceLinkConfig()
    return cfg.with_overrides(driver=args.driver, target_name=args.name)


def _setup(args) -> ForceLinkConfig:
    configure_console_logging(args.verbose)
    configure_file_logging(args.log_file)
    return load_cli_config(args)


def wait_for_state(
    repo: ForceMeterRepository,
    predicate: Callable[[ConnectionState], bool],
    timeout_s: float,
) -> ConnectionState:
    """Block until predicate(state) holds or timeout_s elapses; returns the last state."""
    hit = threading.Event()

    def _on_state(st: ConnectionState) -> None:
        if predicate(st):
            hit.set()

    unsubscribe = repo.connection_state.subscribe(_on_state)
    try:
        if predicate(repo.connection_state.value):
            hit.set()
        hit.wait(timeout_s)
    finally:
        unsubscribe()
    return repo.connection_state.value


_SETTLED = {
    ConnectionStatus.CONNECTED,
    ConnectionStatus.ERROR,
    ConnectionStatus.DISCONNECTED,
    ConnectionStatus.BLUETOOTH_DISABLED,
    ConnectionStatus.BLUETOOTH_NOT_SUPPORTED,
    ConnectionStatus.PERMISSIONS_REQUIRED,
}


def connect_repository(repo: ForceMeterRepository, *, timeout_s: float) -> None:
    repo.start_scan()
    st = wait_for_state(repo, lambda s: s.status in _SETTLED, timeout_s)
    if st.is_connected:
        print(f"Connected: {repo.config.target_name} (driver={repo.config.driver})")
        return

    if st.status is ConnectionStatus.ERROR and st.message:
        message = st.message
    else:
        message = f"Device '{repo.config.target_name}' not connected (state={st})."
    raise DeviceConnectError(
        message,
        hint="Pair/bind the device first, or try --driver sim for a simulated device.",
        details={"state": str(st)},
    )


def _wait_for_ack(repo: ForceMeterRepository, send: Callable[[], bool], timeout_s: float) -> bool:
    acked = threading.Event()
    baseline = repo.acks.value
    unsubscribe = repo.acks.subscribe(lambda n: acked.set() if n > baseline else None)
    try:
        if not send():
            raise CommandError(
                "Command could not be written to the device.",
                hint="See the log file for the write error.",
            )
        return acked.wait(timeout_s)
    finally:
        unsubscribe()

# ---------------- Commands ----------------

def cmd_ports(args) -> int:
    cfg = _setup(args)
    scanner = build_scanner(cfg)

    found: list[DeviceIdentity] = []
    scanner.scan(found.append)

    if not found:
        print("No candidate devices found.")
        return 0

    print(f"Candidates (target name: {cfg.target_name}):")
    for ident in found:
        mark = "*" if ident.name == cfg.target_name else " "
        print(f" {mark} {ident.address}  {ident.name}")
    return 0


def cmd_stream(args) -> int:
    cfg = _setup(args)

    with build_repository(cfg) as repo:
        repo.add_sink(PrintReadingSink())
        connect_repository(repo, timeout_s=args.connect_timeout)

        t0 = time.time()
        try:
            while args.secs is None or time.time() - t0 < args.secs:
                if not repo.connection_state.value.is_connected:
                    print(f"Link lost: {repo.connection_state.value}")
                    return 1
                time.sleep(0.05)
        except KeyboardInterrupt:
            print("Interrupted.")

        stats = repo.parser_stats()
        if stats is not None:
            print(
                f"Frames: ok={stats.frames_ok} rejected={stats.rejected_total} acks={stats.acks}"
            )
        return 0


def cmd_tare(args) -> int:
    cfg = _setup(args)

    with build_repository(cfg) as repo:
        connect_repository(repo, timeout_s=args.connect_timeout)
        if _wait_for_ack(repo, repo.send_tare_command, args.ack_timeout):
            print("TARE: acknowledged")
            return 0
        print(f"TARE: no ACK within {args.ack_timeout:.1f}s")
        return 1


def cmd_calibrate(args) -> int:
    cfg = _setup(args)

    with build_repository(cfg) as repo:
        send = repo.calibrate_channel_a if args.channel == "a" else repo.calibrate_channel_b
        factor = float(args.factor)

        # Reject a bad factor before touching the device.
        repo.validate_calibration_factor(factor)

        connect_repository(repo, timeout_s=args.connect_timeout)
        if _wait_for_ack(repo, lambda: send(factor), args.ack_timeout):
            print(f"CALIBRATE {args.channel.upper()}: factor={factor!r} acknowledged")
            return 0
        print(f"CALIBRATE {args.channel.upper()}: no ACK within {args.ack_timeout:.1f}s")
        return 1
