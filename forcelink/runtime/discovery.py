# forcelink/runtime/discovery.py
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from forcelink.core.errors import ScanError
from forcelink.model.device import DeviceIdentity
from forcelink.transport.scanner import DeviceScanner


class DiscoveryController:
    """
    Runs a scanner and hands the first candidate whose name equals the
    target name to on_match. First match wins; discovery stops there.
    """

    def __init__(
        self,
        scanner: DeviceScanner,
        target_name: str,
        on_match: Callable[[DeviceIdentity], None],
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self._scanner = scanner
        self._target_name = target_name
        self._on_match = on_match
        self._log = logger or logging.getLogger(__name__)

        self._lock = threading.Lock()
        self._scanning = False
        self._match: Optional[DeviceIdentity] = None

    @property
    def target_name(self) -> str:
        return self._target_name

    @property
    def is_scanning(self) -> bool:
        return self._scanning

    def start_scan(self) -> Optional[DeviceIdentity]:
        """
        Scan until the target shows up or the scanner is exhausted.

        Returns the matched identity (already passed to on_match), or None.
        Raises ScanError if the scanner backend fails.
        """
        with self._lock:
            self._scanning = True
            self._match = None

        self._log.info("SCAN_START target=%s", self._target_name)
        try:
            self._scanner.scan(self._on_candidate)
        except Exception as e:
            self._log.warning("SCAN_FAILED target=%s err=%s", self._target_name, e)
            raise ScanError(
                f"Scan failed: {e}",
                hint="Check that the serial/Bluetooth stack is available.",
                details={"target": self._target_name},
            ) from None
        finally:
            with self._lock:
                self._scanning = False

        match = self._match
        if match is None:
            self._log.info("SCAN_NO_MATCH target=%s", self._target_name)
            return None

        self._on_match(match)
        return match

    def stop_scan(self) -> None:
        with self._lock:
            was_scanning, self._scanning = self._scanning, False
        if was_scanning:
            self._scanner.stop()
            self._log.info("SCAN_STOPPED")

    def _on_candidate(self, identity: DeviceIdentity) -> None:
        with self._lock:
            if not self._scanning or self._match is not None:
                return
            self._log.debug("SCAN_CANDIDATE address=%s name=%s", identity.address, identity.name)
            if identity.name != self._target_name:
                return
            self._match = identity
            self._scanning = False

        self._scanner.stop()
        self._log.info("SCAN_MATCH address=%s name=%s", identity.address, identity.name)
