# forcelink/app/runner.py
from __future__ import annotations

import logging
from typing import Optional

from forcelink.app.config import ForceLinkConfig
from forcelink.app.repository import ForceMeterRepository
from forcelink.runtime.environment import Environment, StaticEnvironment
from forcelink.transport.factory import TransportFactory
from forcelink.transport.scanner import DeviceScanner, SerialPortScanner, SimulatedScanner


def build_scanner(cfg: ForceLinkConfig) -> DeviceScanner:
    if cfg.driver.lower() == "sim":
        return SimulatedScanner(cfg.target_name)
    return SerialPortScanner()


def build_repository(
    cfg: ForceLinkConfig,
    *,
    environment: Optional[Environment] = None,
    scanner: Optional[DeviceScanner] = None,
    logger: Optional[logging.Logger] = None,
) -> ForceMeterRepository:
    log = logger or logging.getLogger("forcelink")

    # Validates the driver before anything touches hardware.
    factory = TransportFactory(cfg.driver, cfg.transport_params)

    return ForceMeterRepository(
        cfg,
        scanner=scanner or build_scanner(cfg),
        environment=environment or StaticEnvironment(),
        factory=factory,
        logger=log,
    )
