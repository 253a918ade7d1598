# forcelink/app/config.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from forcelink.core.errors import ConfigError
from forcelink.protocol.defs import DEFAULT_DEVICE_NAME


@dataclass(frozen=True)
class ForceLinkConfig:
    target_name: str = DEFAULT_DEVICE_NAME
    driver: str = "serial"
    transport_params: Dict[str, Any] = field(default_factory=dict)
    join_timeout_s: float = 0.5
    read_chunk_size: int = 64

    def with_overrides(self, **overrides: Any) -> "ForceLinkConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


# YAML key -> (dataclass field, expected type name)
_FIELDS = {
    "target_name": ("target_name", "str"),
    "driver": ("driver", "str"),
    "transport": ("transport_params", "mapping"),
    "join_timeout_s": ("join_timeout_s", "float"),
    "read_chunk_size": ("read_chunk_size", "int"),
}


def load_config(path: str | Path) -> ForceLinkConfig:
    """
    Load a ForceLinkConfig from a YAML file. Missing keys keep their defaults.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(
            f"Config file not found: {path}",
            hint="Pass --config with an existing YAML file, or omit it to use defaults.",
            details={"path": str(path)},
        )

    try:
        with path.open("r", encoding="utf-8") as f:
            doc = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(
            "Failed to parse config file.",
            hint=str(e),
            details={"path": str(path)},
        ) from None

    if not isinstance(doc, Mapping):
        raise ConfigError(
            "Config file must contain a mapping at top level.",
            details={"path": str(path)},
        )

    return config_from_mapping(doc, source=str(path))


def config_from_mapping(doc: Mapping[str, Any], *, source: str = "<mapping>") -> ForceLinkConfig:
    kwargs: Dict[str, Any] = {}
    for key, value in doc.items():
        if key not in _FIELDS:
            raise ConfigError(
                f"Unknown config key '{key}'.",
                hint=f"Valid keys: {sorted(_FIELDS)}",
                details={"source": source, "key": key},
            )
        name, type_name = _FIELDS[key]
        try:
            kwargs[name] = _cast(value, type_name)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"Invalid value for config key '{key}'.",
                hint=str(e),
                details={"source": source, "key": key, "value": value, "expected_type": type_name},
            ) from None

    cfg = ForceLinkConfig(**kwargs)
    if cfg.join_timeout_s <= 0:
        raise ConfigError("join_timeout_s must be > 0.", details={"source": source})
    if cfg.read_chunk_size <= 0:
        raise ConfigError("read_chunk_size must be > 0.", details={"source": source})
    return cfg


def _cast(value: Any, type_name: str) -> Any:
    if type_name == "str":
        if not isinstance(value, str) or not value:
            raise TypeError(f"Expected non-empty str, got {type(value).__name__}")
        return value

    if type_name == "int":
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Expected int, got {type(value).__name__}")
        return value

    if type_name == "float":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Expected float, got {type(value).__name__}")
        return float(value)

    if type_name == "mapping":
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise TypeError(f"Expected mapping, got {type(value).__name__}")
        return dict(value)

    raise TypeError(f"Unknown schema type '{type_name}'")
