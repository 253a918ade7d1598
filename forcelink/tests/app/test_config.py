from __future__ import annotations

import pytest

from forcelink.app.config import ForceLinkConfig, config_from_mapping, load_config
from forcelink.core.errors import ConfigError
from forcelink.protocol.defs import DEFAULT_DEVICE_NAME


def test_defaults():
    cfg = ForceLinkConfig()
    assert cfg.target_name == DEFAULT_DEVICE_NAME == "ESP32_Fuerza_HQ"
    assert cfg.driver == "serial"
    assert cfg.transport_params == {}
    assert cfg.join_timeout_s == 0.5
    assert cfg.read_chunk_size == 64


def test_load_config_reads_yaml(tmp_path):
    p = tmp_path / "forcelink.yaml"
    p.write_text(
        "target_name: MyMeter\n"
        "driver: serial\n"
        "transport:\n"
        "  baudrate: 9600\n"
        "  timeout: 0.2\n"
        "join_timeout_s: 1\n",
        encoding="utf-8",
    )

    cfg = load_config(p)

    assert cfg.target_name == "MyMeter"
    assert cfg.transport_params == {"baudrate": 9600, "timeout": 0.2}
    assert cfg.join_timeout_s == 1.0
    assert isinstance(cfg.join_timeout_s, float)
    assert cfg.read_chunk_size == 64


def test_empty_yaml_gives_defaults(tmp_path):
    p = tmp_path / "empty.yaml"
    p.write_text("", encoding="utf-8")
    assert load_config(p) == ForceLinkConfig()


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError) as ei:
        load_config(tmp_path / "nope.yaml")
    assert ei.value.hint


def test_malformed_yaml_raises(tmp_path):
    p = tmp_path / "bad.yaml"
    p.write_text("driver: [serial\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(p)


def test_top_level_must_be_mapping(tmp_path):
    p = tmp_path / "list.yaml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(p)


def test_unknown_key_rejected():
    with pytest.raises(ConfigError) as ei:
        config_from_mapping({"baud": 9600})
    assert "baud" in ei.value.message


@pytest.mark.parametrize(
    "doc",
    [
        {"target_name": ""},
        {"driver": 3},
        {"transport": [1, 2]},
        {"read_chunk_size": 1.5},
        {"read_chunk_size": True},
        {"join_timeout_s": "fast"},
    ],
)
def test_bad_types_rejected(doc):
    with pytest.raises(ConfigError):
        config_from_mapping(doc)


@pytest.mark.parametrize("doc", [{"join_timeout_s": 0}, {"read_chunk_size": -1}])
def test_non_positive_numbers_rejected(doc):
    with pytest.raises(ConfigError):
        config_from_mapping(doc)


def test_with_overrides_ignores_none():
    cfg = ForceLinkConfig().with_overrides(driver="sim", target_name=None)
    assert cfg.driver == "sim"
    assert cfg.target_name == DEFAULT_DEVICE_NAME
