"""Tests for config module."""

import dataclasses

import pytest

from remotefetch import config
from remotefetch.config import FetchConfig, load_fetch_config
from remotefetch.errors import ConfigError


def test_defaults():
    cfg = FetchConfig()
    assert cfg.max_bytes == 4194304
    assert cfg.timeout_millis == 30000
    assert cfg.timeout == 30.0


def test_from_settings_accepts_strings():
    cfg = FetchConfig.from_settings({"MaxBytes": "10", "Timeout": "100"})
    assert cfg == FetchConfig(max_bytes=10, timeout_millis=100)
    assert cfg.timeout == 0.1


def test_from_settings_missing_keys_use_defaults():
    cfg = FetchConfig.from_settings({"Unrelated": "x", "Timeout": 5000})
    assert cfg.max_bytes == config.DEFAULT_MAX_BYTES
    assert cfg.timeout_millis == 5000


@pytest.mark.parametrize("value", ["0", -1, "abc", None, True, "1.5"])
def test_invalid_values_rejected(value):
    with pytest.raises(ConfigError):
        FetchConfig.from_settings({"MaxBytes": value})


def test_config_is_immutable():
    cfg = FetchConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.max_bytes = 1


def test_load_from_env(monkeypatch):
    monkeypatch.setenv(config.MAX_BYTES_ENV, "2048")
    monkeypatch.setenv(config.TIMEOUT_ENV, " 1500 ")
    cfg = load_fetch_config()
    assert cfg.max_bytes == 2048
    assert cfg.timeout_millis == 1500


def test_load_without_env_uses_defaults(monkeypatch):
    monkeypatch.delenv(config.MAX_BYTES_ENV, raising=False)
    monkeypatch.delenv(config.TIMEOUT_ENV, raising=False)
    assert load_fetch_config() == FetchConfig()


def test_bad_env_value_is_config_error(monkeypatch):
    monkeypatch.setenv(config.TIMEOUT_ENV, "soon")
    with pytest.raises(ConfigError, match="Timeout"):
        load_fetch_config()


@pytest.mark.parametrize("value", [1.5, 0.25, "2.0"])
def test_non_integral_values_rejected(value):
    with pytest.raises(ConfigError, match="must be an integer"):
        FetchConfig.from_settings({"Timeout": value})


def test_integral_float_accepted():
    assert FetchConfig.from_settings({"Timeout": 250.0}).timeout_millis == 250
