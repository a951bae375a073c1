"""
Configuration tests.

Priority (high to low): config file, environment, code input, defaults.
"""

from __future__ import annotations

import json
import logging
import os

import pytest

from faultguard.config import (
    FaultguardConfig,
    faultguard_configure,
    get_config,
    reset_config,
)
from faultguard.exception import ErrorKind


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    """Run without stray config files or FAULTGUARD_ variables."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for key in list(os.environ):
        if key.startswith("FAULTGUARD_"):
            monkeypatch.delenv(key)
    reset_config()
    yield
    reset_config()


def test_defaults():
    config = FaultguardConfig()

    assert config.retry.max_attempts == 3
    assert config.retry.base_delay_ms == 100
    assert config.circuit_breaker.failure_threshold == 5
    assert config.circuit_breaker.reset_timeout_ms == 30_000
    assert config.circuit_breaker.ignored_kinds == frozenset()
    assert config.telemetry.queue_capacity == 1000
    assert config.telemetry.flush_interval_ms == 5000
    assert config.telemetry.endpoint is None
    assert config.log_level == "INFO"


def test_code_input():
    config = FaultguardConfig(
        retry={"max_attempts": 5},
        circuit_breaker={"failure_threshold": 2, "ignored_kinds": ["validation"]},
    )

    assert config.retry.max_attempts == 5
    assert config.retry.base_delay_ms == 100
    assert config.circuit_breaker.ignored_kinds == frozenset({ErrorKind.VALIDATION})


def test_env_vars(monkeypatch):
    monkeypatch.setenv("FAULTGUARD_RETRY_MAX_ATTEMPTS", "7")
    monkeypatch.setenv("FAULTGUARD_CIRCUIT_BREAKER_FAILURE_THRESHOLD", "9")
    monkeypatch.setenv("FAULTGUARD_TELEMETRY_ENDPOINT", "https://collector.test/errors")
    monkeypatch.setenv("FAULTGUARD_LOG_LEVEL", "DEBUG")

    config = FaultguardConfig()

    assert config.retry.max_attempts == 7
    assert config.circuit_breaker.failure_threshold == 9
    assert config.telemetry.endpoint == "https://collector.test/errors"
    assert config.log_level == "DEBUG"


def test_env_overrides_code_input(monkeypatch):
    monkeypatch.setenv("FAULTGUARD_RETRY_MAX_ATTEMPTS", "7")

    config = FaultguardConfig(retry={"max_attempts": 2})

    assert config.retry.max_attempts == 7


def test_toml_file(tmp_path):
    path = tmp_path / "custom.toml"
    path.write_text(
        "[retry]\nmax_attempts = 4\n\n[telemetry]\nbatch_size = 10\n",
        encoding="utf-8",
    )

    config = FaultguardConfig(config_file=path)

    assert config.retry.max_attempts == 4
    assert config.telemetry.batch_size == 10


def test_yaml_file(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text(
        "circuit_breaker:\n  failure_threshold: 8\n  reset_timeout_ms: 1000\n",
        encoding="utf-8",
    )

    config = FaultguardConfig(config_file=path)

    assert config.circuit_breaker.failure_threshold == 8
    assert config.circuit_breaker.reset_timeout_ms == 1000


def test_json_file(tmp_path):
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"log_level": "WARNING"}), encoding="utf-8")

    assert FaultguardConfig(config_file=path).log_level == "WARNING"


def test_file_auto_discovery(tmp_path):
    (tmp_path / "faultguard.toml").write_text(
        "[retry]\nbase_delay_ms = 250\n", encoding="utf-8"
    )

    assert FaultguardConfig().retry.base_delay_ms == 250


def test_file_overrides_env(tmp_path, monkeypatch):
    path = tmp_path / "custom.toml"
    path.write_text("[retry]\nmax_attempts = 4\n", encoding="utf-8")
    monkeypatch.setenv("FAULTGUARD_RETRY_MAX_ATTEMPTS", "7")

    config = FaultguardConfig(config_file=path, retry={"max_attempts": 2})

    assert config.retry.max_attempts == 4


def test_unsupported_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "custom.ini"
    path.write_text("[retry]\nmax_attempts=4\n", encoding="utf-8")

    assert FaultguardConfig(config_file=path).retry.max_attempts == 3


def test_broken_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "custom.json"
    path.write_text("{not json", encoding="utf-8")

    assert FaultguardConfig(config_file=path).retry.max_attempts == 3


def test_invalid_values_rejected():
    with pytest.raises(ValueError):
        FaultguardConfig(retry={"max_attempts": -1})
    with pytest.raises(ValueError):
        FaultguardConfig(circuit_breaker={"failure_threshold": 0})
    with pytest.raises(ValueError):
        FaultguardConfig(telemetry={"queue_capacity": 0})


def test_configure_installs_global_config():
    config = faultguard_configure(retry={"max_attempts": 6}, log_level="WARNING")

    assert get_config() is config
    assert get_config().retry.max_attempts == 6
    assert logging.getLogger("faultguard").level == logging.WARNING


def test_configure_verbose_enables_debug():
    faultguard_configure(verbose=True)

    assert logging.getLogger("faultguard").level == logging.DEBUG


def test_reset_config():
    faultguard_configure(retry={"max_attempts": 6})
    reset_config()

    assert get_config().retry.max_attempts == 3
