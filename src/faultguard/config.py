"""
faultguard configuration system.

Supported configuration sources (highest to lowest priority):
1. Config file (toml/yaml/json)
2. Environment variables
3. Explicit code input
4. Code defaults

Config file example (faultguard.toml):
```toml
log_level = "INFO"

[retry]
max_attempts = 3
base_delay_ms = 100

[circuit_breaker]
failure_threshold = 5
reset_timeout_ms = 30000

[telemetry]
endpoint = "https://collector.example.com/errors"
queue_capacity = 1000
flush_interval_ms = 5000
```

Environment variable example:
```bash
export FAULTGUARD_RETRY_MAX_ATTEMPTS=5
export FAULTGUARD_TELEMETRY_ENDPOINT="https://collector.example.com/errors"
```

Code example:
```python
from faultguard import faultguard_configure

config = faultguard_configure(
    retry={"max_attempts": 5},
    circuit_breaker={"failure_threshold": 3},
)
```
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from faultguard.exception.configuration import ConfigurationError
from faultguard.log import setup_logging
from faultguard.resilience.config import CircuitBreakerConfig, RetryConfig
from faultguard.telemetry.config import TelemetryConfig

logger = logging.getLogger(__name__)


# === Config file sources ===


def _find_config_file() -> Path | None:
    """Find a config file by priority."""
    search_paths = [
        Path.cwd(),
        Path.cwd() / "config",
        Path.home() / ".config" / "faultguard",
    ]
    extensions = [".toml", ".yaml", ".yml", ".json"]
    names = ["faultguard", "config"]

    for path in search_paths:
        for name in names:
            for ext in extensions:
                file = path / f"{name}{ext}"
                if file.exists():
                    return file
    return None


def _load_config_file(file_path: Path) -> dict[str, Any]:
    """Load a config file by extension."""
    suffix = file_path.suffix.lower()
    content = file_path.read_text(encoding="utf-8")

    if suffix == ".toml":
        return tomllib.loads(content)

    elif suffix in (".yaml", ".yml"):
        return yaml.safe_load(content) or {}

    elif suffix == ".json":
        return json.loads(content)

    else:
        raise ConfigurationError(f"Unsupported config file format: {suffix}")


class FileConfigSource(PydanticBaseSettingsSource):
    """Config file source (toml/yaml/json)."""

    def __init__(self, settings_cls: type[BaseSettings], config_file: Path | None = None):
        super().__init__(settings_cls)
        self._config_file = config_file or _find_config_file()
        self._file_data: dict[str, Any] = {}
        if self._config_file and self._config_file.exists():
            try:
                self._file_data = _load_config_file(self._config_file)
            except (OSError, ValueError, yaml.YAMLError, ConfigurationError) as e:
                logger.warning(
                    "Failed to load config file: %s, error=%s",
                    self._config_file,
                    e,
                    extra={"event": "config.file_failed"},
                )

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        value = self._file_data.get(field_name)
        return value, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._file_data


# === Main config class ===


class FaultguardConfig(BaseSettings):
    """
    Framework global configuration.

    Supported configuration sources:
    1. Config file (toml/yaml/json)
    2. Environment variables (FAULTGUARD_ prefix)
    3. Code input
    """

    model_config = SettingsConfigDict(
        env_prefix="FAULTGUARD_",
        # FAULTGUARD_RETRY_MAX_ATTEMPTS -> retry.max_attempts; split once so
        # MAX_ATTEMPTS stays one field name.
        env_nested_delimiter="_",
        env_nested_max_split=1,
        extra="ignore",
    )

    # Optional config file path; auto-detected if not provided.
    config_file: Path | None = Field(default=None, exclude=True)

    retry: RetryConfig = Field(default_factory=RetryConfig)
    """Retry controller configuration."""

    circuit_breaker: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)
    """Circuit breaker configuration."""

    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    """Error telemetry sink configuration."""

    verbose: bool = Field(default=False, description="Enable verbose logging")

    log_level: str = Field(default="INFO", description="Log level")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """
        Customize source priority (earlier overrides later).

        Priority (high to low):
        1. Config file (FileConfigSource)
        2. Environment variables (env_settings)
        3. Code input (init_settings)
        """
        init_data = init_settings()
        config_file = init_data.get("config_file")
        return (
            FileConfigSource(
                settings_cls,
                Path(config_file) if config_file else None,
            ),
            env_settings,
            init_settings,
        )


_config: FaultguardConfig | None = None


def get_config() -> FaultguardConfig:
    """Return the global config, building it from file/env on first use."""
    global _config
    if _config is None:
        _config = FaultguardConfig()
    return _config


def reset_config() -> None:
    """Drop the global config (tests)."""
    global _config
    _config = None


def faultguard_configure(
    config_file: str | Path | None = None,
    **kwargs,
) -> FaultguardConfig:
    """
    Configure the framework and install the result as the global config.

    Priority (high to low):
    1. Config file
    2. Environment variables (FAULTGUARD_ prefix)
    3. Code input (**kwargs)
    4. Defaults
    """
    global _config
    config = FaultguardConfig(
        config_file=Path(config_file) if config_file else None,
        **kwargs,
    )
    _config = config

    if config.verbose:
        setup_logging(logging.DEBUG)
    else:
        setup_logging(config.log_level)

    logger.info(
        "Configuration loaded: retry.max_attempts=%s circuit_breaker.failure_threshold=%s "
        "telemetry.endpoint=%s",
        config.retry.max_attempts,
        config.circuit_breaker.failure_threshold,
        config.telemetry.endpoint or "<local>",
        extra={"event": "config.loaded"},
    )

    return config
