"""
Fetch limits. Built once per service and never changed afterwards.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from .errors import ConfigError

DEFAULT_MAX_BYTES = 4 * 1024 * 1024  # 4 MB
DEFAULT_TIMEOUT_MILLIS = 30000

MAX_BYTES_ENV = "REMOTEFETCH_MAX_BYTES"
TIMEOUT_ENV = "REMOTEFETCH_TIMEOUT"

# Setting keys recognized by FetchConfig.from_settings
MAX_BYTES_KEY = "MaxBytes"
TIMEOUT_KEY = "Timeout"


def _positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e
    if number <= 0:
        raise ConfigError(f"{name} must be positive, got {number}")
    return number


@dataclass(frozen=True)
class FetchConfig:
    """Maximum body size in bytes and request deadline in milliseconds."""

    max_bytes: int = DEFAULT_MAX_BYTES
    timeout_millis: int = DEFAULT_TIMEOUT_MILLIS

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "max_bytes", _positive_int(MAX_BYTES_KEY, self.max_bytes)
        )
        object.__setattr__(
            self, "timeout_millis", _positive_int(TIMEOUT_KEY, self.timeout_millis)
        )

    @property
    def timeout(self) -> float:
        """Deadline in seconds."""
        return self.timeout_millis / 1000.0

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> FetchConfig:
        """Build from a settings mapping with `MaxBytes` and `Timeout` keys."""
        return cls(
            max_bytes=settings.get(MAX_BYTES_KEY, DEFAULT_MAX_BYTES),
            timeout_millis=settings.get(TIMEOUT_KEY, DEFAULT_TIMEOUT_MILLIS),
        )


def load_fetch_config() -> FetchConfig:
    """Defaults, overridden by REMOTEFETCH_MAX_BYTES / REMOTEFETCH_TIMEOUT."""
    settings: dict[str, str] = {}
    max_bytes = os.environ.get(MAX_BYTES_ENV, "").strip()
    if max_bytes:
        settings[MAX_BYTES_KEY] = max_bytes
    timeout = os.environ.get(TIMEOUT_ENV, "").strip()
    if timeout:
        settings[TIMEOUT_KEY] = timeout
    return FetchConfig.from_settings(settings)
