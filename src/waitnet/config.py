from __future__ import annotations

import os
from dataclasses import dataclass

from .errors import ConfigurationError

DEFAULT_REFRESH_INTERVAL = 3.0
DEFAULT_TIMEOUT = 1800.0
DEFAULT_POLL_INTERVAL = 1.0


@dataclass(frozen=True)
class Settings:
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    max_workers: int | None = None
    default_timeout: float = DEFAULT_TIMEOUT
    default_poll_interval: float = DEFAULT_POLL_INTERVAL


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def settings() -> Settings:
    """Read settings from WAITNET_* environment variables."""
    return Settings(
        refresh_interval=_env_float("WAITNET_REFRESH_INTERVAL", DEFAULT_REFRESH_INTERVAL),
        max_workers=_env_int("WAITNET_MAX_WORKERS"),
        default_timeout=_env_float("WAITNET_DEFAULT_TIMEOUT", DEFAULT_TIMEOUT),
        default_poll_interval=_env_float("WAITNET_DEFAULT_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
    )
