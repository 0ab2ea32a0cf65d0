"""
vestvault Configuration

All settings are read from environment variables prefixed with
``VESTVAULT_``. Malformed values raise ConfigurationError at import time.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_int(env_var: str, default: int, minimum: int | None = None) -> int:
    """Read an integer setting, enforcing an optional lower bound."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc
    if minimum is not None and value < minimum:
        raise ConfigurationError(f"{env_var} must be >= {minimum}, got {value}")
    return value


def _get_choice(env_var: str, default: str, choices: tuple[str, ...]) -> str:
    value = os.getenv(env_var, default).strip().upper()
    if value not in choices:
        raise ConfigurationError(f"{env_var} must be one of {', '.join(choices)}, got {value!r}")
    return value


ENVIRONMENT = os.getenv("VESTVAULT_ENVIRONMENT", "development").strip() or "development"

LOG_LEVEL = _get_choice(
    "VESTVAULT_LOG_LEVEL", "WARNING", ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
)
LOG_FILE = os.getenv("VESTVAULT_LOG_FILE", "").strip() or None

STATE_PATH = os.getenv(
    "VESTVAULT_STATE_PATH",
    os.path.join(os.getcwd(), "data", "vestvault_state.json"),
)

TOKEN_DECIMALS = _get_int("VESTVAULT_TOKEN_DECIMALS", 18, minimum=0)

# Portion of the custody balance withheld from new schedules
RESERVED_BALANCE = _get_int("VESTVAULT_RESERVED", 0, minimum=0)
