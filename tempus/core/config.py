# tempus/core/config.py
# -----------------------------------------------------------------------------
# Process-wide configuration
#
# Environment variables (all optional):
#   TEMPUS_LEAPSECONDS_JSON      JSON leap second table (list of {mjd, delta_at})
#   TEMPUS_LEAPSECONDS_TLS       NAIF leap seconds kernel (.tls)
#   TEMPUS_DEFAULT_SCALE         scale used by Epoch when none is given (TDB)
#   TEMPUS_TAI_UTC_ITERATIONS    fixed-point budget of tai_to_utc (2)
#   TEMPUS_VALIDATION_TOLERANCE  ERFA cross-validation tolerance in seconds (1e-6)
#   TEMPUS_JAX_X64               enable JAX 64-bit floats on import (1)
# -----------------------------------------------------------------------------

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

__all__ = [
    "TempusConfig",
    "load_config",
    "get_config",
    "reset_config",
]

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class TempusConfig:
    """Library configuration, read once from the environment."""
    leap_seconds_json: Optional[str] = None
    leap_seconds_tls: Optional[str] = None
    default_scale: str = "TDB"
    tai_utc_iterations: int = 2
    validation_tolerance_seconds: float = 1e-6
    jax_enable_x64: bool = True

    def __post_init__(self):
        if self.tai_utc_iterations < 1:
            raise ValueError(
                f"tai_utc_iterations must be at least 1, got {self.tai_utc_iterations}"
            )
        if self.validation_tolerance_seconds <= 0:
            raise ValueError("validation_tolerance_seconds must be positive")


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def load_config() -> TempusConfig:
    """Build a configuration from the current environment."""
    kwargs = {
        "leap_seconds_json": _env_str("TEMPUS_LEAPSECONDS_JSON"),
        "leap_seconds_tls": _env_str("TEMPUS_LEAPSECONDS_TLS"),
    }

    if scale := _env_str("TEMPUS_DEFAULT_SCALE"):
        kwargs["default_scale"] = scale.upper()

    if iterations := _env_str("TEMPUS_TAI_UTC_ITERATIONS"):
        try:
            kwargs["tai_utc_iterations"] = int(iterations)
        except ValueError as e:
            raise ValueError(f"TEMPUS_TAI_UTC_ITERATIONS must be an integer: {e}") from e

    if tolerance := _env_str("TEMPUS_VALIDATION_TOLERANCE"):
        try:
            kwargs["validation_tolerance_seconds"] = float(tolerance)
        except ValueError as e:
            raise ValueError(f"TEMPUS_VALIDATION_TOLERANCE must be a number: {e}") from e

    if x64 := _env_str("TEMPUS_JAX_X64"):
        kwargs["jax_enable_x64"] = x64.lower() in _TRUE_VALUES

    return TempusConfig(**kwargs)


@lru_cache(maxsize=1)
def get_config() -> TempusConfig:
    """Cached process-wide configuration."""
    return load_config()


def reset_config() -> None:
    """Forget the cached configuration so the environment is read again."""
    get_config.cache_clear()
