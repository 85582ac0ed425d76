from __future__ import annotations

import os

ENV_PREFIX = "ATHLETE_VITALS_"
TRUTHY = {"1", "true", "yes", "on"}


def get_env(name: str, default: str | None = None) -> str | None:
    """Resolve an `ATHLETE_VITALS_*` environment variable."""
    value = os.getenv(f"{ENV_PREFIX}{name}")
    if value is not None:
        return value
    return default


def env_flag(name: str) -> bool:
    """True when `ATHLETE_VITALS_<name>` holds a truthy switch such as `1` or `yes`."""
    return (get_env(name) or "").strip().lower() in TRUTHY
