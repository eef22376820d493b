"""
Billing feature switches read from the environment.

Values are read once and cached; call :func:`refresh_feature_flag_cache`
after changing the environment.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Dict, Tuple

# flag name -> (environment variable, default)
FLAGS: Dict[str, Tuple[str, bool]] = {
    "tenant_provisioning_enabled": ("FEATURE_TENANT_PROVISIONING_ENABLED", False),
    "inverse_rate_lookup_enabled": ("FEATURE_INVERSE_RATE_LOOKUP_ENABLED", True),
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"", "0", "false", "no", "off"}


def _env_flag(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return default


@lru_cache(maxsize=None)
def get_feature_flags() -> Dict[str, bool]:
    return {name: _env_flag(env_var, default) for name, (env_var, default) in FLAGS.items()}


def tenant_provisioning_enabled() -> bool:
    """Tenants carry subdomain and dedicated database credentials."""
    return get_feature_flags()["tenant_provisioning_enabled"]


def inverse_rate_lookup_enabled() -> bool:
    """Conversions may use the inverse of the reverse currency pair."""
    return get_feature_flags()["inverse_rate_lookup_enabled"]


def refresh_feature_flag_cache() -> None:
    get_feature_flags.cache_clear()
