"""Runtime environment helpers for server binding and environment mode."""

import os
from typing import List, Optional

DEFAULT_PORT = 4891
DEFAULT_HOST = "0.0.0.0"
DEFAULT_ENVIRONMENT = "development"
DEFAULT_GUID_ATTEMPTS = 5


def _int_from_env(name: str, default: int, minimum: Optional[int] = None) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")
    if minimum is not None and value < minimum:
        raise RuntimeError(f"{name} must be >= {minimum}, got {value}")
    return value


def server_port() -> int:
    """Return the HTTP port (PORT, default 4891)."""
    return _int_from_env("PORT", DEFAULT_PORT, minimum=1)


def server_host() -> str:
    return os.getenv("SERVER_HOST", DEFAULT_HOST).strip() or DEFAULT_HOST


def environment() -> str:
    """Return the deployment environment name (NODE_ENV)."""
    return (os.getenv("NODE_ENV") or DEFAULT_ENVIRONMENT).strip().lower()


def is_production() -> bool:
    """True when NODE_ENV=production; error details are hidden in that mode."""
    return environment() == "production"


def cors_origins() -> List[str]:
    raw = os.getenv("CORS_ORIGINS", "*")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


def guid_max_attempts() -> int:
    """Number of attempts allowed when a generated GUID collides."""
    return _int_from_env("GUID_MAX_ATTEMPTS", DEFAULT_GUID_ATTEMPTS, minimum=1)
