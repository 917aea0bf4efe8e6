from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'edgedb'
    - EDGEDB_DSN: DSN for the EdgeDB client. When unset the client resolves
      the linked project/instance itself.
    - DB_RETRY_ATTEMPTS: attempts for transient EdgeDB failures (default: 2)
    - LOG_LEVEL: root logging level (default: INFO)
    - TEMPLATE_DEBUG: 'true' to append the view-model dump to render errors
    - HOST / PORT: bind address for `python -m tabletop_app`
    """

    persistence_backend: str = "memory"
    edgedb_dsn: Optional[str] = None
    db_retry_attempts: int = 2
    log_level: str = "INFO"
    template_debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8080


_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(value: str, default: int, minimum: int = 1) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "edgedb"}:
        # Fallback to memory if unsupported
        backend = "memory"

    dsn = os.getenv("EDGEDB_DSN") or None

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        log_level = "INFO"

    return Settings(
        persistence_backend=backend,
        edgedb_dsn=dsn.strip() if dsn else None,
        db_retry_attempts=_parse_int(_get_env("DB_RETRY_ATTEMPTS", "2"), 2),
        log_level=log_level,
        template_debug=parse_bool(_get_env("TEMPLATE_DEBUG", "false"), False),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", "8080"), 8080),
    )
