from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

DEFAULT_AUTOSAVE_DELAY = 1.0


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/mydiary.db'
    - AUTOSAVE_DELAY_SECONDS: quiet period before a diary edit is saved. Default 1.0
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: stdlib level name. Default 'INFO'
    - LOG_JSON: 'false' for human-readable console logs (default: true)
    - SEED_SAMPLE_DATA: 'true' to add sample todos and a diary entry for today at startup
    """

    persistence_backend: str
    sqlite_db_path: str
    autosave_delay: float
    cors_allow_origins: List[str]
    log_level: str
    log_json: bool
    seed_sample_data: bool


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_delay(value: str, default: float = DEFAULT_AUTOSAVE_DELAY) -> float:
    try:
        delay = float(value.strip())
    except ValueError:
        return default
    return delay if delay >= 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/mydiary.db").strip(),
        autosave_delay=_parse_delay(_get_env("AUTOSAVE_DELAY_SECONDS", str(DEFAULT_AUTOSAVE_DELAY))),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_json=_parse_bool(_get_env("LOG_JSON", "true"), True),
        seed_sample_data=_parse_bool(_get_env("SEED_SAMPLE_DATA", "false"), False),
    )
