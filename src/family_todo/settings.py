from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/family_todo.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - SEED_DEFAULTS: 'false' to skip inserting default members/todos on first run
    - LOG_LEVEL: console log level name (default: INFO)
    - LOG_DIR: optional directory for a full debug log file
    - API_BASE_URL: base URL used by the API client (default: http://localhost:8000)
    - LOCAL_CACHE_DIR: directory of the local todo cache (default: ./.local/family_todo)
    """

    persistence_backend: str = "memory"
    sqlite_db_path: str = "./data/family_todo.db"
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    seed_defaults: bool = True
    log_level: str = "INFO"
    log_dir: Optional[str] = None
    api_base_url: str = "http://localhost:8000"
    local_cache_dir: str = "./.local/family_todo"


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

    log_dir = os.getenv("LOG_DIR", "").strip() or None

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/family_todo.db").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        seed_defaults=_parse_bool(_get_env("SEED_DEFAULTS", "true"), True),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_dir=log_dir,
        api_base_url=_get_env("API_BASE_URL", "http://localhost:8000").strip().rstrip("/"),
        local_cache_dir=_get_env("LOCAL_CACHE_DIR", "./.local/family_todo").strip(),
    )
