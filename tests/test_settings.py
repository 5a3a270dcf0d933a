from datetime import datetime, timedelta, timezone

import pytest

from family_todo.settings import get_settings
from family_todo.utils import timestamp_id, utc_now

ENV_VARS = [
    "PERSISTENCE_BACKEND",
    "SQLITE_DB_PATH",
    "CORS_ALLOW_ORIGINS",
    "SEED_DEFAULTS",
    "LOG_LEVEL",
    "LOG_DIR",
    "API_BASE_URL",
    "LOCAL_CACHE_DIR",
]


@pytest.fixture()
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    s = get_settings()
    assert s.persistence_backend == "memory"
    assert s.sqlite_db_path == "./data/family_todo.db"
    assert s.cors_allow_origins == ["*"]
    assert s.seed_defaults is True
    assert s.log_level == "INFO"
    assert s.log_dir is None
    assert s.api_base_url == "http://localhost:8000"


def test_env_overrides(clean_env):
    clean_env.setenv("PERSISTENCE_BACKEND", "SQLite")
    clean_env.setenv("CORS_ALLOW_ORIGINS", "http://localhost:3000, https://family.example ,")
    clean_env.setenv("SEED_DEFAULTS", "off")
    clean_env.setenv("LOG_LEVEL", "debug")
    clean_env.setenv("API_BASE_URL", "http://api.local:8000/")

    s = get_settings()
    assert s.persistence_backend == "sqlite"
    assert s.cors_allow_origins == ["http://localhost:3000", "https://family.example"]
    assert s.seed_defaults is False
    assert s.log_level == "DEBUG"
    assert s.api_base_url == "http://api.local:8000"


def test_unknown_backend_falls_back_to_memory(clean_env):
    clean_env.setenv("PERSISTENCE_BACKEND", "postgres")
    assert get_settings().persistence_backend == "memory"


def test_unparseable_bool_keeps_default(clean_env):
    clean_env.setenv("SEED_DEFAULTS", "maybe")
    assert get_settings().seed_defaults is True


def test_utc_now_moves_past_given_time():
    future = datetime.now(timezone.utc) + timedelta(hours=1)
    assert utc_now(after=future) == future + timedelta(microseconds=1)
    assert utc_now().tzinfo is not None


def test_timestamp_id_is_bumped_within_same_millisecond():
    now = datetime(2025, 10, 16, tzinfo=timezone.utc)
    first = timestamp_id(now)
    assert first == 1760572800000
    assert timestamp_id(now, last=first) == first + 1
    assert timestamp_id(now + timedelta(seconds=1), last=first) == first + 1000
