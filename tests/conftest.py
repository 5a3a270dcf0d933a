import os
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Ensure importing the default app never touches the filesystem
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from family_todo.main import create_app  # noqa: E402
from family_todo.settings import Settings  # noqa: E402


@pytest.fixture(params=["memory", "sqlite"])
def settings(request: pytest.FixtureRequest, tmp_path: Path) -> Settings:
    """Settings for an empty store, once per storage backend."""
    return Settings(
        persistence_backend=request.param,
        sqlite_db_path=str(tmp_path / "data" / "family_todo.db"),
        seed_defaults=False,
        local_cache_dir=str(tmp_path / "cache"),
    )


@pytest.fixture()
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
