from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from .errors import register_exception_handlers
from .logging_setup import setup_logging
from .repositories import Repository, build_repository
from .routers import family_members as family_members_router
from .routers import todos as todos_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "todos", "description": "CRUD operations for family todos."},
    {"name": "family-members", "description": "CRUD operations for family members."},
]

CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type, Authorization"


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_dir)
    logger.info("Family Todo API starting (backend=%s)", settings.persistence_backend)
    yield


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[Repository] = None,
    configure_logging: bool = False,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration; read from the environment when omitted.
        repository: Storage backend; built from settings when omitted. Tests pass
            their own instance here.
        configure_logging: Install console/file logging on startup (see setup_logging).
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Family Todo",
        description="Family task tracker: todos and family members over a pluggable table store.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=_lifespan if configure_logging else None,
    )
    app.state.settings = settings
    app.state.repository = repository if repository is not None else build_repository(settings)

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)

    # Registered before CORSMiddleware so that one stays outermost and answers real preflights
    @app.middleware("http")
    async def answer_bare_options(request: Request, call_next):
        """
        Answer bare OPTIONS requests on every path with permissive CORS headers.
        Other methods go through routing, so unknown paths still return 404.
        """
        if request.method != "OPTIONS":
            return await call_next(request)
        headers = {
            "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
            "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
        }
        origin = request.headers.get("origin")
        if allow_all:
            headers["Access-Control-Allow-Origin"] = "*"
        elif origin in settings.cors_allow_origins:
            headers["Access-Control-Allow-Origin"] = origin
        return Response(status_code=200, headers=headers)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health and the active storage backend.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(todos_router.router)
    app.include_router(family_members_router.router)

    logger.debug("Family Todo API built (backend=%s)", settings.persistence_backend)
    return app


# Default application for ASGI servers, e.g. `uvicorn family_todo.main:app`
app = create_app(configure_logging=True)
