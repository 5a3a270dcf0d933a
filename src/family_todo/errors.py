from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class FamilyTodoError(Exception):
    """
    Base error of the service. Each subclass maps to one HTTP status code and is
    rendered as ``{"error": message, "details": details}`` by the registered handlers.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(FamilyTodoError):
    """Missing or malformed required field."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(FamilyTodoError):
    """Referenced id does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class Conflict(FamilyTodoError):
    """Duplicate id on create, or delete blocked by a live reference."""

    status_code = status.HTTP_409_CONFLICT


class StorageUnavailable(FamilyTodoError):
    """The underlying store is unreachable or a query failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Storage unavailable", details: Optional[str] = None) -> None:
        super().__init__(message, details)


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        # Drop the leading "body"/"query" segment, keep the field path
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


# PUBLIC_INTERFACE
def register_exception_handlers(app: FastAPI) -> None:
    """
    Install handlers that render every service error as
    ``{"error": str, "details"?: str}`` with the matching status code.
    """

    @app.exception_handler(FamilyTodoError)
    async def family_todo_error_handler(request: Request, exc: FamilyTodoError) -> JSONResponse:
        if isinstance(exc, StorageUnavailable):
            # Cause stays in the server log; clients only see the generic message
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.details or exc.message)
            return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Routing errors (unknown path, wrong method) raised by Starlette itself
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Request body/query validation failures are reported as 400:

            {
                "error": "Missing or invalid fields",
                "details": "title: String should have at least 1 character"
            }
        """
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Missing or invalid fields",
                "details": _format_validation_errors(exc),
            },
        )
