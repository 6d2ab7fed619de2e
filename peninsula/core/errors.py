"""
API error taxonomy and the handlers that serialize it.

Every failure leaving the HTTP boundary is one of the ApiError variants below
and is rendered as a flat ``{"error": <code>}`` body. Only UpstreamFailure may
add diagnostic fields (raw git/script output), since it is reachable only by
authenticated admins.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors that map to an HTTP status and a stable code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, code: str, **extra: Any) -> None:
        self.code = code
        self.extra = extra
        super().__init__(code)

    def to_body(self) -> dict[str, Any]:
        return {"error": self.code}


class ValidationError(ApiError):
    """Malformed or missing input. Raised before the store or audit log is touched."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ApiError):
    """Missing, invalid or expired token, or bad credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(ApiError):
    """Authenticated, but the role is insufficient."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ApiError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ApiError):
    """Duplicate resource or an exclusive operation already running."""

    status_code = status.HTTP_409_CONFLICT


class UpstreamFailure(ApiError):
    """Update check/apply infrastructure failure; may carry diagnostics."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def to_body(self) -> dict[str, Any]:
        return {"error": self.code, **self.extra}


def error_response(exc: ApiError) -> JSONResponse:
    """Render an ApiError as a JSON response."""
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_body(),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers so no internal exception crosses the boundary unconverted."""

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        log_fn = logger.error if exc.status_code >= 500 else logger.info
        log_fn(
            "Request failed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": exc.status_code,
                "error_code": exc.code,
            },
        )
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(ValidationError("invalid_payload"))

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error_type": type(exc).__name__,
            },
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "internal_error"},
        )
