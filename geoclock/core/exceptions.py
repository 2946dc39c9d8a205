"""
Domain errors for clock actions plus global exception handlers.

Every error leaves the API as ``{"detail": ..., "success": false}`` so
stack traces never leak to clients.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from geoclock.core.config import settings

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class ClockError(Exception):
    """Base class for user-facing clock errors."""

    status_code: int = 400
    default_detail: str = "Clock action failed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidInput(ClockError):
    status_code = 400
    default_detail = "Employee code, PIN and valid GPS coordinates are required."


class AuthenticationFailed(ClockError):
    # One message for unknown code, inactive worker and wrong PIN.
    status_code = 401
    default_detail = "Invalid employee code or PIN."

    def __init__(self) -> None:
        super().__init__(self.default_detail)


class GeofenceViolation(ClockError):
    status_code = 403
    default_detail = "You must be within the geofence of an active location to clock in."


class StorageFailure(ClockError):
    status_code = 500
    default_detail = "Server error processing clock request."


class OpenShiftExists(Exception):
    """Raised when a write would give a worker a second open shift."""

    def __init__(self, worker_id: int) -> None:
        self.worker_id = worker_id
        super().__init__(f"Worker {worker_id} already has an open shift")


# ── Handlers ────────────────────────────────────────────────────────
async def _clock_error_handler(_request: Request, exc: ClockError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
    )


async def _open_shift_handler(_request: Request, exc: OpenShiftExists) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"detail": "Worker already has an open shift", "success": False},
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # A malformed clock body is an invalid clock action, not a schema error.
    if request.url.path == f"{settings.API_V1_PREFIX}/clock":
        return JSONResponse(
            status_code=InvalidInput.status_code,
            content={"detail": InvalidInput.default_detail, "success": False},
        )
    return await request_validation_exception_handler(request, exc)


async def _rate_limit_handler(_request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded: %s", exc.detail)
    return JSONResponse(
        status_code=429,
        content={"detail": f"Too many requests: {exc.detail}", "success": False},
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "success": False},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(ClockError, _clock_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(OpenShiftExists, _open_shift_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
