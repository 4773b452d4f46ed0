"""Error taxonomy and the handlers that render it.

Services raise the three ContainerOpsException subclasses below and never
build responses themselves.  Every error leaves the API in one shape:

    {"error": {"code": "CONFLICT", "message": "...", "details": {...}}}

Conflict and validation messages are written for the operator and are
passed through verbatim; only unexpected failures are replaced by a
generic message.
"""

import logging
from typing import Union

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ContainerOpsException(Exception):
    """Base class for errors a service raises on purpose."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(self.message)


class ResourceNotFoundError(ContainerOpsException):
    """A referenced bill, ledger row, leasing record, shipment or job is missing."""

    def __init__(self, resource: str, identifier):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
        )


class ConflictError(ContainerOpsException):
    """A business invariant would be violated by the requested change."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code=error_code,
        )


class ValidationFailedError(ContainerOpsException):
    """Malformed input that passed schema validation but not business rules."""

    def __init__(self, message: str, error_code: str = "VALIDATION_FAILED"):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=error_code,
        )


# ── Response body ────────────────────────────────────────────

def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: Union[dict, list, None] = None,
) -> JSONResponse:
    body = {"error": {"code": error_code, "message": message}}
    if details:
        body["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def _where(request: Request) -> dict:
    return {"path": request.url.path, "method": request.method}


# ── Handlers ─────────────────────────────────────────────────

async def containerops_exception_handler(
    request: Request,
    exc: ContainerOpsException,
) -> JSONResponse:
    logger.warning(
        f"{request.method} {request.url.path} rejected: {exc.error_code} - {exc.message}",
        extra={"error_code": exc.error_code, **_where(request)},
    )
    return create_error_response(exc.status_code, exc.message, exc.error_code)


async def http_exception_handler(
    request: Request,
    exc: Union[HTTPException, StarletteHTTPException],
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code}: {exc.detail}", extra=_where(request))
    return create_error_response(exc.status_code, str(exc.detail), f"HTTP_{exc.status_code}")


async def validation_exception_handler(
    request: Request,
    exc: Union[RequestValidationError, ValidationError],
) -> JSONResponse:
    """Request bodies that do not match their schema (422)."""
    errors = [
        {
            "field": " -> ".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(f"Schema validation failed on {request.url.path}", extra=_where(request))
    return create_error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        "VALIDATION_ERROR",
        details={"errors": errors},
    )


# Constraint hints checked in order against the driver's message
_INTEGRITY_CASES = [
    ("unique", status.HTTP_409_CONFLICT, "DUPLICATE_RECORD",
     "A record with this value already exists"),
    ("foreign key", status.HTTP_422_UNPROCESSABLE_ENTITY, "FOREIGN_KEY_VIOLATION",
     "Referenced record does not exist"),
    ("not null", status.HTTP_422_UNPROCESSABLE_ENTITY, "NULL_VALUE_NOT_ALLOWED",
     "Required field is missing"),
    ("check", status.HTTP_422_UNPROCESSABLE_ENTITY, "CHECK_VIOLATION",
     "A ledger row may reference at most one job"),
]


async def database_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Constraint violations that slipped past the services.

    A duplicate here usually means two requests raced for the same
    container number or reference sequence; the loser may retry.
    """
    driver_message = str(getattr(exc, "orig", exc)).lower()
    logger.error(f"Integrity error on {request.url.path}: {driver_message}", extra=_where(request))

    for hint, status_code, error_code, message in _INTEGRITY_CASES:
        if hint in driver_message:
            return create_error_response(status_code, message, error_code)
    return create_error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY, "Database constraint violation", "INTEGRITY_ERROR"
    )


async def operational_exception_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error(f"Database unavailable on {request.url.path}: {exc}", extra=_where(request))
    return create_error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Database temporarily unavailable. Please try again.",
        "DATABASE_UNAVAILABLE",
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", extra=_where(request), exc_info=True)
    return create_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
        "INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app):
    """Register every handler above on ``app``."""
    app.add_exception_handler(ContainerOpsException, containerops_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, database_exception_handler)
    app.add_exception_handler(OperationalError, operational_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
