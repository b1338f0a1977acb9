"""
Translation of domain and persistence errors into HTTP responses.

Every error body is {"error": code, "detail": message}. Persistence failures
are logged with their detail and answered with an opaque message.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.errors import DomainError, ErrorCode, RepositoryError, UniqueViolationError

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INVALID_TIME_RANGE: 400,
    ErrorCode.INSUFFICIENT_INVENTORY: 409,
    ErrorCode.INVALID_ORDER_STATUS: 409,
    ErrorCode.SLOT_NOT_ACTIVE: 409,
    ErrorCode.DUPLICATE_INVENTORY: 409,
    ErrorCode.RESERVATION_CONFLICT: 409,
}


def _error(status_code: int, code: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, "detail": detail})


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = STATUS_BY_CODE.get(exc.code, 400)
    logger.info(
        "Request rejected",
        extra={"path": request.url.path, "error": exc.code.value, "status": status_code},
    )
    return _error(status_code, exc.code.value, exc.message)


async def unique_violation_handler(request: Request, exc: UniqueViolationError) -> JSONResponse:
    logger.warning(
        "Unique constraint violated",
        extra={"path": request.url.path, "operation": exc.operation},
    )
    return _error(409, "UNIQUE_VIOLATION", "A record with the same unique key already exists")


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    logger.error(
        "Persistence failure",
        extra={"path": request.url.path, "operation": exc.operation, "detail": str(exc.detail)},
    )
    return _error(500, "INTERNAL_ERROR", "Internal server error")


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return _error(400, "VALIDATION_ERROR", str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(UniqueViolationError, unique_violation_handler)
    app.add_exception_handler(RepositoryError, repository_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
