"""Error Handlers — one JSON envelope for domain, validation and unexpected failures.

Invariants:
    - ArgenStatsError → its own status and to_response() envelope
    - A provider error that carries retry_after_ms also sets a Retry-After header (seconds)
    - RequestValidationError → 400 VALIDATION_ERROR; each detail names the parameter without
      the query/body/path prefix ("days", not "body.days")
    - Anything else → 500 INTERNAL_ERROR with a fixed Spanish message, traceback only in logs

Design Decisions:
    - 4xx are logged at WARNING and 5xx at ERROR, both with error_code and path extras, so
      the JSON log can be filtered per endpoint
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import ArgenStatsError, ErrorCategory, ErrorSeverity

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = {"query", "body", "path", "header"}


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ArgenStatsError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


async def handle_domain_error(request: Request, exc: ArgenStatsError) -> JSONResponse:
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        f"{type(exc).__name__}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "status_code": exc.http_status,
            "data_source": exc.context.source,
        },
    )
    headers = None
    if exc.context.retry_after_ms:
        headers = {"Retry-After": str(math.ceil(exc.context.retry_after_ms / 1000))}
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers,
    )


def _parameter_name(loc: tuple) -> str:
    parts = [str(p) for p in loc]
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts)


async def handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {"field": _parameter_name(e["loc"]), "message": e["msg"], "type": e["type"]}
        for e in exc.errors()
    ]
    logger.warning(
        f"Invalid parameters on {request.url.path}: {[d['field'] for d in details]}",
        extra={"path": request.url.path, "error_code": "VALIDATION_ERROR"},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Parámetros inválidos",
                "category": ErrorCategory.VALIDATION.value,
                "severity": ErrorSeverity.ERROR.value,
                "details": details,
            },
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        exc_info=True,
        extra={"path": request.url.path, "error_code": "INTERNAL_ERROR"},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "Error interno del servidor",
                "category": ErrorCategory.INTERNAL.value,
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )
