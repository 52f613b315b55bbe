"""JSON error responses for domain errors and request validation failures."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from word_api.errors import DomainError, ErrorKind

logger = logging.getLogger(__name__)

STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.CONFLICT: 409,
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAVAILABLE: 503,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.UNKNOWN: 500,
}


def error_response(kind: ErrorKind, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_CODES[kind],
        content={"error": {"code": kind.value, "message": message}},
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.kind is ErrorKind.UNAVAILABLE:
        logger.warning("%s %s: database unavailable", request.method, request.url.path)
    return error_response(exc.kind, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if not errors:
        return error_response(ErrorKind.VALIDATION_FAILED, "Invalid request")
    first = errors[0]
    message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    if field:
        message = f"{field}: {message}"
    return error_response(ErrorKind.VALIDATION_FAILED, message)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
