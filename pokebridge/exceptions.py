"""
Custom exceptions and error handlers

Domain failures leave the API as RFC 7807 problem documents:
{"title": <error code>, "detail": <message>, "status": <int>, "type": <rfc url>}
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from pokebridge.domain.errors import DomainError, ErrorKind

PROBLEM_MEDIA_TYPE = "application/problem+json"

TYPE_BAD_REQUEST = "https://datatracker.ietf.org/doc/html/rfc7231#section-6.5.1"
TYPE_NOT_FOUND = "https://datatracker.ietf.org/doc/html/rfc7231#section-6.5.4"
TYPE_SERVER_ERROR = "https://datatracker.ietf.org/doc/html/rfc7231#section-6.6.1"

# Upstream client errors that are the caller's fault
_BAD_REQUEST_CODES = {"TRANSLATION_NOT_SUPPORTED", "POKEMON_API_ERROR"}


def status_for(error: DomainError) -> int:
    if error.kind == ErrorKind.NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    if error.kind == ErrorKind.VALIDATION or error.code in _BAD_REQUEST_CODES:
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def type_for(status_code: int) -> str:
    if status_code == status.HTTP_404_NOT_FOUND:
        return TYPE_NOT_FOUND
    if status_code == status.HTTP_400_BAD_REQUEST:
        return TYPE_BAD_REQUEST
    return TYPE_SERVER_ERROR


class DomainHTTPException(HTTPException):
    """A domain failure surfaced through the API"""

    def __init__(self, error: DomainError):
        self.error = error
        super().__init__(status_code=status_for(error), detail=error.message)


def problem_response(
    status_code: int, title: str, detail: str, error_code: str | None = None
) -> JSONResponse:
    body = {
        "title": title,
        "detail": detail,
        "status": status_code,
        "type": type_for(status_code),
    }
    if error_code:
        body["errorCode"] = error_code
    return JSONResponse(status_code=status_code, content=body, media_type=PROBLEM_MEDIA_TYPE)


async def domain_exception_handler(request: Request, exc: DomainHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.error.code} {exc.error.message}")
    return problem_response(exc.status_code, exc.error.code, exc.error.message, exc.error.code)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    detail = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return problem_response(
        status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", detail, "VALIDATION_ERROR"
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return problem_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An unexpected error occurred",
        "INTERNAL_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainHTTPException, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
