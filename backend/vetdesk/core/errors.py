"""
Application error type and the exception handlers rendering it.

Every error response has the shape:

    {"error": "<code>", "requestId": "<id>", "message": ..., "details": ...}

where message and details are only included for exposed (client) errors.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vetdesk.core.logging import get_request_id

logger = logging.getLogger(__name__)

_CODES_BY_STATUS = {
    400: "invalid_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "unprocessable_entity",
    429: "too_many_requests",
}


class AppError(Exception):
    """
    Error carrying an HTTP status and a stable, machine-readable code.

    Errors below 500 are exposed to the client (message and details are
    rendered); server errors only expose their code.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str | None = None,
        details: Any = None,
        expose: bool | None = None,
    ):
        super().__init__(message or code)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        self.expose = expose if expose is not None else status_code < 500


class UserNotFoundError(AppError):
    """Raised when a user write reports no resulting row."""

    def __init__(self, message: str = "User could not be created"):
        super().__init__(status.HTTP_404_NOT_FOUND, "user_not_found", message)


def bad_request(code: str = "invalid_request", message: str | None = None, details: Any = None) -> AppError:
    return AppError(status.HTTP_400_BAD_REQUEST, code, message, details)


def unauthorized(code: str = "unauthorized", message: str | None = None) -> AppError:
    return AppError(status.HTTP_401_UNAUTHORIZED, code, message)


def not_found(code: str = "not_found", message: str | None = None, details: Any = None) -> AppError:
    return AppError(status.HTTP_404_NOT_FOUND, code, message, details)


def conflict(code: str = "conflict", message: str | None = None) -> AppError:
    return AppError(status.HTTP_409_CONFLICT, code, message)


def code_for_status(status_code: int) -> str:
    if status_code >= 500:
        return "internal_server_error"
    return _CODES_BY_STATUS.get(status_code, "error")


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str | None = None,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the JSON error body shared by every handler."""
    request_id = getattr(request.state, "request_id", None) or get_request_id()
    body: dict[str, Any] = {"error": code, "requestId": request_id}
    if message:
        body["message"] = message
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if not exc.expose:
        logger.error("request_failed: %s", exc.code, exc_info=exc)
        return error_response(request, exc.status_code, exc.code)

    logger.debug("request_failed: %s", exc.code)
    return error_response(request, exc.status_code, exc.code, exc.message, exc.details)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    code = code_for_status(exc.status_code)

    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return error_response(
            request,
            exc.status_code,
            code,
            "Not Found",
            {"method": request.method, "url": str(request.url.path)},
        )

    message = exc.detail if isinstance(exc.detail, str) and exc.status_code < 500 else None
    return error_response(
        request, exc.status_code, code, message, headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    return error_response(
        request, status.HTTP_400_BAD_REQUEST, "invalid_request", "Invalid request", details
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_server_error"
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
