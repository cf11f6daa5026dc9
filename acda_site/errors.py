"""
Error taxonomy and JSON error rendering.
Every failure reaches the client as {success: false, error, code, details?}.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """Base for errors raised by route handlers. `code` is the machine-readable error code."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: list | dict | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=type(self).status_code, detail=message, headers=headers)
        if code is not None:
            self.code = code
        self.details = details


class ValidationFailed(ApiError):
    status_code = 400
    code = "VALIDATION_ERROR"


class Unauthorized(ApiError):
    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized", **kwargs):
        super().__init__(message, **kwargs)


class NotFound(ApiError):
    status_code = 404
    code = "NOT_FOUND"


class Conflict(ApiError):
    status_code = 409
    code = "CONFLICT"


class RateLimited(ApiError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str, retry_after: int, **kwargs):
        super().__init__(message, headers={"Retry-After": str(retry_after)}, **kwargs)


class InternalError(ApiError):
    """Storage or other server-side failure. Message is generic; details go to the log."""

    status_code = 500
    code = "INTERNAL_ERROR"


class UpstreamFailure(ApiError):
    """Image host or mail provider unreachable or returned an error."""

    status_code = 502
    code = "UPSTREAM_ERROR"


def error_body(message: str, code: str, details: list | dict | None = None) -> dict:
    body = {"success": False, "error": message, "code": code}
    if details is not None:
        body["details"] = details
    return body


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.detail, exc.code, exc.details),
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-raised HTTP errors (404 route, 405 method) in the same shape."""
    code = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}.get(exc.status_code, "HTTP_ERROR")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), code),
        headers=getattr(exc, "headers", None),
    )


def validation_error_details(errors) -> list[dict]:
    """Flatten pydantic errors to {path, message}; custom validator messages keep their text."""
    return [
        {
            "path": [str(p) for p in err.get("loc", ())],
            "message": err.get("msg", "").removeprefix("Value error, "),
        }
        for err in errors
    ]


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = validation_error_details(exc.errors())
    return JSONResponse(status_code=400, content=error_body("Validation failed", "VALIDATION_ERROR", details))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body("An internal error occurred. Please try again later.", "INTERNAL_ERROR"),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
