"""
Error handling: exception handlers for known errors and a catch-all middleware
"""

import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from fanchat.core.config import settings
from fanchat.deps.exceptions import FanChatError, PasswordPolicyError
from fanchat.middleware.logging import get_correlation_id

logger = logging.getLogger(__name__)

ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMIT_EXCEEDED",
    500: "INTERNAL_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
    504: "GATEWAY_TIMEOUT"
}


def error_body(request: Request, status_code: int, message, error_code: str = None, details: dict = None) -> dict:
    """Uniform error payload: {"error": ..., "error_code": ..., ...}"""
    body = {
        "error": message,
        "error_code": error_code or ERROR_CODES.get(status_code, "UNKNOWN_ERROR"),
        "status_code": status_code,
        "correlation_id": get_correlation_id(request),
        "path": request.url.path
    }
    if details:
        body["details"] = details
    return body


async def fanchat_error_handler(request: Request, exc: FanChatError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}")
    else:
        logger.warning(f"{type(exc).__name__}: {exc.message}")

    details = {"errors": exc.errors} if isinstance(exc, PasswordPolicyError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, exc.message, exc.error_code, details)
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.warning(f"HTTP exception: {exc.status_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, exc.detail),
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=error_body(request, 422, "Request validation failed", details={"validation_errors": errors})
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FanChatError, fanchat_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Last-resort handler for exceptions no route or handler dealt with
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            return self._handle_unexpected_exception(e, request)

    def _handle_unexpected_exception(self, exc: Exception, request: Request) -> JSONResponse:
        logger.error(f"Unexpected exception: {type(exc).__name__} - {str(exc)}", exc_info=True)

        # Connection problems with a dependency are reported as unavailability
        if isinstance(exc, (ConnectionError, TimeoutError)):
            return JSONResponse(
                status_code=503,
                content=error_body(request, 503, "Service temporarily unavailable")
            )

        details = None
        if settings.debug:
            details = {
                "exception_type": type(exc).__name__,
                "exception_message": str(exc)
            }

        return JSONResponse(
            status_code=500,
            content=error_body(request, 500, "Internal server error", details=details)
        )
