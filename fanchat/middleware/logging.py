"""
Structured logging middleware
"""

import time
import logging
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address, preferring proxy headers
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP in the chain
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


def get_correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or request.headers.get("X-Correlation-ID", "unknown")


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for structured request/response logging
    """

    # Above persona pacing delay plus a typical model round trip
    SLOW_REQUEST_MS = 10000

    def __init__(self, app, excluded_paths: list = None):
        super().__init__(app)
        self.excluded_paths = excluded_paths or [
            "/healthz",
            "/readyz",
            "/docs",
            "/openapi.json",
            "/redoc",
            "/media"
        ]

    def _is_excluded_path(self, path: str) -> bool:
        return any(path == excluded or path.startswith(excluded + "/") for excluded in self.excluded_paths)

    async def dispatch(self, request: Request, call_next):
        """
        Log the request and its outcome and tag the response with a correlation ID
        """
        if self._is_excluded_path(request.url.path):
            return await call_next(request)

        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        start_time = time.time()

        logger.info(
            "Request received",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": request.url.path,
                "client_ip": get_client_ip(request),
                "user_agent": request.headers.get("User-Agent", "unknown"),
                "content_length": request.headers.get("Content-Length"),
                "event_type": "request"
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            self._log_error(request, e, correlation_id, time.time() - start_time)
            raise

        self._log_response(request, response, correlation_id, time.time() - start_time)
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    def _log_response(self, request: Request, response: Response, correlation_id: str, process_time: float):
        process_time_ms = round(process_time * 1000, 2)
        level = logging.WARNING if process_time_ms > self.SLOW_REQUEST_MS else logging.INFO
        logger.log(
            level,
            "Response sent",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "process_time_ms": process_time_ms,
                "slow": level == logging.WARNING,
                "event_type": "response"
            }
        )

    def _log_error(self, request: Request, error: Exception, correlation_id: str, process_time: float):
        logger.error(
            "Request failed",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": request.url.path,
                "error_type": type(error).__name__,
                "error_message": str(error),
                "process_time_ms": round(process_time * 1000, 2),
                "event_type": "error"
            },
            exc_info=True
        )
