"""
Rate limiting middleware
"""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from fanchat.middleware.logging import get_client_ip
from fanchat.services.rate_limiter import rate_limiter

logger = logging.getLogger(__name__)

class RateLimitingMiddleware(BaseHTTPMiddleware):
    """
    Per-IP rate limiting for API requests; protects the proxied model key
    """

    def __init__(self, app, excluded_paths: list = None):
        super().__init__(app)
        self.excluded_paths = excluded_paths or [
            "/health",
            "/healthz",
            "/readyz",
            "/docs",
            "/openapi.json",
            "/redoc",
            "/media"
        ]

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or self._is_excluded_path(request.url.path):
            return await call_next(request)

        client_ip = get_client_ip(request)
        result = rate_limiter.is_allowed(client_ip)

        if not result["allowed"]:
            logger.warning(f"Rate limit exceeded for client {client_ip} on {request.url.path}")
            return JSONResponse(
                status_code=429,
                content={
                    "error": "Rate limit exceeded",
                    "error_code": "RATE_LIMIT_EXCEEDED",
                    "status_code": 429,
                    "correlation_id": request.headers.get("X-Correlation-ID", "unknown"),
                    "path": request.url.path,
                    "details": {
                        "retry_after": result["retry_after"],
                        "limit": rate_limiter.rate_limit_qps
                    }
                },
                headers=rate_limiter.get_rate_limit_headers(result)
            )

        response = await call_next(request)
        for header, value in rate_limiter.get_rate_limit_headers(result).items():
            response.headers[header] = value
        return response

    def _is_excluded_path(self, path: str) -> bool:
        return any(path == excluded or path.startswith(excluded + "/") for excluded in self.excluded_paths)
