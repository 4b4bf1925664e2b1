"""
Rate limiting service
"""

import logging
import threading
import time
from collections import defaultdict, deque
from typing import Any, Deque, Dict, Optional
from fanchat.core.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Sliding one-minute window per client
    """

    def __init__(self, limit: Optional[int] = None, window_size: int = 60):
        self.rate_limit_qps = limit if limit is not None else settings.rate_limit_qps
        self.window_size = window_size
        self.storage: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()
        self._last_cleanup = time.time()

    def is_allowed(self, client_id: str) -> Dict[str, Any]:
        """
        Record a request for client_id if it fits in the window

        Returns:
            Dictionary with 'allowed', 'remaining', 'reset_time' and, when
            blocked, 'retry_after' in seconds
        """
        now = time.time()
        window_start = now - self.window_size

        with self._lock:
            # Idle clients are swept at most once per window
            if now - self._last_cleanup >= self.window_size:
                self._remove_idle_clients(window_start)
                self._last_cleanup = now

            client_requests = self.storage[client_id]
            while client_requests and client_requests[0] < window_start:
                client_requests.popleft()

            if len(client_requests) >= self.rate_limit_qps:
                reset_at = client_requests[0] + self.window_size
                return {
                    "allowed": False,
                    "retry_after": max(1, int(reset_at - now)),
                    "remaining": 0,
                    "reset_time": int(reset_at)
                }

            client_requests.append(now)
            return {
                "allowed": True,
                "remaining": self.rate_limit_qps - len(client_requests),
                "reset_time": int(now + self.window_size)
            }

    def cleanup_old_entries(self):
        """Drop clients with no requests left in the window"""
        with self._lock:
            self._remove_idle_clients(time.time() - self.window_size)

    def _remove_idle_clients(self, window_start: float):
        idle = []
        for client_id, requests in self.storage.items():
            while requests and requests[0] < window_start:
                requests.popleft()
            if not requests:
                idle.append(client_id)

        for client_id in idle:
            del self.storage[client_id]

        if idle:
            logger.debug(f"Rate limiter cleanup: removed {len(idle)} idle client entries")

    def get_rate_limit_headers(self, rate_limit_result: Dict[str, Any]) -> Dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.rate_limit_qps),
            "X-RateLimit-Remaining": str(rate_limit_result["remaining"]),
            "X-RateLimit-Reset": str(rate_limit_result["reset_time"])
        }
        if not rate_limit_result["allowed"]:
            headers["Retry-After"] = str(rate_limit_result["retry_after"])
        return headers

    def force_reset(self):
        """Clear all clients and re-read the configured limit"""
        with self._lock:
            self.storage.clear()
        self.rate_limit_qps = settings.rate_limit_qps
        logger.info("Rate limiter force reset completed")


# Global rate limiter instance
rate_limiter = RateLimiter()
