"""
Health and readiness check service
"""

import logging
import os
from datetime import datetime, timezone
from typing import Dict, Any
from sqlalchemy import text
from fanchat.core.config import settings

logger = logging.getLogger(__name__)

SERVICE_NAME = "fanchat-api"
SERVICE_VERSION = "1.0.0"


class HealthService:
    """
    Service for health and readiness checks
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def liveness_check(self) -> Dict[str, Any]:
        """
        Liveness check - the process is up
        """
        return {
            "status": "healthy",
            "timestamp": self._get_timestamp(),
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION
        }

    def readiness_check(self) -> Dict[str, Any]:
        """
        Readiness check - the database answers; the model key is reported
        but does not gate readiness
        """
        checks = {
            "database": self._check_database(),
            "language_model": self._check_language_model()
        }
        ready = checks["database"]["status"] == "healthy"
        return {
            "status": "ready" if ready else "not_ready",
            "timestamp": self._get_timestamp(),
            "service": SERVICE_NAME,
            "checks": checks
        }

    def _check_database(self) -> Dict[str, Any]:
        db = self.session_factory()
        try:
            db.execute(text("SELECT 1"))
            return {"status": "healthy"}
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}")
            return {"status": "unhealthy", "error": "database unreachable"}
        finally:
            db.close()

    def _check_language_model(self) -> Dict[str, Any]:
        configured = bool((settings.openai_api_key or os.getenv("OPENAI_API_KEY") or "").strip())
        return {"status": "configured" if configured else "not_configured"}

    def _get_timestamp(self) -> str:
        return datetime.now(timezone.utc).isoformat()
