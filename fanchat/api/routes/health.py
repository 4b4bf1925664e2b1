"""
Health and readiness check API endpoints
"""

from fastapi import APIRouter, HTTPException
from fanchat.core.database import SessionLocal
from fanchat.services.health_service import HealthService

router = APIRouter()
health_service = HealthService(SessionLocal)


@router.get("/healthz")
def liveness_check():
    """
    Basic health status indicating the service is running
    """
    return health_service.liveness_check()


@router.get("/readyz")
def readiness_check():
    """
    Readiness status with component checks; 503 until the database answers
    """
    result = health_service.readiness_check()
    if result["status"] != "ready":
        raise HTTPException(status_code=503, detail=result)
    return result
