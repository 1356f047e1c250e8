"""
Health check endpoints
"""

from fastapi import APIRouter, Depends
from sqlalchemy.engine import make_url

from school_records.api.dependencies import get_app_settings
from school_records.config import Settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(settings: Settings = Depends(get_app_settings)):
    """Liveness probe"""
    return {"status": "healthy", "version": settings.app_version}


@router.get("/api/v1/health")
async def api_health_check(settings: Settings = Depends(get_app_settings)):
    """Detailed status for the versioned API"""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "database": make_url(settings.database_url).get_backend_name(),
    }
