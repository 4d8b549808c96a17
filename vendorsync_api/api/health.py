"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from datetime import datetime, timezone
from fastapi.responses import JSONResponse

from vendorsync_api.application.interfaces.di_container import get_data_service
from vendorsync_api.application.services.data_service import DataService
from shared.utils.logging_config import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)

router = APIRouter()


@router.get("/")
async def health_check_():
    """Basic health check - is service alive?"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.api_title,
        "version": settings.api_version
    }


# Readiness: dashboard data loaded from the VendorSync API
@router.get("/ready")
async def readiness_check(data_service: DataService = Depends(get_data_service)):
    """Readiness check - dashboard data loaded."""
    services_ready = {
        "data_service": data_service.is_initialized,
    }
    all_ready = all(services_ready.values())

    return JSONResponse(
        status_code=200 if all_ready else 503,
        content={
            "status": "ready" if all_ready else "not_ready",
            "service": settings.api_title,
            "version": settings.api_version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": services_ready,
            "api_base_url": settings.api_base_url,
        }
    )
