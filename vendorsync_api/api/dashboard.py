from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from vendorsync_api.application.interfaces.di_container import get_data_service
from vendorsync_api.application.services.data_service import DataService
from shared.utils.exceptions import DataServiceInitializationException
from shared.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(
    responses={
        502: {"description": "VendorSync API unavailable"},
        500: {"description": "Internal server error"},
    }
)


async def get_loaded_data_service(data_service: DataService = Depends(get_data_service)) -> DataService:
    """Data service with vendors and invoices loaded."""
    try:
        await data_service.initialize()
    except DataServiceInitializationException as e:
        logger.error("Dashboard data unavailable", extra={"error": str(e)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return data_service


@router.get("/kpis")
async def get_kpis(data_service: DataService = Depends(get_loaded_data_service)) -> dict:
    kpis = await data_service.get_kpis()
    return kpis.to_dict()


@router.get("/vendors")
async def get_vendors(data_service: DataService = Depends(get_loaded_data_service)) -> list[dict]:
    """Vendor summaries, highest spend first."""
    vendors = await data_service.get_vendors()
    return [vendor.to_dict() for vendor in vendors]


@router.get("/alerts")
async def get_alerts(data_service: DataService = Depends(get_loaded_data_service)) -> list[dict]:
    alerts = await data_service.get_alerts()
    return [alert.to_dict() for alert in alerts]


@router.get("/renewals")
async def get_renewals(data_service: DataService = Depends(get_loaded_data_service)) -> list[dict]:
    renewals = await data_service.get_renewals()
    return [renewal.to_dict() for renewal in renewals]


@router.get("/calendar")
async def get_calendar_events(
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    data_service: DataService = Depends(get_loaded_data_service)
) -> list[dict]:
    """Payment calendar, optionally limited to one year and month (1-12)."""
    logger.info("Received request for calendar events", extra={"year": year, "month": month})
    events = await data_service.get_calendar_events(year, month)
    return [event.to_dict() for event in events]


@router.get("/savings")
async def get_savings_series(data_service: DataService = Depends(get_loaded_data_service)) -> list[float]:
    return await data_service.get_savings_series()


@router.get("/monthly-totals")
async def get_monthly_totals(data_service: DataService = Depends(get_loaded_data_service)) -> dict:
    totals = await data_service.get_monthly_totals()
    return totals.to_dict()


@router.get("/total-spend")
async def get_total_spend(data_service: DataService = Depends(get_loaded_data_service)) -> dict:
    return {"totalSpend": data_service.get_global_total_spend()}


@router.post("/refresh")
async def refresh(data_service: DataService = Depends(get_data_service)) -> dict:
    """Reload vendors and invoices from the VendorSync API."""
    logger.info("Received dashboard refresh request")
    try:
        await data_service.refresh_data()
    except DataServiceInitializationException as e:
        logger.error("Dashboard refresh failed", extra={"error": str(e)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return {"status": "refreshed", "totalSpend": data_service.get_global_total_spend()}
