from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, field_validator

from vendorsync_api.application.interfaces.di_container import (
    get_api_client,
    get_messaging_service,
    get_performance_service,
)
from vendorsync_api.application.interfaces.service_interfaces import MessagingServiceInterface, VendorApiInterface
from vendorsync_api.application.services.performance_service import PerformanceService
from shared.utils.constants import DashboardEvents
from shared.utils.exceptions import ApiRequestException
from shared.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(
    responses={
        400: {"description": "Bad request"},
        502: {"description": "VendorSync API error"},
    }
)


class VendorRequest(BaseModel):
    name: str
    address: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("name")
    def name_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Vendor name is required")
        return v.strip()


def _upstream_error(e: ApiRequestException) -> HTTPException:
    if e.status == status.HTTP_404_NOT_FOUND:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.get("/")
async def list_vendors(api_client: VendorApiInterface = Depends(get_api_client)) -> list[dict]:
    try:
        vendors = await api_client.get_vendors()
    except ApiRequestException as e:
        logger.error("Error listing vendors", extra={"error": str(e)})
        raise _upstream_error(e)
    return [vendor.to_dict() for vendor in vendors]


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_vendor(
    request: VendorRequest,
    api_client: VendorApiInterface = Depends(get_api_client),
    messaging_service: MessagingServiceInterface = Depends(get_messaging_service)
) -> dict:
    try:
        vendor = await api_client.create_vendor(request.model_dump(exclude_none=True))
    except ApiRequestException as e:
        logger.error("Error creating vendor", extra={"error": str(e), "vendor_name": request.name})
        raise _upstream_error(e)
    await messaging_service.publish_message(
        DashboardEvents.DASHBOARD_REFRESH, {"source": "vendor-create", "vendor_id": vendor.id}
    )
    return vendor.to_dict()


@router.get("/{vendor_id}")
async def get_vendor(vendor_id: str, api_client: VendorApiInterface = Depends(get_api_client)) -> dict:
    try:
        vendor = await api_client.get_vendor(vendor_id)
    except ApiRequestException as e:
        raise _upstream_error(e)
    return vendor.to_dict()


@router.patch("/{vendor_id}")
async def update_vendor(
    vendor_id: str,
    request: VendorRequest,
    api_client: VendorApiInterface = Depends(get_api_client),
    messaging_service: MessagingServiceInterface = Depends(get_messaging_service)
) -> dict:
    try:
        vendor = await api_client.update_vendor(vendor_id, request.model_dump(exclude_none=True))
    except ApiRequestException as e:
        logger.error("Error updating vendor", extra={"error": str(e), "vendor_id": vendor_id})
        raise _upstream_error(e)
    await messaging_service.publish_message(
        DashboardEvents.DASHBOARD_REFRESH, {"source": "vendor-update", "vendor_id": vendor_id}
    )
    return vendor.to_dict()


@router.delete("/{vendor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vendor(
    vendor_id: str,
    api_client: VendorApiInterface = Depends(get_api_client),
    messaging_service: MessagingServiceInterface = Depends(get_messaging_service)
):
    try:
        await api_client.delete_vendor(vendor_id)
    except ApiRequestException as e:
        logger.error("Error deleting vendor", extra={"error": str(e), "vendor_id": vendor_id})
        raise _upstream_error(e)
    await messaging_service.publish_message(
        DashboardEvents.DASHBOARD_REFRESH, {"source": "vendor-delete", "vendor_id": vendor_id}
    )


@router.get("/{vendor_id}/performance")
async def get_vendor_performance(
    vendor_id: str,
    performance_service: PerformanceService = Depends(get_performance_service)
) -> dict:
    """Spend analysis for one vendor with its seasonal breakdown."""
    try:
        view = await performance_service.get_vendor_performance(vendor_id)
    except ApiRequestException as e:
        logger.error("Error getting vendor performance", extra={"error": str(e), "vendor_id": vendor_id})
        raise _upstream_error(e)
    return view.to_dict()
