import asyncio
from typing import Awaitable, Callable, Optional

import aiohttp

from shared.config.settings import settings
from shared.models.extracted_document import ExtractedDocument
from shared.models.invoice import ApiInvoice
from shared.models.performance import PerformanceAnalysis, PerformanceData
from shared.models.vendor import ApiVendor
from shared.utils.constants import NGROK_SKIP_HEADER
from shared.utils.exceptions import ApiRequestException
from shared.utils.logging_config import get_logger
from vendorsync_api.application.interfaces.service_interfaces import VendorApiInterface

logger = get_logger(__name__)

TokenProvider = Callable[[], Awaitable[Optional[str]]]


def static_token_provider(token: Optional[str]) -> TokenProvider:
    async def _provider() -> Optional[str]:
        return token
    return _provider


def _unwrap_list(data, key: str) -> list:
    """Accept either a bare array or an object wrapping it under ``key``."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return data.get(key) or []
    return []


class VendorSyncApiClient(VendorApiInterface):
    """aiohttp client for the remote VendorSync REST API."""

    def __init__(self, base_url: str = None, token_provider: TokenProvider = None,
                 timeout_seconds: float | None = None):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.token_provider = token_provider or static_token_provider(settings.api_token)
        timeout = timeout_seconds if timeout_seconds is not None else settings.api_timeout_seconds
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def _headers(self, json_body: bool = True) -> dict:
        token = await self.token_provider()
        headers = {NGROK_SKIP_HEADER: "true"}
        if json_body:
            headers["Content-Type"] = "application/json"
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(self, method: str, path: str, action: str, json: dict | None = None,
                       data: aiohttp.FormData | None = None):
        url = f"{self.base_url}{path}"
        headers = await self._headers(json_body=data is None)
        logger.debug(f"{method} {url}")

        session = self._get_session()
        try:
            async with session.request(method, url, headers=headers, json=json, data=data) as response:
                if response.status >= 400:
                    body = await response.text()
                    message = f"Failed to {action}: {response.status} {body}".strip()
                    logger.error(message, extra={"method": method, "path": path, "status": response.status})
                    raise ApiRequestException(message, status=response.status, body=body)

                if response.status == 204:
                    return None
                text = await response.text()
                if not text:
                    return None
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            # Unreachable host, timeout or a body that is not JSON
            message = f"Failed to {action}: {e or type(e).__name__}"
            logger.error(message, extra={"method": method, "path": path, "error_type": type(e).__name__})
            raise ApiRequestException(message, status=None) from e

    # ==================== Vendors ====================

    async def get_vendors(self) -> list[ApiVendor]:
        data = await self._request("GET", "/vendor", "fetch vendors")
        return [ApiVendor.from_dict(item) for item in _unwrap_list(data, "vendors")]

    async def get_vendor(self, vendor_id: str) -> ApiVendor:
        data = await self._request("GET", f"/vendor/{vendor_id}", "fetch vendor")
        return ApiVendor.from_dict(data or {})

    async def create_vendor(self, vendor_data: dict) -> ApiVendor:
        data = await self._request("POST", "/vendor", "create vendor", json=vendor_data)
        return ApiVendor.from_dict(data or {})

    async def update_vendor(self, vendor_id: str, vendor_data: dict) -> ApiVendor:
        data = await self._request("PATCH", f"/vendor/{vendor_id}", "update vendor", json=vendor_data)
        return ApiVendor.from_dict(data or {"id": vendor_id})

    async def delete_vendor(self, vendor_id: str) -> None:
        await self._request("DELETE", f"/vendor/{vendor_id}", "delete vendor")

    # ==================== Invoices ====================

    async def get_all_invoices(self) -> list[ApiInvoice]:
        data = await self._request("GET", "/vendor/invoice/all", "fetch invoices")
        return [ApiInvoice.from_dict(item) for item in _unwrap_list(data, "invoices")]

    async def get_vendor_invoices(self, vendor_id: str) -> list[ApiInvoice]:
        data = await self._request("GET", f"/vendor/{vendor_id}/invoice", "fetch vendor invoices")
        return [ApiInvoice.from_dict(item) for item in _unwrap_list(data, "invoices")]

    async def get_invoice(self, vendor_id: str, invoice_id: str) -> ApiInvoice:
        data = await self._request("GET", f"/vendor/{vendor_id}/invoice/{invoice_id}", "fetch invoice")
        return ApiInvoice.from_dict(data or {})

    async def create_invoice(self, vendor_id: str, invoice_data: dict) -> ApiInvoice:
        data = await self._request("POST", f"/vendor/{vendor_id}/invoice", "create invoice", json=invoice_data)
        return ApiInvoice.from_dict(data or {"vendorId": vendor_id})

    async def update_invoice(self, vendor_id: str, invoice_id: str, invoice_data: dict) -> ApiInvoice:
        data = await self._request("PATCH", f"/vendor/{vendor_id}/invoice/{invoice_id}", "update invoice",
                                   json=invoice_data)
        return ApiInvoice.from_dict(data or {"id": invoice_id, "vendorId": vendor_id})

    async def delete_invoice(self, vendor_id: str, invoice_id: str) -> None:
        await self._request("DELETE", f"/vendor/{vendor_id}/invoice/{invoice_id}", "delete invoice")

    # ==================== Upload & analytics ====================

    async def upload_invoice(self, file_name: str, content: bytes, content_type: str | None = None) -> ExtractedDocument:
        form = aiohttp.FormData()
        form.add_field("file", content, filename=file_name,
                       content_type=content_type or "application/octet-stream")
        logger.info(f"Uploading document {file_name} ({len(content)} bytes) for extraction")
        data = await self._request("POST", "/vendor/invoice/upload", "upload invoice", data=form)
        return ExtractedDocument.model_validate(data or {})

    async def get_performance_data(self) -> list[PerformanceData]:
        data = await self._request("GET", "/vendor/performance", "fetch performance data")
        return [PerformanceData.model_validate(item) for item in _unwrap_list(data, "performance")]

    async def get_vendor_performance(self, vendor_id: str) -> PerformanceAnalysis:
        data = await self._request("GET", f"/vendor/{vendor_id}/performance", "fetch vendor performance")
        return PerformanceAnalysis.model_validate(data or {})

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.info("VendorSync API client session closed.")
