"""
Service interfaces for dependency injection.
"""
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from shared.models.extracted_document import ExtractedDocument
from shared.models.invoice import ApiInvoice
from shared.models.performance import PerformanceAnalysis, PerformanceData
from shared.models.vendor import ApiVendor


class VendorApiInterface(ABC):
    """Abstract base class for clients of the remote VendorSync API."""

    @abstractmethod
    async def get_vendors(self) -> list[ApiVendor]:
        """List all vendors."""
        pass

    @abstractmethod
    async def get_vendor(self, vendor_id: str) -> ApiVendor:
        """Retrieve a single vendor by ID."""
        pass

    @abstractmethod
    async def create_vendor(self, vendor_data: dict) -> ApiVendor:
        pass

    @abstractmethod
    async def update_vendor(self, vendor_id: str, vendor_data: dict) -> ApiVendor:
        pass

    @abstractmethod
    async def delete_vendor(self, vendor_id: str) -> None:
        pass

    @abstractmethod
    async def get_all_invoices(self) -> list[ApiInvoice]:
        """List invoices across every vendor."""
        pass

    @abstractmethod
    async def get_vendor_invoices(self, vendor_id: str) -> list[ApiInvoice]:
        pass

    @abstractmethod
    async def get_invoice(self, vendor_id: str, invoice_id: str) -> ApiInvoice:
        pass

    @abstractmethod
    async def create_invoice(self, vendor_id: str, invoice_data: dict) -> ApiInvoice:
        pass

    @abstractmethod
    async def update_invoice(self, vendor_id: str, invoice_id: str, invoice_data: dict) -> ApiInvoice:
        pass

    @abstractmethod
    async def delete_invoice(self, vendor_id: str, invoice_id: str) -> None:
        pass

    @abstractmethod
    async def upload_invoice(self, file_name: str, content: bytes, content_type: str | None = None) -> ExtractedDocument:
        """Upload a document for OCR extraction."""
        pass

    @abstractmethod
    async def get_performance_data(self) -> list[PerformanceData]:
        """Monthly performance series, optional on the server side."""
        pass

    @abstractmethod
    async def get_vendor_performance(self, vendor_id: str) -> PerformanceAnalysis:
        """Spend analysis for one vendor."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any resources held by the client."""
        pass


class KeyValueStoreInterface(ABC):
    """Abstract base class for the small persisted client state."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        pass


EventHandler = Callable[[str, dict], Awaitable[None] | None]


class MessagingServiceInterface(ABC):
    """Abstract base class for dashboard event publishing."""

    @abstractmethod
    async def publish_message(self, topic: str, message_data: dict[str, Any]) -> None:
        """Send a message to the specified topic."""
        pass

    @abstractmethod
    def subscribe(self, topic: str, handler: EventHandler) -> Callable[[], None]:
        """Register a handler for a topic and return a function that unsubscribes it."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any resources held by the service."""
        pass
