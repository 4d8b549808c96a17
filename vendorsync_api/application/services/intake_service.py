"""Upload intake: OCR extraction, then vendor and invoice creation."""
from dataclasses import dataclass
from typing import Callable

from shared.models.extracted_document import ExtractedDocument
from shared.models.invoice import ApiInvoice
from shared.models.vendor import ApiVendor
from shared.utils.constants import DashboardEvents
from shared.utils.exceptions import DocumentExtractionException, DuplicateInvoiceException
from shared.utils.logging_config import get_logger
from vendorsync_api.application.interfaces.service_interfaces import MessagingServiceInterface, VendorApiInterface
from vendorsync_api.application.services.vendor_reconciliation import find_existing_invoice, find_matching_vendor

logger = get_logger(__name__)

# Receives the existing invoice, returns True to update it or False to abort
ConfirmOverwrite = Callable[[ApiInvoice], bool]


@dataclass
class IntakeResult:
    vendor: ApiVendor
    invoice: ApiInvoice
    vendor_created: bool
    invoice_updated: bool


class IntakeService:

    def __init__(self, api_client: VendorApiInterface, messaging_service: MessagingServiceInterface):
        self.api_client = api_client
        self.messaging_service = messaging_service

    async def upload_document(self, file_name: str, content: bytes, content_type: str | None = None) -> ExtractedDocument:
        """Send a document to the API for extraction and return the parsed structure."""
        logger.info(f"Uploading {file_name} for extraction, {len(content)} bytes")
        return await self.api_client.upload_invoice(file_name, content, content_type)

    async def confirm_extracted_data(self, document: ExtractedDocument,
                                     confirm_overwrite: ConfirmOverwrite) -> IntakeResult:
        """
        Create or merge the vendor and invoice described by a confirmed document.

        Args:
            document: Extraction result, possibly edited by the user
            confirm_overwrite: Called when the invoice number already exists for
                the resolved vendor; True updates that invoice, False aborts

        Returns:
            IntakeResult with the resolved vendor and the created or updated invoice

        Raises:
            DocumentExtractionException: If the document has no vendor name
            DuplicateInvoiceException: If the user declines to update an existing invoice
        """
        vendor_payload = document.vendor_payload()
        if not vendor_payload.get("name"):
            raise DocumentExtractionException("Extracted document has no vendor name")

        vendors = await self.api_client.get_vendors()
        vendor = find_matching_vendor(vendor_payload, vendors)
        vendor_created = vendor is None
        if vendor is None:
            vendor = await self.api_client.create_vendor(vendor_payload)
            logger.info("Created vendor from upload", extra={"vendor_id": vendor.id, "vendor_name": vendor.name})
        else:
            logger.info("Matched existing vendor", extra={"vendor_id": vendor.id, "vendor_name": vendor.name})

        invoice_payload = document.invoice_payload()
        existing = None
        if not vendor_created:
            vendor_invoices = await self.api_client.get_vendor_invoices(vendor.id)
            existing = find_existing_invoice(document.invoice_number, vendor_invoices)

        if existing is not None:
            if not confirm_overwrite(existing):
                logger.info("Upload aborted, invoice already exists",
                            extra={"vendor_id": vendor.id, "invoice_number": existing.invoice_number})
                raise DuplicateInvoiceException(
                    f"Invoice {existing.invoice_number} already exists for {vendor.name}"
                )
            invoice = await self.api_client.update_invoice(vendor.id, existing.id, invoice_payload)
            invoice_updated = True
        else:
            invoice = await self.api_client.create_invoice(vendor.id, invoice_payload)
            invoice_updated = False

        await self.messaging_service.publish_message(
            DashboardEvents.DASHBOARD_REFRESH,
            {"source": "upload", "vendor_id": vendor.id, "invoice_id": invoice.id},
        )
        return IntakeResult(vendor=vendor, invoice=invoice,
                            vendor_created=vendor_created, invoice_updated=invoice_updated)
