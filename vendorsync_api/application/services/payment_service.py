import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional

from shared.models.invoice import ApiInvoice
from shared.utils.constants import DashboardEvents
from shared.config.settings import settings
from shared.utils.convert import days_from_today, fmt_ymd
from shared.utils.exceptions import ApiRequestException, InvoiceNotFoundException, PaymentUpdateException
from shared.utils.logging_config import get_logger
from vendorsync_api.application.interfaces.service_interfaces import MessagingServiceInterface, VendorApiInterface
from vendorsync_api.application.services.data_service import DataService

logger = get_logger(__name__)

EDITABLE_FIELDS = {
    "invoiceNumber": "invoice_number",
    "date": "date",
    "dueDate": "due_date",
    "subtotal": "subtotal",
    "totalAmount": "total_amount",
    "paymentTerms": "payment_terms",
    "earlyPayDiscount": "early_pay_discount",
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PaymentService:
    """
    Open invoices and payment history with optimistic updates.

    Every mutation applies the change to the local invoice list first, then
    calls the API, and restores the previous list if the call fails.
    Overlapping calls for the same invoice are not serialized.

    Attributes:
        api_client (VendorApiInterface): Client for the remote VendorSync API
        data_service (DataService): Owner of the running total spend
        messaging_service (MessagingServiceInterface): Dashboard event bus
    """

    def __init__(self,
                 api_client: VendorApiInterface,
                 data_service: DataService,
                 messaging_service: MessagingServiceInterface,
                 clock: Callable[[], datetime] = None):
        self.api_client = api_client
        self.data_service = data_service
        self.messaging_service = messaging_service
        self.clock = clock or _utc_now

        self.invoices: list[ApiInvoice] = []
        self.vendor_names: dict[str, str] = {}

    # ==================== Loading ====================

    @staticmethod
    def _sorted(invoices: list[ApiInvoice]) -> list[ApiInvoice]:
        open_invoices = sorted((i for i in invoices if not i.is_paid), key=lambda i: i.due_timestamp)
        history = sorted((i for i in invoices if i.is_paid), key=lambda i: i.paid_timestamp, reverse=True)
        return open_invoices + history

    async def load_invoices(self) -> list[ApiInvoice]:
        """Fetch every invoice, order open by due date then history by payment date."""
        invoices = await self.api_client.get_all_invoices()
        self.invoices = self._sorted(invoices)
        logger.info(f"Loaded {len(self.invoices)} invoices")
        await self.hydrate_vendor_names(self.invoices)
        return self.invoices

    async def hydrate_vendor_names(self, invoices: list[ApiInvoice]) -> dict[str, str]:
        """Look up names for vendors that invoices reference only by id."""
        vendor_ids = []
        for invoice in invoices:
            vendor_id = invoice.effective_vendor_id
            if vendor_id and not invoice.embedded_vendor_name and vendor_id not in self.vendor_names \
                    and vendor_id not in vendor_ids:
                vendor_ids.append(vendor_id)
        if not vendor_ids:
            return {}

        async def _lookup(vendor_id: str) -> tuple[str, Optional[str]]:
            try:
                vendor = await self.api_client.get_vendor(vendor_id)
            except ApiRequestException as e:
                logger.warning(f"Vendor name lookup failed for {vendor_id}: {e}")
                return vendor_id, None
            return vendor_id, vendor.name.strip() or None

        pairs = await asyncio.gather(*(_lookup(vendor_id) for vendor_id in vendor_ids))
        found = {vendor_id: name for vendor_id, name in pairs if name}
        for vendor_id, name in found.items():
            self.vendor_names.setdefault(vendor_id, name)
        return found

    def vendor_name_for(self, invoice: ApiInvoice) -> Optional[str]:
        if invoice.embedded_vendor_name:
            return invoice.embedded_vendor_name
        vendor_id = invoice.effective_vendor_id
        return self.vendor_names.get(vendor_id) if vendor_id else None

    # ==================== Views ====================

    def open_invoices(self) -> list[ApiInvoice]:
        return sorted((i for i in self.invoices if not i.is_paid), key=lambda i: i.due_timestamp)

    def history_invoices(self) -> list[ApiInvoice]:
        return sorted((i for i in self.invoices if i.is_paid), key=lambda i: i.paid_timestamp, reverse=True)

    def due_status(self, invoice: ApiInvoice) -> dict:
        """Days until the due date (UTC calendar days) and the overdue / due-soon badges."""
        days_left = days_from_today(invoice.due_timestamp, self.clock())
        open_with_due_date = not invoice.is_paid and days_left is not None
        return {
            "daysLeft": days_left,
            "overdue": open_with_due_date and days_left < 0,
            "dueSoon": open_with_due_date and 0 <= days_left <= settings.payment_due_soon_days,
        }

    def search(self, query: str, paid: Optional[bool] = None) -> list[ApiInvoice]:
        """Case-insensitive search over number, vendor, dates, terms and status."""
        if paid is None:
            candidates = self.invoices
        else:
            candidates = self.history_invoices() if paid else self.open_invoices()

        needle = (query or "").strip().lower()
        if not needle:
            return list(candidates)

        def _haystack(invoice: ApiInvoice) -> str:
            return " ".join([
                invoice.invoice_number,
                self.vendor_name_for(invoice) or "",
                fmt_ymd(invoice.date),
                fmt_ymd(invoice.due_date),
                invoice.payment_terms or "",
                invoice.payment_status,
            ]).lower()

        return [invoice for invoice in candidates if needle in _haystack(invoice)]

    def get_invoice(self, invoice_id: str) -> ApiInvoice:
        for invoice in self.invoices:
            if invoice.id == invoice_id:
                return invoice
        raise InvoiceNotFoundException(f"Invoice {invoice_id} is not loaded")

    def _replace(self, updated: ApiInvoice) -> None:
        self.invoices = [updated if invoice.id == updated.id else invoice for invoice in self.invoices]

    # ==================== Mutations ====================

    async def mark_as_paid(self, invoice_id: str) -> ApiInvoice:
        invoice = self.get_invoice(invoice_id)
        paid_at = self.clock()
        previous = list(self.invoices)
        updated = invoice.mark_paid(paid_at)
        self._replace(updated)

        try:
            await self.api_client.update_invoice(
                invoice.effective_vendor_id, invoice.id,
                {"status": "paid", "paidAt": paid_at.isoformat()},
            )
        except ApiRequestException as e:
            self.invoices = previous
            logger.error("Mark paid failed, rolled back", extra={"invoice_id": invoice_id, "status": e.status})
            raise PaymentUpdateException(f"Mark paid failed: {e.status} {e.body}".strip()) from e

        await self.data_service.add_to_global_total_spend(invoice.total_amount)
        logger.info("Invoice marked paid", extra={"invoice_id": invoice_id, "amount": invoice.total_amount})
        return updated

    async def mark_as_unpaid(self, invoice_id: str) -> ApiInvoice:
        invoice = self.get_invoice(invoice_id)
        previous = list(self.invoices)
        updated = invoice.mark_unpaid()
        self._replace(updated)

        try:
            await self.api_client.update_invoice(
                invoice.effective_vendor_id, invoice.id,
                {"status": "pending", "paidAt": None},
            )
        except ApiRequestException as e:
            self.invoices = previous
            logger.error("Mark unpaid failed, rolled back", extra={"invoice_id": invoice_id, "status": e.status})
            raise PaymentUpdateException(f"Mark unpaid failed: {e.status} {e.body}".strip()) from e

        await self.data_service.subtract_from_global_total_spend(invoice.total_amount)
        logger.info("Invoice marked unpaid", extra={"invoice_id": invoice_id, "amount": invoice.total_amount})
        return updated

    async def save_edit(self, invoice_id: str, patch: dict) -> ApiInvoice:
        """Apply an edit of the invoice fields listed in EDITABLE_FIELDS."""
        invoice = self.get_invoice(invoice_id)
        payload = {key: value for key, value in patch.items() if key in EDITABLE_FIELDS and value is not None}
        previous = list(self.invoices)

        merged = invoice.to_dict()
        merged.update(payload)
        updated = ApiInvoice.from_dict(merged)
        self._replace(updated)

        try:
            await self.api_client.update_invoice(invoice.effective_vendor_id, invoice.id, payload)
        except ApiRequestException as e:
            self.invoices = previous
            logger.error("Invoice update failed, rolled back", extra={"invoice_id": invoice_id, "status": e.status})
            raise PaymentUpdateException(f"Update failed: {e.status} {e.body}".strip()) from e

        await self.messaging_service.publish_message(
            DashboardEvents.DASHBOARD_REFRESH, {"source": "invoice-edit", "invoice_id": invoice_id}
        )
        return updated

    async def delete_invoice(self, invoice_id: str) -> None:
        invoice = self.get_invoice(invoice_id)
        previous = list(self.invoices)
        self.invoices = [i for i in self.invoices if i.id != invoice_id]

        try:
            await self.api_client.delete_invoice(invoice.effective_vendor_id, invoice.id)
        except ApiRequestException as e:
            self.invoices = previous
            logger.error("Invoice delete failed, rolled back", extra={"invoice_id": invoice_id, "status": e.status})
            raise PaymentUpdateException(f"Delete failed: {e.status} {e.body}".strip()) from e

        await self.messaging_service.publish_message(
            DashboardEvents.DASHBOARD_REFRESH, {"source": "invoice-delete", "invoice_id": invoice_id}
        )
