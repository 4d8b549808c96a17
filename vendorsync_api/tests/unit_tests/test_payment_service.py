from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock

from shared.config.settings import settings
from shared.models.invoice import ApiInvoice
from shared.models.vendor import ApiVendor
from shared.utils.constants import DashboardEvents
from shared.utils.exceptions import ApiRequestException, InvoiceNotFoundException, PaymentUpdateException
from shared.utils.logging_config import get_logger, setup_logging
from vendorsync_api.application.interfaces.service_interfaces import VendorApiInterface
from vendorsync_api.application.services.data_service import DataService
from vendorsync_api.application.services.payment_service import PaymentService
from vendorsync_api.infrastructure.messaging.in_memory_event_bus import InMemoryEventBus
from vendorsync_api.infrastructure.repositories.in_memory_key_value_store import InMemoryKeyValueStore

setup_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        log_to_console=settings.log_to_console
    )
logger = get_logger(__name__)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def invoice(invoice_id: str, vendor_id: str = "v1", total: float = 500, **fields) -> ApiInvoice:
    data = {"id": invoice_id, "vendorId": vendor_id, "invoiceNumber": invoice_id.upper(),
            "totalAmount": total, "status": "pending"}
    data.update(fields)
    return ApiInvoice.from_dict(data)


class TestPaymentService:

    @pytest_asyncio.fixture
    async def sample_invoices(self):
        return [
            invoice("a", dueDate=(NOW + timedelta(days=10)).isoformat(), paymentTerms="Net 30"),
            invoice("b", dueDate=(NOW + timedelta(days=2)).isoformat()),
            invoice("c"),
            invoice("d", status="paid", paidAt="2026-10-01T10:00:00Z"),
            invoice("e", status="paid", paidAt="2026-10-10T10:00:00Z"),
            invoice("f", vendor_id="v3", vendor={"id": "v3", "name": "Gamma"}, status="void"),
        ]

    @pytest_asyncio.fixture
    async def mock_api_client(self, sample_invoices):
        client = AsyncMock(spec=VendorApiInterface)
        client.get_all_invoices.return_value = sample_invoices
        client.get_vendors.return_value = []
        client.get_performance_data.return_value = []

        async def _get_vendor(vendor_id):
            if vendor_id == "v1":
                return ApiVendor.from_dict({"id": "v1", "name": " Acme "})
            raise ApiRequestException("Failed to fetch vendor: 404 missing", status=404, body="missing")

        client.get_vendor.side_effect = _get_vendor
        client.update_invoice.return_value = None
        return client

    @pytest_asyncio.fixture
    async def event_bus(self):
        bus = InMemoryEventBus()
        yield bus
        await bus.close()

    @pytest_asyncio.fixture
    async def data_service(self, mock_api_client, event_bus):
        service = DataService(mock_api_client, InMemoryKeyValueStore(), event_bus, clock=lambda: NOW)
        yield service
        await service.close()

    @pytest_asyncio.fixture
    async def payment_service(self, mock_api_client, data_service, event_bus):
        service = PaymentService(mock_api_client, data_service, event_bus, clock=lambda: NOW)
        await service.load_invoices()
        return service

    @pytest.mark.asyncio
    async def test_load_orders_open_then_history(self, payment_service: PaymentService):
        assert [i.id for i in payment_service.invoices] == ["b", "a", "c", "f", "e", "d"]
        assert [i.id for i in payment_service.open_invoices()] == ["b", "a", "c", "f"]
        assert [i.id for i in payment_service.history_invoices()] == ["e", "d"]

    @pytest.mark.asyncio
    async def test_vendor_names_are_hydrated_once(self, payment_service: PaymentService, mock_api_client):
        assert payment_service.vendor_names == {"v1": "Acme"}
        assert mock_api_client.get_vendor.await_count == 1

        await payment_service.load_invoices()

        assert mock_api_client.get_vendor.await_count == 1
        assert payment_service.vendor_name_for(payment_service.get_invoice("f")) == "Gamma"

    @pytest.mark.asyncio
    async def test_failed_vendor_lookup_maps_to_no_name(self, payment_service: PaymentService, mock_api_client):
        orphan = invoice("z", vendor_id="v404")

        found = await payment_service.hydrate_vendor_names([orphan])

        assert found == {}
        assert payment_service.vendor_name_for(orphan) is None

    @pytest.mark.asyncio
    async def test_search(self, payment_service: PaymentService):
        assert {i.id for i in payment_service.search("net 30")} == {"a"}
        assert {i.id for i in payment_service.search("gamma")} == {"f"}
        assert {i.id for i in payment_service.search("ACME", paid=True)} == {"d", "e"}
        assert len(payment_service.search("  ")) == 6

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fields, expected", [
        ({"dueDate": "2026-10-20"}, {"daysLeft": 2, "overdue": False, "dueSoon": True}),
        ({"dueDate": "2026-10-18"}, {"daysLeft": 0, "overdue": False, "dueSoon": True}),
        ({"dueDate": "2026-10-25"}, {"daysLeft": 7, "overdue": False, "dueSoon": True}),
        ({"dueDate": "2026-10-30"}, {"daysLeft": 12, "overdue": False, "dueSoon": False}),
        ({"dueDate": "2026-10-15"}, {"daysLeft": -3, "overdue": True, "dueSoon": False}),
        ({"dueDate": "2026-10-15", "status": "paid", "paidAt": "2026-10-14"},
         {"daysLeft": -3, "overdue": False, "dueSoon": False}),
        ({}, {"daysLeft": None, "overdue": False, "dueSoon": False}),
    ])
    async def test_due_status(self, payment_service: PaymentService, fields, expected):
        assert payment_service.due_status(invoice("x", **fields)) == expected

    @pytest.mark.asyncio
    async def test_mark_as_paid(self, payment_service: PaymentService, data_service: DataService, mock_api_client):
        before = data_service.get_global_total_spend()

        updated = await payment_service.mark_as_paid("a")

        mock_api_client.update_invoice.assert_awaited_once_with(
            "v1", "a", {"status": "paid", "paidAt": NOW.isoformat()}
        )
        assert updated.is_paid
        assert updated.paid_date == NOW
        assert payment_service.get_invoice("a").is_paid
        assert data_service.get_global_total_spend() == pytest.approx(before + 500)

    @pytest.mark.asyncio
    async def test_mark_paid_then_unpaid_round_trip(self, payment_service: PaymentService,
                                                     data_service: DataService, mock_api_client):
        before = data_service.get_global_total_spend()

        await payment_service.mark_as_paid("a")
        assert data_service.get_global_total_spend() == pytest.approx(before + 500)

        await payment_service.mark_as_unpaid("a")

        mock_api_client.update_invoice.assert_awaited_with("v1", "a", {"status": "pending", "paidAt": None})
        assert not payment_service.get_invoice("a").is_paid
        assert data_service.get_global_total_spend() == pytest.approx(before)

    @pytest.mark.asyncio
    async def test_mark_as_paid_rolls_back_on_failure(self, payment_service: PaymentService,
                                                      data_service: DataService, mock_api_client):
        mock_api_client.update_invoice.side_effect = ApiRequestException(
            "Failed to update invoice: 500 nope", status=500, body="nope"
        )
        before = data_service.get_global_total_spend()
        snapshot = list(payment_service.invoices)

        with pytest.raises(PaymentUpdateException, match="Mark paid failed: 500 nope"):
            await payment_service.mark_as_paid("a")

        assert payment_service.invoices == snapshot
        assert not payment_service.get_invoice("a").is_paid
        assert data_service.get_global_total_spend() == before

    @pytest.mark.asyncio
    async def test_void_invoice_cannot_be_paid(self, payment_service: PaymentService, mock_api_client):
        with pytest.raises(ValueError):
            await payment_service.mark_as_paid("f")
        mock_api_client.update_invoice.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_invoice(self, payment_service: PaymentService):
        with pytest.raises(InvoiceNotFoundException):
            await payment_service.mark_as_paid("missing")

    @pytest.mark.asyncio
    async def test_save_edit_sends_only_editable_fields(self, payment_service: PaymentService,
                                                        mock_api_client, event_bus):
        refreshes = []
        event_bus.subscribe(DashboardEvents.DASHBOARD_REFRESH, lambda topic, data: refreshes.append(data))

        updated = await payment_service.save_edit("a", {"totalAmount": 750, "status": "paid", "paymentTerms": None})

        mock_api_client.update_invoice.assert_awaited_once_with("v1", "a", {"totalAmount": 750})
        assert updated.total_amount == 750
        assert not updated.is_paid
        assert payment_service.get_invoice("a").total_amount == 750
        assert refreshes == [{"source": "invoice-edit", "invoice_id": "a"}]

    @pytest.mark.asyncio
    async def test_save_edit_rolls_back_on_failure(self, payment_service: PaymentService, mock_api_client):
        mock_api_client.update_invoice.side_effect = ApiRequestException(
            "Failed to update invoice: 400 bad", status=400, body="bad"
        )

        with pytest.raises(PaymentUpdateException, match="Update failed: 400 bad"):
            await payment_service.save_edit("a", {"totalAmount": 750})

        assert payment_service.get_invoice("a").total_amount == 500

    @pytest.mark.asyncio
    async def test_delete_invoice(self, payment_service: PaymentService, mock_api_client):
        await payment_service.delete_invoice("c")

        mock_api_client.delete_invoice.assert_awaited_once_with("v1", "c")
        assert "c" not in [i.id for i in payment_service.invoices]

    @pytest.mark.asyncio
    async def test_delete_invoice_rolls_back_on_failure(self, payment_service: PaymentService, mock_api_client):
        mock_api_client.delete_invoice.side_effect = ApiRequestException(
            "Failed to delete invoice: 503 down", status=503, body="down"
        )

        with pytest.raises(PaymentUpdateException, match="Delete failed: 503 down"):
            await payment_service.delete_invoice("c")

        assert "c" in [i.id for i in payment_service.invoices]
