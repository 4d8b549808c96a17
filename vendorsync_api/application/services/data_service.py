import asyncio
from datetime import datetime
import math
import random
from typing import Callable, Optional

from shared.config.settings import settings
from shared.models.dashboard import KPIs, Alert, CalendarEvent, MonthlyTotals, Renewal, VendorSummary
from shared.models.invoice import ApiInvoice
from shared.utils.constants import TOTAL_SPEND_STORAGE_KEY, DashboardEvents
from shared.utils.exceptions import (
    ApiRequestException,
    DataServiceInitializationException,
    DataServiceNotInitializedException,
    StorageException,
)
from shared.utils.convert import round_half_up
from shared.utils.logging_config import get_logger
from vendorsync_api.application.interfaces.service_interfaces import (
    KeyValueStoreInterface,
    MessagingServiceInterface,
    VendorApiInterface,
)
from vendorsync_api.application.services.api_data_processor import ApiDataProcessor

logger = get_logger(__name__)


class DataService:
    """
    Facade between the API routes and the aggregation layer.

    This service handles:
    - Loading vendors, invoices and performance data once, on first use
    - Serving derived dashboard views from a single ApiDataProcessor
    - Owning the running total spend, persisted in the key/value store

    The running total is seeded from the paid invoices on every load and
    then adjusted by payment toggles. Each refresh recomputes it from the
    invoice list, so drift from unpaired adjustments lasts at most until
    the next reload.

    Attributes:
        api_client (VendorApiInterface): Client for the remote VendorSync API
        store (KeyValueStoreInterface): Persistence for the running total
        messaging_service (MessagingServiceInterface): Dashboard event bus
    """

    def __init__(self,
                 api_client: VendorApiInterface,
                 store: KeyValueStoreInterface,
                 messaging_service: MessagingServiceInterface,
                 clock: Callable[[], datetime] = None,
                 rng: random.Random = None):
        self.api_client = api_client
        self.store = store
        self.messaging_service = messaging_service
        self.clock = clock
        self.rng = rng

        self._processor: Optional[ApiDataProcessor] = None
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._global_total_spend = self._load_persisted_total_spend()

        self._unsubscribe = self.messaging_service.subscribe(
            DashboardEvents.DASHBOARD_REFRESH, self._on_dashboard_refresh
        )

        logger.info(
            "Data service created",
            extra={"api_client": type(api_client).__name__, "store": type(store).__name__}
        )

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Load dashboard data from the API. No-op once loaded, until refresh_data()."""
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return

            logger.info("Initializing data service from the VendorSync API")
            try:
                vendors, invoices, performance_data = await asyncio.gather(
                    self.api_client.get_vendors(),
                    self.api_client.get_all_invoices(),
                    self._load_performance_data(),
                )
            except ApiRequestException as e:
                logger.error("Failed to initialize API data service", extra={"error": str(e)})
                raise DataServiceInitializationException(str(e)) from e

            self._processor = ApiDataProcessor(vendors, invoices, performance_data,
                                               clock=self.clock, rng=self.rng)
            await self.reconcile_total_spend(invoices)
            self._initialized = True

            logger.info(
                "Data service initialized",
                extra={
                    "vendors": len(vendors),
                    "invoices": len(invoices),
                    "performance_points": len(performance_data),
                    "total_spend": self._global_total_spend,
                }
            )

    async def _load_performance_data(self) -> list:
        # Performance data is optional
        try:
            return await self.api_client.get_performance_data()
        except ApiRequestException as e:
            logger.warning("Performance data unavailable", extra={"error": str(e)})
            return []

    async def refresh_data(self) -> None:
        """Drop the loaded data and load it again."""
        async with self._init_lock:
            self._initialized = False
            self._processor = None
        await self.initialize()

    async def _on_dashboard_refresh(self, topic: str, message_data: dict) -> None:
        logger.info("Dashboard refresh requested", extra={"source": message_data.get("source")})
        await self.refresh_data()

    def get_data_processor(self) -> Optional[ApiDataProcessor]:
        return self._processor

    def _require_processor(self) -> ApiDataProcessor:
        if not self._initialized or self._processor is None:
            raise DataServiceNotInitializedException(
                "Data service not initialized. Call initialize() first."
            )
        return self._processor

    # ==================== Dashboard views ====================

    async def get_vendors(self) -> list[VendorSummary]:
        return self._require_processor().get_vendors()

    async def get_alerts(self) -> list[Alert]:
        return self._require_processor().get_alerts()

    async def get_renewals(self) -> list[Renewal]:
        return self._require_processor().get_renewals()

    async def get_kpis(self) -> KPIs:
        kpis = self._require_processor().get_kpis()
        kpis.total_spend = round_half_up(self._global_total_spend)
        return kpis

    async def get_calendar_events(self, year: Optional[int] = None, month: Optional[int] = None) -> list[CalendarEvent]:
        return self._require_processor().get_calendar_events(year, month)

    async def get_savings_series(self) -> list[float]:
        return self._require_processor().get_savings_series()

    async def get_monthly_totals(self) -> MonthlyTotals:
        return self._require_processor().get_monthly_totals()

    # ==================== Running total spend ====================

    @staticmethod
    def _is_valid_amount(amount, ceiling: float) -> bool:
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            return False
        return math.isfinite(amount) and 0 <= amount <= ceiling

    def _load_persisted_total_spend(self) -> float:
        raw = self.store.get_item(TOTAL_SPEND_STORAGE_KEY)
        if raw is None:
            return 0.0
        try:
            amount = float(raw)
        except ValueError:
            logger.warning("Discarding unreadable persisted total spend", extra={"value": raw})
            return 0.0
        return amount if self._is_valid_amount(amount, settings.max_total_spend) else 0.0

    def get_global_total_spend(self) -> float:
        return self._global_total_spend

    async def _persist_total_spend(self) -> None:
        # The in-memory total stays authoritative when the write fails
        try:
            self.store.set_item(TOTAL_SPEND_STORAGE_KEY, str(self._global_total_spend))
        except StorageException as e:
            logger.error("Failed to persist total spend", extra={"error": str(e)})
        await self.messaging_service.publish_message(
            DashboardEvents.TOTAL_SPEND_UPDATE, {"totalSpend": self._global_total_spend}
        )

    async def set_global_total_spend(self, amount: float) -> None:
        if self._is_valid_amount(amount, settings.max_total_spend):
            self._global_total_spend = float(amount)
        else:
            logger.warning("Invalid total spend, resetting to 0", extra={"amount": amount})
            self._global_total_spend = 0.0
        await self._persist_total_spend()

    async def add_to_global_total_spend(self, amount: float) -> None:
        if not self._is_valid_amount(amount, settings.max_invoice_amount):
            logger.warning("Ignoring invalid amount for total spend", extra={"amount": amount})
            return
        self._global_total_spend += amount
        await self._persist_total_spend()

    async def subtract_from_global_total_spend(self, amount: float) -> None:
        if not self._is_valid_amount(amount, settings.max_invoice_amount):
            logger.warning("Ignoring invalid amount for total spend", extra={"amount": amount})
            return
        self._global_total_spend -= amount
        await self._persist_total_spend()

    async def reset_global_total_spend(self) -> None:
        self._global_total_spend = 0.0
        try:
            self.store.remove_item(TOTAL_SPEND_STORAGE_KEY)
        except StorageException as e:
            logger.error("Failed to clear persisted total spend", extra={"error": str(e)})
        await self.messaging_service.publish_message(
            DashboardEvents.TOTAL_SPEND_UPDATE, {"totalSpend": 0.0}
        )

    async def reconcile_total_spend(self, invoices: list[ApiInvoice]) -> float:
        """Recompute the running total from the paid invoices in ``invoices``."""
        total = sum(
            invoice.total_amount for invoice in invoices
            if invoice.is_paid and self._is_valid_amount(invoice.total_amount, settings.max_invoice_amount)
        )
        await self.set_global_total_spend(total)
        return self._global_total_spend

    async def close(self) -> None:
        self._unsubscribe()
