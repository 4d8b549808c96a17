from datetime import datetime, timedelta, timezone
import math
import random
from typing import Callable, Optional

from shared.config.settings import settings
from shared.models.dashboard import KPIs, Alert, CalendarEvent, MonthlyTotals, Renewal, VendorSummary
from shared.models.invoice import ApiInvoice
from shared.models.performance import PerformanceData
from shared.models.vendor import ApiVendor
from shared.utils.constants import (
    CALENDAR_LABEL_LENGTH,
    NOT_AVAILABLE,
    UNKNOWN_VENDOR,
    AlertLevel,
    CalendarEventType,
    ComplianceStatus,
    NextPayment,
)
from shared.utils.convert import days_until, fmt_month_day, fmt_month_year, round_half_up
from shared.utils.logging_config import get_logger

logger = get_logger(__name__)

PRICE_DELTA_ALERT_PERCENT = 8
BASE_VENDOR_SCORE = 75
HIGH_SPEND_THRESHOLD = 10_000
LOW_SPEND_THRESHOLD = 1_000


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ApiDataProcessor:
    """
    Derives dashboard views from the vendor and invoice lists of one load.

    Every method is a pure read over the three input lists, so the same
    instance can serve any number of requests until the data is refreshed.
    Invoices are linked to vendors by id only.

    Attributes:
        vendors: Vendors returned by the API
        invoices: Invoices across every vendor
        performance_data: Optional monthly performance series
    """

    def __init__(self,
                 vendors: list[ApiVendor],
                 invoices: list[ApiInvoice],
                 performance_data: Optional[list[PerformanceData]] = None,
                 clock: Callable[[], datetime] = None,
                 rng: random.Random = None):
        self.vendors = list(vendors)
        self.invoices = list(invoices)
        self.performance_data = list(performance_data or [])
        self.clock = clock or _utc_now
        self.rng = rng or random.Random()

        self._invoices_by_vendor: dict[str, list[ApiInvoice]] = {}
        for invoice in self.invoices:
            vendor_id = invoice.effective_vendor_id
            if vendor_id:
                self._invoices_by_vendor.setdefault(vendor_id, []).append(invoice)
        self._vendor_names = {vendor.id: vendor.name for vendor in self.vendors}

        logger.debug(
            "Data processor created",
            extra={
                "vendors": len(self.vendors),
                "invoices": len(self.invoices),
                "performance_points": len(self.performance_data),
            }
        )

    # ==================== KPIs ====================

    def get_kpis(self) -> KPIs:
        now = self.clock()
        upcoming_limit = now + timedelta(days=settings.upcoming_window_days)

        active_contracts = 0
        upcoming_payments = 0
        projected_savings = 0.0
        paid_total = 0.0
        paid_count = 0

        for invoice in self.invoices:
            due = invoice.due_date
            if due is not None and due > now:
                active_contracts += 1
                if due <= upcoming_limit:
                    upcoming_payments += 1

            if invoice.early_pay_discount > 0:
                projected_savings += invoice.total_amount * invoice.early_pay_discount / 100

            if invoice.is_paid:
                paid_count += 1
                paid_total += invoice.total_amount

        average_invoice_amount = paid_total / paid_count if paid_count else 0

        # Total spend belongs to the data service running total, reported as 0 here
        return KPIs(
            total_vendors=len(self.vendors),
            active_contracts=active_contracts,
            upcoming_payments=upcoming_payments,
            projected_savings=round_half_up(projected_savings),
            total_spend=0,
            average_invoice_amount=round_half_up(average_invoice_amount),
        )

    # ==================== Vendors ====================

    def get_vendors(self) -> list[VendorSummary]:
        now = self.clock()
        rows = []

        for vendor in self.vendors:
            vendor_invoices = self._invoices_by_vendor.get(vendor.id, [])

            spend = sum(invoice.total_amount for invoice in vendor_invoices if invoice.is_paid)
            compliance = self._compliance_status(vendor_invoices)
            overdue_count = sum(
                1 for invoice in vendor_invoices
                if not invoice.is_paid and invoice.due_date is not None and invoice.due_date < now
            )
            last_invoice = vendor_invoices[-1] if vendor_invoices else None

            rows.append(VendorSummary(
                vendor_id=vendor.id,
                name=vendor.name,
                spend=round_half_up(spend),
                compliance=compliance.value,
                next_pay=self._next_payment(vendor_invoices, now),
                score=round_half_up(self._vendor_score(vendor_invoices, compliance, spend)),
                invoice_count=len(vendor_invoices),
                overdue_count=overdue_count,
                email=vendor.email or None,
                address=vendor.address or None,
                last_invoice_date=last_invoice.date.isoformat() if last_invoice and last_invoice.date else None,
            ))

        rows.sort(key=lambda row: row.spend, reverse=True)
        return rows

    def _compliance_status(self, vendor_invoices: list[ApiInvoice]) -> ComplianceStatus:
        if any(invoice.late_fee > 0 for invoice in vendor_invoices):
            return ComplianceStatus.LATE_FEE_RISK
        if any(invoice.early_pay_discount > 0 for invoice in vendor_invoices):
            return ComplianceStatus.DISCOUNT_AVAILABLE
        return ComplianceStatus.OK

    def _next_payment(self, vendor_invoices: list[ApiInvoice], now: datetime) -> str:
        if not vendor_invoices:
            return NextPayment.NO_PAYMENTS

        future_dues = [
            invoice.due_date for invoice in vendor_invoices
            if invoice.due_date is not None and invoice.due_date > now
        ]
        if not future_dues:
            return NextPayment.NO_FUTURE_PAYMENTS

        next_due = min(future_dues)
        days_left = days_until(next_due, now)
        if days_left <= 0:
            return NextPayment.OVERDUE
        if days_left <= settings.due_soon_days:
            return NextPayment.DUE_SOON
        return fmt_month_day(next_due)

    def _vendor_score(self, vendor_invoices: list[ApiInvoice], compliance: ComplianceStatus, spend: float) -> float:
        score = BASE_VENDOR_SCORE
        # more invoices, longer relationship
        score += min(15, len(vendor_invoices) * 2)

        if compliance == ComplianceStatus.LATE_FEE_RISK:
            score -= 15
        elif compliance == ComplianceStatus.DISCOUNT_AVAILABLE:
            score += 10

        if spend > HIGH_SPEND_THRESHOLD:
            score += 10
        elif spend < LOW_SPEND_THRESHOLD:
            score -= 5

        return max(0, min(100, score))

    # ==================== Alerts & renewals ====================

    def get_alerts(self) -> list[Alert]:
        alerts = []

        for vendor in self.get_vendors():
            if vendor.price_delta is not None and vendor.price_delta > PRICE_DELTA_ALERT_PERCENT:
                alerts.append(Alert(
                    AlertLevel.DANGER,
                    f"{vendor.name} increased price by {vendor.price_delta}% (review before auto-renew)",
                ))

            if vendor.compliance == ComplianceStatus.LATE_FEE_RISK.value:
                alerts.append(Alert(AlertLevel.WARN, f"{vendor.name} has late fee terms - review payment schedule"))

            if vendor.compliance == ComplianceStatus.DISCOUNT_AVAILABLE.value:
                alerts.append(Alert(AlertLevel.OK, f"Early-pay discount available: {vendor.name}"))

            if vendor.next_pay == NextPayment.DUE_SOON:
                alerts.append(Alert(AlertLevel.WARN, f"Payment due soon for {vendor.name}"))

            if vendor.overdue_count > 0:
                alerts.append(Alert(
                    AlertLevel.DANGER,
                    f"{vendor.name} has {vendor.overdue_count} overdue payment(s)",
                ))

        return alerts

    def get_renewals(self) -> list[Renewal]:
        # No contract entity exists yet, so renewal dates are not available
        return [
            Renewal(
                contract=f"{vendor.name} Contract",
                vendor=vendor.name,
                renews=None,
                status=NOT_AVAILABLE,
            )
            for vendor in self.vendors
        ]

    # ==================== Calendar ====================

    def _vendor_display_name(self, invoice: ApiInvoice) -> str:
        embedded = invoice.embedded_vendor_name
        if embedded:
            return embedded
        vendor_id = invoice.effective_vendor_id
        name = self._vendor_names.get(vendor_id) if vendor_id else None
        if name:
            return name
        return f"Vendor {vendor_id}" if vendor_id else UNKNOWN_VENDOR

    def _calendar_type(self, invoice: ApiInvoice, now: datetime) -> CalendarEventType:
        if invoice.early_pay_discount > 0:
            return CalendarEventType.SAVE
        days_left = days_until(invoice.due_date, now)
        if 0 <= days_left <= settings.calendar_soon_days:
            return CalendarEventType.SOON
        if days_left > settings.calendar_soon_days:
            return CalendarEventType.FUTURE
        return CalendarEventType.DUE

    def get_calendar_events(self, year: Optional[int] = None, month: Optional[int] = None) -> list[CalendarEvent]:
        """
        Payment calendar for one month, one entry per day.

        Args:
            year: Calendar year to keep, all years when None
            month: Month number 1-12 to keep, all months when None

        Returns:
            Events sorted by day; invoices due the same day share one event
            whose labels and vendor names are joined with ", ".
        """
        now = self.clock()
        events_by_day: dict[int, CalendarEvent] = {}

        for invoice in self.invoices:
            due = invoice.due_date
            if due is None:
                continue
            if year is not None and due.year != year:
                continue
            if month is not None and due.month != month:
                continue

            vendor_name = self._vendor_display_name(invoice)
            label = vendor_name
            if len(vendor_name) > CALENDAR_LABEL_LENGTH:
                label = vendor_name[:CALENDAR_LABEL_LENGTH] + "..."

            existing = events_by_day.get(due.day)
            if existing is None:
                events_by_day[due.day] = CalendarEvent(
                    day=due.day,
                    label=label,
                    type=self._calendar_type(invoice, now),
                    vendor_id=invoice.effective_vendor_id,
                    full_vendor_name=vendor_name,
                )
            else:
                existing.label = f"{existing.label}, {label}"
                existing.full_vendor_name = f"{existing.full_vendor_name}, {vendor_name}"

        return [events_by_day[day] for day in sorted(events_by_day)]

    # ==================== Charts ====================

    def get_savings_series(self) -> list[float]:
        if self.performance_data:
            return [point.total_amount for point in self.performance_data]

        # Presentation placeholder around the projected savings, not a forecast
        base_savings = self.get_kpis().projected_savings / 12
        return [
            round_half_up(base_savings * (1 + math.sin(i * 0.5) * 0.3 + self.rng.random() * 0.2))
            for i in range(12)
        ]

    def get_monthly_totals(self) -> MonthlyTotals:
        now = self.clock()
        totals = MonthlyTotals()

        for offset in range(11, -1, -1):
            year, month = divmod(now.year * 12 + (now.month - 1) - offset, 12)
            bucket = datetime(year, month + 1, 1, tzinfo=timezone.utc)

            month_total = 0.0
            paid_count = 0
            for invoice in self.invoices:
                if not invoice.is_paid:
                    continue
                payment_date = invoice.paid_date or invoice.date
                if payment_date is None:
                    continue
                if payment_date.year == bucket.year and payment_date.month == bucket.month:
                    month_total += invoice.paid_amount if invoice.paid_amount else invoice.total_amount
                    paid_count += 1

            totals.months.append(fmt_month_year(bucket))
            totals.amounts.append(round_half_up(month_total))
            logger.debug(f"{fmt_month_year(bucket)} - {paid_count} paid invoices, total: ${month_total:.2f}")

        return totals
