from dataclasses import asdict, dataclass, field
from typing import Optional

from shared.utils.constants import AlertLevel, CalendarEventType
from shared.utils.convert import convert_to_api_dict


class _ApiDictMixin:

    def to_dict(self) -> dict:
        return convert_to_api_dict(asdict(self))


@dataclass
class KPIs(_ApiDictMixin):
    total_vendors: int
    active_contracts: int          # invoices whose due date is still ahead
    upcoming_payments: int         # due within the upcoming window
    projected_savings: int         # early-pay discount value across invoices
    total_spend: int               # owned by the data service running total
    average_invoice_amount: int    # over paid invoices only


@dataclass
class VendorSummary(_ApiDictMixin):
    vendor_id: str
    name: str
    spend: int
    compliance: str
    next_pay: str
    score: int
    invoice_count: int
    overdue_count: int = 0
    price_delta: Optional[float] = None  # not tracked yet
    on_time: Optional[int] = None        # not tracked yet
    email: Optional[str] = None
    address: Optional[str] = None
    last_invoice_date: Optional[str] = None


@dataclass
class Alert(_ApiDictMixin):
    level: AlertLevel
    text: str


@dataclass
class Renewal(_ApiDictMixin):
    contract: str
    vendor: str
    renews: Optional[str]
    status: str


@dataclass
class CalendarEvent(_ApiDictMixin):
    day: int
    label: str
    type: CalendarEventType
    vendor_id: Optional[str] = None
    full_vendor_name: Optional[str] = None


@dataclass
class MonthlyTotals(_ApiDictMixin):
    months: list[str] = field(default_factory=list)
    amounts: list[int] = field(default_factory=list)
