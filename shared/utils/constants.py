"""
Constants and enumerations for the VendorSync dashboard.
"""

from enum import Enum
from typing import Final

# Local storage key of the running total spend scalar
TOTAL_SPEND_STORAGE_KEY: Final[str] = "vendorsync_total_spend"

NGROK_SKIP_HEADER: Final[str] = "ngrok-skip-browser-warning"

UNKNOWN_VENDOR: Final[str] = "Unknown Vendor"
CALENDAR_LABEL_LENGTH: Final[int] = 8
NOT_AVAILABLE: Final[str] = "Not Available"


class DashboardEvents:
    """Dashboard event names published on the in-process event bus."""
    DASHBOARD_REFRESH = "dashboard-refresh"
    TOTAL_SPEND_UPDATE = "total-spend-update"


class InvoiceStatus(str, Enum):
    """Invoice payment statuses returned by the VendorSync API."""
    PAID = "paid"
    PENDING = "pending"
    OPEN = "open"
    VOID = "void"


class ComplianceStatus(str, Enum):
    """Per-vendor compliance classification, highest priority first."""
    LATE_FEE_RISK = "Late Fee Risk"
    DISCOUNT_AVAILABLE = "Discount Available"
    OK = "OK"


class NextPayment:
    """Buckets of the vendor summary ``nextPay`` column."""
    NO_PAYMENTS = "No Payments"
    NO_FUTURE_PAYMENTS = "No Future Payments"
    OVERDUE = "Overdue"
    DUE_SOON = "Due Soon"


class AlertLevel(str, Enum):
    DANGER = "danger"
    WARN = "warn"
    OK = "ok"


class CalendarEventType(str, Enum):
    SOON = "soon"
    DUE = "due"
    SAVE = "save"
    FUTURE = "future"


# Valid client-side payment status transitions
VALID_PAYMENT_TRANSITIONS = {
    "pending": ["paid"],
    "open": ["paid"],
    "paid": ["pending"],
    "void": [],
}
