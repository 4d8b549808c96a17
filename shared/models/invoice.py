"""
Invoice payload model and client-side payment state machine.
"""

from datetime import datetime, timezone
from typing import Optional
import uuid

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from shared.models.vendor import VendorRef
from shared.utils.constants import VALID_PAYMENT_TRANSITIONS, InvoiceStatus
from shared.utils.convert import parse_datetime, to_number, to_optional_number, to_paid_timestamp, to_timestamp


class ApiInvoice(BaseModel):
    """
    Invoice as returned by ``GET /vendor/invoice/all``.

    Monetary fields are coerced to non-negative finite numbers (zero when
    unusable). Unparseable dates become None.
    """

    # ========== IDENTIFIERS ==========
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    vendor_id: Optional[str] = None
    vendor: Optional[VendorRef] = None
    vendor_name: Optional[str] = None
    invoice_number: str = ""

    # ========== DATES ==========
    date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("paidDate", "paidAt", "paid_date", "paid_at"),
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # ========== AMOUNTS ==========
    subtotal: float = 0
    total_amount: float = 0
    paid_amount: Optional[float] = None

    # ========== TERMS & STATUS ==========
    payment_terms: Optional[str] = None
    early_pay_discount: float = 0  # percentage
    late_fee: float = 0
    status: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        validate_assignment=True,
    )

    @field_validator("id", mode="before")
    def coerce_id(cls, v):
        return uuid.uuid4().hex if v is None else str(v)

    @field_validator("vendor_id", mode="before")
    def coerce_vendor_id(cls, v):
        return None if v is None else str(v)

    @field_validator("invoice_number", mode="before")
    def coerce_invoice_number(cls, v):
        return "" if v is None else str(v)

    @field_validator("date", "due_date", "paid_date", "created_at", "updated_at", mode="before")
    def parse_dates(cls, v):
        return parse_datetime(v)

    @field_validator("subtotal", "total_amount", "early_pay_discount", "late_fee", mode="before")
    def coerce_amount(cls, v):
        number = to_number(v)
        return number if number >= 0 else 0

    @field_validator("paid_amount", mode="before")
    def coerce_paid_amount(cls, v):
        number = to_optional_number(v)
        if number is None or number < 0:
            return None
        return number

    @field_validator("status", mode="before")
    def normalize_status(cls, v):
        return None if v is None else str(v).strip().lower()

    @property
    def effective_vendor_id(self) -> Optional[str]:
        if self.vendor_id:
            return self.vendor_id
        return self.vendor.id if self.vendor else None

    @property
    def embedded_vendor_name(self) -> Optional[str]:
        if self.vendor and self.vendor.name:
            return self.vendor.name
        return self.vendor_name or None

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID.value or self.paid_date is not None

    @property
    def due_timestamp(self) -> float:
        return to_timestamp(self.due_date)

    @property
    def paid_timestamp(self) -> float:
        return to_paid_timestamp(self.paid_date)

    @property
    def payment_status(self) -> str:
        if self.is_paid:
            return InvoiceStatus.PAID.value
        if self.status in VALID_PAYMENT_TRANSITIONS:
            return self.status
        return InvoiceStatus.PENDING.value

    def can_transition_to(self, new_status: InvoiceStatus) -> bool:
        """Check if the client-side payment transition is allowed."""
        return new_status.value in VALID_PAYMENT_TRANSITIONS.get(self.payment_status, [])

    def mark_paid(self, paid_at: Optional[datetime] = None) -> "ApiInvoice":
        """Return a paid copy of this invoice."""
        if not self.can_transition_to(InvoiceStatus.PAID):
            raise ValueError(f"Invalid payment transition from {self.payment_status} to paid")
        return self.model_copy(update={
            "status": InvoiceStatus.PAID.value,
            "paid_date": paid_at or datetime.now(timezone.utc),
        })

    def mark_unpaid(self) -> "ApiInvoice":
        """Return a pending copy of this invoice."""
        if not self.can_transition_to(InvoiceStatus.PENDING):
            raise ValueError(f"Invalid payment transition from {self.payment_status} to pending")
        return self.model_copy(update={
            "status": InvoiceStatus.PENDING.value,
            "paid_date": None,
        })

    def to_dict(self) -> dict:
        """Serialize with the API's camelCase field names."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict) -> "ApiInvoice":
        return cls.model_validate(data)
