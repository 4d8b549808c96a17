"""
Vendor performance payloads returned by ``GET /vendor/performance``.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from shared.utils.convert import convert_to_api_dict, parse_datetime, to_number


class PerformanceData(BaseModel):
    """One month of the performance series."""
    month: str = ""
    total_amount: float = 0
    vendor_count: int = 0

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @field_validator("month", mode="before")
    def coerce_month(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("total_amount", mode="before")
    def coerce_total(cls, v):
        return to_number(v)

    @field_validator("vendor_count", mode="before")
    def coerce_count(cls, v):
        return int(to_number(v))


class PerformanceAnalysis(BaseModel):
    """Spend analysis record, amounts may arrive as strings."""
    id: str = ""
    total_spend: float = 0
    avg_invoice_amount: float = 0
    invoice_count: int = 0
    payment_consistency: float = 0
    spend_trend: Optional[str] = None
    seasonal_patterns: dict[str, dict] = {}
    compliance_score: float = 0
    analysis_date: Optional[datetime] = None
    analysis_period_days: int = 0

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @field_validator("total_spend", "avg_invoice_amount", "payment_consistency", "compliance_score", mode="before")
    def coerce_numbers(cls, v):
        return to_number(v)

    @field_validator("invoice_count", "analysis_period_days", mode="before")
    def coerce_counts(cls, v):
        return int(to_number(v))

    @field_validator("seasonal_patterns", mode="before")
    def coerce_patterns(cls, v):
        return v if isinstance(v, dict) else {}

    @field_validator("analysis_date", mode="before")
    def parse_dates(cls, v):
        return parse_datetime(v)


@dataclass
class SeasonalMonth:
    month: str
    total: float
    count: float
    pct: float


@dataclass
class PerformanceView:
    """Normalized performance analysis ready for display."""
    id: str
    total_spend: float
    avg_invoice_amount: float
    invoice_count: int
    payment_consistency: float
    spend_trend: str
    seasonal: list[SeasonalMonth] = field(default_factory=list)
    top_month: Optional[SeasonalMonth] = None
    compliance_score: float = 0
    analysis_date: Optional[datetime] = None
    analysis_period_days: int = 0

    def to_dict(self) -> dict:
        data = convert_to_api_dict(asdict(self))
        if self.top_month is not None:
            data["topMonth"] = {"month": self.top_month.month, "pct": self.top_month.pct}
        return data
