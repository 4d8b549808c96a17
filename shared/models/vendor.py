"""
Vendor payload model.

Records coming back from the VendorSync API are validated here once so the
aggregation layer can rely on well-typed fields.
"""

from datetime import datetime
from typing import Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from shared.utils.convert import parse_datetime


class VendorRef(BaseModel):
    """Vendor reference embedded in some invoice payloads."""
    id: Optional[str] = None
    name: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("id", mode="before")
    def coerce_id(cls, v):
        return None if v is None else str(v)


class ApiVendor(BaseModel):
    """Vendor as returned by ``GET /vendor``."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str = ""
    address: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("id", mode="before")
    def coerce_id(cls, v):
        return uuid.uuid4().hex if v is None else str(v)

    @field_validator("name", mode="before")
    def coerce_name(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("created_at", "updated_at", mode="before")
    def parse_dates(cls, v):
        return parse_datetime(v)

    def to_dict(self) -> dict:
        """Serialize with the API's camelCase field names."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict) -> "ApiVendor":
        return cls.model_validate(data)
