"""Detail schemas per journal type and entry type.

These validate the free-form ``details`` map before it is written. Models
that forbid extra keys reject unknown fields; the others drop them.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import EmailStr, Field, field_validator

from journalshare.domain.enums import EstimateStatus
from journalshare.schemas.base import CamelModel, StrictCamelModel
from journalshare.shared.utils.datetime import ensure_utc

Currency = Literal["USD", "BRL"]

PHONE_PATTERN = r"^\+?[\d\s\-()]+$"
ZIP_CODE_PATTERN = r"^\d{5}(-\d{0,4})?$"


class Address(CamelModel):
    street: str | None = Field(default=None, min_length=1)
    city: str | None = Field(default=None, min_length=1)
    state: str | None = Field(default=None, min_length=1)
    zip_code: str | None = Field(default=None, pattern=ZIP_CODE_PATTERN)


class ContactInfo(CamelModel):
    """Customer, supplier or business contact."""

    name: str = Field(..., min_length=3, max_length=50)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, min_length=10, pattern=PHONE_PATTERN)
    address: Address


class BusinessDetails(StrictCamelModel):
    """Details of a business journal."""

    currency: Currency
    contact_info: ContactInfo
    logo: str | None


class BusinessDetailsUpdate(StrictCamelModel):
    """Partial business details for journal updates; every field optional."""

    currency: Currency | None = None
    contact_info: ContactInfo | None = None
    logo: str | None = None


class CashflowDetails(CamelModel):
    description: str = Field(..., min_length=3, max_length=254)
    date: datetime | None
    type: Literal["received", "paid"]
    value: float = Field(..., ge=0.01)
    currency: Currency

    @field_validator("date")
    @classmethod
    def date_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)


class DimensionConfig(CamelModel):
    type: Literal["area", "unit"]
    unit_label: Literal["m²", "ft²", "unit"]


class LaborItem(CamelModel):
    id: str
    labor_rate: float = Field(..., ge=0)
    labor_type: Literal["quantity", "fixed", "percentage"]
    description: str


class InventoryItemDetails(StrictCamelModel):
    """Material item stored in inventory_items and embedded in estimate line items."""

    id: str | None = Field(default=None, min_length=3, max_length=254)
    description: str
    unit_price: float = Field(..., ge=0)
    dimensions: DimensionConfig
    currency: Currency | None
    labor: LaborItem | None = None


class LineItemDimensions(CamelModel):
    length: float | None = Field(default=None, ge=0)
    width: float | None = Field(default=None, ge=0)


class LineItem(CamelModel):
    id: str
    parent_id: str
    quantity: float = Field(..., ge=0)
    dimensions: LineItemDimensions | None = None
    description: str = Field(..., min_length=3, max_length=254)
    material: InventoryItemDetails


class Adjustment(CamelModel):
    type: Literal["addPercent", "addFixed", "discountPercent", "discountFixed", "taxPercent"]
    value: float = Field(..., ge=0)
    description: str


class EstimateDetails(CamelModel):
    """Estimate details; invoice fields are filled in when the estimate is converted."""

    confirmed_items: list[LineItem]
    status: EstimateStatus
    customer: ContactInfo
    supplier: ContactInfo
    logo: str | None
    adjustments: list[Adjustment]
    tax_percentage: float = Field(..., ge=0)
    currency: Currency
    notes: str | None = Field(default=None, max_length=250)
    invoice_number: str | None = Field(default=None, min_length=1)
    due_date: datetime | None = None
    payments: list[dict[str, Any]] | None = None

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)
