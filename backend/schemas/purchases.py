from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator


def _positive_quantity(v: Optional[int]) -> Optional[int]:
    if v is not None and v < 1:
        raise ValueError("quantity must be >= 1")
    return v


class PurchaseCreate(BaseModel):
    asset_type_id: UUID
    # Required for admins; defaulted to the caller's base otherwise.
    location_id: Optional[UUID] = None
    quantity: int
    unit_cost: float
    purchase_date: datetime
    supplier: str
    invoice_number: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def _quantity(cls, v: int) -> int:
        return _positive_quantity(v)

    @field_validator("unit_cost")
    @classmethod
    def _unit_cost(cls, v: float) -> float:
        if v < 0:
            raise ValueError("unit_cost must be >= 0")
        return v

    @field_validator("supplier")
    @classmethod
    def _supplier(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("supplier is required")
        return v

    @field_validator("invoice_number", "notes")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class PurchaseUpdate(BaseModel):
    """Administrative correction of a purchase record. Inventory is not touched."""
    quantity: Optional[int] = None
    unit_cost: Optional[float] = None
    purchase_date: Optional[datetime] = None
    supplier: Optional[str] = None
    invoice_number: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def _quantity(cls, v: Optional[int]) -> Optional[int]:
        return _positive_quantity(v)

    @field_validator("unit_cost")
    @classmethod
    def _unit_cost(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError("unit_cost must be >= 0")
        return v

    @field_validator("supplier")
    @classmethod
    def _supplier(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("supplier cannot be empty")
        return v


class PurchaseFilter(BaseModel):
    location_id: Optional[UUID] = None
    asset_type_id: Optional[UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
