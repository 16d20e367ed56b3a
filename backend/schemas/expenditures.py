from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from schemas.inventory import ExpenditureReason


class ExpenditureCreate(BaseModel):
    inventory_item_id: UUID
    # Must match the asset's base when given.
    location_id: Optional[UUID] = None
    quantity: int
    reason: ExpenditureReason
    description: Optional[str] = Field(default=None, max_length=500)
    expended_date: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("quantity")
    @classmethod
    def _quantity(cls, v: int) -> int:
        if v < 1:
            raise ValueError("quantity must be >= 1")
        return v


class ExpenditureUpdate(BaseModel):
    reason: Optional[ExpenditureReason] = None
    description: Optional[str] = Field(default=None, max_length=500)
    expended_date: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    # Admin only. False records a rejection; the deducted quantity is not restored.
    approved: Optional[bool] = None


class ExpenditureFilter(BaseModel):
    inventory_item_id: Optional[UUID] = None
    location_id: Optional[UUID] = None
    reason: Optional[ExpenditureReason] = None
    approved: Optional[bool] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
