from datetime import datetime
from typing import Any, Dict, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator, model_validator


LifecycleStatus = Literal["available", "assigned", "maintenance", "retired", "expended"]
TransferStatus = Literal["pending", "approved", "rejected", "completed", "cancelled"]
TransferPriority = Literal["low", "medium", "high"]
AssignmentStatus = Literal["pending", "active", "returned", "cancelled", "expended"]
ExpenditureReason = Literal["Training", "Operations", "Maintenance", "Emergency", "Exercise", "Other"]


def _strip_nullable(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class InventoryItemCreate(BaseModel):
    asset_type_id: UUID
    # Required for admins; other roles always create at their home base.
    location_id: Optional[UUID] = None
    on_hand: int
    opening_balance: Optional[int] = None
    lifecycle_status: LifecycleStatus = "available"
    purchase_date: Optional[datetime] = None
    cost: Optional[float] = None
    specifications: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None

    @field_validator("on_hand", "opening_balance")
    @classmethod
    def _non_negative_int(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("cost")
    @classmethod
    def _cost(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError("cost must be >= 0")
        return v

    @field_validator("notes")
    @classmethod
    def _notes(cls, v: Optional[str]) -> Optional[str]:
        return _strip_nullable(v)

    @model_validator(mode="after")
    def _default_opening_balance(self):
        if self.opening_balance is None:
            self.opening_balance = self.on_hand
        return self


class InventoryItemFilter(BaseModel):
    location_id: Optional[UUID] = None
    asset_type_id: Optional[UUID] = None
    lifecycle_status: Optional[LifecycleStatus] = None


class InventoryItemUpdate(BaseModel):
    """Descriptive fields and the lifecycle label. Quantities move only through the ledger."""
    lifecycle_status: Optional[LifecycleStatus] = None
    purchase_date: Optional[datetime] = None
    cost: Optional[float] = None
    specifications: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None

    @field_validator("cost")
    @classmethod
    def _cost(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError("cost must be >= 0")
        return v

    @field_validator("notes")
    @classmethod
    def _notes(cls, v: Optional[str]) -> Optional[str]:
        return _strip_nullable(v)
