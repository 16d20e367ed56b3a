from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from schemas.inventory import AssignmentStatus


class AssignmentCreate(BaseModel):
    inventory_item_id: UUID
    quantity: int
    assigned_to: str
    rank: Optional[str] = None
    unit: Optional[str] = None
    # Must match the asset's base when given.
    location_id: Optional[UUID] = None
    assignment_date: Optional[datetime] = None
    expected_return_date: Optional[datetime] = None
    purpose: Optional[str] = "other"
    notes: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def _quantity(cls, v: int) -> int:
        if v < 1:
            raise ValueError("quantity must be >= 1")
        return v

    @field_validator("assigned_to")
    @classmethod
    def _assigned_to(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("assigned_to is required")
        return v

    @field_validator("rank", "unit", "purpose", "notes")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class AssignmentUpdate(BaseModel):
    """Free-text fields and dates only; status and quantity move through transitions."""
    assigned_to: Optional[str] = None
    rank: Optional[str] = None
    unit: Optional[str] = None
    expected_return_date: Optional[datetime] = None
    purpose: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("assigned_to")
    @classmethod
    def _assigned_to(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("assigned_to cannot be empty")
        return v

    @field_validator("rank", "unit", "purpose", "notes")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class AssignmentFilter(BaseModel):
    location_id: Optional[UUID] = None
    status: Optional[AssignmentStatus] = None
    asset_type_id: Optional[UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
