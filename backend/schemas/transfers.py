from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from schemas.inventory import TransferPriority, TransferStatus


class TransferCreate(BaseModel):
    inventory_item_id: UUID
    quantity: int
    to_location_id: UUID
    priority: TransferPriority = "medium"
    notes: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def _quantity(cls, v: int) -> int:
        if v < 1:
            raise ValueError("quantity must be >= 1")
        return v

    @field_validator("notes")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class TransferFilter(BaseModel):
    status: Optional[TransferStatus] = None
    from_location_id: Optional[UUID] = None
    to_location_id: Optional[UUID] = None
    # Either side of the transfer (legacy single-base filter).
    location_id: Optional[UUID] = None
    asset_type_id: Optional[UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
