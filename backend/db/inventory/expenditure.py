import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fastapi_users_db_sqlalchemy.generics import GUID

from ..database import Base


class ExpenditureRecord(Base):
    __tablename__ = "expenditures"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)

    inventory_item_id = Column(GUID, ForeignKey("inventory_items.id", ondelete="RESTRICT"), nullable=False, index=True)
    location_id = Column(GUID, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)

    # 'Training' | 'Operations' | 'Maintenance' | 'Emergency' | 'Exercise' | 'Other'
    reason = Column(String, nullable=False, index=True)
    description = Column(String(500), nullable=True)

    expended_by_user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    expended_date = Column(DateTime, nullable=False, index=True)

    # None = pending, True = approved, False = rejected
    approved = Column(Boolean, nullable=True, default=None)
    approved_by_user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_date = Column(DateTime, nullable=True)
    notes = Column(String(1000), nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    inventory_item = relationship("InventoryItem")
    location = relationship("Location")
    expended_by = relationship("User", foreign_keys=[expended_by_user_id])
    approved_by = relationship("User", foreign_keys=[approved_by_user_id])

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "inventory_item": self.inventory_item.to_schema if self.inventory_item else None,
            "location": self.location.to_schema if self.location else None,
            "quantity": int(self.quantity),
            "reason": self.reason,
            "description": self.description,
            "expended_by": self.expended_by.to_schema if self.expended_by else None,
            "expended_date": self.expended_date,
            "approved": self.approved,
            "approved_by": self.approved_by.to_schema if self.approved_by else None,
            "approved_date": self.approved_date,
            "notes": self.notes,
            "created_at": self.created_at,
        }
