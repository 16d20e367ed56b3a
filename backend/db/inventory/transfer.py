import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fastapi_users_db_sqlalchemy.generics import GUID

from ..database import Base


class TransferRecord(Base):
    __tablename__ = "transfers"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    transfer_code = Column(String, nullable=False, unique=True, index=True)  # TRF-...

    inventory_item_id = Column(GUID, ForeignKey("inventory_items.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    from_location_id = Column(GUID, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    to_location_id = Column(GUID, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True)

    initiated_by_user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_by_user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # 'pending' | 'approved' | 'rejected' | 'completed' | 'cancelled'
    status = Column(String, nullable=False, default="pending", index=True)
    # 'low' | 'medium' | 'high'
    priority = Column(String, nullable=False, default="medium")
    transfer_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    inventory_item = relationship("InventoryItem")
    from_location = relationship("Location", foreign_keys=[from_location_id])
    to_location = relationship("Location", foreign_keys=[to_location_id])
    initiated_by = relationship("User", foreign_keys=[initiated_by_user_id])
    approved_by = relationship("User", foreign_keys=[approved_by_user_id])

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "transfer_code": self.transfer_code,
            "inventory_item": self.inventory_item.to_schema if self.inventory_item else None,
            "quantity": int(self.quantity),
            "from_location": self.from_location.to_schema if self.from_location else None,
            "to_location": self.to_location.to_schema if self.to_location else None,
            "initiated_by": self.initiated_by.to_schema if self.initiated_by else None,
            "approved_by": self.approved_by.to_schema if self.approved_by else None,
            "status": self.status,
            "priority": self.priority,
            "transfer_date": self.transfer_date,
            "notes": self.notes,
            "created_at": self.created_at,
        }
