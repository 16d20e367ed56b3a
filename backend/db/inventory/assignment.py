import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fastapi_users_db_sqlalchemy.generics import GUID

from ..database import Base


class AssignmentRecord(Base):
    __tablename__ = "assignments"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    assignment_code = Column(String, nullable=False, unique=True, index=True)  # ASN-...

    inventory_item_id = Column(GUID, ForeignKey("inventory_items.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)

    # Assignee is free text, not a user account.
    assigned_to = Column(String, nullable=False)
    rank = Column(String, nullable=True)
    unit = Column(String, nullable=True)

    location_id = Column(GUID, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    assigned_by_user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    assignment_date = Column(DateTime, nullable=False, index=True)
    expected_return_date = Column(DateTime, nullable=True)
    actual_return_date = Column(DateTime, nullable=True)
    purpose = Column(String, nullable=True)

    # 'pending' | 'active' | 'returned' | 'cancelled' | 'expended'
    status = Column(String, nullable=False, default="pending", index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    inventory_item = relationship("InventoryItem")
    location = relationship("Location")
    assigned_by = relationship("User")

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "assignment_code": self.assignment_code,
            "inventory_item": self.inventory_item.to_schema if self.inventory_item else None,
            "quantity": int(self.quantity),
            "assigned_to": self.assigned_to,
            "rank": self.rank,
            "unit": self.unit,
            "location": self.location.to_schema if self.location else None,
            "assigned_by": self.assigned_by.to_schema if self.assigned_by else None,
            "assignment_date": self.assignment_date,
            "expected_return_date": self.expected_return_date,
            "actual_return_date": self.actual_return_date,
            "purpose": self.purpose,
            "status": self.status,
            "notes": self.notes,
            "created_at": self.created_at,
        }
