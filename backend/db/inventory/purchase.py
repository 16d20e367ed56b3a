import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fastapi_users_db_sqlalchemy.generics import GUID

from ..database import Base


class PurchaseRecord(Base):
    __tablename__ = "purchases"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    purchase_code = Column(String, nullable=False, unique=True, index=True)  # PUR-...

    asset_type_id = Column(GUID, ForeignKey("asset_types.id", ondelete="RESTRICT"), nullable=False, index=True)
    location_id = Column(GUID, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(12, 2), nullable=False)
    total_cost = Column(Numeric(14, 2), nullable=False)

    purchase_date = Column(DateTime, nullable=False, index=True)
    purchased_by_user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    supplier = Column(String, nullable=False)
    invoice_number = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    asset_type = relationship("AssetType")
    location = relationship("Location")
    purchased_by = relationship("User")

    def recompute_total(self):
        self.total_cost = int(self.quantity) * self.unit_cost

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "purchase_code": self.purchase_code,
            "asset_type": self.asset_type.to_schema if self.asset_type else None,
            "location": self.location.to_schema if self.location else None,
            "quantity": int(self.quantity),
            "unit_cost": float(self.unit_cost),
            "total_cost": float(self.total_cost),
            "purchase_date": self.purchase_date,
            "purchased_by": self.purchased_by.to_schema if self.purchased_by else None,
            "supplier": self.supplier,
            "invoice_number": self.invoice_number,
            "notes": self.notes,
            "created_at": self.created_at,
        }
