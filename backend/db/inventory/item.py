import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fastapi_users_db_sqlalchemy.generics import GUID

from ..database import Base


class InventoryItem(Base):
    """Stock of one asset type at one location.

    (asset_type_id, location_id) is matched by query, not enforced as a unique key.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        CheckConstraint("on_hand >= 0", name="ck_inventory_items_on_hand_non_negative"),
    )

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    asset_code = Column(String, nullable=False, unique=True, index=True)  # AST-...

    asset_type_id = Column(GUID, ForeignKey("asset_types.id", ondelete="RESTRICT"), nullable=False, index=True)
    location_id = Column(GUID, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True)

    # 'available' | 'assigned' | 'maintenance' | 'retired' | 'expended' (advisory label)
    lifecycle_status = Column(String, nullable=False, default="available")
    on_hand = Column(Integer, nullable=False, default=0)
    opening_balance = Column(Integer, nullable=False, default=0)

    purchase_date = Column(DateTime, nullable=True)
    cost = Column(Numeric(12, 2), nullable=True)
    specifications = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    asset_type = relationship("AssetType")
    location = relationship("Location")

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "asset_code": self.asset_code,
            "asset_type": self.asset_type.to_schema if self.asset_type else None,
            "location": self.location.to_schema if self.location else None,
            "lifecycle_status": self.lifecycle_status,
            "on_hand": int(self.on_hand or 0),
            "opening_balance": int(self.opening_balance or 0),
            "purchase_date": self.purchase_date,
            "cost": float(self.cost) if self.cost is not None else None,
            "specifications": self.specifications,
            "notes": self.notes,
            "created_at": self.created_at,
        }
