import uuid
from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.sql import func
from fastapi_users_db_sqlalchemy.generics import GUID

from .database import Base


class AssetType(Base):
    __tablename__ = "asset_types"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, unique=True, index=True)
    # 'weapon' | 'vehicle' | 'equipment' | 'ammunition' | 'other'
    category = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    is_consumable = Column(Boolean, nullable=False, default=False)
    unit = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "is_consumable": bool(self.is_consumable),
            "unit": self.unit,
            "is_active": bool(self.is_active),
        }
