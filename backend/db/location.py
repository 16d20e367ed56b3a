import uuid
from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.sql import func
from fastapi_users_db_sqlalchemy.generics import GUID

from .database import Base


class Location(Base):
    """A base: the organisational unit that owns stock and scopes non-admin users."""
    __tablename__ = "locations"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, unique=True, index=True)
    code = Column(String, nullable=False, unique=True, index=True)
    location = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "location": self.location,
            "is_active": bool(self.is_active),
        }
