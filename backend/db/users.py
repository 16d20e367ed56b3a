from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTableUUID
from fastapi_users_db_sqlalchemy.generics import GUID
from sqlalchemy import Column, ForeignKey, String
from sqlalchemy.orm import relationship
from .database import Base


class User(SQLAlchemyBaseUserTableUUID, Base):
    __tablename__ = "users"

    username = Column(String, nullable=False, unique=True, index=True)
    # 'admin' | 'commander' | 'logistics' | 'unit_leader'
    role = Column(String, nullable=False, index=True)
    # Home base; required for every role except admin.
    location_id = Column(GUID, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True, index=True)

    location = relationship("Location")

    @property
    def to_schema(self):
        """Public user fields embedded in ledger records."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
        }
