# Pydantic schemas for fastapi-users plus the ledger-specific user fields.

from typing import Literal, Optional
from uuid import UUID

from fastapi_users import schemas
from pydantic import model_validator

Role = Literal["admin", "commander", "logistics", "unit_leader"]


class UserRead(schemas.BaseUser[UUID]):
    username: str
    role: Role
    location_id: Optional[UUID] = None


class UserCreate(schemas.BaseUserCreate):
    username: str
    role: Role
    location_id: Optional[UUID] = None

    @model_validator(mode="after")
    def _home_location_required(self):
        if self.role != "admin" and self.location_id is None:
            raise ValueError(f"location_id is required for role {self.role}")
        return self


class UserUpdate(schemas.BaseUserUpdate):
    username: Optional[str] = None
    role: Optional[Role] = None
    location_id: Optional[UUID] = None
