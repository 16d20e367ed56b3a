from typing import Literal, Optional

from pydantic import BaseModel, field_validator


AssetCategory = Literal["weapon", "vehicle", "equipment", "ammunition", "other"]


class LocationCreate(BaseModel):
    name: str
    code: str
    location: str

    @field_validator("name", "location")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("code")
    @classmethod
    def _code(cls, v: str) -> str:
        v = (v or "").strip().upper()
        if not v:
            raise ValueError("code is required")
        return v


class AssetTypeCreate(BaseModel):
    name: str
    category: AssetCategory
    unit: str
    description: Optional[str] = None
    is_consumable: bool = False

    @field_validator("name", "unit")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v
