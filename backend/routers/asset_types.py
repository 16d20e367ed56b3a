from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_principal, require_roles
from core.permissions import ROLE_ADMIN, Principal
from core.responses import success, success_list
from db.asset_type import AssetType as AssetTypeModel
from db.database import get_async_session
from schemas.reference import AssetCategory, AssetTypeCreate
from services.exceptions import ValidationError

router = APIRouter()


@router.get("/", response_model=Dict)
async def list_asset_types(
    category: Optional[AssetCategory] = Query(None),
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    stmt = select(AssetTypeModel).where(AssetTypeModel.is_active.is_(True))
    if category:
        stmt = stmt.where(AssetTypeModel.category == category)
    res = await db.execute(stmt.order_by(func.lower(AssetTypeModel.name).asc()))
    return success_list([at.to_schema for at in res.scalars().all()])


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_asset_type(
    payload: AssetTypeCreate,
    principal: Principal = Depends(require_roles(ROLE_ADMIN)),
    db: AsyncSession = Depends(get_async_session),
):
    res = await db.execute(
        select(AssetTypeModel.id).where(func.lower(AssetTypeModel.name) == payload.name.lower())
    )
    if res.first():
        raise ValidationError("Asset type with this name already exists")

    at = AssetTypeModel(
        name=payload.name,
        category=payload.category,
        unit=payload.unit,
        description=payload.description,
        is_consumable=payload.is_consumable,
        is_active=True,
    )
    db.add(at)
    await db.commit()
    await db.refresh(at)
    return success(at.to_schema)
