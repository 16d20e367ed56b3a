from typing import Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_principal, require_roles
from core.permissions import ROLE_ADMIN, Principal
from core.responses import success, success_list
from db.database import get_async_session
from db.location import Location as LocationModel
from schemas.reference import LocationCreate
from services.exceptions import ValidationError

router = APIRouter()


@router.get("/", response_model=Dict)
async def list_locations(
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    res = await db.execute(
        select(LocationModel)
        .where(LocationModel.is_active.is_(True))
        .order_by(func.lower(LocationModel.name).asc())
    )
    return success_list([loc.to_schema for loc in res.scalars().all()])


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_location(
    payload: LocationCreate,
    principal: Principal = Depends(require_roles(ROLE_ADMIN)),
    db: AsyncSession = Depends(get_async_session),
):
    res = await db.execute(
        select(LocationModel.id).where(
            or_(
                func.lower(LocationModel.name) == payload.name.lower(),
                LocationModel.code == payload.code,
            )
        )
    )
    if res.first():
        raise ValidationError("Base with this name or code already exists")

    loc = LocationModel(name=payload.name, code=payload.code, location=payload.location, is_active=True)
    db.add(loc)
    await db.commit()
    await db.refresh(loc)
    return success(loc.to_schema)
