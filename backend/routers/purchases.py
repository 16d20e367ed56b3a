from datetime import date
from typing import Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_principal, require_roles
from core.permissions import ROLE_ADMIN, ROLE_LOGISTICS, Principal
from core.responses import success, success_list
from db.database import get_async_session
from schemas.purchases import PurchaseCreate, PurchaseFilter, PurchaseUpdate
from services import purchases as purchase_service

router = APIRouter()


@router.get("/", response_model=Dict)
async def list_purchases(
    location_id: Optional[UUID] = Query(None),
    asset_type_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    filters = PurchaseFilter(
        location_id=location_id,
        asset_type_id=asset_type_id,
        start_date=start_date,
        end_date=end_date,
    )
    purchases = await purchase_service.list_purchases(db, principal, filters)
    return success_list([p.to_schema for p in purchases])


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_purchase(
    payload: PurchaseCreate,
    principal: Principal = Depends(require_roles(ROLE_ADMIN, ROLE_LOGISTICS)),
    db: AsyncSession = Depends(get_async_session),
):
    purchase = await purchase_service.create_purchase(db, principal, payload)
    return success(purchase.to_schema)


@router.get("/{purchase_id}", response_model=Dict)
async def get_purchase(
    purchase_id: UUID,
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    purchase = await purchase_service.get_purchase(db, principal, purchase_id)
    return success(purchase.to_schema)


@router.put("/{purchase_id}", response_model=Dict)
async def update_purchase(
    purchase_id: UUID,
    payload: PurchaseUpdate,
    principal: Principal = Depends(require_roles(ROLE_ADMIN, ROLE_LOGISTICS)),
    db: AsyncSession = Depends(get_async_session),
):
    purchase = await purchase_service.update_purchase(db, principal, purchase_id, payload)
    return success(purchase.to_schema)


@router.delete("/{purchase_id}", response_model=Dict)
async def delete_purchase(
    purchase_id: UUID,
    principal: Principal = Depends(require_roles(ROLE_ADMIN)),
    db: AsyncSession = Depends(get_async_session),
):
    await purchase_service.delete_purchase(db, principal, purchase_id)
    return success(None)
