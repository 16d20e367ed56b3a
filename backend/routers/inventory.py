from typing import Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_principal, require_roles
from core.permissions import ROLE_ADMIN, ROLE_LOGISTICS, Principal
from core.responses import success, success_list
from db.database import get_async_session
from schemas.inventory import InventoryItemCreate, InventoryItemFilter, InventoryItemUpdate, LifecycleStatus
from services import inventory as inventory_service

router = APIRouter()


@router.get("/items", response_model=Dict)
async def list_inventory_items(
    location_id: Optional[UUID] = Query(None),
    asset_type_id: Optional[UUID] = Query(None),
    lifecycle_status: Optional[LifecycleStatus] = Query(None),
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    filters = InventoryItemFilter(
        location_id=location_id,
        asset_type_id=asset_type_id,
        lifecycle_status=lifecycle_status,
    )
    items = await inventory_service.list_items(db, principal, filters)
    return success_list([i.to_schema for i in items])


@router.post("/items", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_inventory_item(
    payload: InventoryItemCreate,
    principal: Principal = Depends(require_roles(ROLE_ADMIN, ROLE_LOGISTICS)),
    db: AsyncSession = Depends(get_async_session),
):
    item = await inventory_service.create_item(db, principal, payload)
    return success(item.to_schema)


@router.get("/items/{item_id}", response_model=Dict)
async def get_inventory_item(
    item_id: UUID,
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    item = await inventory_service.get_item(db, principal, item_id)
    return success(item.to_schema)


@router.patch("/items/{item_id}", response_model=Dict)
@router.put("/items/{item_id}", response_model=Dict)
async def update_inventory_item(
    item_id: UUID,
    payload: InventoryItemUpdate,
    principal: Principal = Depends(require_roles(ROLE_ADMIN, ROLE_LOGISTICS)),
    db: AsyncSession = Depends(get_async_session),
):
    item = await inventory_service.update_item(db, principal, item_id, payload)
    return success(item.to_schema)


@router.delete("/items/{item_id}", response_model=Dict)
async def delete_inventory_item(
    item_id: UUID,
    principal: Principal = Depends(require_roles(ROLE_ADMIN)),
    db: AsyncSession = Depends(get_async_session),
):
    await inventory_service.delete_item(db, principal, item_id)
    return success(None)
