from datetime import date
from typing import Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_principal, require_roles
from core.permissions import ROLE_ADMIN, ROLE_LOGISTICS, Principal
from core.responses import success, success_list
from db.database import get_async_session
from schemas.inventory import TransferStatus
from schemas.transfers import TransferCreate, TransferFilter
from services import transfers as transfer_service

router = APIRouter()


@router.get("/", response_model=Dict)
async def list_transfers(
    status_: Optional[TransferStatus] = Query(None, alias="status"),
    from_location_id: Optional[UUID] = Query(None),
    to_location_id: Optional[UUID] = Query(None),
    location_id: Optional[UUID] = Query(None),
    asset_type_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    filters = TransferFilter(
        status=status_,
        from_location_id=from_location_id,
        to_location_id=to_location_id,
        location_id=location_id,
        asset_type_id=asset_type_id,
        start_date=start_date,
        end_date=end_date,
    )
    transfers = await transfer_service.list_transfers(db, principal, filters)
    return success_list([t.to_schema for t in transfers])


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_transfer(
    payload: TransferCreate,
    principal: Principal = Depends(require_roles(ROLE_ADMIN, ROLE_LOGISTICS)),
    db: AsyncSession = Depends(get_async_session),
):
    transfer = await transfer_service.create_transfer(db, principal, payload)
    return success(transfer.to_schema)


@router.get("/{transfer_id}", response_model=Dict)
async def get_transfer(
    transfer_id: UUID,
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    transfer = await transfer_service.get_transfer(db, principal, transfer_id)
    return success(transfer.to_schema)


@router.patch("/{transfer_id}/approve", response_model=Dict)
async def approve_transfer(
    transfer_id: UUID,
    principal: Principal = Depends(require_roles(ROLE_ADMIN)),
    db: AsyncSession = Depends(get_async_session),
):
    transfer = await transfer_service.approve_transfer(db, principal, transfer_id)
    return success(transfer.to_schema)


@router.patch("/{transfer_id}/reject", response_model=Dict)
async def reject_transfer(
    transfer_id: UUID,
    principal: Principal = Depends(require_roles(ROLE_ADMIN)),
    db: AsyncSession = Depends(get_async_session),
):
    transfer = await transfer_service.reject_transfer(db, principal, transfer_id)
    return success(transfer.to_schema)


@router.patch("/{transfer_id}/cancel", response_model=Dict)
async def cancel_transfer(
    transfer_id: UUID,
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    transfer = await transfer_service.cancel_transfer(db, principal, transfer_id)
    return success(transfer.to_schema)
