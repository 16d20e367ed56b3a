from datetime import date
from typing import Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_principal, require_roles
from core.permissions import ROLE_ADMIN, Principal
from core.responses import success, success_list
from db.database import get_async_session
from schemas.expenditures import ExpenditureCreate, ExpenditureFilter, ExpenditureUpdate
from schemas.inventory import ExpenditureReason
from services import expenditures as expenditure_service

router = APIRouter()


@router.get("/", response_model=Dict)
async def list_expenditures(
    inventory_item_id: Optional[UUID] = Query(None),
    location_id: Optional[UUID] = Query(None),
    reason: Optional[ExpenditureReason] = Query(None),
    approved: Optional[bool] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    filters = ExpenditureFilter(
        inventory_item_id=inventory_item_id,
        location_id=location_id,
        reason=reason,
        approved=approved,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    rows, total = await expenditure_service.list_expenditures(db, principal, filters)
    return success_list(
        [e.to_schema for e in rows],
        total=total,
        page=page,
        limit=limit,
        pages=expenditure_service.page_count(total, limit),
    )


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_expenditure(
    payload: ExpenditureCreate,
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    expenditure = await expenditure_service.create_expenditure(db, principal, payload)
    return success(expenditure.to_schema)


@router.get("/{expenditure_id}", response_model=Dict)
async def get_expenditure(
    expenditure_id: UUID,
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    expenditure = await expenditure_service.get_expenditure(db, principal, expenditure_id)
    return success(expenditure.to_schema)


@router.patch("/{expenditure_id}", response_model=Dict)
async def update_expenditure(
    expenditure_id: UUID,
    payload: ExpenditureUpdate,
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    expenditure = await expenditure_service.update_expenditure(db, principal, expenditure_id, payload)
    return success(expenditure.to_schema)


@router.patch("/{expenditure_id}/approve", response_model=Dict)
async def approve_expenditure(
    expenditure_id: UUID,
    principal: Principal = Depends(require_roles(ROLE_ADMIN)),
    db: AsyncSession = Depends(get_async_session),
):
    expenditure = await expenditure_service.approve_expenditure(db, principal, expenditure_id)
    return success(expenditure.to_schema)


@router.delete("/{expenditure_id}", response_model=Dict)
async def delete_expenditure(
    expenditure_id: UUID,
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    await expenditure_service.delete_expenditure(db, principal, expenditure_id)
    return success(None)
