from datetime import date
from typing import Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_principal, require_roles
from core.permissions import ROLE_ADMIN, ROLE_COMMANDER, Principal
from core.responses import success, success_list
from db.database import get_async_session
from schemas.assignments import AssignmentCreate, AssignmentFilter, AssignmentUpdate
from schemas.inventory import AssignmentStatus
from services import assignments as assignment_service

router = APIRouter()

can_assign = require_roles(ROLE_ADMIN, ROLE_COMMANDER)


@router.get("/", response_model=Dict)
async def list_assignments(
    location_id: Optional[UUID] = Query(None),
    status_: Optional[AssignmentStatus] = Query(None, alias="status"),
    asset_type_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    filters = AssignmentFilter(
        location_id=location_id,
        status=status_,
        asset_type_id=asset_type_id,
        start_date=start_date,
        end_date=end_date,
    )
    assignments = await assignment_service.list_assignments(db, principal, filters)
    return success_list([a.to_schema for a in assignments])


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    payload: AssignmentCreate,
    principal: Principal = Depends(can_assign),
    db: AsyncSession = Depends(get_async_session),
):
    assignment = await assignment_service.create_assignment(db, principal, payload)
    return success(assignment.to_schema)


@router.get("/{assignment_id}", response_model=Dict)
async def get_assignment(
    assignment_id: UUID,
    principal: Principal = Depends(current_principal),
    db: AsyncSession = Depends(get_async_session),
):
    assignment = await assignment_service.get_assignment(db, principal, assignment_id)
    return success(assignment.to_schema)


@router.patch("/{assignment_id}", response_model=Dict)
async def update_assignment(
    assignment_id: UUID,
    payload: AssignmentUpdate,
    principal: Principal = Depends(can_assign),
    db: AsyncSession = Depends(get_async_session),
):
    assignment = await assignment_service.update_assignment(db, principal, assignment_id, payload)
    return success(assignment.to_schema)


@router.patch("/{assignment_id}/activate", response_model=Dict)
async def activate_assignment(
    assignment_id: UUID,
    principal: Principal = Depends(can_assign),
    db: AsyncSession = Depends(get_async_session),
):
    assignment = await assignment_service.activate_assignment(db, principal, assignment_id)
    return success(assignment.to_schema)


@router.patch("/{assignment_id}/return", response_model=Dict)
async def return_assignment(
    assignment_id: UUID,
    principal: Principal = Depends(can_assign),
    db: AsyncSession = Depends(get_async_session),
):
    assignment = await assignment_service.return_assignment(db, principal, assignment_id)
    return success(assignment.to_schema)


@router.patch("/{assignment_id}/expend", response_model=Dict)
async def expend_assignment(
    assignment_id: UUID,
    principal: Principal = Depends(can_assign),
    db: AsyncSession = Depends(get_async_session),
):
    assignment = await assignment_service.expend_assignment(db, principal, assignment_id)
    return success(assignment.to_schema)
