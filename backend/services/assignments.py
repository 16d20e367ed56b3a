"""Assignments of stock to personnel.

    pending ──activate──> active ──return──> returned
                            └─────expend──> expended

Creating an assignment takes the quantity out of on_hand straight away. Return
puts it back; expend does not (the stock is consumed). New assignments start in
the status configured by ASSIGNMENT_INITIAL_STATUS.
"""
import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.config import settings
from core.permissions import Principal, ensure_home_location, ensure_location_access
from db.inventory.assignment import AssignmentRecord
from db.inventory.item import InventoryItem
from schemas.assignments import AssignmentCreate, AssignmentFilter, AssignmentUpdate
from services import inventory
from services.common import date_range, naive_utc, new_reference, utcnow
from services.exceptions import ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

INITIAL_STATUSES = ("active", "pending")

ASSIGNMENT_LOAD = (
    selectinload(AssignmentRecord.inventory_item).selectinload(InventoryItem.asset_type),
    selectinload(AssignmentRecord.inventory_item).selectinload(InventoryItem.location),
    selectinload(AssignmentRecord.location),
    selectinload(AssignmentRecord.assigned_by),
)


async def load_assignment(db: AsyncSession, assignment_id: UUID) -> AssignmentRecord:
    res = await db.execute(
        select(AssignmentRecord)
        .where(AssignmentRecord.id == assignment_id)
        .options(*ASSIGNMENT_LOAD)
        .execution_options(populate_existing=True)
    )
    a = res.scalar_one_or_none()
    if not a:
        raise NotFoundError("Assignment", assignment_id)
    return a


def initial_status() -> str:
    status = settings.assignment_initial_status
    return status if status in INITIAL_STATUSES else "active"


def _ensure_can_act(principal: Principal, a: AssignmentRecord, action: str):
    if principal.is_elevated:
        return
    home_id = ensure_home_location(principal)
    if home_id != a.location_id:
        raise ForbiddenError(f"You do not have permission to {action} this assignment")


def _ensure_active(a: AssignmentRecord):
    if a.status != "active":
        raise InvalidTransitionError(f"Assignment is not active. Current status: {a.status}", current_status=a.status)


async def create_assignment(db: AsyncSession, principal: Principal, payload: AssignmentCreate) -> AssignmentRecord:
    item = await inventory.load_item(db, payload.inventory_item_id)
    ensure_location_access(principal, item.location_id, "You do not have permission to assign this asset")
    if payload.location_id and payload.location_id != item.location_id:
        raise ValidationError("Assignment base must match the asset's base")
    status = initial_status()
    if status == "active" and not payload.purpose:
        raise ValidationError("Purpose is required for an active assignment")

    # Raises before anything is written when on_hand is short.
    await inventory.withdraw(db, item, payload.quantity, action="assignment")

    a = AssignmentRecord(
        assignment_code=new_reference("ASN"),
        inventory_item_id=item.id,
        quantity=payload.quantity,
        assigned_to=payload.assigned_to,
        rank=payload.rank,
        unit=payload.unit,
        location_id=item.location_id,
        assigned_by_user_id=principal.id,
        assignment_date=naive_utc(payload.assignment_date) or utcnow(),
        expected_return_date=naive_utc(payload.expected_return_date),
        purpose=payload.purpose,
        status=status,
        notes=payload.notes,
    )
    db.add(a)
    await db.commit()
    logger.info(
        "Assignment %s (%s): %s of %s to %s, on_hand now %s",
        a.assignment_code, a.status, a.quantity, item.asset_code, a.assigned_to, item.on_hand,
    )
    return await load_assignment(db, a.id)


async def activate_assignment(db: AsyncSession, principal: Principal, assignment_id: UUID) -> AssignmentRecord:
    a = await load_assignment(db, assignment_id)
    _ensure_can_act(principal, a, "activate")
    if a.status != "pending":
        raise InvalidTransitionError(f"Assignment is not pending. Current status: {a.status}", current_status=a.status)
    if not a.purpose:
        raise ValidationError("Purpose is required to activate an assignment")

    a.status = "active"
    await db.commit()
    logger.info("Assignment %s activated", a.assignment_code)
    return await load_assignment(db, assignment_id)


async def return_assignment(db: AsyncSession, principal: Principal, assignment_id: UUID) -> AssignmentRecord:
    a = await load_assignment(db, assignment_id)
    _ensure_can_act(principal, a, "return")
    _ensure_active(a)

    item = await inventory.load_item(db, a.inventory_item_id)
    on_hand = await inventory.restock(db, item, a.quantity)
    a.status = "returned"
    a.actual_return_date = utcnow()
    await db.commit()
    logger.info("Assignment %s returned: %s back to %s, on_hand now %s", a.assignment_code, a.quantity, item.asset_code, on_hand)
    return await load_assignment(db, assignment_id)


async def expend_assignment(db: AsyncSession, principal: Principal, assignment_id: UUID) -> AssignmentRecord:
    a = await load_assignment(db, assignment_id)
    _ensure_can_act(principal, a, "expend")
    _ensure_active(a)

    a.status = "expended"
    a.actual_return_date = utcnow()
    await db.commit()
    logger.info("Assignment %s expended: %s consumed", a.assignment_code, a.quantity)
    return await load_assignment(db, assignment_id)


async def update_assignment(
    db: AsyncSession, principal: Principal, assignment_id: UUID, payload: AssignmentUpdate
) -> AssignmentRecord:
    a = await load_assignment(db, assignment_id)
    _ensure_can_act(principal, a, "update")

    data = payload.model_dump(exclude_unset=True)
    if "purpose" in data and not data["purpose"] and a.status == "active":
        raise ValidationError("Purpose is required while an assignment is active")
    if data.get("assigned_to") is not None:
        a.assigned_to = data["assigned_to"]
    for field in ("rank", "unit", "purpose", "notes"):
        if field in data:
            setattr(a, field, data[field])
    if "expected_return_date" in data:
        a.expected_return_date = naive_utc(data["expected_return_date"])

    await db.commit()
    return await load_assignment(db, assignment_id)


async def get_assignment(db: AsyncSession, principal: Principal, assignment_id: UUID) -> AssignmentRecord:
    a = await load_assignment(db, assignment_id)
    ensure_location_access(principal, a.location_id, "You do not have permission to access this assignment")
    return a


async def list_assignments(db: AsyncSession, principal: Principal, filters: AssignmentFilter) -> List[AssignmentRecord]:
    stmt = select(AssignmentRecord).options(*ASSIGNMENT_LOAD)
    if not principal.is_elevated:
        stmt = stmt.where(AssignmentRecord.location_id == ensure_home_location(principal))
    elif filters.location_id:
        stmt = stmt.where(AssignmentRecord.location_id == filters.location_id)
    if filters.status:
        stmt = stmt.where(AssignmentRecord.status == filters.status)
    if filters.asset_type_id:
        stmt = stmt.join(InventoryItem, AssignmentRecord.inventory_item_id == InventoryItem.id).where(
            InventoryItem.asset_type_id == filters.asset_type_id
        )
    for clause in date_range(AssignmentRecord.assignment_date, filters.start_date, filters.end_date):
        stmt = stmt.where(clause)

    res = await db.execute(stmt.order_by(AssignmentRecord.assignment_date.desc()))
    return list(res.scalars().all())
