"""Expenditures: stock consumed outside an assignment.

The quantity is deducted when the expenditure is recorded, not when it is
approved. approved is tri-state: None (pending), True, False (rejected). A
rejected expenditure keeps its deduction; only deleting the record restores
on_hand.
"""
import logging
import math
from typing import List, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.permissions import Principal, ensure_home_location, ensure_location_access
from db.inventory.expenditure import ExpenditureRecord
from db.inventory.item import InventoryItem
from schemas.expenditures import ExpenditureCreate, ExpenditureFilter, ExpenditureUpdate
from services import inventory
from services.common import date_range, naive_utc, utcnow
from services.exceptions import ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

EXPENDITURE_LOAD = (
    selectinload(ExpenditureRecord.inventory_item).selectinload(InventoryItem.asset_type),
    selectinload(ExpenditureRecord.inventory_item).selectinload(InventoryItem.location),
    selectinload(ExpenditureRecord.location),
    selectinload(ExpenditureRecord.expended_by),
    selectinload(ExpenditureRecord.approved_by),
)


async def load_expenditure(db: AsyncSession, expenditure_id: UUID) -> ExpenditureRecord:
    res = await db.execute(
        select(ExpenditureRecord)
        .where(ExpenditureRecord.id == expenditure_id)
        .options(*EXPENDITURE_LOAD)
        .execution_options(populate_existing=True)
    )
    e = res.scalar_one_or_none()
    if not e:
        raise NotFoundError("Expenditure", expenditure_id)
    return e


def _ensure_editable(principal: Principal, e: ExpenditureRecord, action: str):
    if e.approved is True and not principal.is_elevated:
        raise ForbiddenError(f"Cannot {action} approved expenditure")
    ensure_location_access(principal, e.location_id, f"You do not have permission to {action} this expenditure")


def _mark_decided(principal: Principal, e: ExpenditureRecord, approved: bool):
    e.approved = approved
    e.approved_by_user_id = principal.id
    e.approved_date = utcnow()


async def create_expenditure(db: AsyncSession, principal: Principal, payload: ExpenditureCreate) -> ExpenditureRecord:
    item = await inventory.load_item(db, payload.inventory_item_id)
    ensure_location_access(principal, item.location_id, "You do not have permission to expend this asset")
    if payload.location_id and payload.location_id != item.location_id:
        raise ValidationError("Expenditure base must match the asset's base")

    await inventory.withdraw(db, item, payload.quantity, action="expenditure")

    e = ExpenditureRecord(
        inventory_item_id=item.id,
        location_id=item.location_id,
        quantity=payload.quantity,
        reason=payload.reason,
        description=payload.description,
        expended_by_user_id=principal.id,
        expended_date=naive_utc(payload.expended_date) or utcnow(),
        approved=None,
        notes=payload.notes,
    )
    db.add(e)
    await db.commit()
    logger.info(
        "Expenditure %s: %s of %s (%s), on_hand now %s",
        e.id, e.quantity, item.asset_code, e.reason, item.on_hand,
    )
    return await load_expenditure(db, e.id)


async def approve_expenditure(db: AsyncSession, principal: Principal, expenditure_id: UUID) -> ExpenditureRecord:
    e = await load_expenditure(db, expenditure_id)
    if not principal.is_elevated:
        raise ForbiddenError("You do not have permission to approve expenditures")
    if e.approved is False:
        raise InvalidTransitionError("Expenditure has been rejected", current_status="rejected")

    _mark_decided(principal, e, True)
    await db.commit()
    logger.info("Expenditure %s approved by %s", expenditure_id, principal.id)
    return await load_expenditure(db, expenditure_id)


async def update_expenditure(
    db: AsyncSession, principal: Principal, expenditure_id: UUID, payload: ExpenditureUpdate
) -> ExpenditureRecord:
    e = await load_expenditure(db, expenditure_id)
    _ensure_editable(principal, e, "update")

    data = payload.model_dump(exclude_unset=True)
    if "approved" in data:
        if not principal.is_elevated:
            raise ForbiddenError("You do not have permission to approve expenditures")
        if data["approved"] is not None:
            if data["approved"] is True and e.approved is False:
                raise InvalidTransitionError("Expenditure has been rejected", current_status="rejected")
            _mark_decided(principal, e, data["approved"])

    if data.get("reason") is not None:
        e.reason = data["reason"]
    if data.get("expended_date") is not None:
        e.expended_date = naive_utc(data["expended_date"])
    for field in ("description", "notes"):
        if field in data:
            setattr(e, field, data[field])

    await db.commit()
    return await load_expenditure(db, expenditure_id)


async def delete_expenditure(db: AsyncSession, principal: Principal, expenditure_id: UUID) -> None:
    """Delete the record and put its quantity back on the item."""
    e = await load_expenditure(db, expenditure_id)
    _ensure_editable(principal, e, "delete")

    item = await inventory.load_item(db, e.inventory_item_id)
    quantity = int(e.quantity)
    on_hand = await inventory.restock(db, item, quantity)
    await db.delete(e)
    await db.commit()
    logger.info("Deleted expenditure %s: %s restored to %s, on_hand now %s", expenditure_id, quantity, item.asset_code, on_hand)


async def get_expenditure(db: AsyncSession, principal: Principal, expenditure_id: UUID) -> ExpenditureRecord:
    e = await load_expenditure(db, expenditure_id)
    ensure_location_access(principal, e.location_id, "You do not have permission to access this expenditure")
    return e


async def list_expenditures(
    db: AsyncSession, principal: Principal, filters: ExpenditureFilter
) -> Tuple[List[ExpenditureRecord], int]:
    """One page of expenditures, newest first, plus the total count across all pages."""
    stmt = select(ExpenditureRecord)
    if not principal.is_elevated:
        stmt = stmt.where(ExpenditureRecord.location_id == ensure_home_location(principal))
    elif filters.location_id:
        stmt = stmt.where(ExpenditureRecord.location_id == filters.location_id)
    if filters.inventory_item_id:
        stmt = stmt.where(ExpenditureRecord.inventory_item_id == filters.inventory_item_id)
    if filters.reason:
        stmt = stmt.where(ExpenditureRecord.reason == filters.reason)
    if filters.approved is not None:
        stmt = stmt.where(ExpenditureRecord.approved == filters.approved)
    for clause in date_range(ExpenditureRecord.expended_date, filters.start_date, filters.end_date):
        stmt = stmt.where(clause)

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    res = await db.execute(
        stmt.options(*EXPENDITURE_LOAD)
        .order_by(ExpenditureRecord.expended_date.desc())
        .offset((filters.page - 1) * filters.limit)
        .limit(filters.limit)
    )
    return list(res.scalars().all()), int(total)


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0
