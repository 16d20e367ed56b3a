"""Transfers between bases.

    pending ──approve──> completed
       │  └──reject───> rejected
       └─────cancel───> cancelled

completed, rejected and cancelled are terminal. Availability at the source is
checked when the transfer is created and again when it is approved, since
on_hand may have dropped in between. Admin-created transfers skip the pending
step and move stock immediately.
"""
import logging
from typing import List
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.permissions import Principal, ensure_home_location, ensure_location_access
from db.inventory.item import InventoryItem
from db.inventory.transfer import TransferRecord
from db.location import Location
from schemas.transfers import TransferCreate, TransferFilter
from services import inventory
from services.common import date_range, new_reference, utcnow
from services.exceptions import ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

TRANSFER_LOAD = (
    selectinload(TransferRecord.inventory_item).selectinload(InventoryItem.asset_type),
    selectinload(TransferRecord.inventory_item).selectinload(InventoryItem.location),
    selectinload(TransferRecord.from_location),
    selectinload(TransferRecord.to_location),
    selectinload(TransferRecord.initiated_by),
    selectinload(TransferRecord.approved_by),
)


async def load_transfer(db: AsyncSession, transfer_id: UUID) -> TransferRecord:
    res = await db.execute(
        select(TransferRecord)
        .where(TransferRecord.id == transfer_id)
        .options(*TRANSFER_LOAD)
        .execution_options(populate_existing=True)
    )
    t = res.scalar_one_or_none()
    if not t:
        raise NotFoundError("Transfer", transfer_id)
    return t


def _can_view(principal: Principal, t: TransferRecord) -> bool:
    if principal.is_elevated:
        return True
    return principal.location_id is not None and principal.location_id in (t.from_location_id, t.to_location_id)


def _ensure_pending(t: TransferRecord, message: str = "Transfer is not in pending status"):
    if t.status != "pending":
        raise InvalidTransitionError(message, current_status=t.status)


async def _complete(db: AsyncSession, principal: Principal, t: TransferRecord, source: InventoryItem):
    """Move the quantity: decrement the source item, find-or-create the destination item."""
    await inventory.withdraw(db, source, t.quantity, action="transfer")
    dest, created = await inventory.receive(
        db,
        asset_type_id=source.asset_type_id,
        location_id=t.to_location_id,
        quantity=t.quantity,
        template=source,
    )
    t.status = "completed"
    t.approved_by_user_id = principal.id
    t.transfer_date = utcnow()
    logger.info(
        "Transfer %s completed: %s moved from %s (on_hand=%s) to %s asset %s (on_hand=%s)",
        t.transfer_code, t.quantity, source.asset_code, source.on_hand,
        "new" if created else "existing", dest.asset_code, dest.on_hand,
    )


async def create_transfer(db: AsyncSession, principal: Principal, payload: TransferCreate) -> TransferRecord:
    source = await inventory.load_item(db, payload.inventory_item_id)
    ensure_location_access(principal, source.location_id, "You do not have permission to transfer this asset")

    target = await db.get(Location, payload.to_location_id)
    if not target:
        raise NotFoundError("Target base", payload.to_location_id)
    if target.id == source.location_id:
        raise ValidationError("Cannot transfer to the same base")

    await db.refresh(source, attribute_names=["on_hand"])
    if int(source.on_hand or 0) < payload.quantity:
        raise ValidationError(
            f"Insufficient quantity available for transfer. Available: {int(source.on_hand or 0)}, "
            f"Requested: {payload.quantity}"
        )

    t = TransferRecord(
        transfer_code=new_reference("TRF"),
        inventory_item_id=source.id,
        quantity=payload.quantity,
        from_location_id=source.location_id,
        to_location_id=target.id,
        initiated_by_user_id=principal.id,
        status="pending",
        priority=payload.priority,
        notes=payload.notes,
    )
    db.add(t)
    await db.flush()

    if principal.is_elevated:
        await _complete(db, principal, t, source)
    else:
        logger.info("Transfer %s pending: %s of %s to base %s", t.transfer_code, t.quantity, source.asset_code, target.id)

    await db.commit()
    return await load_transfer(db, t.id)


async def approve_transfer(db: AsyncSession, principal: Principal, transfer_id: UUID) -> TransferRecord:
    t = await load_transfer(db, transfer_id)
    if not principal.is_elevated:
        raise ForbiddenError("You do not have permission to approve transfers")
    _ensure_pending(t)

    source = await inventory.load_item(db, t.inventory_item_id)
    await _complete(db, principal, t, source)
    await db.commit()
    return await load_transfer(db, transfer_id)


async def reject_transfer(db: AsyncSession, principal: Principal, transfer_id: UUID) -> TransferRecord:
    t = await load_transfer(db, transfer_id)
    if not principal.is_elevated:
        raise ForbiddenError("You do not have permission to reject transfers")
    _ensure_pending(t)

    t.status = "rejected"
    t.approved_by_user_id = principal.id
    t.transfer_date = utcnow()
    await db.commit()
    logger.info("Transfer %s rejected by %s", t.transfer_code, principal.id)
    return await load_transfer(db, transfer_id)


async def cancel_transfer(db: AsyncSession, principal: Principal, transfer_id: UUID) -> TransferRecord:
    t = await load_transfer(db, transfer_id)
    if not principal.is_elevated and t.initiated_by_user_id != principal.id:
        raise ForbiddenError("You do not have permission to cancel this transfer")
    _ensure_pending(t, "Only pending transfers can be cancelled")

    t.status = "cancelled"
    await db.commit()
    logger.info("Transfer %s cancelled by %s", t.transfer_code, principal.id)
    return await load_transfer(db, transfer_id)


async def get_transfer(db: AsyncSession, principal: Principal, transfer_id: UUID) -> TransferRecord:
    t = await load_transfer(db, transfer_id)
    if not _can_view(principal, t):
        raise ForbiddenError("You do not have permission to access this transfer")
    return t


async def list_transfers(db: AsyncSession, principal: Principal, filters: TransferFilter) -> List[TransferRecord]:
    stmt = select(TransferRecord).options(*TRANSFER_LOAD)

    if not principal.is_elevated:
        home_id = ensure_home_location(principal)
        stmt = stmt.where(or_(TransferRecord.from_location_id == home_id, TransferRecord.to_location_id == home_id))
    elif filters.from_location_id or filters.to_location_id:
        sides = []
        if filters.from_location_id:
            sides.append(TransferRecord.from_location_id == filters.from_location_id)
        if filters.to_location_id:
            sides.append(TransferRecord.to_location_id == filters.to_location_id)
        stmt = stmt.where(or_(*sides))
    elif filters.location_id:
        stmt = stmt.where(
            or_(
                TransferRecord.from_location_id == filters.location_id,
                TransferRecord.to_location_id == filters.location_id,
            )
        )

    if filters.status:
        stmt = stmt.where(TransferRecord.status == filters.status)
    if filters.asset_type_id:
        stmt = stmt.join(InventoryItem, TransferRecord.inventory_item_id == InventoryItem.id).where(
            InventoryItem.asset_type_id == filters.asset_type_id
        )
    for clause in date_range(TransferRecord.created_at, filters.start_date, filters.end_date):
        stmt = stmt.where(clause)

    res = await db.execute(stmt.order_by(TransferRecord.created_at.desc()))
    return list(res.scalars().all())
