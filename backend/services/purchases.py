"""Purchases: inbound stock.

The purchase record is committed first and the inventory increase second. If
the inventory step fails the purchase stays recorded and the failure is only
logged, so on_hand can lag behind the purchase history until corrected by hand.
"""
import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.permissions import Principal, ensure_home_location, ensure_location_access
from db.inventory.purchase import PurchaseRecord
from db.location import Location
from schemas.purchases import PurchaseCreate, PurchaseFilter, PurchaseUpdate
from services import inventory
from services.common import date_range, naive_utc, new_reference, to_decimal
from services.exceptions import ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PURCHASE_LOAD = (
    selectinload(PurchaseRecord.asset_type),
    selectinload(PurchaseRecord.location),
    selectinload(PurchaseRecord.purchased_by),
)


async def load_purchase(db: AsyncSession, purchase_id: UUID) -> PurchaseRecord:
    res = await db.execute(
        select(PurchaseRecord)
        .where(PurchaseRecord.id == purchase_id)
        .options(*PURCHASE_LOAD)
        .execution_options(populate_existing=True)
    )
    p = res.scalar_one_or_none()
    if not p:
        raise NotFoundError("Purchase", purchase_id)
    return p


async def _target_location(db: AsyncSession, principal: Principal, location_id) -> Location:
    if principal.is_elevated:
        if not location_id:
            raise ValidationError("Base is required for admin users")
        loc = await db.get(Location, location_id)
        if not loc:
            raise ValidationError("Base not found")
        return loc

    home_id = ensure_home_location(principal)
    if location_id and location_id != home_id:
        raise ForbiddenError("You do not have permission to purchase for this base")
    loc = await db.get(Location, home_id)
    if not loc:
        raise ValidationError("User base not found")
    return loc


async def create_purchase(db: AsyncSession, principal: Principal, payload: PurchaseCreate) -> PurchaseRecord:
    asset_type = await inventory.get_asset_type(db, payload.asset_type_id)
    loc = await _target_location(db, principal, payload.location_id)
    location_id = loc.id

    purchase = PurchaseRecord(
        purchase_code=new_reference("PUR"),
        asset_type_id=asset_type.id,
        location_id=location_id,
        quantity=payload.quantity,
        unit_cost=to_decimal(payload.unit_cost),
        purchase_date=naive_utc(payload.purchase_date),
        purchased_by_user_id=principal.id,
        supplier=payload.supplier,
        invoice_number=payload.invoice_number,
        notes=payload.notes,
    )
    purchase.recompute_total()
    db.add(purchase)
    await db.commit()
    purchase_id = purchase.id
    purchase_code = purchase.purchase_code
    logger.info("Recorded purchase %s: %s x %s at base %s", purchase_code, payload.quantity, asset_type.name, location_id)

    try:
        item, created = await inventory.receive(
            db,
            asset_type_id=asset_type.id,
            location_id=location_id,
            quantity=payload.quantity,
            purchase_date=naive_utc(payload.purchase_date),
            cost=to_decimal(payload.unit_cost),
        )
        await db.commit()
        logger.info(
            "Purchase %s %s asset %s (on_hand=%s)",
            purchase_code, "created" if created else "restocked", item.asset_code, item.on_hand,
        )
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Inventory update failed for purchase %s; the purchase record is kept", purchase_code)

    return await load_purchase(db, purchase_id)


async def get_purchase(db: AsyncSession, principal: Principal, purchase_id: UUID) -> PurchaseRecord:
    p = await load_purchase(db, purchase_id)
    ensure_location_access(principal, p.location_id, "You do not have permission to access this purchase")
    return p


async def list_purchases(db: AsyncSession, principal: Principal, filters: PurchaseFilter) -> List[PurchaseRecord]:
    stmt = select(PurchaseRecord).options(*PURCHASE_LOAD)
    if not principal.is_elevated:
        stmt = stmt.where(PurchaseRecord.location_id == ensure_home_location(principal))
    elif filters.location_id:
        stmt = stmt.where(PurchaseRecord.location_id == filters.location_id)
    if filters.asset_type_id:
        stmt = stmt.where(PurchaseRecord.asset_type_id == filters.asset_type_id)
    for clause in date_range(PurchaseRecord.purchase_date, filters.start_date, filters.end_date):
        stmt = stmt.where(clause)

    res = await db.execute(stmt.order_by(PurchaseRecord.purchase_date.desc()))
    return list(res.scalars().all())


async def update_purchase(
    db: AsyncSession, principal: Principal, purchase_id: UUID, payload: PurchaseUpdate
) -> PurchaseRecord:
    """Administrative correction. Recomputes total_cost; never touches on_hand."""
    p = await load_purchase(db, purchase_id)
    ensure_location_access(principal, p.location_id, "You do not have permission to update this purchase")

    data = payload.model_dump(exclude_unset=True)
    if data.get("quantity") is not None:
        p.quantity = data["quantity"]
    if data.get("unit_cost") is not None:
        p.unit_cost = to_decimal(data["unit_cost"])
    if data.get("purchase_date") is not None:
        p.purchase_date = naive_utc(data["purchase_date"])
    if data.get("supplier") is not None:
        p.supplier = data["supplier"]
    if "invoice_number" in data:
        p.invoice_number = data["invoice_number"]
    if "notes" in data:
        p.notes = data["notes"]
    p.recompute_total()

    await db.commit()
    return await load_purchase(db, purchase_id)


async def delete_purchase(db: AsyncSession, principal: Principal, purchase_id: UUID) -> None:
    p = await load_purchase(db, purchase_id)
    ensure_location_access(principal, p.location_id, "You do not have permission to delete this purchase")
    code = p.purchase_code
    await db.delete(p)
    await db.commit()
    logger.info("Deleted purchase %s (inventory unchanged)", code)
