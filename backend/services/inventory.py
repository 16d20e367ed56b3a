"""Inventory item store and the shared quantity mutations every ledger operation uses.

Decrements are conditional single-statement updates
(``on_hand = on_hand - q WHERE on_hand >= q``) so two requests racing for the
same stock cannot both pass the availability check and drive on_hand negative.
"""
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.permissions import Principal, ensure_home_location, ensure_location_access
from db.asset_type import AssetType
from db.inventory.assignment import AssignmentRecord
from db.inventory.expenditure import ExpenditureRecord
from db.inventory.item import InventoryItem
from db.inventory.transfer import TransferRecord
from db.location import Location
from schemas.inventory import InventoryItemCreate, InventoryItemFilter, InventoryItemUpdate
from services.exceptions import NotFoundError, ValidationError
from services.common import naive_utc, new_reference, to_decimal

logger = logging.getLogger(__name__)

ITEM_LOAD = (
    selectinload(InventoryItem.asset_type),
    selectinload(InventoryItem.location),
)


async def get_location(db: AsyncSession, location_id: UUID) -> Location:
    res = await db.execute(select(Location).where(Location.id == location_id))
    loc = res.scalar_one_or_none()
    if not loc:
        raise NotFoundError("Base", location_id)
    return loc


async def get_asset_type(db: AsyncSession, asset_type_id: UUID) -> AssetType:
    res = await db.execute(select(AssetType).where(AssetType.id == asset_type_id))
    at = res.scalar_one_or_none()
    if not at:
        raise NotFoundError("Asset type", asset_type_id)
    return at


async def load_item(db: AsyncSession, item_id: UUID) -> InventoryItem:
    res = await db.execute(
        select(InventoryItem)
        .where(InventoryItem.id == item_id)
        .options(*ITEM_LOAD)
        .execution_options(populate_existing=True)
    )
    item = res.scalar_one_or_none()
    if not item:
        raise NotFoundError("Asset", item_id)
    return item


async def find_item(db: AsyncSession, asset_type_id: UUID, location_id: UUID) -> Optional[InventoryItem]:
    res = await db.execute(
        select(InventoryItem)
        .where(
            InventoryItem.asset_type_id == asset_type_id,
            InventoryItem.location_id == location_id,
        )
        .order_by(InventoryItem.created_at.asc())
        .limit(1)
    )
    return res.scalars().first()


async def withdraw(db: AsyncSession, item: InventoryItem, quantity: int, *, action: str) -> int:
    """Take `quantity` out of the item's on_hand, or raise ValidationError without mutating."""
    await db.refresh(item, attribute_names=["on_hand"])
    available = int(item.on_hand or 0)
    if available < quantity:
        raise ValidationError(
            f"Insufficient quantity available for {action}. Available: {available}, Requested: {quantity}"
        )

    res = await db.execute(
        update(InventoryItem)
        .where(InventoryItem.id == item.id, InventoryItem.on_hand >= quantity)
        .values(on_hand=InventoryItem.on_hand - quantity)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        # Another request consumed the stock between the read and the update.
        raise ValidationError(f"Insufficient quantity available for {action}")

    await db.refresh(item, attribute_names=["on_hand"])
    return int(item.on_hand)


async def restock(db: AsyncSession, item: InventoryItem, quantity: int) -> int:
    await db.execute(
        update(InventoryItem)
        .where(InventoryItem.id == item.id)
        .values(on_hand=InventoryItem.on_hand + quantity)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(item, attribute_names=["on_hand"])
    return int(item.on_hand)


async def receive(
    db: AsyncSession,
    *,
    asset_type_id: UUID,
    location_id: UUID,
    quantity: int,
    template: Optional[InventoryItem] = None,
    purchase_date=None,
    cost=None,
) -> Tuple[InventoryItem, bool]:
    """Find-or-create the (asset type, location) item and add `quantity` to it.

    A new item starts with on_hand = opening_balance = quantity. When `template`
    is given (transfer destination) its purchase date, cost and specifications
    are copied.
    """
    item = await find_item(db, asset_type_id, location_id)
    if item:
        await restock(db, item, quantity)
        return item, False

    item = InventoryItem(
        asset_code=new_reference("AST"),
        asset_type_id=asset_type_id,
        location_id=location_id,
        lifecycle_status="available",
        on_hand=quantity,
        opening_balance=quantity,
        purchase_date=template.purchase_date if template else purchase_date,
        cost=template.cost if template else cost,
        specifications=template.specifications if template else None,
    )
    db.add(item)
    await db.flush()
    return item, True


async def create_item(db: AsyncSession, principal: Principal, payload: InventoryItemCreate) -> InventoryItem:
    await get_asset_type(db, payload.asset_type_id)

    if principal.is_elevated:
        if not payload.location_id:
            raise ValidationError("Base is required for admin users")
        location_id = payload.location_id
    else:
        location_id = ensure_home_location(principal)
        if payload.location_id:
            ensure_location_access(principal, payload.location_id, "You do not have permission to add assets to this base")
    await get_location(db, location_id)

    item = InventoryItem(
        asset_code=new_reference("AST"),
        asset_type_id=payload.asset_type_id,
        location_id=location_id,
        lifecycle_status=payload.lifecycle_status,
        on_hand=payload.on_hand,
        opening_balance=payload.opening_balance,
        purchase_date=naive_utc(payload.purchase_date),
        cost=to_decimal(payload.cost),
        specifications=payload.specifications,
        notes=payload.notes,
    )
    db.add(item)
    await db.commit()
    logger.info("Created asset %s at base %s with on_hand=%s", item.asset_code, location_id, item.on_hand)
    return await load_item(db, item.id)


async def get_item(db: AsyncSession, principal: Principal, item_id: UUID) -> InventoryItem:
    item = await load_item(db, item_id)
    ensure_location_access(principal, item.location_id, "You do not have permission to access this asset")
    return item


async def update_item(
    db: AsyncSession, principal: Principal, item_id: UUID, payload: InventoryItemUpdate
) -> InventoryItem:
    """Edit descriptive fields. on_hand and opening_balance are never touched here."""
    item = await load_item(db, item_id)
    ensure_location_access(principal, item.location_id, "You do not have permission to update this asset")

    data = payload.model_dump(exclude_unset=True)
    if data.get("lifecycle_status") is not None:
        item.lifecycle_status = data["lifecycle_status"]
    if "purchase_date" in data:
        item.purchase_date = naive_utc(data["purchase_date"])
    if "cost" in data:
        item.cost = to_decimal(data["cost"])
    for field in ("specifications", "notes"):
        if field in data:
            setattr(item, field, data[field])

    await db.commit()
    logger.info("Updated asset %s (lifecycle_status=%s)", item.asset_code, item.lifecycle_status)
    return await load_item(db, item_id)


async def delete_item(db: AsyncSession, principal: Principal, item_id: UUID) -> None:
    item = await load_item(db, item_id)
    ensure_location_access(principal, item.location_id, "You do not have permission to delete this asset")

    for model in (TransferRecord, AssignmentRecord, ExpenditureRecord):
        res = await db.execute(select(func.count()).select_from(model).where(model.inventory_item_id == item_id))
        if res.scalar_one():
            raise ValidationError("Asset is referenced by ledger records and cannot be deleted")

    code = item.asset_code
    await db.delete(item)
    await db.commit()
    logger.info("Deleted asset %s", code)


async def list_items(db: AsyncSession, principal: Principal, filters: InventoryItemFilter) -> List[InventoryItem]:
    stmt = select(InventoryItem).options(*ITEM_LOAD)
    if not principal.is_elevated:
        stmt = stmt.where(InventoryItem.location_id == ensure_home_location(principal))
    elif filters.location_id:
        stmt = stmt.where(InventoryItem.location_id == filters.location_id)
    if filters.asset_type_id:
        stmt = stmt.where(InventoryItem.asset_type_id == filters.asset_type_id)
    if filters.lifecycle_status:
        stmt = stmt.where(InventoryItem.lifecycle_status == filters.lifecycle_status)

    res = await db.execute(stmt.order_by(InventoryItem.created_at.desc()))
    return list(res.scalars().all())
