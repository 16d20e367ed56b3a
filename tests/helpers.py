from sqlalchemy import func, select

from db.inventory.item import InventoryItem


async def on_hand(session, item_id) -> int:
    res = await session.execute(select(InventoryItem.on_hand).where(InventoryItem.id == item_id))
    return int(res.scalar_one())


async def count(session, model) -> int:
    res = await session.execute(select(func.count()).select_from(model))
    return int(res.scalar_one())


async def find_on_hand(session, asset_type_id, location_id):
    res = await session.execute(
        select(InventoryItem.on_hand).where(
            InventoryItem.asset_type_id == asset_type_id,
            InventoryItem.location_id == location_id,
        )
    )
    value = res.scalar_one_or_none()
    return None if value is None else int(value)
