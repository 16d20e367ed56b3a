"""
Shared fixtures: an in-memory SQLite ledger with two bases, one asset type and
one user per role.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import db  # noqa: E402,F401
from core.permissions import Principal  # noqa: E402
from db.asset_type import AssetType  # noqa: E402
from db.database import Base  # noqa: E402
from db.inventory.item import InventoryItem  # noqa: E402
from db.location import Location  # noqa: E402
from db.users import User  # noqa: E402
from services.common import new_reference  # noqa: E402


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
async def bases(session):
    alpha = Location(name="Base Alpha", code="ALPHA", location="North", is_active=True)
    bravo = Location(name="Base Bravo", code="BRAVO", location="South", is_active=True)
    session.add_all([alpha, bravo])
    await session.commit()
    return alpha, bravo


@pytest.fixture
async def rifle(session):
    at = AssetType(name="Rifle", category="weapon", unit="pcs", is_consumable=False, is_active=True)
    session.add(at)
    await session.commit()
    return at


async def _user(session, username: str, role: str, location_id=None) -> User:
    user = User(
        email=f"{username}@example.com",
        username=username,
        hashed_password="not-a-real-hash",
        role=role,
        location_id=location_id,
        is_active=True,
        is_superuser=role == "admin",
        is_verified=True,
    )
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
async def users(session, bases):
    alpha, bravo = bases
    return {
        "admin": await _user(session, "admin", "admin"),
        "logistics_alpha": await _user(session, "log_alpha", "logistics", alpha.id),
        "logistics_bravo": await _user(session, "log_bravo", "logistics", bravo.id),
        "commander_alpha": await _user(session, "cmd_alpha", "commander", alpha.id),
        "commander_bravo": await _user(session, "cmd_bravo", "commander", bravo.id),
        "leader_alpha": await _user(session, "lead_alpha", "unit_leader", alpha.id),
    }


@pytest.fixture
def principals(users):
    return {key: Principal.from_user(u) for key, u in users.items()}


@pytest.fixture
def make_item(session, rifle):
    async def _make(location: Location, on_hand: int, asset_type: AssetType = None) -> InventoryItem:
        item = InventoryItem(
            asset_code=new_reference("AST"),
            asset_type_id=(asset_type or rifle).id,
            location_id=location.id,
            lifecycle_status="available",
            on_hand=on_hand,
            opening_balance=on_hand,
        )
        session.add(item)
        await session.commit()
        return item

    return _make
