import uuid

import pytest

from db.inventory.transfer import TransferRecord
from helpers import count, find_on_hand, on_hand
from schemas.expenditures import ExpenditureCreate
from schemas.transfers import TransferCreate, TransferFilter
from services import expenditures as expenditure_service
from services import inventory as inventory_service
from services import transfers as transfer_service
from services.exceptions import ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError


def _payload(item, to_location, quantity):
    return TransferCreate(inventory_item_id=item.id, to_location_id=to_location.id, quantity=quantity)


async def test_pending_transfer_moves_stock_only_on_approval(session, bases, rifle, principals, make_item):
    alpha, bravo = bases
    item = await make_item(alpha, 100)

    t = await transfer_service.create_transfer(session, principals["logistics_alpha"], _payload(item, bravo, 30))

    assert t.status == "pending"
    assert t.transfer_code.startswith("TRF-")
    assert t.from_location_id == alpha.id
    assert await on_hand(session, item.id) == 100
    assert await find_on_hand(session, rifle.id, bravo.id) is None

    t = await transfer_service.approve_transfer(session, principals["admin"], t.id)

    assert t.status == "completed"
    assert t.approved_by_user_id == principals["admin"].id
    assert t.transfer_date is not None
    assert await on_hand(session, item.id) == 70
    assert await find_on_hand(session, rifle.id, bravo.id) == 30


async def test_approval_adds_to_existing_destination_item(session, bases, rifle, principals, make_item):
    alpha, bravo = bases
    source = await make_item(alpha, 50)
    dest = await make_item(bravo, 5)

    t = await transfer_service.create_transfer(session, principals["logistics_alpha"], _payload(source, bravo, 20))
    await transfer_service.approve_transfer(session, principals["admin"], t.id)

    assert await on_hand(session, source.id) == 30
    assert await on_hand(session, dest.id) == 25
    # Conservation across the approval step.
    assert await on_hand(session, source.id) + await on_hand(session, dest.id) == 55


async def test_new_destination_item_copies_source_details(session, bases, rifle, principals, make_item):
    alpha, bravo = bases
    source = await make_item(alpha, 10)
    source.specifications = {"calibre": "5.56"}
    await session.commit()

    t = await transfer_service.create_transfer(session, principals["admin"], _payload(source, bravo, 4))

    assert t.status == "completed"
    dest = await inventory_service.find_item(session, rifle.id, bravo.id)
    assert dest.id != source.id
    assert dest.asset_code.startswith("AST-")
    assert dest.on_hand == 4
    assert dest.opening_balance == 4
    assert dest.specifications == {"calibre": "5.56"}


async def test_admin_created_transfer_completes_immediately(session, bases, rifle, principals, make_item):
    alpha, bravo = bases
    item = await make_item(alpha, 12)

    t = await transfer_service.create_transfer(session, principals["admin"], _payload(item, bravo, 12))

    assert t.status == "completed"
    assert t.approved_by is not None
    assert await on_hand(session, item.id) == 0
    assert await find_on_hand(session, rifle.id, bravo.id) == 12


async def test_create_with_quantity_above_on_hand_fails_without_mutation(session, bases, principals, make_item):
    alpha, bravo = bases
    item = await make_item(alpha, 10)

    with pytest.raises(ValidationError) as exc:
        await transfer_service.create_transfer(session, principals["logistics_alpha"], _payload(item, bravo, 11))

    assert "Available: 10" in exc.value.message
    assert await count(session, TransferRecord) == 0
    assert await on_hand(session, item.id) == 10


async def test_create_to_same_base_is_rejected(session, bases, principals, make_item):
    alpha, _ = bases
    item = await make_item(alpha, 10)

    with pytest.raises(ValidationError, match="same base"):
        await transfer_service.create_transfer(session, principals["logistics_alpha"], _payload(item, alpha, 1))
    assert await count(session, TransferRecord) == 0


async def test_create_from_another_base_is_forbidden(session, bases, principals, make_item):
    alpha, bravo = bases
    item = await make_item(bravo, 10)

    with pytest.raises(ForbiddenError):
        await transfer_service.create_transfer(session, principals["logistics_alpha"], _payload(item, alpha, 1))
    assert await on_hand(session, item.id) == 10


async def test_unknown_item_is_not_found(session, bases, principals):
    _, bravo = bases
    payload = TransferCreate(inventory_item_id=uuid.uuid4(), to_location_id=bravo.id, quantity=1)
    with pytest.raises(NotFoundError):
        await transfer_service.create_transfer(session, principals["admin"], payload)


async def test_approval_rechecks_availability(session, bases, principals, make_item):
    alpha, bravo = bases
    item = await make_item(alpha, 10)
    t = await transfer_service.create_transfer(session, principals["logistics_alpha"], _payload(item, bravo, 8))

    await expenditure_service.create_expenditure(
        session,
        principals["logistics_alpha"],
        ExpenditureCreate(inventory_item_id=item.id, quantity=5, reason="Training"),
    )
    assert await on_hand(session, item.id) == 5

    with pytest.raises(ValidationError):
        await transfer_service.approve_transfer(session, principals["admin"], t.id)

    t = await transfer_service.load_transfer(session, t.id)
    assert t.status == "pending"
    assert await on_hand(session, item.id) == 5


async def test_reject_and_cancel_leave_inventory_untouched(session, bases, principals, make_item):
    alpha, bravo = bases
    item = await make_item(alpha, 10)
    first = await transfer_service.create_transfer(session, principals["logistics_alpha"], _payload(item, bravo, 3))
    second = await transfer_service.create_transfer(session, principals["logistics_alpha"], _payload(item, bravo, 3))

    rejected = await transfer_service.reject_transfer(session, principals["admin"], first.id)
    cancelled = await transfer_service.cancel_transfer(session, principals["logistics_alpha"], second.id)

    assert rejected.status == "rejected"
    assert rejected.approved_by_user_id == principals["admin"].id
    assert cancelled.status == "cancelled"
    assert await on_hand(session, item.id) == 10


async def test_terminal_transfers_cannot_transition(session, bases, principals, make_item):
    alpha, bravo = bases
    item = await make_item(alpha, 10)
    t = await transfer_service.create_transfer(session, principals["logistics_alpha"], _payload(item, bravo, 3))
    await transfer_service.approve_transfer(session, principals["admin"], t.id)

    with pytest.raises(InvalidTransitionError):
        await transfer_service.approve_transfer(session, principals["admin"], t.id)
    with pytest.raises(InvalidTransitionError):
        await transfer_service.reject_transfer(session, principals["admin"], t.id)
    with pytest.raises(InvalidTransitionError, match="Only pending"):
        await transfer_service.cancel_transfer(session, principals["admin"], t.id)

    assert await on_hand(session, item.id) == 7


async def test_only_initiator_or_admin_may_cancel(session, bases, principals, make_item):
    alpha, bravo = bases
    item = await make_item(alpha, 10)
    t = await transfer_service.create_transfer(session, principals["logistics_alpha"], _payload(item, bravo, 3))

    with pytest.raises(ForbiddenError):
        await transfer_service.cancel_transfer(session, principals["commander_alpha"], t.id)
    with pytest.raises(ForbiddenError):
        await transfer_service.approve_transfer(session, principals["logistics_alpha"], t.id)

    t = await transfer_service.cancel_transfer(session, principals["admin"], t.id)
    assert t.status == "cancelled"


async def test_list_is_scoped_to_source_or_destination(session, bases, principals, make_item):
    alpha, bravo = bases
    item = await make_item(alpha, 10)
    await transfer_service.create_transfer(session, principals["logistics_alpha"], _payload(item, bravo, 1))

    seen_by_bravo = await transfer_service.list_transfers(session, principals["logistics_bravo"], TransferFilter())
    seen_by_admin = await transfer_service.list_transfers(session, principals["admin"], TransferFilter(status="pending"))
    completed = await transfer_service.list_transfers(session, principals["admin"], TransferFilter(status="completed"))

    assert len(seen_by_bravo) == 1
    assert len(seen_by_admin) == 1
    assert completed == []
