"""Furniture removals and transfers against a real database."""

import asyncio

import pytest

from src.application.dto.requests import (
    RecordMovementRequest,
    ReviewRemovalRequest,
    ReviewTransferRequest,
    SubmitRemovalRequest,
    SubmitTransferRequest,
)
from src.application.use_cases import (
    QueryStockUseCase,
    RecordMovementUseCase,
    ReviewRemovalUseCase,
    ReviewTransferUseCase,
    SubmitRemovalUseCase,
    SubmitTransferUseCase,
)
from src.core.entities import MovementType, RemovalDestination, RemovalStatus, TransferStatus
from src.core.exceptions import StateConflictError, ValidationError
from src.infrastructure.storage.sqlite import (
    SQLiteFurnitureRemovalStore,
    SQLiteFurnitureTransferStore,
    SQLiteInventoryStore,
)

WAREHOUSE = "warehouse-central"

pytestmark = pytest.mark.usefixtures("seeded_db")


async def _desks(unit_id: str, quantity: float) -> None:
    await RecordMovementUseCase().execute(
        RecordMovementRequest(
            type=MovementType.ENTRY,
            item_id="item-desk",
            unit_id=unit_id,
            user_id="u-storage",
            quantity=quantity,
        )
    )


async def _quantity(unit_id: str) -> float:
    return (await QueryStockUseCase().get_stock("item-desk", unit_id)).quantity


async def _removal(quantity: float = 1) -> str:
    created = await SubmitRemovalUseCase().execute(
        SubmitRemovalRequest(
            item_id="item-desk",
            unit_id="unit-1",
            requested_by_user_id="u-controller",
            quantity=quantity,
            reason="no longer used",
        )
    )
    return created.id


async def _review(removal_id: str, action: str, actor_id: str, **extra):
    return await ReviewRemovalUseCase().execute(
        removal_id, ReviewRemovalRequest(action=action, actor_id=actor_id, **extra)
    )


async def test_removal_for_storage_moves_desk_to_warehouse():
    await _desks("unit-1", 3)
    removal_id = await _removal(quantity=2)

    await _review(removal_id, "approve_storage", "u-designer")
    await _review(removal_id, "schedule_pickup", "u-storage", driver_user_id="u-driver")
    picked = await _review(removal_id, "pick_up", "u-driver")

    assert picked.removal.status == RemovalStatus.IN_TRANSIT
    assert await _quantity("unit-1") == 1

    received = await _review(removal_id, "receive", "u-storage")

    removal = received.removal
    assert removal.status == RemovalStatus.COMPLETED
    assert removal.destination == RemovalDestination.STORAGE
    assert removal.received_by_user_id == "u-storage"
    assert await _quantity(WAREHOUSE) == 2

    ledger = await SQLiteInventoryStore().list_movements(reference=removal_id)
    assert sorted((m.type, m.unit_id) for m in ledger) == [
        (MovementType.ENTRY, WAREHOUSE),
        (MovementType.OUT, "unit-1"),
    ]
    assert {m.id for m in ledger} == {removal.pickup_movement_id, removal.entry_movement_id}


async def test_disposed_desk_never_reaches_warehouse():
    await _desks("unit-1", 1)
    removal_id = await _removal()

    await _review(removal_id, "approve_disposal", "u-designer", reason="water damage")
    await _review(removal_id, "schedule_pickup", "u-storage", driver_user_id="u-driver")
    await _review(removal_id, "pick_up", "u-driver")
    received = await _review(removal_id, "receive", "u-storage")

    assert received.removal.status == RemovalStatus.COMPLETED
    assert received.removal.disposal_justification == "water damage"
    assert received.movements == []
    assert await _quantity("unit-1") == 0
    assert await SQLiteInventoryStore().get_stock("item-desk", WAREHOUSE) is None


async def test_removal_limited_to_unit_stock():
    await _desks("unit-1", 1)

    with pytest.raises(ValidationError):
        await _removal(quantity=2)
    assert await SQLiteFurnitureRemovalStore().list() == []


async def test_concurrent_pickups_take_stock_once():
    await _desks("unit-1", 2)
    removal_id = await _removal()
    await _review(removal_id, "approve_storage", "u-designer")
    await _review(removal_id, "schedule_pickup", "u-storage", driver_user_id="u-driver")

    results = await asyncio.gather(
        _review(removal_id, "pick_up", "u-driver"),
        _review(removal_id, "pick_up", "u-storage"),
        return_exceptions=True,
    )

    assert any(not isinstance(r, Exception) for r in results)
    assert all(
        isinstance(r, StateConflictError) for r in results if isinstance(r, Exception)
    )
    assert await _quantity("unit-1") == 1
    outs = await SQLiteInventoryStore().list_movements(
        reference=removal_id, movement_type=MovementType.OUT
    )
    assert len(outs) == 1


async def test_transfer_moves_stock_between_units():
    await _desks("unit-1", 2)
    created = await SubmitTransferUseCase().execute(
        SubmitTransferRequest(
            item_id="item-desk",
            from_unit_id="unit-1",
            to_unit_id="unit-2",
            requested_by_user_id="u-designer",
        )
    )
    reviewer = ReviewTransferUseCase()

    await reviewer.execute(
        created.id, ReviewTransferRequest(action="approve", actor_id="u-designer")
    )
    done = await reviewer.execute(
        created.id, ReviewTransferRequest(action="complete", actor_id="u-driver")
    )

    assert done.transfer.status == TransferStatus.COMPLETED
    assert await _quantity("unit-1") == 1
    assert await _quantity("unit-2") == 1

    listed = await SQLiteFurnitureTransferStore().list(unit_id="unit-2")
    assert [t.id for t in listed] == [created.id]

    with pytest.raises(StateConflictError):
        await reviewer.execute(
            created.id, ReviewTransferRequest(action="complete", actor_id="u-driver")
        )
    assert await _quantity("unit-2") == 1


async def test_rejected_transfer_moves_nothing():
    await _desks("unit-1", 1)
    created = await SubmitTransferUseCase().execute(
        SubmitTransferRequest(
            item_id="item-desk",
            from_unit_id="unit-1",
            to_unit_id="unit-2",
            requested_by_user_id="u-controller",
        )
    )

    rejected = await ReviewTransferUseCase().execute(
        created.id,
        ReviewTransferRequest(action="reject", actor_id="u-designer", reason="unit 2 is full"),
    )

    assert rejected.transfer.status == TransferStatus.REJECTED
    assert rejected.transfer.rejection_reason == "unit 2 is full"
    assert await SQLiteInventoryStore().list_movements(reference=created.id) == []
