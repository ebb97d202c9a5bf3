"""Tests for furniture removal and transfer use cases."""

from unittest.mock import AsyncMock

import pytest

from src.application.dto.requests import (
    ReviewRemovalRequest,
    ReviewTransferRequest,
    SubmitRemovalRequest,
    SubmitTransferRequest,
)
from src.application.use_cases.manage_furniture_moves import (
    ReviewRemovalUseCase,
    ReviewTransferUseCase,
    SubmitRemovalUseCase,
    SubmitTransferUseCase,
)
from src.core.entities import (
    FurnitureRemoval,
    FurnitureTransfer,
    Item,
    MovementType,
    RemovalDestination,
    RemovalStatus,
    TransferStatus,
    UnitStock,
)
from src.core.exceptions import (
    PermissionDeniedError,
    StateConflictError,
    ValidationError,
)


@pytest.fixture
def mock_inventory_store():
    store = AsyncMock()
    counter = {"id": 0}

    async def append(movement):
        counter["id"] += 1
        return movement.model_copy(update={"id": counter["id"]}), True

    store.append_movement.side_effect = append
    return store


@pytest.fixture
def mock_projector():
    projector = AsyncMock()
    projector.project.side_effect = lambda item_id, unit_id: UnitStock(
        item_id=item_id, unit_id=unit_id, quantity=0
    )
    projector.read.side_effect = lambda item_id, unit_id: UnitStock(
        item_id=item_id, unit_id=unit_id, quantity=2
    )
    return projector


@pytest.fixture
def furniture_directory(mock_directory):
    mock_directory.get_item_by_id.side_effect = lambda item_id: {
        "item-desk": Item(id="item-desk", name="Desk", is_furniture=True),
        "item-paper": Item(id="item-paper", name="Paper"),
    }.get(item_id)
    return mock_directory


def _applied(entity):
    """CAS double that applies the changes to ``entity``."""

    async def compare_and_set(entity_id, status, version, changes):
        return entity.model_copy(update={**changes, "version": version + 1})

    return compare_and_set


def _removal(status: RemovalStatus, **overrides) -> FurnitureRemoval:
    fields = dict(
        id="frm-1",
        item_id="item-desk",
        unit_id="unit-1",
        requested_by_user_id="u-requester",
        quantity=1,
        reason="broken leg",
        status=status,
        version=3,
    )
    fields.update(overrides)
    return FurnitureRemoval(**fields)


def _transfer(status: TransferStatus) -> FurnitureTransfer:
    return FurnitureTransfer(
        id="ftr-1",
        item_id="item-desk",
        from_unit_id="unit-1",
        to_unit_id="unit-2",
        requested_by_user_id="u-designer",
        quantity=2,
        status=status,
        version=1,
    )


class TestSubmitRemoval:
    @pytest.fixture
    def use_case(self, mock_inventory_store, mock_projector, furniture_directory):
        store = AsyncMock()
        store.create.side_effect = lambda removal: removal
        return SubmitRemovalUseCase(
            inventory_store=mock_inventory_store,
            projector=mock_projector,
            directory=furniture_directory,
            removal_store=store,
        )

    def _request(self, **overrides) -> SubmitRemovalRequest:
        fields = dict(
            item_id="item-desk",
            unit_id="unit-1",
            requested_by_user_id="u-requester",
            quantity=1,
            reason="broken leg",
        )
        fields.update(overrides)
        return SubmitRemovalRequest(**fields)

    async def test_submit_pending(self, use_case):
        removal = await use_case.execute(self._request())

        assert removal.status == RemovalStatus.PENDING
        assert removal.destination is None

    async def test_quantity_above_unit_stock(self, use_case):
        with pytest.raises(ValidationError) as exc:
            await use_case.execute(self._request(quantity=3))
        assert exc.value.details["field"] == "quantity"

    async def test_blank_reason(self, use_case):
        with pytest.raises(ValidationError):
            await use_case.execute(self._request(reason="   "))

    async def test_material_items_not_removable(self, use_case):
        with pytest.raises(ValidationError):
            await use_case.execute(self._request(item_id="item-paper"))

    async def test_other_unit_member_denied(self, use_case):
        with pytest.raises(PermissionDeniedError):
            await use_case.execute(self._request(unit_id="unit-2"))


class TestReviewRemoval:
    @pytest.fixture
    def removal_store(self):
        return AsyncMock()

    @pytest.fixture
    def use_case(
        self, mock_inventory_store, mock_projector, furniture_directory, removal_store, warehouse
    ):
        return ReviewRemovalUseCase(
            inventory_store=mock_inventory_store,
            projector=mock_projector,
            directory=furniture_directory,
            removal_store=removal_store,
            warehouse=warehouse,
        )

    async def test_disposal_keeps_justification(self, use_case, removal_store):
        current = _removal(RemovalStatus.PENDING)
        removal_store.get.return_value = current
        removal_store.compare_and_set.side_effect = _applied(current)

        result = await use_case.execute(
            "frm-1",
            ReviewRemovalRequest(
                action="approve_disposal", actor_id="u-designer", reason="beyond repair"
            ),
        )

        assert result.removal.status == RemovalStatus.APPROVED_DISPOSAL
        assert result.removal.destination == RemovalDestination.DISPOSAL
        assert result.removal.disposal_justification == "beyond repair"
        assert result.movements == []

    async def test_pickup_takes_stock_out_of_unit(
        self, use_case, removal_store, mock_inventory_store
    ):
        current = _removal(RemovalStatus.AWAITING_PICKUP, assigned_driver_id="u-driver")
        removal_store.get.return_value = current
        removal_store.compare_and_set.side_effect = _applied(current)

        result = await use_case.execute(
            "frm-1", ReviewRemovalRequest(action="pick_up", actor_id="u-driver")
        )

        movement = mock_inventory_store.append_movement.call_args.args[0]
        assert movement.type == MovementType.OUT
        assert movement.unit_id == "unit-1"
        assert movement.idempotency_key == "removal-pick_up:frm-1"
        changes = removal_store.compare_and_set.call_args.args[3]
        assert changes["pickup_movement_id"] == result.movements[0].id
        assert result.removal.status == RemovalStatus.IN_TRANSIT

    async def test_other_driver_cannot_pick_up(
        self, use_case, removal_store, mock_inventory_store, directory_users
    ):
        directory_users["u-driver-2"] = directory_users["u-driver"].model_copy(
            update={"id": "u-driver-2"}
        )
        removal_store.get.return_value = _removal(
            RemovalStatus.AWAITING_PICKUP, assigned_driver_id="u-driver"
        )

        with pytest.raises(PermissionDeniedError):
            await use_case.execute(
                "frm-1", ReviewRemovalRequest(action="pick_up", actor_id="u-driver-2")
            )
        mock_inventory_store.append_movement.assert_not_awaited()

    async def test_storage_receipt_enters_warehouse(
        self, use_case, removal_store, mock_inventory_store
    ):
        current = _removal(RemovalStatus.IN_TRANSIT, destination=RemovalDestination.STORAGE)
        removal_store.get.return_value = current
        removal_store.compare_and_set.side_effect = _applied(current)

        result = await use_case.execute(
            "frm-1", ReviewRemovalRequest(action="receive", actor_id="u-storage")
        )

        movement = mock_inventory_store.append_movement.call_args.args[0]
        assert movement.type == MovementType.ENTRY
        assert movement.unit_id == "warehouse-central"
        assert result.removal.entry_movement_id == result.movements[0].id
        assert result.removal.status == RemovalStatus.COMPLETED

    async def test_disposal_receipt_writes_nothing(
        self, use_case, removal_store, mock_inventory_store
    ):
        current = _removal(RemovalStatus.IN_TRANSIT, destination=RemovalDestination.DISPOSAL)
        removal_store.get.return_value = current
        removal_store.compare_and_set.side_effect = _applied(current)

        result = await use_case.execute(
            "frm-1", ReviewRemovalRequest(action="receive", actor_id="u-storage")
        )

        mock_inventory_store.append_movement.assert_not_awaited()
        assert result.removal.status == RemovalStatus.COMPLETED

    async def test_lost_race_reverses_pickup(
        self, use_case, removal_store, mock_inventory_store
    ):
        current = _removal(RemovalStatus.AWAITING_PICKUP)
        removal_store.get.side_effect = [
            current,
            _removal(RemovalStatus.REJECTED, version=4),
        ]
        removal_store.compare_and_set.return_value = None

        with pytest.raises(StateConflictError):
            await use_case.execute(
                "frm-1", ReviewRemovalRequest(action="pick_up", actor_id="u-storage")
            )

        taken, reversed_ = [c.args[0] for c in mock_inventory_store.append_movement.call_args_list]
        assert taken.type == MovementType.OUT
        assert reversed_.type == MovementType.ENTRY
        assert reversed_.idempotency_key == "void:removal-pick_up:frm-1"

    async def test_concurrent_pickup_is_a_replay(
        self, use_case, removal_store, mock_inventory_store
    ):
        current = _removal(RemovalStatus.AWAITING_PICKUP)
        removal_store.get.side_effect = [
            current,
            _removal(RemovalStatus.IN_TRANSIT, pickup_movement_id=1, version=4),
        ]
        removal_store.compare_and_set.return_value = None

        result = await use_case.execute(
            "frm-1", ReviewRemovalRequest(action="pick_up", actor_id="u-storage")
        )

        assert result.removal.status == RemovalStatus.IN_TRANSIT
        assert mock_inventory_store.append_movement.await_count == 1


class TestTransfers:
    async def test_submit_checks_source_stock(
        self, mock_inventory_store, mock_projector, furniture_directory
    ):
        store = AsyncMock()
        use_case = SubmitTransferUseCase(
            inventory_store=mock_inventory_store,
            projector=mock_projector,
            directory=furniture_directory,
            transfer_store=store,
        )

        with pytest.raises(ValidationError):
            await use_case.execute(
                SubmitTransferRequest(
                    item_id="item-desk",
                    from_unit_id="unit-1",
                    to_unit_id="unit-2",
                    requested_by_user_id="u-designer",
                    quantity=5,
                )
            )
        store.create.assert_not_awaited()

    def test_same_unit_rejected(self):
        with pytest.raises(ValueError):
            SubmitTransferRequest(
                item_id="item-desk",
                from_unit_id="unit-1",
                to_unit_id="unit-1",
                requested_by_user_id="u-designer",
            )

    async def test_complete_moves_stock_between_units(
        self, mock_inventory_store, mock_projector, furniture_directory
    ):
        current = _transfer(TransferStatus.APPROVED)
        store = AsyncMock()
        store.get.return_value = current
        store.compare_and_set.side_effect = _applied(current)
        use_case = ReviewTransferUseCase(
            inventory_store=mock_inventory_store,
            projector=mock_projector,
            directory=furniture_directory,
            transfer_store=store,
        )

        result = await use_case.execute(
            "ftr-1", ReviewTransferRequest(action="complete", actor_id="u-driver")
        )

        out, entry = result.movements
        assert (out.type, out.unit_id, out.quantity) == (MovementType.OUT, "unit-1", 2)
        assert (entry.type, entry.unit_id, entry.quantity) == (MovementType.ENTRY, "unit-2", 2)
        assert out.idempotency_key == "transfer-out:ftr-1"
        assert entry.idempotency_key == "transfer-in:ftr-1"
        assert result.transfer.out_movement_id == out.id
        assert result.transfer.entry_movement_id == entry.id
        assert result.transfer.completed_by_user_id == "u-driver"
