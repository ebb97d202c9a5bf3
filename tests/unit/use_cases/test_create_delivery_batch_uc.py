"""Tests for CreateDeliveryBatchUseCase."""

from unittest.mock import AsyncMock

import pytest

from src.application.dto.requests import CreateBatchRequest
from src.application.use_cases.create_delivery_batch import CreateDeliveryBatchUseCase
from src.core.entities import BatchStatus, FurnitureRequestStatus, RequestStatus
from src.core.exceptions import (
    BatchMembershipError,
    CrossUnitBatchError,
    MissingDriverError,
    RequestNotFoundError,
    StateConflictError,
    ValidationError,
)


@pytest.fixture
def mock_request_store():
    store = AsyncMock()
    store.compare_and_set.side_effect = lambda rid, status, version, changes: (
        _advanced(store, rid, changes)
    )
    return store


def _advanced(store, request_id, changes):
    current = store.requests[request_id]
    return current.model_copy(update={**changes, "version": current.version + 1})


@pytest.fixture
def mock_furniture_store():
    store = AsyncMock()
    store.compare_and_set.side_effect = lambda rid, status, version, changes: (
        store.requests[rid].model_copy(update={**changes, "version": version + 1})
    )
    return store


@pytest.fixture
def mock_batch_store():
    store = AsyncMock()
    store.find_open_batch_id.return_value = None
    store.scan_code_exists.return_value = False
    store.create.side_effect = lambda batch: batch
    store.compare_and_set.side_effect = lambda bid, status, version, changes: (
        store.create.call_args[0][0].model_copy(update={**changes, "version": version + 1})
    )
    return store


@pytest.fixture
def use_case(mock_request_store, mock_furniture_store, mock_batch_store, mock_directory, warehouse):
    return CreateDeliveryBatchUseCase(
        request_store=mock_request_store,
        furniture_store=mock_furniture_store,
        batch_store=mock_batch_store,
        directory=mock_directory,
        warehouse=warehouse,
    )


def _stock_requests(store, *requests):
    store.requests = {r.id: r for r in requests}
    store.get_many.side_effect = lambda ids: [store.requests[i] for i in ids if i in store.requests]
    store.get.side_effect = lambda rid: store.requests.get(rid)


class TestCreateBatchValidation:
    async def test_empty_membership(self, use_case, mock_batch_store):
        with pytest.raises(ValidationError) as exc:
            await use_case.execute(CreateBatchRequest(driver_user_id="u-driver"))
        assert exc.value.details["field"] == "request_ids"
        mock_batch_store.create.assert_not_awaited()

    async def test_missing_driver(self, use_case, mock_request_store, mock_batch_store, make_request):
        _stock_requests(mock_request_store, make_request("r1"))

        with pytest.raises(MissingDriverError):
            await use_case.execute(CreateBatchRequest(request_ids=["r1"]))
        mock_batch_store.create.assert_not_awaited()

    async def test_driver_must_be_warehouse_user(self, use_case, mock_request_store, make_request):
        _stock_requests(mock_request_store, make_request("r1"))

        with pytest.raises(MissingDriverError):
            await use_case.execute(
                CreateBatchRequest(request_ids=["r1"], driver_user_id="u-controller")
            )

    async def test_unknown_driver(self, use_case, mock_request_store, make_request):
        _stock_requests(mock_request_store, make_request("r1"))

        with pytest.raises(MissingDriverError):
            await use_case.execute(CreateBatchRequest(request_ids=["r1"], driver_user_id="nobody"))

    async def test_unknown_request(self, use_case, mock_request_store):
        _stock_requests(mock_request_store)

        with pytest.raises(RequestNotFoundError):
            await use_case.execute(CreateBatchRequest(request_ids=["r1"], driver_user_id="u-driver"))

    async def test_unapproved_request(self, use_case, mock_request_store, mock_batch_store, make_request):
        _stock_requests(mock_request_store, make_request("r1", status=RequestStatus.PENDING))

        with pytest.raises(StateConflictError):
            await use_case.execute(CreateBatchRequest(request_ids=["r1"], driver_user_id="u-driver"))
        mock_batch_store.create.assert_not_awaited()

    async def test_request_in_another_open_batch(
        self, use_case, mock_request_store, mock_batch_store, make_request
    ):
        _stock_requests(mock_request_store, make_request("r1"))
        mock_batch_store.find_open_batch_id.return_value = "batch-other"

        with pytest.raises(BatchMembershipError) as exc:
            await use_case.execute(CreateBatchRequest(request_ids=["r1"], driver_user_id="u-driver"))
        assert exc.value.details["batch_id"] == "batch-other"
        mock_batch_store.create.assert_not_awaited()

    async def test_cross_unit_writes_nothing(
        self, use_case, mock_request_store, mock_batch_store, make_request
    ):
        _stock_requests(
            mock_request_store,
            make_request("r1", unit_id="unit-1"),
            make_request("r2", unit_id="unit-2"),
        )

        with pytest.raises(CrossUnitBatchError) as exc:
            await use_case.execute(
                CreateBatchRequest(request_ids=["r1", "r2"], driver_user_id="u-driver")
            )

        assert exc.value.details["offending"] == {"r2": "unit-2"}
        mock_batch_store.create.assert_not_awaited()
        mock_request_store.compare_and_set.assert_not_awaited()

    async def test_explicit_target_must_match(self, use_case, mock_request_store, make_request):
        _stock_requests(mock_request_store, make_request("r1", unit_id="unit-1"))

        with pytest.raises(CrossUnitBatchError):
            await use_case.execute(
                CreateBatchRequest(
                    request_ids=["r1"], target_unit_id="unit-2", driver_user_id="u-driver"
                )
            )


class TestCreateBatch:
    async def test_material_batch_moves_requests_to_processing(
        self, use_case, mock_request_store, mock_batch_store, make_request
    ):
        _stock_requests(mock_request_store, make_request("r1"), make_request("r2"))

        result = await use_case.execute(
            CreateBatchRequest(request_ids=["r1", "r2", "r1"], driver_user_id="u-driver")
        )

        assert result.batch.status == BatchStatus.PENDING
        assert result.batch.request_ids == ["r1", "r2"]
        assert result.batch.target_unit_id == "unit-1"
        assert result.batch.driver_user_id == "u-driver"
        assert result.batch.scan_code.startswith("DEL-")
        assert [r.status for r in result.requests] == [RequestStatus.PROCESSING] * 2
        mock_batch_store.create.assert_awaited_once()

    async def test_scan_code_retried_on_collision(
        self, use_case, mock_request_store, mock_batch_store, make_request
    ):
        _stock_requests(mock_request_store, make_request("r1"))
        mock_batch_store.scan_code_exists.side_effect = [True, False]

        await use_case.execute(CreateBatchRequest(request_ids=["r1"], driver_user_id="u-driver"))

        assert mock_batch_store.scan_code_exists.await_count == 2

    async def test_furniture_only_batch_dispatches(
        self, use_case, mock_furniture_store, mock_batch_store, make_furniture
    ):
        _stock_requests(mock_furniture_store, make_furniture("f1"))

        result = await use_case.execute(
            CreateBatchRequest(furniture_request_ids=["f1"], driver_user_id="u-driver")
        )

        assert result.batch.status == BatchStatus.IN_TRANSIT
        assert result.batch.dispatched_at is not None
        furniture = result.furniture_requests[0]
        assert furniture.status == FurnitureRequestStatus.IN_TRANSIT
        assert furniture.assigned_driver_id == "u-driver"

    async def test_concurrent_change_rolls_back(
        self, use_case, mock_request_store, mock_batch_store, make_request
    ):
        r1, r2 = make_request("r1"), make_request("r2")
        _stock_requests(mock_request_store, r1, r2)
        moved_r1 = r1.model_copy(update={"status": RequestStatus.PROCESSING, "version": 2})
        rejected_r2 = r2.model_copy(update={"status": RequestStatus.REJECTED, "version": 2})
        mock_request_store.compare_and_set.side_effect = [moved_r1, None, moved_r1]
        mock_request_store.get.side_effect = lambda rid: rejected_r2

        with pytest.raises(StateConflictError) as exc:
            await use_case.execute(
                CreateBatchRequest(request_ids=["r1", "r2"], driver_user_id="u-driver")
            )
        assert exc.value.details["actual"] == "rejected"

        # r1 put back to approved from the version it was moved to
        restore = mock_request_store.compare_and_set.call_args_list[2]
        assert restore.args[:3] == ("r1", RequestStatus.PROCESSING, 2)
        assert restore.args[3] == {"status": RequestStatus.APPROVED}

        # batch cancelled
        cancel = mock_batch_store.compare_and_set.call_args
        assert cancel.args[1] == BatchStatus.PENDING
        assert cancel.args[3]["status"] == BatchStatus.CANCELLED
