"""Tests for material request submission and review."""

from unittest.mock import AsyncMock

import pytest

from src.application.dto.requests import ReviewRequestRequest, SubmitRequestRequest
from src.application.use_cases.manage_requests import ReviewRequestUseCase, SubmitRequestUseCase
from src.core.entities import Item, RequestStatus, UnitStock
from src.core.exceptions import (
    InsufficientStockWarning,
    ItemNotFoundError,
    PermissionDeniedError,
    StateConflictError,
    ValidationError,
)


@pytest.fixture
def mock_request_store():
    store = AsyncMock()
    store.create.side_effect = lambda request: request
    return store


@pytest.fixture
def mock_projector():
    return AsyncMock()


@pytest.fixture
def review_uc(mock_request_store, mock_directory, mock_projector, warehouse):
    return ReviewRequestUseCase(
        request_store=mock_request_store,
        directory=mock_directory,
        projector=mock_projector,
        warehouse=warehouse,
    )


class TestSubmitRequest:
    @pytest.fixture
    def submit_uc(self, mock_request_store, mock_directory):
        mock_directory.get_item_by_id.side_effect = lambda item_id: {
            "item-paper": Item(id="item-paper", name="Paper"),
            "item-desk": Item(id="item-desk", name="Desk", is_furniture=True),
        }.get(item_id)
        return SubmitRequestUseCase(request_store=mock_request_store, directory=mock_directory)

    async def test_member_submits_for_own_unit(self, submit_uc):
        created = await submit_uc.execute(
            SubmitRequestRequest(
                item_id="item-paper",
                requesting_unit_id="unit-1",
                requested_by_user_id="u-requester",
                quantity=5,
            )
        )
        assert created.status == RequestStatus.PENDING
        assert created.requesting_unit_id == "unit-1"

    async def test_member_of_other_unit_denied(self, submit_uc):
        with pytest.raises(PermissionDeniedError):
            await submit_uc.execute(
                SubmitRequestRequest(
                    item_id="item-paper",
                    requesting_unit_id="unit-2",
                    requested_by_user_id="u-requester",
                    quantity=5,
                )
            )

    async def test_furniture_item_rejected(self, submit_uc):
        with pytest.raises(ValidationError):
            await submit_uc.execute(
                SubmitRequestRequest(
                    item_id="item-desk",
                    requesting_unit_id="unit-1",
                    requested_by_user_id="u-requester",
                    quantity=1,
                )
            )

    async def test_unknown_item(self, submit_uc):
        with pytest.raises(ItemNotFoundError):
            await submit_uc.execute(
                SubmitRequestRequest(
                    item_id="item-ghost",
                    requesting_unit_id="unit-1",
                    requested_by_user_id="u-requester",
                    quantity=1,
                )
            )


class TestReviewRequest:
    async def test_approve_with_enough_stock(
        self, review_uc, mock_request_store, mock_projector, make_request
    ):
        pending = make_request("r1", status=RequestStatus.PENDING, quantity=5)
        mock_request_store.get.return_value = pending
        mock_request_store.compare_and_set.return_value = pending.model_copy(
            update={"status": RequestStatus.APPROVED, "version": 2}
        )
        mock_projector.read.return_value = UnitStock(
            item_id="item-paper", unit_id="warehouse-central", quantity=20
        )

        result = await review_uc.execute(
            "r1", ReviewRequestRequest(action="approve", actor_id="u-storage")
        )

        assert result.request.status == RequestStatus.APPROVED
        assert result.warnings == []
        args = mock_request_store.compare_and_set.call_args.args
        assert args[:3] == ("r1", RequestStatus.PENDING, 1)
        assert args[3]["approved_by_user_id"] == "u-storage"
        mock_projector.read.assert_awaited_once_with("item-paper", "warehouse-central")

    async def test_approve_with_insufficient_stock_warns(
        self, review_uc, mock_request_store, mock_projector, make_request
    ):
        pending = make_request("r1", status=RequestStatus.PENDING, quantity=5)
        mock_request_store.get.return_value = pending
        mock_request_store.compare_and_set.return_value = pending.model_copy(
            update={"status": RequestStatus.APPROVED, "version": 2}
        )
        mock_projector.read.return_value = UnitStock(
            item_id="item-paper", unit_id="warehouse-central", quantity=2
        )

        result = await review_uc.execute(
            "r1", ReviewRequestRequest(action="approve", actor_id="u-storage")
        )

        assert result.request.status == RequestStatus.APPROVED
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert isinstance(warning, InsufficientStockWarning)
        assert (warning.available, warning.requested) == (2, 5)

        response = review_uc.to_response(result)
        assert response.warnings[0].code == "INSUFFICIENT_STOCK"

    async def test_approve_without_any_stock_row(
        self, review_uc, mock_request_store, mock_projector, make_request
    ):
        pending = make_request("r1", status=RequestStatus.PENDING, quantity=5)
        mock_request_store.get.return_value = pending
        mock_request_store.compare_and_set.return_value = pending.model_copy(
            update={"status": RequestStatus.APPROVED}
        )
        mock_projector.read.return_value = None

        result = await review_uc.execute(
            "r1", ReviewRequestRequest(action="approve", actor_id="u-storage")
        )

        assert result.warnings[0].available == 0

    async def test_reject_records_reason(self, review_uc, mock_request_store, mock_projector, make_request):
        pending = make_request("r1", status=RequestStatus.PENDING)
        mock_request_store.get.return_value = pending
        mock_request_store.compare_and_set.return_value = pending.model_copy(
            update={"status": RequestStatus.REJECTED, "rejected_reason": "duplicate"}
        )

        result = await review_uc.execute(
            "r1",
            ReviewRequestRequest(action="reject", actor_id="u-controller", reason=" duplicate "),
        )

        assert result.request.status == RequestStatus.REJECTED
        changes = mock_request_store.compare_and_set.call_args.args[3]
        assert changes["rejected_reason"] == "duplicate"
        mock_projector.read.assert_not_awaited()

    async def test_lost_race_reports_latest_status(self, review_uc, mock_request_store, make_request):
        pending = make_request("r1", status=RequestStatus.PENDING)
        rejected = pending.model_copy(update={"status": RequestStatus.REJECTED, "version": 2})
        mock_request_store.get.side_effect = [pending, rejected]
        mock_request_store.compare_and_set.return_value = None

        with pytest.raises(StateConflictError) as exc:
            await review_uc.execute(
                "r1", ReviewRequestRequest(action="approve", actor_id="u-storage")
            )
        assert exc.value.details["actual"] == "rejected"

    async def test_requester_cannot_review(self, review_uc, mock_request_store, make_request):
        mock_request_store.get.return_value = make_request("r1", status=RequestStatus.PENDING)

        with pytest.raises(PermissionDeniedError):
            await review_uc.execute(
                "r1", ReviewRequestRequest(action="approve", actor_id="u-requester")
            )
        mock_request_store.compare_and_set.assert_not_awaited()

    async def test_controller_cannot_approve(self, review_uc, mock_request_store, make_request):
        mock_request_store.get.return_value = make_request("r1", status=RequestStatus.PENDING)

        with pytest.raises(PermissionDeniedError):
            await review_uc.execute(
                "r1", ReviewRequestRequest(action="approve", actor_id="u-controller")
            )
        mock_request_store.compare_and_set.assert_not_awaited()
