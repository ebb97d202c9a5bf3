"""Tests for request, batch, loan and directory entities."""

from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.core.entities import (
    BatchStatus,
    ConfirmationType,
    DeliveryBatch,
    FurnitureRequest,
    FurnitureRequestStatus,
    Loan,
    LoanStatus,
    Request,
    RequestKind,
    RequestStatus,
    User,
    UserRole,
    WarehouseType,
)


class TestRequest:
    def test_defaults(self):
        r = Request(item_id="x", requesting_unit_id="u1", requested_by_user_id="u", quantity=5)
        assert r.status == RequestStatus.PENDING
        assert r.version == 0
        assert r.id.startswith("req-")
        assert r.kind == RequestKind.MATERIAL
        assert r.destination_unit_id == "u1"

    def test_quantity_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            Request(item_id="x", requesting_unit_id="u1", requested_by_user_id="u", quantity=0)

    def test_furniture_defaults(self):
        f = FurnitureRequest(
            item_id="desk", requesting_unit_id="u1", requested_by_user_id="u", quantity=1
        )
        assert f.status == FurnitureRequestStatus.PENDING_DESIGNER
        assert f.kind == RequestKind.FURNITURE
        assert f.id.startswith("frq-")


class TestDeliveryBatch:
    def test_item_count_counts_both_kinds(self):
        batch = DeliveryBatch(
            request_ids=["a", "b"],
            furniture_request_ids=["c"],
            target_unit_id="u1",
            driver_user_id="d",
            scan_code="DEL-ABCDEFGH",
        )
        assert batch.item_count == 3
        assert batch.status == BatchStatus.PENDING

    @pytest.mark.parametrize(
        "status,is_open",
        [
            (BatchStatus.PENDING, True),
            (BatchStatus.IN_TRANSIT, True),
            (BatchStatus.DELIVERY_CONFIRMED, True),
            (BatchStatus.PENDING_CONFIRMATION, True),
            (BatchStatus.COMPLETED, False),
            (BatchStatus.CANCELLED, False),
        ],
    )
    def test_open_statuses(self, status, is_open):
        assert status.is_open is is_open

    def test_receipt_equivalent_confirmations(self):
        assert ConfirmationType.RECEIPT.is_receipt_equivalent
        assert ConfirmationType.REQUESTER.is_receipt_equivalent
        assert not ConfirmationType.DELIVERY.is_receipt_equivalent


class TestLoan:
    def test_active_past_due_reads_overdue(self):
        loan = Loan(
            item_id="x", unit_id="u1", responsible_user_id="u",
            expected_return_date=date(2024, 1, 10),
        )
        assert loan.effective_status(date(2024, 1, 10)) == LoanStatus.ACTIVE
        assert loan.effective_status(date(2024, 1, 11)) == LoanStatus.OVERDUE

    def test_closed_loans_keep_their_status(self):
        loan = Loan(
            item_id="x", unit_id="u1", responsible_user_id="u",
            expected_return_date=date(2024, 1, 10), status=LoanStatus.RETURNED,
        )
        assert loan.effective_status(date(2025, 1, 1)) == LoanStatus.RETURNED
        assert not loan.status.is_open


class TestUser:
    def test_unit_membership_includes_additional_units(self):
        user = User(
            id="u", name="U", role=UserRole.REQUESTER,
            primary_unit_id="u1", additional_unit_ids=["u2"],
        )
        assert user.belongs_to("u1")
        assert user.belongs_to("u2")
        assert not user.belongs_to("u3")

    def test_driver_is_delivery_warehouse_user(self):
        driver = User(
            id="d", name="D", role=UserRole.WAREHOUSE, warehouse_type=WarehouseType.DELIVERY
        )
        clerk = User(
            id="s", name="S", role=UserRole.WAREHOUSE, warehouse_type=WarehouseType.STORAGE
        )
        assert driver.is_driver
        assert not clerk.is_driver
        assert clerk.can_approve
