"""Tests for SQLite batch, request and loan storage."""

from datetime import date

import pytest

from src.core.entities import (
    BatchStatus,
    ConfirmationType,
    DeliveryBatch,
    DeliveryConfirmation,
    Loan,
    LoanStatus,
    Request,
    RequestStatus,
)
from src.core.exceptions import BatchMembershipError, StateConflictError
from src.infrastructure.storage.sqlite import (
    SQLiteBatchStore,
    SQLiteLoanStore,
    SQLiteRequestStore,
)

pytestmark = pytest.mark.usefixtures("db")


def _batch(batch_id: str, *request_ids: str, scan_code: str | None = None) -> DeliveryBatch:
    return DeliveryBatch(
        id=batch_id,
        request_ids=list(request_ids),
        target_unit_id="unit-1",
        driver_user_id="u-driver",
        scan_code=scan_code or f"DEL-{batch_id[-6:].upper():0>6}",
    )


class TestBatchMembership:
    async def test_create_and_hydrate(self):
        store = SQLiteBatchStore()
        await store.create(_batch("batch-000001", "r2", "r1"))

        batch = await store.get("batch-000001")

        assert batch.request_ids == ["r2", "r1"]
        assert batch.status == BatchStatus.PENDING
        assert (await store.get_by_scan_code(batch.scan_code)).id == batch.id
        assert await store.scan_code_exists(batch.scan_code)

    async def test_request_in_one_open_batch_only(self):
        store = SQLiteBatchStore()
        await store.create(_batch("batch-000001", "r1"))

        with pytest.raises(BatchMembershipError) as exc:
            await store.create(_batch("batch-000002", "r1"))

        assert exc.value.details["batch_id"] == "batch-000001"
        assert await store.get("batch-000002") is None

    async def test_closing_batch_releases_members(self):
        store = SQLiteBatchStore()
        batch = await store.create(_batch("batch-000001", "r1"))

        cancelled = await store.compare_and_set(
            batch.id, BatchStatus.PENDING, 0, {"status": BatchStatus.CANCELLED}
        )

        assert cancelled.status == BatchStatus.CANCELLED
        assert cancelled.version == 1
        assert await store.find_open_batch_id("r1") is None
        await store.create(_batch("batch-000002", "r1"))
        assert await store.find_open_batch_id("r1") == "batch-000002"

    async def test_stale_version_misses(self):
        store = SQLiteBatchStore()
        batch = await store.create(_batch("batch-000001", "r1"))

        result = await store.compare_and_set(
            batch.id, BatchStatus.PENDING, 5, {"status": BatchStatus.IN_TRANSIT}
        )

        assert result is None
        assert (await store.get(batch.id)).status == BatchStatus.PENDING


class TestConfirmations:
    async def test_single_delivery_confirmation(self):
        store = SQLiteBatchStore()
        await store.create(_batch("batch-000001", "r1"))
        confirmation = DeliveryConfirmation(
            batch_id="batch-000001",
            type=ConfirmationType.DELIVERY,
            confirmed_by_user_id="u-driver",
        )

        stored = await store.add_confirmation(confirmation)
        with pytest.raises(StateConflictError):
            await store.add_confirmation(confirmation)

        assert stored.id is not None
        assert stored.timestamp is not None
        assert len(await store.list_confirmations("batch-000001")) == 1

    async def test_requester_confirmations_unbounded(self):
        store = SQLiteBatchStore()
        await store.create(_batch("batch-000001", "r1"))

        for user_id in ("u-requester", "u-requester"):
            await store.add_confirmation(
                DeliveryConfirmation(
                    batch_id="batch-000001",
                    type=ConfirmationType.REQUESTER,
                    confirmed_by_user_id=user_id,
                )
            )

        requester = await store.list_confirmations(
            "batch-000001", confirmation_type=ConfirmationType.REQUESTER
        )
        assert len(requester) == 2


class TestRequestStore:
    async def test_compare_and_set_bumps_version(self):
        store = SQLiteRequestStore()
        created = await store.create(
            Request(
                item_id="item-paper",
                requesting_unit_id="unit-1",
                requested_by_user_id="u-requester",
                quantity=3,
            )
        )

        approved = await store.compare_and_set(
            created.id,
            RequestStatus.PENDING,
            created.version,
            {"status": RequestStatus.APPROVED, "approved_by_user_id": "u-controller"},
        )
        stale = await store.compare_and_set(
            created.id,
            RequestStatus.PENDING,
            created.version,
            {"status": RequestStatus.REJECTED},
        )

        assert approved.status == RequestStatus.APPROVED
        assert approved.version == created.version + 1
        assert approved.approved_by_user_id == "u-controller"
        assert stale is None

    async def test_unknown_column_refused(self):
        store = SQLiteRequestStore()
        created = await store.create(
            Request(
                item_id="item-paper",
                requesting_unit_id="unit-1",
                requested_by_user_id="u-requester",
                quantity=3,
            )
        )

        with pytest.raises(ValueError):
            await store.compare_and_set(
                created.id, RequestStatus.PENDING, created.version, {"quantity": 99}
            )


class TestLoanStore:
    async def test_round_trip_and_close(self):
        store = SQLiteLoanStore()
        loan = await store.create(
            Loan(
                item_id="item-projector",
                unit_id="unit-1",
                responsible_user_id="u-requester",
                expected_return_date=date(2030, 1, 31),
            )
        )

        fetched = await store.get(loan.id)
        lost = await store.compare_and_set(
            loan.id, LoanStatus.ACTIVE, 0, {"status": LoanStatus.LOST}
        )

        assert fetched.expected_return_date == date(2030, 1, 31)
        assert lost.status == LoanStatus.LOST
        assert [x.id for x in await store.list(status=LoanStatus.LOST)] == [loan.id]
