"""Ledger writes whose stock projection fails after its retry."""

from datetime import date, timedelta

import pytest

from src.application.dto.requests import (
    BatchActionRequest,
    ConfirmationRequest,
    CreateBatchRequest,
    OpenLoanRequest,
    RecordMovementRequest,
    ReviewRequestRequest,
    ReviewTransferRequest,
    SubmitRequestRequest,
    SubmitTransferRequest,
)
from src.application.services import get_daily_code_service, get_stock_projector
from src.application.use_cases import (
    ConfirmByRequesterUseCase,
    ConfirmDeliveryUseCase,
    CreateDeliveryBatchUseCase,
    OpenLoanUseCase,
    RecordMovementUseCase,
    ReviewRequestUseCase,
    ReviewTransferUseCase,
    SeparateBatchItemUseCase,
    SubmitRequestUseCase,
    SubmitTransferUseCase,
)
from src.application.use_cases.separate_batch_item import separation_key
from src.core.entities import (
    BatchStatus,
    LoanStatus,
    MovementType,
    RequestStatus,
    TransferStatus,
)
from src.core.exceptions import PersistenceError, ReconciliationRequiredError
from src.infrastructure.storage.sqlite import (
    SQLiteBatchStore,
    SQLiteFurnitureTransferStore,
    SQLiteInventoryStore,
    SQLiteLoanStore,
    SQLiteRequestStore,
)

WAREHOUSE = "warehouse-central"

pytestmark = pytest.mark.usefixtures("seeded_db")


class ProjectionOutage:
    """Makes every projection row write fail between start() and stop()."""

    def __init__(self, monkeypatch: pytest.MonkeyPatch):
        self._monkeypatch = monkeypatch
        self._save = SQLiteInventoryStore.save_projection
        self.attempts = 0

    def start(self) -> None:
        async def fail(store, summary, default_minimum=0.0):
            self.attempts += 1
            raise PersistenceError("save_projection", "database is locked")

        self._monkeypatch.setattr(SQLiteInventoryStore, "save_projection", fail)

    def stop(self) -> None:
        self._monkeypatch.setattr(SQLiteInventoryStore, "save_projection", self._save)


@pytest.fixture
def outage(monkeypatch: pytest.MonkeyPatch) -> ProjectionOutage:
    return ProjectionOutage(monkeypatch)


async def _entry(quantity: float) -> None:
    await RecordMovementUseCase().execute(
        RecordMovementRequest(
            type=MovementType.ENTRY,
            item_id="item-paper",
            unit_id=WAREHOUSE,
            user_id="u-storage",
            quantity=quantity,
        )
    )


async def _approved(quantity: float = 5) -> str:
    created = await SubmitRequestUseCase().execute(
        SubmitRequestRequest(
            item_id="item-paper",
            requesting_unit_id="unit-1",
            requested_by_user_id="u-requester",
            quantity=quantity,
        )
    )
    await ReviewRequestUseCase().execute(
        created.id, ReviewRequestRequest(action="approve", actor_id="u-storage")
    )
    return created.id


async def test_movement_kept_and_row_repaired_on_next_read(outage):
    await _entry(10)

    outage.start()
    with pytest.raises(ReconciliationRequiredError) as exc:
        await _entry(4)
    outage.stop()

    assert outage.attempts == 2
    committed = exc.value.details["committed"]
    store = SQLiteInventoryStore()
    assert (await store.get_movement(committed["movement_id"])).quantity == 4
    assert (await store.get_stock("item-paper", WAREHOUSE)).quantity == 10

    projector = await get_stock_projector()
    stock = await projector.read("item-paper", WAREHOUSE)

    assert stock.quantity == 14
    assert stock.ledger_version == committed["movement_id"]


async def test_listing_repairs_stale_rows(outage):
    await _entry(10)
    outage.start()
    with pytest.raises(ReconciliationRequiredError):
        await _entry(4)
    outage.stop()

    projector = await get_stock_projector()
    rows = await projector.read_all(unit_id=WAREHOUSE)

    assert [(r.item_id, r.quantity) for r in rows] == [("item-paper", 14)]
    assert await SQLiteInventoryStore().list_drifted() == []


async def test_separation_finishes_transitions_before_reporting(outage):
    await _entry(20)
    request_id = await _approved()
    created = await CreateDeliveryBatchUseCase().execute(
        CreateBatchRequest(request_ids=[request_id], driver_user_id="u-driver")
    )

    outage.start()
    with pytest.raises(ReconciliationRequiredError) as exc:
        await SeparateBatchItemUseCase().execute(
            created.batch.id,
            BatchActionRequest(action="separate", actor_id="u-storage", request_id=request_id),
        )
    outage.stop()

    committed = exc.value.details["committed"]
    assert committed["batch_status"] == BatchStatus.IN_TRANSIT.value
    assert committed["request_status"] == RequestStatus.OUT_FOR_DELIVERY.value
    assert (await SQLiteBatchStore().get(created.batch.id)).status == BatchStatus.IN_TRANSIT
    out = await SQLiteInventoryStore().get_movement_by_key(separation_key(request_id))
    assert out.id == committed["movement_id"]

    projector = await get_stock_projector()
    assert (await projector.read("item-paper", WAREHOUSE)).quantity == 15


async def test_requester_backfill_reports_after_completion(outage):
    request_id = await _approved(quantity=3)
    created = await CreateDeliveryBatchUseCase().execute(
        CreateBatchRequest(request_ids=[request_id], driver_user_id="u-driver")
    )
    batch = created.batch

    # the request reached the unit without a recorded out movement
    requests = SQLiteRequestStore()
    request = await requests.get(request_id)
    request = await requests.compare_and_set(
        request.id, request.status, request.version, {"status": RequestStatus.AWAITING_PICKUP}
    )
    await requests.compare_and_set(
        request.id, request.status, request.version, {"status": RequestStatus.OUT_FOR_DELIVERY}
    )
    await SQLiteBatchStore().compare_and_set(
        batch.id, BatchStatus.PENDING, batch.version, {"status": BatchStatus.IN_TRANSIT}
    )
    codes = get_daily_code_service()
    await ConfirmDeliveryUseCase().execute(
        ConfirmationRequest(
            type="delivery",
            user_id="u-driver",
            batch_id=batch.id,
            receiver_user_id="u-requester",
            code=codes.code("u-requester"),
        )
    )

    outage.start()
    with pytest.raises(ReconciliationRequiredError) as exc:
        await ConfirmByRequesterUseCase().execute(
            ConfirmationRequest(
                type="requester",
                user_id="u-requester",
                batch_id=batch.id,
                code=codes.code("u-requester"),
            )
        )
    outage.stop()

    committed = exc.value.details["committed"]
    assert committed["status"] == BatchStatus.COMPLETED.value
    assert (await SQLiteBatchStore().get(batch.id)).status == BatchStatus.COMPLETED
    assert (await requests.get(request_id)).status == RequestStatus.COMPLETED
    out = await SQLiteInventoryStore().get_movement_by_key(separation_key(request_id))
    assert out.id == committed["movement_id"]
    assert out.quantity == 3


async def test_loan_stored_before_reporting(outage):
    outage.start()
    with pytest.raises(ReconciliationRequiredError) as exc:
        await OpenLoanUseCase().execute(
            OpenLoanRequest(
                item_id="item-toner",
                unit_id="unit-1",
                responsible_user_id="u-requester",
                expected_return_date=date.today() + timedelta(days=7),
            )
        )
    outage.stop()

    committed = exc.value.details["committed"]
    loan = await SQLiteLoanStore().get(committed["loan_id"])
    assert loan.status == LoanStatus.ACTIVE
    assert loan.loan_movement_id == committed["movement_id"]

    projector = await get_stock_projector()
    assert (await projector.read("item-toner", "unit-1")).quantity == -1


async def test_transfer_completed_before_reporting(outage):
    await RecordMovementUseCase().execute(
        RecordMovementRequest(
            type=MovementType.ENTRY,
            item_id="item-desk",
            unit_id="unit-1",
            user_id="u-storage",
            quantity=1,
        )
    )
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

    outage.start()
    with pytest.raises(ReconciliationRequiredError) as exc:
        await reviewer.execute(
            created.id, ReviewTransferRequest(action="complete", actor_id="u-driver")
        )
    outage.stop()

    committed = exc.value.details["committed"]
    transfer = await SQLiteFurnitureTransferStore().get(committed["transfer_id"])
    assert transfer.status == TransferStatus.COMPLETED
    assert transfer.out_movement_id == committed["movement_id"]

    projector = await get_stock_projector()
    assert (await projector.read("item-desk", "unit-1")).quantity == 0
    assert (await projector.read("item-desk", "unit-2")).quantity == 1
