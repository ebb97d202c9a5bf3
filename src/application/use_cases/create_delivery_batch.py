"""Create Delivery Batch Use Case: group approved requests into one shipment."""

from dataclasses import dataclass, field

from src.application.dto.requests import CreateBatchRequest
from src.application.dto.responses import (
    BatchResponse,
    CreateBatchResponse,
    FurnitureRequestResponse,
    RequestResponse,
)
from src.application.resilience import with_persistence_retry
from src.application.use_cases.base import FulfillmentUseCase
from src.config import get_logger, get_settings
from src.core.entities.delivery import BatchStatus, DeliveryBatch
from src.core.entities.directory import UserRole
from src.core.entities.inventory import utc_now
from src.core.entities.request import (
    FurnitureRequest,
    FurnitureRequestStatus,
    Request,
    RequestStatus,
)
from src.core.exceptions import (
    BatchMembershipError,
    CrossUnitBatchError,
    FulfillmentError,
    FurnitureRequestNotFoundError,
    MissingDriverError,
    PersistenceError,
    RequestNotFoundError,
    StateConflictError,
    ValidationError,
)
from src.core.services import mint_scan_code

logger = get_logger(__name__)

_SCAN_CODE_ATTEMPTS = 5


@dataclass
class CreateBatchResult:
    batch: DeliveryBatch
    requests: list[Request] = field(default_factory=list)
    furniture_requests: list[FurnitureRequest] = field(default_factory=list)


class CreateDeliveryBatchUseCase(FulfillmentUseCase):
    """
    Validate, then write the batch and move its members.

    Every check runs before the first write. If a member changes under us
    while members are being moved, the ones already moved are put back and
    the batch row is marked cancelled.
    """

    async def execute(self, request: CreateBatchRequest) -> CreateBatchResult:
        request_ids = list(dict.fromkeys(request.request_ids))
        furniture_ids = list(dict.fromkeys(request.furniture_request_ids))

        logger.info(
            "create_batch_started",
            requests=len(request_ids),
            furniture=len(furniture_ids),
            driver_user_id=request.driver_user_id,
        )

        # 1. Membership
        if not request_ids and not furniture_ids:
            raise ValidationError("request_ids", "select at least one request")

        # 2. Driver
        if not request.driver_user_id:
            raise MissingDriverError()
        directory = await self._get_directory()
        driver = await directory.get_user_by_id(request.driver_user_id)
        if driver is None or driver.role != UserRole.WAREHOUSE:
            raise MissingDriverError(request.driver_user_id)

        # 3. Member statuses
        requests = await self._load_requests(request_ids)
        furniture = await self._load_furniture(furniture_ids)
        for r in requests:
            if r.status != RequestStatus.APPROVED:
                raise StateConflictError(
                    "Request", r.id, RequestStatus.APPROVED.value, actual=r.status.value
                )
        for f in furniture:
            if f.status != FurnitureRequestStatus.APPROVED_STORAGE:
                raise StateConflictError(
                    "Furniture request",
                    f.id,
                    FurnitureRequestStatus.APPROVED_STORAGE.value,
                    actual=f.status.value,
                )

        # 4. No member in another open batch
        batch_store = await self._get_batch_store()
        for member_id in [*request_ids, *furniture_ids]:
            open_batch = await batch_store.find_open_batch_id(member_id)
            if open_batch is not None:
                raise BatchMembershipError(member_id, open_batch, "already belongs to an open batch")

        # 5. Single destination
        members: list[Request | FurnitureRequest] = [*requests, *furniture]
        target_unit_id = request.target_unit_id or members[0].destination_unit_id
        offending = {
            m.id: m.destination_unit_id
            for m in members
            if m.destination_unit_id != target_unit_id
        }
        if offending:
            raise CrossUnitBatchError(target_unit_id, offending)

        # Writes start here
        batch = DeliveryBatch(
            request_ids=request_ids,
            furniture_request_ids=furniture_ids,
            target_unit_id=target_unit_id,
            driver_user_id=driver.id,
            scan_code=await self._unique_scan_code(),
            notes=request.notes,
        )
        batch = await with_persistence_retry(batch_store.create, batch)

        moved_requests: list[Request] = []
        moved_furniture: list[FurnitureRequest] = []
        try:
            for r in requests:
                moved_requests.append(await self._start_processing(r))
            for f in furniture:
                moved_furniture.append(await self._start_transit(f, driver.id))
        except (StateConflictError, PersistenceError) as e:
            await self._roll_back(batch, moved_requests, moved_furniture, e)
            raise

        if not requests:
            batch = await self._dispatch_furniture_only(batch)

        logger.info(
            "batch_created",
            batch_id=batch.id,
            scan_code=batch.scan_code,
            unit_id=batch.target_unit_id,
            status=batch.status.value,
            items=batch.item_count,
        )
        return CreateBatchResult(
            batch=batch,
            requests=moved_requests,
            furniture_requests=moved_furniture,
        )

    async def _load_requests(self, request_ids: list[str]) -> list[Request]:
        if not request_ids:
            return []
        store = await self._get_request_store()
        found = {r.id: r for r in await store.get_many(request_ids)}
        for request_id in request_ids:
            if request_id not in found:
                raise RequestNotFoundError(request_id)
        return [found[i] for i in request_ids]

    async def _load_furniture(self, request_ids: list[str]) -> list[FurnitureRequest]:
        if not request_ids:
            return []
        store = await self._get_furniture_store()
        found = {r.id: r for r in await store.get_many(request_ids)}
        for request_id in request_ids:
            if request_id not in found:
                raise FurnitureRequestNotFoundError(request_id)
        return [found[i] for i in request_ids]

    async def _unique_scan_code(self) -> str:
        settings = get_settings().fulfillment
        batch_store = await self._get_batch_store()
        for _ in range(_SCAN_CODE_ATTEMPTS):
            code = mint_scan_code(settings.scan_code_prefix, settings.scan_code_length)
            if not await batch_store.scan_code_exists(code):
                return code
        raise PersistenceError("mint_scan_code", "could not mint a unique scan code")

    async def _start_processing(self, request: Request) -> Request:
        store = await self._get_request_store()
        updated = await with_persistence_retry(
            store.compare_and_set,
            request.id,
            RequestStatus.APPROVED,
            request.version,
            {"status": RequestStatus.PROCESSING},
        )
        if updated is None:
            latest = await store.get(request.id)
            raise StateConflictError(
                "Request",
                request.id,
                RequestStatus.APPROVED.value,
                actual=latest.status.value if latest else None,
            )
        return updated

    async def _start_transit(self, request: FurnitureRequest, driver_id: str) -> FurnitureRequest:
        store = await self._get_furniture_store()
        updated = await with_persistence_retry(
            store.compare_and_set,
            request.id,
            FurnitureRequestStatus.APPROVED_STORAGE,
            request.version,
            {
                "status": FurnitureRequestStatus.IN_TRANSIT,
                "assigned_driver_id": driver_id,
                "assigned_at": utc_now(),
            },
        )
        if updated is None:
            latest = await store.get(request.id)
            raise StateConflictError(
                "Furniture request",
                request.id,
                FurnitureRequestStatus.APPROVED_STORAGE.value,
                actual=latest.status.value if latest else None,
            )
        return updated

    async def _dispatch_furniture_only(self, batch: DeliveryBatch) -> DeliveryBatch:
        """Furniture has no separation step, so the batch leaves at once."""
        batch_store = await self._get_batch_store()
        dispatched = await with_persistence_retry(
            batch_store.compare_and_set,
            batch.id,
            BatchStatus.PENDING,
            batch.version,
            {"status": BatchStatus.IN_TRANSIT, "dispatched_at": utc_now()},
        )
        if dispatched is None:
            raise StateConflictError(
                "Batch", batch.id, BatchStatus.PENDING.value, actual=None
            )
        logger.info("batch_dispatched", batch_id=batch.id, furniture_only=True)
        return dispatched

    async def _roll_back(
        self,
        batch: DeliveryBatch,
        moved_requests: list[Request],
        moved_furniture: list[FurnitureRequest],
        cause: FulfillmentError,
    ) -> None:
        logger.warning(
            "batch_creation_rolling_back",
            batch_id=batch.id,
            moved_requests=len(moved_requests),
            moved_furniture=len(moved_furniture),
            cause=cause.code,
        )
        request_store = await self._get_request_store()
        furniture_store = await self._get_furniture_store()
        batch_store = await self._get_batch_store()

        for r in moved_requests:
            restored = await request_store.compare_and_set(
                r.id, RequestStatus.PROCESSING, r.version, {"status": RequestStatus.APPROVED}
            )
            if restored is None:
                logger.error("batch_rollback_request_failed", batch_id=batch.id, request_id=r.id)
        for f in moved_furniture:
            restored = await furniture_store.compare_and_set(
                f.id,
                FurnitureRequestStatus.IN_TRANSIT,
                f.version,
                {
                    "status": FurnitureRequestStatus.APPROVED_STORAGE,
                    "assigned_driver_id": None,
                    "assigned_at": None,
                },
            )
            if restored is None:
                logger.error("batch_rollback_furniture_failed", batch_id=batch.id, request_id=f.id)

        cancelled = await batch_store.compare_and_set(
            batch.id,
            BatchStatus.PENDING,
            batch.version,
            {"status": BatchStatus.CANCELLED, "notes": f"creation rolled back: {cause.code}"},
        )
        if cancelled is None:
            logger.error("batch_rollback_cancel_failed", batch_id=batch.id)
        else:
            logger.info("batch_cancelled", batch_id=batch.id)

    def to_response(self, result: CreateBatchResult) -> CreateBatchResponse:
        return CreateBatchResponse(
            batch=BatchResponse.from_entity(result.batch),
            requests=[RequestResponse.from_entity(r) for r in result.requests],
            furniture_requests=[
                FurnitureRequestResponse.from_entity(f) for f in result.furniture_requests
            ],
        )
