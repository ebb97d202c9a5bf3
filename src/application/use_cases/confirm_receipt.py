"""Receiving-side confirmations that complete a batch."""

from src.application.dto.requests import ConfirmationRequest
from src.application.resilience import with_persistence_retry
from src.application.use_cases.confirm_delivery import (
    BatchConfirmationUseCase,
    ConfirmationResult,
)
from src.application.use_cases.record_movement import RecordMovementResult
from src.application.use_cases.separate_batch_item import separation_key
from src.config import get_logger
from src.core.entities.delivery import (
    BatchStatus,
    ConfirmationType,
    DeliveryBatch,
    DeliveryConfirmation,
)
from src.core.entities.directory import UserRole
from src.core.entities.inventory import Movement, MovementType, utc_now
from src.core.entities.request import FurnitureRequestStatus, RequestStatus
from src.core.exceptions import (
    BatchNotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ReconciliationRequiredError,
)

logger = get_logger(__name__)

_RECEIVABLE = (BatchStatus.DELIVERY_CONFIRMED, BatchStatus.PENDING_CONFIRMATION)


class CompleteBatchUseCase(BatchConfirmationUseCase):
    """Closes a batch and cascades completion to its members."""

    async def _complete(
        self,
        batch: DeliveryBatch,
        confirmation: DeliveryConfirmation,
        operation: str,
    ) -> tuple[DeliveryBatch, list[str]]:
        now = utc_now()
        completed = await self._advance_batch(
            batch,
            {
                "status": BatchStatus.COMPLETED,
                "received_confirmed_at": now,
                "completed_at": now,
            },
            operation,
            confirmation,
        )

        warnings: list[str] = []
        user_id = confirmation.confirmed_by_user_id
        request_store = await self._get_request_store()
        furniture_store = await self._get_furniture_store()
        try:
            for r in await request_store.get_many(batch.request_ids):
                if r.status == RequestStatus.COMPLETED:
                    continue
                done = await with_persistence_retry(
                    request_store.compare_and_set,
                    r.id,
                    RequestStatus.OUT_FOR_DELIVERY,
                    r.version,
                    {
                        "status": RequestStatus.COMPLETED,
                        "completed_by_user_id": user_id,
                        "completed_at": now,
                    },
                )
                if done is None:
                    logger.warning("batch_member_not_completed", batch_id=batch.id, request_id=r.id)
                    warnings.append(f"request {r.id} was '{r.status.value}' and was not completed")

            for f in await furniture_store.get_many(batch.furniture_request_ids):
                if f.status == FurnitureRequestStatus.COMPLETED:
                    continue
                done = await with_persistence_retry(
                    furniture_store.compare_and_set,
                    f.id,
                    FurnitureRequestStatus.IN_TRANSIT,
                    f.version,
                    {
                        "status": FurnitureRequestStatus.COMPLETED,
                        "completed_by_user_id": user_id,
                        "completed_at": now,
                    },
                )
                if done is None:
                    logger.warning("batch_member_not_completed", batch_id=batch.id, request_id=f.id)
                    warnings.append(
                        f"furniture request {f.id} was '{f.status.value}' and was not completed"
                    )
        except PersistenceError as e:
            raise ReconciliationRequiredError(
                operation,
                e.message,
                committed={"batch_id": completed.id, "status": completed.status.value},
            ) from e

        logger.info(
            "batch_completed",
            batch_id=completed.id,
            confirmation_type=confirmation.type.value,
            requests=len(batch.request_ids),
            furniture=len(batch.furniture_request_ids),
            warnings=len(warnings),
        )
        return completed, warnings


class ConfirmReceiptUseCase(CompleteBatchUseCase):
    """The unit's controller scans the batch code and signs it off."""

    async def execute(self, request: ConfirmationRequest) -> ConfirmationResult:
        batch_store = await self._get_batch_store()
        scan_code = (request.scan_code or "").strip().upper()
        batch = await batch_store.get_by_scan_code(scan_code)
        if batch is None:
            raise BatchNotFoundError(scan_code)
        self._require_status(batch, *_RECEIVABLE)

        controller = await self._require_user(request.user_id)
        if controller.role != UserRole.CONTROLLER:
            raise PermissionDeniedError(controller.id, "confirm receipt", "controllers only")
        self._require_unit_member(controller, batch, "confirm receipt")

        confirmation = await self._record_confirmation(
            batch,
            ConfirmationType.RECEIPT,
            controller,
            photo_ref=request.photo_ref,
            notes=request.notes,
        )
        completed, warnings = await self._complete(batch, confirmation, "confirm_receipt")
        return ConfirmationResult(confirmation=confirmation, batch=completed, warnings=warnings)


class ConfirmByRequesterUseCase(CompleteBatchUseCase):
    """
    A member of the receiving unit closes the batch with their own code.

    Used when the controller is unavailable. Any request that reached the
    unit without a recorded out movement gets one here, keyed the same way
    separation keys it, so the warehouse stock is never taken twice. A
    stock row those movements leave stale is reported after completion.
    """

    async def execute(self, request: ConfirmationRequest) -> ConfirmationResult:
        batch = await self._load_batch(request.batch_id or "")
        self._require_status(batch, *_RECEIVABLE)

        user = await self._require_user(request.user_id)
        self._require_unit_member(user, batch, "confirm receipt")
        self._require_code(user, request.code)

        confirmation = await self._record_confirmation(
            batch,
            ConfirmationType.REQUESTER,
            user,
            photo_ref=request.photo_ref,
            notes=request.notes,
            reuse=False,
        )
        backfilled = await self._backfill_movements(batch)
        completed, warnings = await self._complete(batch, confirmation, "confirm_by_requester")
        for recorded in backfilled:
            recorded.require_projected(
                "confirm_by_requester",
                batch_id=completed.id,
                status=completed.status.value,
                confirmation_id=confirmation.id,
            )
        return ConfirmationResult(
            confirmation=confirmation,
            batch=completed,
            movements=[r.movement for r in backfilled if r.created],
            warnings=warnings,
        )

    async def _backfill_movements(self, batch: DeliveryBatch) -> list[RecordMovementResult]:
        inventory_store = await self._get_inventory_store()
        request_store = await self._get_request_store()
        recorder = await self._get_recorder()
        warehouse = self._get_warehouse()

        recorded_all: list[RecordMovementResult] = []
        for r in await request_store.get_many(batch.request_ids):
            key = separation_key(r.id)
            if await inventory_store.get_movement_by_key(key) is not None:
                continue
            recorded = await recorder.record(
                Movement(
                    type=MovementType.OUT,
                    item_id=r.item_id,
                    unit_id=warehouse.unit_id,
                    user_id=batch.driver_user_id,
                    quantity=r.quantity,
                    reference=batch.scan_code,
                    idempotency_key=key,
                    notes="recorded at requester confirmation",
                )
            )
            recorded_all.append(recorded)
            if recorded.created:
                logger.info(
                    "backing_movement_recorded",
                    batch_id=batch.id,
                    request_id=r.id,
                    movement_id=recorded.movement.id,
                )
        return recorded_all
