"""Separate Batch Item Use Case: pull one request off the warehouse shelf."""

from dataclasses import dataclass

from src.application.dto.requests import BatchActionRequest
from src.application.dto.responses import (
    BatchActionResponse,
    BatchResponse,
    MovementResponse,
    RequestResponse,
)
from src.application.resilience import with_persistence_retry
from src.application.use_cases.base import FulfillmentUseCase
from src.config import get_logger
from src.core.entities.delivery import BatchStatus, DeliveryBatch
from src.core.entities.directory import UserRole
from src.core.entities.inventory import Movement, MovementType, utc_now
from src.core.entities.request import Request, RequestStatus
from src.core.exceptions import (
    BatchMembershipError,
    BatchNotFoundError,
    PermissionDeniedError,
    PersistenceError,
    RequestNotFoundError,
    StateConflictError,
)
from src.core.services import MATERIAL_LIFECYCLE

logger = get_logger(__name__)


def separation_key(request_id: str) -> str:
    """Idempotency key of the out movement backing a separated request."""
    return f"separation:{request_id}"


@dataclass
class SeparationResult:
    batch: DeliveryBatch
    request: Request
    movement: Movement
    dispatched: bool = False


class SeparateBatchItemUseCase(FulfillmentUseCase):
    """
    Record the warehouse out movement for one request and mark it ready.

    The out movement carries a per-request idempotency key, so a retried
    separation replays the stored movement instead of taking stock twice.
    When the last material request of the batch becomes ready, the batch
    is dispatched in the same call. A warehouse stock row left stale by
    the out movement is reported after both transitions are stored.
    """

    async def execute(self, batch_id: str, action: BatchActionRequest) -> SeparationResult:
        batch_store = await self._get_batch_store()
        batch = await batch_store.get(batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)

        request_id = action.request_id or ""
        if request_id not in batch.request_ids:
            raise BatchMembershipError(request_id, batch.id, "not a material request of this batch")
        if batch.status != BatchStatus.PENDING:
            raise StateConflictError(
                "Batch", batch.id, BatchStatus.PENDING.value, actual=batch.status.value
            )

        actor = await self._require_user(action.actor_id)
        if actor.role != UserRole.WAREHOUSE:
            raise PermissionDeniedError(actor.id, "separate items", "warehouse staff only")

        request_store = await self._get_request_store()
        request = await request_store.get(request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        MATERIAL_LIFECYCLE.check("mark_ready", request.id, request.status)

        warehouse = self._get_warehouse()
        recorder = await self._get_recorder()
        recorded = await recorder.record(
            Movement(
                type=MovementType.OUT,
                item_id=request.item_id,
                unit_id=warehouse.unit_id,
                user_id=actor.id,
                quantity=request.quantity,
                reference=batch.scan_code,
                idempotency_key=separation_key(request.id),
                notes=action.notes,
            )
        )
        ready = await with_persistence_retry(
            request_store.compare_and_set,
            request.id,
            RequestStatus.PROCESSING,
            request.version,
            {
                "status": RequestStatus.AWAITING_PICKUP,
                "pickup_ready_by_user_id": actor.id,
                "pickup_ready_at": utc_now(),
            },
        )
        if ready is None:
            latest = await request_store.get(request.id)
            raise StateConflictError(
                "Request",
                request.id,
                RequestStatus.PROCESSING.value,
                actual=latest.status.value if latest else None,
            )

        logger.info(
            "batch_item_separated",
            batch_id=batch.id,
            request_id=ready.id,
            movement_id=recorded.movement.id,
            replayed=not recorded.created,
        )

        dispatched_batch = await self._dispatch_if_complete(batch.id)
        if dispatched_batch is not None:
            batch = dispatched_batch
            ready = await request_store.get(ready.id) or ready
        else:
            batch = await batch_store.get(batch.id) or batch

        recorded.require_projected(
            "separate",
            batch_id=batch.id,
            batch_status=batch.status.value,
            request_id=ready.id,
            request_status=ready.status.value,
        )
        return SeparationResult(
            batch=batch,
            request=ready,
            movement=recorded.movement,
            dispatched=dispatched_batch is not None,
        )

    async def _dispatch_if_complete(self, batch_id: str) -> DeliveryBatch | None:
        """
        Flip the batch to in_transit once every material request is ready.

        Reads a fresh snapshot. Returns the dispatched batch, or None when
        the batch is not ready or another caller flipped it first.
        """
        batch_store = await self._get_batch_store()
        request_store = await self._get_request_store()

        batch = await batch_store.get(batch_id)
        if batch is None or batch.status != BatchStatus.PENDING:
            return None
        members = await request_store.get_many(batch.request_ids)
        if len(members) != len(batch.request_ids) or any(
            r.status != RequestStatus.AWAITING_PICKUP for r in members
        ):
            return None

        now = utc_now()
        dispatched = await with_persistence_retry(
            batch_store.compare_and_set,
            batch.id,
            BatchStatus.PENDING,
            batch.version,
            {"status": BatchStatus.IN_TRANSIT, "dispatched_at": now},
        )
        if dispatched is None:
            logger.info("batch_dispatch_lost_race", batch_id=batch.id)
            return None

        moved: list[Request] = []
        try:
            for r in members:
                out = await with_persistence_retry(
                    request_store.compare_and_set,
                    r.id,
                    RequestStatus.AWAITING_PICKUP,
                    r.version,
                    {
                        "status": RequestStatus.OUT_FOR_DELIVERY,
                        "picked_up_by_user_id": batch.driver_user_id,
                        "picked_up_at": now,
                    },
                )
                if out is None:
                    raise StateConflictError(
                        "Request", r.id, RequestStatus.AWAITING_PICKUP.value, actual=None
                    )
                moved.append(out)
        except (StateConflictError, PersistenceError) as e:
            await self._undo_dispatch(dispatched, moved, e)
            raise

        logger.info(
            "batch_dispatched",
            batch_id=dispatched.id,
            scan_code=dispatched.scan_code,
            requests=len(moved),
        )
        return dispatched

    async def _undo_dispatch(
        self,
        batch: DeliveryBatch,
        moved: list[Request],
        cause: Exception,
    ) -> None:
        logger.warning(
            "batch_dispatch_rolling_back", batch_id=batch.id, moved=len(moved), error=str(cause)
        )
        request_store = await self._get_request_store()
        batch_store = await self._get_batch_store()
        for r in moved:
            restored = await request_store.compare_and_set(
                r.id,
                RequestStatus.OUT_FOR_DELIVERY,
                r.version,
                {
                    "status": RequestStatus.AWAITING_PICKUP,
                    "picked_up_by_user_id": None,
                    "picked_up_at": None,
                },
            )
            if restored is None:
                logger.error("batch_dispatch_rollback_failed", batch_id=batch.id, request_id=r.id)
        reverted = await batch_store.compare_and_set(
            batch.id,
            BatchStatus.IN_TRANSIT,
            batch.version,
            {"status": BatchStatus.PENDING, "dispatched_at": None},
        )
        if reverted is None:
            logger.error("batch_dispatch_rollback_failed", batch_id=batch.id)

    def to_response(self, result: SeparationResult) -> BatchActionResponse:
        return BatchActionResponse(
            batch=BatchResponse.from_entity(result.batch),
            request=RequestResponse.from_entity(result.request),
            movement=MovementResponse.from_entity(result.movement),
            dispatched=result.dispatched,
        )
