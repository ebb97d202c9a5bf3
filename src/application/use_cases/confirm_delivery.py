"""Driver-side confirmations: delivery handoff and deferral."""

from dataclasses import dataclass, field

from src.application.dto.requests import BatchActionRequest, ConfirmationRequest
from src.application.dto.responses import (
    BatchActionResponse,
    BatchResponse,
    ConfirmationResponse,
    ConfirmationResultResponse,
    MovementResponse,
)
from src.application.resilience import with_persistence_retry
from src.application.use_cases.base import FulfillmentUseCase
from src.config import get_logger
from src.core.entities.delivery import (
    BatchStatus,
    ConfirmationType,
    DeliveryBatch,
    DeliveryConfirmation,
)
from src.core.entities.directory import User
from src.core.entities.inventory import Movement, utc_now
from src.core.exceptions import (
    BatchNotFoundError,
    InvalidDailyCodeError,
    PermissionDeniedError,
    PersistenceError,
    ReconciliationRequiredError,
    StateConflictError,
)

logger = get_logger(__name__)


@dataclass
class ConfirmationResult:
    confirmation: DeliveryConfirmation
    batch: DeliveryBatch
    movements: list[Movement] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_response(self) -> ConfirmationResultResponse:
        return ConfirmationResultResponse(
            confirmation=ConfirmationResponse.from_entity(self.confirmation),
            batch=BatchResponse.from_entity(self.batch),
            movements=[MovementResponse.from_entity(m) for m in self.movements],
            warnings=self.warnings,
        )


class BatchConfirmationUseCase(FulfillmentUseCase):
    """Helpers shared by every step of the confirmation protocol."""

    async def _load_batch(self, batch_id: str) -> DeliveryBatch:
        batch_store = await self._get_batch_store()
        batch = await batch_store.get(batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch

    @staticmethod
    def _require_status(batch: DeliveryBatch, *allowed: BatchStatus) -> None:
        if batch.status not in allowed:
            raise StateConflictError(
                "Batch", batch.id, [s.value for s in allowed], actual=batch.status.value
            )

    async def _require_driver(self, batch: DeliveryBatch, user_id: str, action: str) -> User:
        user = await self._require_user(user_id)
        if user.id != batch.driver_user_id:
            raise PermissionDeniedError(user.id, action, "not the driver of this batch")
        return user

    @staticmethod
    def _require_unit_member(user: User, batch: DeliveryBatch, action: str) -> None:
        if not user.belongs_to(batch.target_unit_id):
            raise PermissionDeniedError(
                user.id, action, f"not a member of unit {batch.target_unit_id}"
            )

    def _require_code(self, user: User, code: str | None) -> None:
        daily_codes = self._get_daily_codes()
        if not daily_codes.validate(user.id, code, daily_codes.today()):
            logger.warning("daily_code_rejected", user_id=user.id)
            raise InvalidDailyCodeError(user.id)

    async def _record_confirmation(
        self,
        batch: DeliveryBatch,
        confirmation_type: ConfirmationType,
        user: User,
        photo_ref: str | None = None,
        notes: str | None = None,
        reuse: bool = True,
    ) -> DeliveryConfirmation:
        """
        Append the confirmation, or return the one a previous attempt left.

        Delivery and receipt confirmations are unique per batch. A retry
        after the batch update failed resumes from the stored row.
        """
        batch_store = await self._get_batch_store()
        if reuse:
            existing = await batch_store.list_confirmations(batch.id, confirmation_type)
            if existing:
                logger.info(
                    "confirmation_reused",
                    batch_id=batch.id,
                    type=confirmation_type.value,
                    confirmation_id=existing[0].id,
                )
                return existing[0]

        confirmation = await with_persistence_retry(
            batch_store.add_confirmation,
            DeliveryConfirmation(
                batch_id=batch.id,
                type=confirmation_type,
                confirmed_by_user_id=user.id,
                photo_ref=photo_ref,
                notes=notes,
            ),
        )
        logger.info(
            "confirmation_recorded",
            batch_id=batch.id,
            type=confirmation_type.value,
            user_id=user.id,
            confirmation_id=confirmation.id,
        )
        return confirmation

    async def _advance_batch(
        self,
        batch: DeliveryBatch,
        changes: dict,
        operation: str,
        confirmation: DeliveryConfirmation,
    ) -> DeliveryBatch:
        """CAS the batch after its confirmation is already stored."""
        batch_store = await self._get_batch_store()
        try:
            updated = await with_persistence_retry(
                batch_store.compare_and_set, batch.id, batch.status, batch.version, changes
            )
        except PersistenceError as e:
            raise ReconciliationRequiredError(
                operation,
                e.message,
                committed={"batch_id": batch.id, "confirmation_id": confirmation.id},
            ) from e
        if updated is None:
            latest = await batch_store.get(batch.id)
            raise StateConflictError(
                "Batch",
                batch.id,
                batch.status.value,
                actual=latest.status.value if latest else None,
            )
        return updated


class ConfirmDeliveryUseCase(BatchConfirmationUseCase):
    """
    The driver hands the batch over.

    The receiver proves presence with their own daily code, which the
    driver types in. The batch then waits for the controller's receipt.
    """

    async def execute(self, request: ConfirmationRequest) -> ConfirmationResult:
        batch = await self._load_batch(request.batch_id or "")
        self._require_status(batch, BatchStatus.IN_TRANSIT)
        driver = await self._require_driver(batch, request.user_id, "confirm delivery")

        receiver = await self._require_user(request.receiver_user_id or "")
        self._require_unit_member(receiver, batch, "receive deliveries")
        self._require_code(receiver, request.code)

        confirmation = await self._record_confirmation(
            batch,
            ConfirmationType.DELIVERY,
            driver,
            photo_ref=request.photo_ref,
            notes=request.notes,
        )
        updated = await self._advance_batch(
            batch,
            {"status": BatchStatus.DELIVERY_CONFIRMED, "delivery_confirmed_at": utc_now()},
            "confirm_delivery",
            confirmation,
        )

        logger.info(
            "delivery_confirmed",
            batch_id=updated.id,
            driver_id=driver.id,
            receiver_id=receiver.id,
        )
        return ConfirmationResult(confirmation=confirmation, batch=updated)


class DeferConfirmationUseCase(BatchConfirmationUseCase):
    """Driver leaves the batch without a receiver present."""

    async def execute(self, batch_id: str, action: BatchActionRequest) -> DeliveryBatch:
        batch = await self._load_batch(batch_id)
        self._require_status(batch, BatchStatus.IN_TRANSIT)
        driver = await self._require_driver(batch, action.actor_id, "defer confirmation")

        changes: dict = {"status": BatchStatus.PENDING_CONFIRMATION}
        if action.notes:
            changes["notes"] = action.notes

        batch_store = await self._get_batch_store()
        updated = await with_persistence_retry(
            batch_store.compare_and_set, batch.id, batch.status, batch.version, changes
        )
        if updated is None:
            latest = await batch_store.get(batch.id)
            raise StateConflictError(
                "Batch",
                batch.id,
                BatchStatus.IN_TRANSIT.value,
                actual=latest.status.value if latest else None,
            )

        logger.info("confirmation_deferred", batch_id=updated.id, driver_id=driver.id)
        return updated

    @staticmethod
    def to_response(batch: DeliveryBatch) -> BatchActionResponse:
        return BatchActionResponse(batch=BatchResponse.from_entity(batch))
