"""Record Movement Use Case: ledger append followed by projection."""

from dataclasses import dataclass
from typing import Any

from src.application.dto.requests import RecordMovementRequest
from src.application.dto.responses import (
    MovementResponse,
    RecordMovementResponse,
    UnitStockResponse,
)
from src.application.resilience import with_persistence_retry
from src.application.use_cases.base import FulfillmentUseCase
from src.config import get_logger
from src.core.entities.inventory import Movement, UnitStock
from src.core.exceptions import PersistenceError, ReconciliationRequiredError

logger = get_logger(__name__)


@dataclass
class RecordMovementResult:
    """Result of recording a movement."""

    movement: Movement
    stock: UnitStock | None
    created: bool = True  # False when the idempotency key was replayed
    projection_error: str | None = None  # set when the row was left stale

    def require_projected(self, operation: str, **committed: Any) -> None:
        """
        Raise ReconciliationRequiredError when the projection was left stale.

        Call after every other write of the operation has been made, so
        ``committed`` lists what the caller can rely on.
        """
        if self.projection_error is None:
            return
        raise ReconciliationRequiredError(
            operation,
            self.projection_error,
            committed={"movement_id": self.movement.id, **committed},
        )


class RecordMovementUseCase(FulfillmentUseCase):
    """
    Append a movement and re-derive its (item, unit) projection.

    The append is the commit point. A projection that still fails after
    its retry leaves the movement in place and the row stale; the next
    read of that key repairs it.
    """

    async def execute(self, request: RecordMovementRequest) -> RecordMovementResult:
        """Record a client-submitted movement."""
        logger.info(
            "record_movement_started",
            type=request.type.value,
            item_id=request.item_id,
            unit_id=request.unit_id,
            quantity=request.quantity,
        )

        movement = Movement(
            type=request.type,
            item_id=request.item_id,
            unit_id=request.unit_id,
            user_id=request.user_id,
            quantity=request.quantity,
            notes=request.notes,
            reference=request.reference,
            idempotency_key=request.idempotency_key,
        )
        result = await self.record(movement)
        result.require_projected(
            "record_movement", item_id=movement.item_id, unit_id=movement.unit_id
        )
        return result

    async def record(self, movement: Movement) -> RecordMovementResult:
        """Append and project. Used by every operation that touches stock."""
        store = await self._get_inventory_store()
        stored, created = await with_persistence_retry(store.append_movement, movement)

        projector = await self._get_projector()
        try:
            stock = await with_persistence_retry(
                projector.project, stored.item_id, stored.unit_id
            )
        except PersistenceError as e:
            logger.error(
                "stock_projection_failed",
                movement_id=stored.id,
                item_id=stored.item_id,
                unit_id=stored.unit_id,
                error=e.message,
            )
            return RecordMovementResult(
                movement=stored,
                stock=None,
                created=created,
                projection_error=e.message,
            )

        logger.info(
            "movement_recorded",
            movement_id=stored.id,
            type=stored.type.value,
            item_id=stored.item_id,
            unit_id=stored.unit_id,
            created=created,
            quantity_after=stock.quantity,
            health=stock.health.value,
        )
        return RecordMovementResult(movement=stored, stock=stock, created=created)

    def to_response(self, result: RecordMovementResult) -> RecordMovementResponse:
        """Convert result to API response."""
        return RecordMovementResponse(
            movement=MovementResponse.from_entity(result.movement),
            stock=UnitStockResponse.from_entity(result.stock) if result.stock else None,
            created=result.created,
        )
