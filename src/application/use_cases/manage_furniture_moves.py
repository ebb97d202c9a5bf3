"""
Furniture removal and transfer use cases.

Both kinds wait on the designer, then move stock through the ledger: a
removal takes the furniture out of its unit at pickup and, when it is
kept, enters it at the warehouse on receipt; a transfer writes the out
and entry pair on completion. Movements are written first under keys
derived from the record id, and the status change follows. When the
status change loses a race, compensating movements undo the stock.
"""

from dataclasses import dataclass, field
from typing import Any

from src.application.dto.requests import (
    ReviewRemovalRequest,
    ReviewTransferRequest,
    SubmitRemovalRequest,
    SubmitTransferRequest,
)
from src.application.dto.responses import (
    FurnitureMoveActionResponse,
    FurnitureRemovalListResponse,
    FurnitureRemovalResponse,
    FurnitureTransferListResponse,
    FurnitureTransferResponse,
    MovementResponse,
)
from src.application.resilience import with_persistence_retry
from src.application.use_cases.base import FulfillmentUseCase
from src.application.use_cases.record_movement import RecordMovementResult
from src.config import get_logger
from src.core.entities.directory import Item, User, UserRole
from src.core.entities.furniture_moves import (
    FurnitureRemoval,
    FurnitureTransfer,
    RemovalDestination,
    RemovalStatus,
    TransferStatus,
)
from src.core.entities.inventory import Movement, MovementType, utc_now
from src.core.exceptions import (
    FurnitureRemovalNotFoundError,
    FurnitureTransferNotFoundError,
    ItemNotFoundError,
    MissingDriverError,
    PermissionDeniedError,
    StateConflictError,
    UnitNotFoundError,
    ValidationError,
)
from src.core.services import REMOVAL_LIFECYCLE, TRANSFER_LIFECYCLE, TransitionRule

logger = get_logger(__name__)

# roles that may act for any unit
_UNIT_AGNOSTIC = (UserRole.DESIGNER, UserRole.ADMIN)

_REVERSAL = {MovementType.OUT: MovementType.ENTRY, MovementType.ENTRY: MovementType.OUT}


@dataclass
class FurnitureMoveResult:
    removal: FurnitureRemoval | None = None
    transfer: FurnitureTransfer | None = None
    movements: list[Movement] = field(default_factory=list)


class _FurnitureMoveUseCase(FulfillmentUseCase):
    """Shared checks and the ledger-then-status write."""

    async def _require_furniture(self, item_id: str) -> Item:
        directory = await self._get_directory()
        item = await directory.get_item_by_id(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        if not item.is_furniture:
            raise ValidationError("item_id", "not a furniture item", item_id)
        return item

    async def _require_unit(self, unit_id: str) -> None:
        directory = await self._get_directory()
        if await directory.get_unit_by_id(unit_id) is None:
            raise UnitNotFoundError(unit_id)

    async def _require_available(self, item_id: str, unit_id: str, quantity: float) -> None:
        projector = await self._get_projector()
        stock = await projector.read(item_id, unit_id)
        available = stock.quantity if stock else 0.0
        if quantity > available:
            raise ValidationError(
                "quantity", f"only {available:g} in stock at {unit_id}", quantity
            )

    @staticmethod
    def _require_member(user: User, action: str, *unit_ids: str) -> None:
        if user.role in _UNIT_AGNOSTIC:
            return
        if not any(user.belongs_to(unit_id) for unit_id in unit_ids):
            raise PermissionDeniedError(user.id, action, "not a member of the unit")

    async def _record_all(self, movements: list[Movement]) -> list[RecordMovementResult]:
        recorder = await self._get_recorder()
        return [await recorder.record(movement) for movement in movements]

    async def _set_after_movements(
        self,
        store: Any,
        entity: str,
        current: FurnitureRemoval | FurnitureTransfer,
        rule: TransitionRule,
        changes: dict[str, Any],
        recorded: dict[str, RecordMovementResult],
        actor_id: str,
    ) -> FurnitureRemoval | FurnitureTransfer:
        """
        Apply ``changes`` after the movements in ``recorded`` were written.

        ``recorded`` maps the column holding each movement id to its result.
        A concurrent caller that already stored the same movements counts as
        a replay; any other winner gets the movements reversed.
        """
        changes = {**changes, **{col: r.movement.id for col, r in recorded.items()}}
        updated = await with_persistence_retry(
            store.compare_and_set, current.id, current.status, current.version, changes
        )
        if updated is not None:
            return updated

        latest = await store.get(current.id)
        if latest is not None and all(
            getattr(latest, col) == r.movement.id for col, r in recorded.items()
        ):
            return latest

        logger.warning(
            "furniture_move_reversed",
            entity=entity,
            id=current.id,
            actual=latest.status.value if latest else None,
        )
        recorder = await self._get_recorder()
        for result in recorded.values():
            moved = result.movement
            await recorder.record(
                Movement(
                    type=_REVERSAL[moved.type],
                    item_id=moved.item_id,
                    unit_id=moved.unit_id,
                    user_id=actor_id,
                    quantity=moved.quantity,
                    reference=current.id,
                    idempotency_key=f"void:{moved.idempotency_key}",
                    notes="status change lost to a concurrent update",
                )
            )
        raise StateConflictError(
            entity,
            current.id,
            sorted(rule.sources),
            actual=latest.status.value if latest else None,
        )

    @staticmethod
    def to_response(result: FurnitureMoveResult) -> FurnitureMoveActionResponse:
        return FurnitureMoveActionResponse(
            removal=FurnitureRemovalResponse.from_entity(result.removal)
            if result.removal
            else None,
            transfer=FurnitureTransferResponse.from_entity(result.transfer)
            if result.transfer
            else None,
            movements=[MovementResponse.from_entity(m) for m in result.movements],
        )


# --- Removals ---


class SubmitRemovalUseCase(_FurnitureMoveUseCase):
    """A unit asks to hand furniture back; the designer decides its fate."""

    async def execute(self, request: SubmitRemovalRequest) -> FurnitureRemoval:
        requester = await self._require_user(request.requested_by_user_id)
        item = await self._require_furniture(request.item_id)
        await self._require_unit(request.unit_id)
        self._require_member(requester, "request_removal", request.unit_id)
        if not request.reason.strip():
            raise ValidationError("reason", "a reason is required", request.reason)
        await self._require_available(item.id, request.unit_id, request.quantity)

        store = await self._get_removal_store()
        created = await with_persistence_retry(
            store.create,
            FurnitureRemoval(
                item_id=item.id,
                unit_id=request.unit_id,
                requested_by_user_id=requester.id,
                quantity=request.quantity,
                reason=request.reason.strip(),
                observations=request.observations,
            ),
        )
        logger.info(
            "furniture_removal_submitted",
            removal_id=created.id,
            item_id=created.item_id,
            unit_id=created.unit_id,
        )
        return created


class ReviewRemovalUseCase(_FurnitureMoveUseCase):
    """
    Move a removal along its lifecycle.

    Pickup writes an ``out`` at the unit. Receipt of furniture kept for
    storage writes an ``entry`` at the warehouse; disposed furniture
    never re-enters stock.
    """

    async def execute(self, removal_id: str, review: ReviewRemovalRequest) -> FurnitureMoveResult:
        store = await self._get_removal_store()
        current = await store.get(removal_id)
        if current is None:
            raise FurnitureRemovalNotFoundError(removal_id)

        actor = await self._require_user(review.actor_id)
        rule = REMOVAL_LIFECYCLE.check(
            review.action, current.id, current.status, actor=actor, reason=review.reason
        )

        now = utc_now()
        recorded: dict[str, RecordMovementResult] = {}
        if review.action == "approve_storage":
            changes: dict[str, Any] = {
                "status": RemovalStatus.APPROVED_STORAGE,
                "destination": RemovalDestination.STORAGE,
                "reviewed_by_user_id": actor.id,
                "reviewed_at": now,
            }
        elif review.action == "approve_disposal":
            changes = {
                "status": RemovalStatus.APPROVED_DISPOSAL,
                "destination": RemovalDestination.DISPOSAL,
                "disposal_justification": (review.reason or "").strip(),
                "reviewed_by_user_id": actor.id,
                "reviewed_at": now,
            }
        elif review.action == "reject":
            changes = {
                "status": RemovalStatus.REJECTED,
                "rejection_reason": (review.reason or "").strip(),
                "reviewed_by_user_id": actor.id,
                "reviewed_at": now,
            }
        elif review.action == "schedule_pickup":
            driver = await self._require_driver(review.driver_user_id)
            changes = {
                "status": RemovalStatus.AWAITING_PICKUP,
                "assigned_driver_id": driver.id,
                "assigned_at": now,
            }
        elif review.action == "pick_up":
            if actor.is_driver and current.assigned_driver_id not in (None, actor.id):
                raise PermissionDeniedError(actor.id, "pick_up", "assigned to another driver")
            (taken,) = await self._record_all(
                [self._movement(current, MovementType.OUT, current.unit_id, actor.id, review)]
            )
            recorded["pickup_movement_id"] = taken
            changes = {
                "status": RemovalStatus.IN_TRANSIT,
                "picked_up_by_user_id": actor.id,
                "picked_up_at": now,
            }
        else:
            if current.destination == RemovalDestination.STORAGE:
                warehouse = self._get_warehouse().unit_id
                (stored,) = await self._record_all(
                    [self._movement(current, MovementType.ENTRY, warehouse, actor.id, review)]
                )
                recorded["entry_movement_id"] = stored
            changes = {
                "status": RemovalStatus.COMPLETED,
                "received_by_user_id": actor.id,
                "received_at": now,
                "completed_at": now,
            }

        if review.notes:
            changes["observations"] = review.notes

        updated = await self._set_after_movements(
            store, "Furniture removal", current, rule, changes, recorded, actor.id
        )
        logger.info(
            "furniture_removal_reviewed",
            removal_id=updated.id,
            action=review.action,
            actor_id=actor.id,
            status=updated.status.value,
        )
        for result in recorded.values():
            result.require_projected(
                f"removal_{review.action}", removal_id=updated.id, status=updated.status.value
            )
        return FurnitureMoveResult(
            removal=updated, movements=[r.movement for r in recorded.values()]
        )

    async def _require_driver(self, driver_user_id: str | None) -> User:
        directory = await self._get_directory()
        driver = await directory.get_user_by_id(driver_user_id) if driver_user_id else None
        if driver is None or driver.role != UserRole.WAREHOUSE:
            raise MissingDriverError(driver_user_id)
        return driver

    @staticmethod
    def _movement(
        removal: FurnitureRemoval,
        movement_type: MovementType,
        unit_id: str,
        user_id: str,
        review: ReviewRemovalRequest,
    ) -> Movement:
        return Movement(
            type=movement_type,
            item_id=removal.item_id,
            unit_id=unit_id,
            user_id=user_id,
            quantity=removal.quantity,
            reference=removal.id,
            idempotency_key=f"removal-{review.action}:{removal.id}",
            notes=review.notes or removal.reason,
        )


class QueryRemovalsUseCase(FulfillmentUseCase):
    async def get_removal(self, removal_id: str) -> FurnitureRemoval:
        store = await self._get_removal_store()
        removal = await store.get(removal_id)
        if removal is None:
            raise FurnitureRemovalNotFoundError(removal_id)
        return removal

    async def list_removals(
        self,
        status: RemovalStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[FurnitureRemoval]:
        store = await self._get_removal_store()
        return await store.list(status=status, unit_id=unit_id, limit=limit, offset=offset)

    @staticmethod
    def to_list_response(removals: list[FurnitureRemoval]) -> FurnitureRemovalListResponse:
        return FurnitureRemovalListResponse(
            removals=[FurnitureRemovalResponse.from_entity(r) for r in removals],
            count=len(removals),
        )


# --- Transfers ---


class SubmitTransferUseCase(_FurnitureMoveUseCase):
    """Ask to move furniture between two units."""

    async def execute(self, request: SubmitTransferRequest) -> FurnitureTransfer:
        requester = await self._require_user(request.requested_by_user_id)
        item = await self._require_furniture(request.item_id)
        await self._require_unit(request.from_unit_id)
        await self._require_unit(request.to_unit_id)
        self._require_member(
            requester, "request_transfer", request.from_unit_id, request.to_unit_id
        )
        await self._require_available(item.id, request.from_unit_id, request.quantity)

        store = await self._get_transfer_store()
        created = await with_persistence_retry(
            store.create,
            FurnitureTransfer(
                item_id=item.id,
                from_unit_id=request.from_unit_id,
                to_unit_id=request.to_unit_id,
                requested_by_user_id=requester.id,
                quantity=request.quantity,
                observations=request.observations,
            ),
        )
        logger.info(
            "furniture_transfer_submitted",
            transfer_id=created.id,
            item_id=created.item_id,
            from_unit_id=created.from_unit_id,
            to_unit_id=created.to_unit_id,
        )
        return created


class ReviewTransferUseCase(_FurnitureMoveUseCase):
    """Designer approval or rejection, then completion with an out/entry pair."""

    async def execute(
        self, transfer_id: str, review: ReviewTransferRequest
    ) -> FurnitureMoveResult:
        store = await self._get_transfer_store()
        current = await store.get(transfer_id)
        if current is None:
            raise FurnitureTransferNotFoundError(transfer_id)

        actor = await self._require_user(review.actor_id)
        rule = TRANSFER_LIFECYCLE.check(
            review.action, current.id, current.status, actor=actor, reason=review.reason
        )

        now = utc_now()
        recorded: dict[str, RecordMovementResult] = {}
        if review.action == "approve":
            changes: dict[str, Any] = {
                "status": TransferStatus.APPROVED,
                "approved_by_user_id": actor.id,
                "approved_at": now,
            }
        elif review.action == "reject":
            changes = {
                "status": TransferStatus.REJECTED,
                "rejection_reason": (review.reason or "").strip(),
            }
        else:
            out, entry = await self._record_all(
                [
                    self._movement(current, MovementType.OUT, current.from_unit_id, actor.id),
                    self._movement(current, MovementType.ENTRY, current.to_unit_id, actor.id),
                ]
            )
            recorded = {"out_movement_id": out, "entry_movement_id": entry}
            changes = {
                "status": TransferStatus.COMPLETED,
                "completed_by_user_id": actor.id,
                "completed_at": now,
            }

        if review.notes:
            changes["observations"] = review.notes

        updated = await self._set_after_movements(
            store, "Furniture transfer", current, rule, changes, recorded, actor.id
        )
        logger.info(
            "furniture_transfer_reviewed",
            transfer_id=updated.id,
            action=review.action,
            actor_id=actor.id,
            status=updated.status.value,
        )
        for result in recorded.values():
            result.require_projected(
                "complete_transfer", transfer_id=updated.id, status=updated.status.value
            )
        return FurnitureMoveResult(
            transfer=updated, movements=[r.movement for r in recorded.values()]
        )

    @staticmethod
    def _movement(
        transfer: FurnitureTransfer,
        movement_type: MovementType,
        unit_id: str,
        user_id: str,
    ) -> Movement:
        direction = "out" if movement_type == MovementType.OUT else "in"
        return Movement(
            type=movement_type,
            item_id=transfer.item_id,
            unit_id=unit_id,
            user_id=user_id,
            quantity=transfer.quantity,
            reference=transfer.id,
            idempotency_key=f"transfer-{direction}:{transfer.id}",
            notes=f"transfer {transfer.from_unit_id} -> {transfer.to_unit_id}",
        )


class QueryTransfersUseCase(FulfillmentUseCase):
    async def get_transfer(self, transfer_id: str) -> FurnitureTransfer:
        store = await self._get_transfer_store()
        transfer = await store.get(transfer_id)
        if transfer is None:
            raise FurnitureTransferNotFoundError(transfer_id)
        return transfer

    async def list_transfers(
        self,
        status: TransferStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[FurnitureTransfer]:
        """Transfers leaving or entering ``unit_id``."""
        store = await self._get_transfer_store()
        return await store.list(status=status, unit_id=unit_id, limit=limit, offset=offset)

    @staticmethod
    def to_list_response(transfers: list[FurnitureTransfer]) -> FurnitureTransferListResponse:
        return FurnitureTransferListResponse(
            transfers=[FurnitureTransferResponse.from_entity(t) for t in transfers],
            count=len(transfers),
        )
