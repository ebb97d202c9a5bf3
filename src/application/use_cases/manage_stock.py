"""Stock read, rebuild and administrative override use cases."""

from dataclasses import dataclass

from src.application.dto.requests import StockOverrideRequest
from src.application.dto.responses import (
    MovementListResponse,
    MovementResponse,
    RebuildStockResponse,
    StockListResponse,
    StockOverrideResponse,
    UnitStockResponse,
)
from src.application.use_cases.base import FulfillmentUseCase
from src.config import get_logger
from src.core.entities.directory import UserRole
from src.core.entities.inventory import Movement, MovementType, StockHealth, UnitStock
from src.core.exceptions import PermissionDeniedError, StockNotFoundError

logger = get_logger(__name__)


class QueryStockUseCase(FulfillmentUseCase):
    """Read-side queries over the ledger and its projection."""

    async def list_stock(
        self,
        unit_id: str | None = None,
        item_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[UnitStock]:
        projector = await self._get_projector()
        return await projector.read_all(
            unit_id=unit_id, item_id=item_id, limit=limit, offset=offset
        )

    async def get_stock(self, item_id: str, unit_id: str) -> UnitStock:
        projector = await self._get_projector()
        stock = await projector.read(item_id, unit_id)
        if stock is None:
            raise StockNotFoundError(f"{item_id}@{unit_id}")
        return stock

    async def list_low_stock(self, unit_id: str | None = None) -> list[UnitStock]:
        """Rows at or under their minimum, or negative."""
        rows = await self.list_stock(unit_id=unit_id, limit=10_000)
        low = [s for s in rows if s.health != StockHealth.HEALTHY]
        # Negative first, then the thinnest margin over minimum
        low.sort(key=lambda s: (s.health != StockHealth.NEGATIVE, s.quantity - s.minimum_quantity))
        return low

    async def list_movements(
        self,
        item_id: str | None = None,
        unit_id: str | None = None,
        reference: str | None = None,
        movement_type: MovementType | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Movement]:
        store = await self._get_inventory_store()
        return await store.list_movements(
            item_id=item_id,
            unit_id=unit_id,
            reference=reference,
            movement_type=movement_type,
            limit=limit,
            offset=offset,
        )

    @staticmethod
    def to_list_response(stocks: list[UnitStock]) -> StockListResponse:
        return StockListResponse(
            stocks=[UnitStockResponse.from_entity(s) for s in stocks],
            count=len(stocks),
        )

    @staticmethod
    def to_movements_response(movements: list[Movement]) -> MovementListResponse:
        return MovementListResponse(
            movements=[MovementResponse.from_entity(m) for m in movements],
            count=len(movements),
        )


class RebuildStockUseCase(FulfillmentUseCase):
    """Re-derive every projection row from the ledger."""

    async def execute(self) -> list[UnitStock]:
        logger.info("stock_rebuild_started")
        projector = await self._get_projector()
        rebuilt = await projector.rebuild_all()
        logger.info("stock_rebuild_complete", rows=len(rebuilt))
        return rebuilt

    def to_response(self, stocks: list[UnitStock]) -> RebuildStockResponse:
        return RebuildStockResponse(
            rebuilt=len(stocks),
            stocks=[UnitStockResponse.from_entity(s) for s in stocks],
        )


@dataclass
class StockOverrideResult:
    stock: UnitStock
    movement: Movement | None = None


class OverrideStockUseCase(FulfillmentUseCase):
    """
    Administrative edit of a unit stock row.

    Minimum and location are attributes of the row and are written in
    place. A quantity change is recorded as one compensating entry or out
    movement so the row keeps matching the ledger.
    """

    async def execute(self, stock_id: int, request: StockOverrideRequest) -> StockOverrideResult:
        actor = await self._require_user(request.actor_id)
        if actor.role not in (UserRole.ADMIN, UserRole.DEVELOPER):
            raise PermissionDeniedError(actor.id, "override stock", "admin only")

        store = await self._get_inventory_store()
        stock = await store.get_stock_by_id(stock_id)
        if stock is None:
            raise StockNotFoundError(stock_id)

        projector = await self._get_projector()
        stock = await projector.read(stock.item_id, stock.unit_id) or stock

        movement: Movement | None = None
        if request.quantity is not None:
            delta = request.quantity - stock.quantity
            if abs(delta) > 1e-9:
                recorder = await self._get_recorder()
                recorded = await recorder.record(
                    Movement(
                        type=MovementType.ENTRY if delta > 0 else MovementType.OUT,
                        item_id=stock.item_id,
                        unit_id=stock.unit_id,
                        user_id=actor.id,
                        quantity=abs(delta),
                        notes=request.notes or f"Stock override to {request.quantity:g}",
                    )
                )
                movement = recorded.movement
                recorded.require_projected("override_stock", stock_id=stock_id)

        if request.minimum_quantity is not None or request.location is not None:
            updated = await store.update_stock_attributes(
                stock_id,
                minimum_quantity=request.minimum_quantity,
                location=request.location,
            )
            if updated is None:
                raise StockNotFoundError(stock_id)
            stock = updated
        else:
            stock = await store.get_stock_by_id(stock_id) or stock

        logger.info(
            "stock_overridden",
            stock_id=stock_id,
            actor_id=actor.id,
            movement_id=movement.id if movement else None,
            quantity=stock.quantity,
            minimum_quantity=stock.minimum_quantity,
        )
        return StockOverrideResult(stock=stock, movement=movement)

    def to_response(self, result: StockOverrideResult) -> StockOverrideResponse:
        return StockOverrideResponse(
            stock=UnitStockResponse.from_entity(result.stock),
            movement=MovementResponse.from_entity(result.movement) if result.movement else None,
        )
