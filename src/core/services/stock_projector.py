"""
Stock Projector.

Derives the current quantity of each (item, unit) pair from the movement
ledger. Rows are always re-derived from the full ledger slice rather than
adjusted incrementally, so two projections racing on one key converge on
the same value. A row whose ``ledger_version`` lags the ledger (because a
previous projection failed after its movement committed) is rebuilt the
next time it is read.
"""

from src.config import get_logger
from src.core.entities.inventory import UnitStock
from src.core.interfaces.directory import IDirectory
from src.core.interfaces.inventory_store import IInventoryStore, LedgerSummary

logger = get_logger(__name__)


class StockProjector:
    """Keeps ``unit_stocks`` in line with the ledger."""

    def __init__(
        self,
        inventory_store: IInventoryStore,
        directory: IDirectory | None = None,
        default_minimum: float = 0.0,
    ) -> None:
        self._store = inventory_store
        self._directory = directory
        self._default_minimum = default_minimum

    async def project(self, item_id: str, unit_id: str) -> UnitStock:
        """Re-derive and persist the row for one key."""
        summary = await self._store.summarize_ledger(item_id, unit_id)
        return await self._save(summary)

    async def read(self, item_id: str, unit_id: str) -> UnitStock | None:
        """Current row for one key, repaired first if it is stale."""
        stock = await self._store.get_stock(item_id, unit_id)
        summary = await self._store.summarize_ledger(item_id, unit_id)

        if stock is None:
            if summary.movement_count == 0:
                return None
            logger.warning(
                "stock_projection_missing",
                item_id=item_id,
                unit_id=unit_id,
                ledger_version=summary.version,
            )
            return await self._save(summary)

        if self.is_stale(stock, summary):
            logger.warning(
                "stock_projection_repaired",
                item_id=item_id,
                unit_id=unit_id,
                stored_version=stock.ledger_version,
                ledger_version=summary.version,
                stored_quantity=stock.quantity,
                ledger_quantity=summary.quantity,
            )
            return await self._save(summary)

        return stock

    async def read_all(
        self,
        unit_id: str | None = None,
        item_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[UnitStock]:
        """List rows, repairing any that are stale or missing first."""
        for summary in await self._store.list_drifted(unit_id=unit_id, item_id=item_id):
            logger.warning(
                "stock_projection_repaired",
                item_id=summary.item_id,
                unit_id=summary.unit_id,
                ledger_version=summary.version,
                ledger_quantity=summary.quantity,
            )
            await self._save(summary)

        return await self._store.list_stock(
            unit_id=unit_id, item_id=item_id, limit=limit, offset=offset
        )

    async def rebuild_all(self) -> list[UnitStock]:
        """Re-derive every row that has ledger history."""
        keys = await self._store.list_ledger_keys()
        rebuilt = [await self.project(item_id, unit_id) for item_id, unit_id in keys]
        logger.info("stock_projection_rebuilt", rows=len(rebuilt))
        return rebuilt

    @staticmethod
    def is_stale(stock: UnitStock, summary: LedgerSummary) -> bool:
        return (
            stock.ledger_version != summary.version
            or abs(stock.quantity - summary.quantity) > 1e-9
        )

    async def _save(self, summary: LedgerSummary) -> UnitStock:
        minimum = await self._minimum_for(summary.item_id)
        stock = await self._store.save_projection(summary, default_minimum=minimum)
        logger.debug(
            "stock_projected",
            item_id=summary.item_id,
            unit_id=summary.unit_id,
            quantity=stock.quantity,
            ledger_version=stock.ledger_version,
        )
        return stock

    async def _minimum_for(self, item_id: str) -> float:
        if self._directory is None:
            return self._default_minimum
        item = await self._directory.get_item_by_id(item_id)
        if item is None or not item.default_minimum_quantity:
            return self._default_minimum
        return item.default_minimum_quantity
