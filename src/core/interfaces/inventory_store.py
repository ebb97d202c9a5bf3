"""Abstract interface for the movement ledger and stock projection storage."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.core.entities.inventory import Movement, MovementType, UnitStock


@dataclass(frozen=True)
class LedgerSummary:
    """Aggregate of every movement for one (item, unit) key."""

    item_id: str
    unit_id: str
    quantity: float
    version: int  # highest movement id, 0 when the slice is empty
    movement_count: int


class IInventoryStore(ABC):
    """Interface for ledger appends and projection rows."""

    # --- Ledger (append-only) ---

    @abstractmethod
    async def append_movement(self, movement: Movement) -> tuple[Movement, bool]:
        """
        Append a movement, assigning id and timestamp.

        Returns the stored movement and whether it was newly inserted. A
        movement whose idempotency_key already exists is not inserted again;
        the stored one is returned with ``False``.
        """
        pass

    @abstractmethod
    async def get_movement(self, movement_id: int) -> Movement | None:
        """Get a movement by ID."""
        pass

    @abstractmethod
    async def get_movement_by_key(self, idempotency_key: str) -> Movement | None:
        """Get a movement by its idempotency key."""
        pass

    @abstractmethod
    async def list_movements(
        self,
        item_id: str | None = None,
        unit_id: str | None = None,
        reference: str | None = None,
        movement_type: MovementType | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Movement]:
        """List movements in ledger order (id ASC)."""
        pass

    @abstractmethod
    async def summarize_ledger(self, item_id: str, unit_id: str) -> LedgerSummary:
        """Signed sum and newest id of the ledger slice for one key."""
        pass

    @abstractmethod
    async def list_ledger_keys(self) -> list[tuple[str, str]]:
        """Every (item_id, unit_id) pair that has at least one movement."""
        pass

    @abstractmethod
    async def list_drifted(
        self,
        unit_id: str | None = None,
        item_id: str | None = None,
    ) -> list[LedgerSummary]:
        """
        Ledger summaries of keys whose projection row is missing or stale.

        A row is stale when its quantity or ledger version disagrees with
        the ledger slice it was derived from.
        """
        pass

    # --- Projection ---

    @abstractmethod
    async def get_stock(self, item_id: str, unit_id: str) -> UnitStock | None:
        """Get the projection row for one key."""
        pass

    @abstractmethod
    async def get_stock_by_id(self, stock_id: int) -> UnitStock | None:
        """Get a projection row by ID."""
        pass

    @abstractmethod
    async def save_projection(
        self,
        summary: LedgerSummary,
        default_minimum: float = 0.0,
    ) -> UnitStock:
        """
        Write a re-derived quantity for one key.

        Creates the row when missing. An existing row is only overwritten
        when ``summary.version`` is not older than the stored version, so
        concurrent projections converge on the newest ledger state.
        """
        pass

    @abstractmethod
    async def update_stock_attributes(
        self,
        stock_id: int,
        minimum_quantity: float | None = None,
        location: str | None = None,
    ) -> UnitStock | None:
        """Update non-ledger attributes of a projection row."""
        pass

    @abstractmethod
    async def list_stock(
        self,
        unit_id: str | None = None,
        item_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[UnitStock]:
        """List projection rows."""
        pass
