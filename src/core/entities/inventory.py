"""Inventory domain entities: the movement ledger and its stock projection."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(UTC)


class MovementType(str, Enum):
    """Types of stock movements."""

    ENTRY = "entry"
    CONSUMPTION = "consumption"
    LOAN = "loan"
    RETURN = "return"
    OUT = "out"

    @property
    def sign(self) -> int:
        """+1 for movements that add stock, -1 for those that remove it."""
        return 1 if self in (MovementType.ENTRY, MovementType.RETURN) else -1


class StockHealth(str, Enum):
    """Read-side classification of a projected quantity."""

    HEALTHY = "healthy"
    LOW = "low"
    NEGATIVE = "negative"


class Movement(BaseModel):
    """
    Immutable ledger fact.

    ``id`` and ``timestamp`` are assigned by the store on insertion;
    values supplied by a client are ignored.
    """

    id: int | None = None
    type: MovementType
    item_id: str
    unit_id: str
    user_id: str
    quantity: float = Field(..., gt=0)
    timestamp: datetime | None = None
    notes: str | None = None
    reference: str | None = None  # batch scan code, or loan, removal or transfer id
    idempotency_key: str | None = None

    model_config = {"frozen": True}

    @property
    def signed_quantity(self) -> float:
        return self.type.sign * self.quantity


class UnitStock(BaseModel):
    """Projected quantity of one item at one unit."""

    id: int | None = None
    item_id: str
    unit_id: str
    quantity: float = 0.0
    minimum_quantity: float = Field(default=0.0, ge=0)
    location: str = ""
    ledger_version: int = 0  # id of the newest movement folded in
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def health(self) -> StockHealth:
        if self.quantity < 0:
            return StockHealth.NEGATIVE
        if self.quantity <= self.minimum_quantity and self.minimum_quantity > 0:
            return StockHealth.LOW
        return StockHealth.HEALTHY

    @property
    def is_healthy(self) -> bool:
        return self.health == StockHealth.HEALTHY


def project_quantity(movements: list[Movement]) -> float:
    """Signed sum of a ledger slice."""
    return sum(m.signed_quantity for m in movements)
