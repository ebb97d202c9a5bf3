"""Loan entity backed by loan/return ledger movements."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.core.entities.inventory import utc_now
from src.core.entities.request import new_id


class LoanStatus(str, Enum):
    ACTIVE = "active"
    OVERDUE = "overdue"
    RETURNED = "returned"
    LOST = "lost"

    @property
    def is_open(self) -> bool:
        return self in (LoanStatus.ACTIVE, LoanStatus.OVERDUE)


class Loan(BaseModel):
    """Item lent out of a unit's stock."""

    id: str = Field(default_factory=lambda: new_id("loan"))
    item_id: str
    unit_id: str
    responsible_user_id: str
    responsible_name: str | None = None
    quantity: float = Field(default=1.0, gt=0)
    withdrawal_date: datetime = Field(default_factory=utc_now)
    expected_return_date: date
    return_date: datetime | None = None
    status: LoanStatus = LoanStatus.ACTIVE
    observations: str | None = None
    loan_movement_id: int | None = None
    return_movement_id: int | None = None
    version: int = 0

    def effective_status(self, today: date) -> LoanStatus:
        """Active loans past their due date read as overdue."""
        if self.status == LoanStatus.ACTIVE and today > self.expected_return_date:
            return LoanStatus.OVERDUE
        return self.status
