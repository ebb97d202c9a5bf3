"""Abstract interface for loan storage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.core.entities.loan import Loan, LoanStatus


class ILoanStore(ABC):
    """Interface for loan persistence."""

    @abstractmethod
    async def create(self, loan: Loan) -> Loan:
        pass

    @abstractmethod
    async def get(self, loan_id: str) -> Loan | None:
        pass

    @abstractmethod
    async def list(
        self,
        status: LoanStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Loan]:
        """List loans by stored status, newest first."""
        pass

    @abstractmethod
    async def compare_and_set(
        self,
        loan_id: str,
        expected_status: LoanStatus,
        expected_version: int,
        changes: dict[str, Any],
    ) -> Loan | None:
        pass
