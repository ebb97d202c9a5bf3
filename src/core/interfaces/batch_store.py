"""Abstract interface for delivery batch and confirmation storage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.core.entities.delivery import (
    BatchStatus,
    ConfirmationType,
    DeliveryBatch,
    DeliveryConfirmation,
)


class IBatchStore(ABC):
    """
    Interface for delivery batches, their membership and confirmations.

    Membership rows are kept open while the batch is open, so a request can
    never sit in two open batches at once.
    """

    @abstractmethod
    async def create(self, batch: DeliveryBatch) -> DeliveryBatch:
        """
        Insert a batch and its open membership rows.

        Raises BatchMembershipError if a member already belongs to another
        open batch.
        """
        pass

    @abstractmethod
    async def get(self, batch_id: str) -> DeliveryBatch | None:
        """Get batch by ID."""
        pass

    @abstractmethod
    async def get_by_scan_code(self, scan_code: str) -> DeliveryBatch | None:
        """Get batch by its scan code."""
        pass

    @abstractmethod
    async def list(
        self,
        status: BatchStatus | None = None,
        driver_user_id: str | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[DeliveryBatch]:
        """List batches, newest first."""
        pass

    @abstractmethod
    async def find_open_batch_id(self, member_id: str) -> str | None:
        """ID of the open batch holding a request, if any."""
        pass

    @abstractmethod
    async def scan_code_exists(self, scan_code: str) -> bool:
        pass

    @abstractmethod
    async def compare_and_set(
        self,
        batch_id: str,
        expected_status: BatchStatus,
        expected_version: int,
        changes: dict[str, Any],
    ) -> DeliveryBatch | None:
        """
        Conditional update on (status, version).

        Moving the batch to a closed status releases its membership rows.
        Returns None when the row moved on since it was read.
        """
        pass

    # --- Confirmations (append-only) ---

    @abstractmethod
    async def add_confirmation(
        self, confirmation: DeliveryConfirmation
    ) -> DeliveryConfirmation:
        """
        Append a confirmation, assigning id and timestamp.

        Raises StateConflictError on a second delivery or receipt
        confirmation for the same batch.
        """
        pass

    @abstractmethod
    async def list_confirmations(
        self,
        batch_id: str,
        confirmation_type: ConfirmationType | None = None,
    ) -> list[DeliveryConfirmation]:
        """Confirmations for a batch, oldest first."""
        pass
