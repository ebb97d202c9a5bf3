"""Abstract interfaces for furniture removal and transfer storage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.core.entities.furniture_moves import (
    FurnitureRemoval,
    FurnitureTransfer,
    RemovalStatus,
    TransferStatus,
)


class IFurnitureRemovalStore(ABC):
    """Interface for furniture removal persistence."""

    @abstractmethod
    async def create(self, removal: FurnitureRemoval) -> FurnitureRemoval:
        pass

    @abstractmethod
    async def get(self, removal_id: str) -> FurnitureRemoval | None:
        pass

    @abstractmethod
    async def list(
        self,
        status: RemovalStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[FurnitureRemoval]:
        """List removals, newest first."""
        pass

    @abstractmethod
    async def compare_and_set(
        self,
        removal_id: str,
        expected_status: RemovalStatus,
        expected_version: int,
        changes: dict[str, Any],
    ) -> FurnitureRemoval | None:
        pass


class IFurnitureTransferStore(ABC):
    """Interface for furniture transfer persistence."""

    @abstractmethod
    async def create(self, transfer: FurnitureTransfer) -> FurnitureTransfer:
        pass

    @abstractmethod
    async def get(self, transfer_id: str) -> FurnitureTransfer | None:
        pass

    @abstractmethod
    async def list(
        self,
        status: TransferStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[FurnitureTransfer]:
        """List transfers leaving or entering ``unit_id``, newest first."""
        pass

    @abstractmethod
    async def compare_and_set(
        self,
        transfer_id: str,
        expected_status: TransferStatus,
        expected_version: int,
        changes: dict[str, Any],
    ) -> FurnitureTransfer | None:
        pass
