"""Abstract interfaces for material and furniture request storage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.core.entities.request import (
    FurnitureRequest,
    FurnitureRequestStatus,
    Request,
    RequestStatus,
)


class IRequestStore(ABC):
    """Interface for material request persistence."""

    @abstractmethod
    async def create(self, request: Request) -> Request:
        """Insert a new request."""
        pass

    @abstractmethod
    async def get(self, request_id: str) -> Request | None:
        """Get request by ID."""
        pass

    @abstractmethod
    async def get_many(self, request_ids: list[str]) -> list[Request]:
        """Get several requests, in the order given. Unknown IDs are skipped."""
        pass

    @abstractmethod
    async def list(
        self,
        status: RequestStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Request]:
        """List requests, newest first."""
        pass

    @abstractmethod
    async def compare_and_set(
        self,
        request_id: str,
        expected_status: RequestStatus,
        expected_version: int,
        changes: dict[str, Any],
    ) -> Request | None:
        """
        Apply ``changes`` only if status and version are unchanged.

        Bumps the version. Returns the updated request, or None when the
        row moved on since it was read.
        """
        pass


class IFurnitureRequestStore(ABC):
    """Interface for furniture request persistence."""

    @abstractmethod
    async def create(self, request: FurnitureRequest) -> FurnitureRequest:
        pass

    @abstractmethod
    async def get(self, request_id: str) -> FurnitureRequest | None:
        pass

    @abstractmethod
    async def get_many(self, request_ids: list[str]) -> list[FurnitureRequest]:
        pass

    @abstractmethod
    async def list(
        self,
        status: FurnitureRequestStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[FurnitureRequest]:
        pass

    @abstractmethod
    async def compare_and_set(
        self,
        request_id: str,
        expected_status: FurnitureRequestStatus,
        expected_version: int,
        changes: dict[str, Any],
    ) -> FurnitureRequest | None:
        """Conditional update, same contract as IRequestStore.compare_and_set."""
        pass
