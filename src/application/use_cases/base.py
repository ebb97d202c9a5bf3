"""
Shared wiring for fulfillment use cases.

Every store is optional in the constructor. Tests inject doubles; in the
running service the SQLite singletons are resolved lazily on first use.
"""

from typing import TYPE_CHECKING

from src.application.services import (
    WarehouseContext,
    get_daily_code_service,
    get_warehouse_context,
)
from src.config import get_settings
from src.core.entities.directory import User
from src.core.exceptions import UserNotFoundError
from src.core.interfaces import (
    IBatchStore,
    IDirectory,
    IFurnitureRemovalStore,
    IFurnitureRequestStore,
    IFurnitureTransferStore,
    IInventoryStore,
    ILoanStore,
    IRequestStore,
)
from src.core.services import DailyCodeService, StockProjector

if TYPE_CHECKING:
    from src.application.use_cases.record_movement import RecordMovementUseCase


class FulfillmentUseCase:
    """Base class holding lazily resolved stores and services."""

    def __init__(
        self,
        inventory_store: IInventoryStore | None = None,
        request_store: IRequestStore | None = None,
        furniture_store: IFurnitureRequestStore | None = None,
        batch_store: IBatchStore | None = None,
        loan_store: ILoanStore | None = None,
        removal_store: IFurnitureRemovalStore | None = None,
        transfer_store: IFurnitureTransferStore | None = None,
        directory: IDirectory | None = None,
        projector: StockProjector | None = None,
        daily_codes: DailyCodeService | None = None,
        warehouse: WarehouseContext | None = None,
    ):
        self._inventory_store = inventory_store
        self._request_store = request_store
        self._furniture_store = furniture_store
        self._batch_store = batch_store
        self._loan_store = loan_store
        self._removal_store = removal_store
        self._transfer_store = transfer_store
        self._directory = directory
        self._projector = projector
        self._daily_codes = daily_codes
        self._warehouse = warehouse

    async def _get_inventory_store(self) -> IInventoryStore:
        if self._inventory_store is None:
            from src.infrastructure.storage.sqlite import get_inventory_store

            self._inventory_store = await get_inventory_store()
        return self._inventory_store

    async def _get_request_store(self) -> IRequestStore:
        if self._request_store is None:
            from src.infrastructure.storage.sqlite import get_request_store

            self._request_store = await get_request_store()
        return self._request_store

    async def _get_furniture_store(self) -> IFurnitureRequestStore:
        if self._furniture_store is None:
            from src.infrastructure.storage.sqlite import get_furniture_request_store

            self._furniture_store = await get_furniture_request_store()
        return self._furniture_store

    async def _get_batch_store(self) -> IBatchStore:
        if self._batch_store is None:
            from src.infrastructure.storage.sqlite import get_batch_store

            self._batch_store = await get_batch_store()
        return self._batch_store

    async def _get_loan_store(self) -> ILoanStore:
        if self._loan_store is None:
            from src.infrastructure.storage.sqlite import get_loan_store

            self._loan_store = await get_loan_store()
        return self._loan_store

    async def _get_removal_store(self) -> IFurnitureRemovalStore:
        if self._removal_store is None:
            from src.infrastructure.storage.sqlite import get_furniture_removal_store

            self._removal_store = await get_furniture_removal_store()
        return self._removal_store

    async def _get_transfer_store(self) -> IFurnitureTransferStore:
        if self._transfer_store is None:
            from src.infrastructure.storage.sqlite import get_furniture_transfer_store

            self._transfer_store = await get_furniture_transfer_store()
        return self._transfer_store

    async def _get_directory(self) -> IDirectory:
        if self._directory is None:
            from src.infrastructure.storage.sqlite import get_directory

            self._directory = await get_directory()
        return self._directory

    async def _get_projector(self) -> StockProjector:
        if self._projector is None:
            self._projector = StockProjector(
                inventory_store=await self._get_inventory_store(),
                directory=await self._get_directory(),
                default_minimum=get_settings().fulfillment.default_minimum_quantity,
            )
        return self._projector

    def _get_daily_codes(self) -> DailyCodeService:
        if self._daily_codes is None:
            self._daily_codes = get_daily_code_service()
        return self._daily_codes

    def _get_warehouse(self) -> WarehouseContext:
        if self._warehouse is None:
            self._warehouse = get_warehouse_context()
        return self._warehouse

    async def _get_recorder(self) -> "RecordMovementUseCase":
        from src.application.use_cases.record_movement import RecordMovementUseCase

        return RecordMovementUseCase(
            inventory_store=await self._get_inventory_store(),
            directory=await self._get_directory(),
            projector=await self._get_projector(),
        )

    async def _require_user(self, user_id: str) -> User:
        directory = await self._get_directory()
        user = await directory.get_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user
