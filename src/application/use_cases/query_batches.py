"""Read-side access to delivery batches and their confirmations."""

from src.application.dto.responses import (
    BatchListResponse,
    BatchResponse,
    ConfirmationListResponse,
    ConfirmationResponse,
)
from src.application.use_cases.base import FulfillmentUseCase
from src.core.entities.delivery import BatchStatus, ConfirmationType, DeliveryBatch, DeliveryConfirmation
from src.core.exceptions import BatchNotFoundError


class QueryBatchesUseCase(FulfillmentUseCase):
    async def get_batch(self, batch_id: str) -> DeliveryBatch:
        store = await self._get_batch_store()
        batch = await store.get(batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch

    async def get_by_scan_code(self, scan_code: str) -> DeliveryBatch:
        """Lookup used by the controller's scanner; codes are case-insensitive."""
        store = await self._get_batch_store()
        normalized = scan_code.strip().upper()
        batch = await store.get_by_scan_code(normalized)
        if batch is None:
            raise BatchNotFoundError(normalized)
        return batch

    async def list_batches(
        self,
        status: BatchStatus | None = None,
        driver_user_id: str | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[DeliveryBatch]:
        store = await self._get_batch_store()
        return await store.list(
            status=status,
            driver_user_id=driver_user_id,
            unit_id=unit_id,
            limit=limit,
            offset=offset,
        )

    async def list_confirmations(
        self,
        batch_id: str,
        confirmation_type: ConfirmationType | None = None,
    ) -> list[DeliveryConfirmation]:
        batch = await self.get_batch(batch_id)
        store = await self._get_batch_store()
        return await store.list_confirmations(batch.id, confirmation_type)

    @staticmethod
    def to_list_response(batches: list[DeliveryBatch]) -> BatchListResponse:
        return BatchListResponse(
            batches=[BatchResponse.from_entity(b) for b in batches],
            count=len(batches),
        )

    @staticmethod
    def to_confirmations_response(
        confirmations: list[DeliveryConfirmation],
    ) -> ConfirmationListResponse:
        return ConfirmationListResponse(
            confirmations=[ConfirmationResponse.from_entity(c) for c in confirmations],
            count=len(confirmations),
        )
