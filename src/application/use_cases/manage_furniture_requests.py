"""Furniture request use cases: submit, gate reviews, driver assignment, query."""

from dataclasses import dataclass

from src.application.dto.requests import (
    CreateBatchRequest,
    ReviewFurnitureRequestRequest,
    SubmitFurnitureRequestRequest,
)
from src.application.dto.responses import (
    BatchResponse,
    FurnitureRequestListResponse,
    FurnitureRequestResponse,
    FurnitureTransitionResponse,
)
from src.application.resilience import with_persistence_retry
from src.application.use_cases.base import FulfillmentUseCase
from src.config import get_logger
from src.core.entities.delivery import DeliveryBatch
from src.core.entities.inventory import utc_now
from src.core.entities.request import FurnitureRequest, FurnitureRequestStatus
from src.core.exceptions import (
    FurnitureRequestNotFoundError,
    ItemNotFoundError,
    StateConflictError,
    ValidationError,
)
from src.core.services import FURNITURE_LIFECYCLE

logger = get_logger(__name__)


class SubmitFurnitureRequestUseCase(FulfillmentUseCase):
    """A unit asks the designer for furniture."""

    async def execute(self, request: SubmitFurnitureRequestRequest) -> FurnitureRequest:
        requester = await self._require_user(request.requested_by_user_id)

        directory = await self._get_directory()
        item = await directory.get_item_by_id(request.item_id)
        if item is None:
            raise ItemNotFoundError(request.item_id)
        if not item.is_furniture:
            raise ValidationError("item_id", "not a furniture item", request.item_id)

        store = await self._get_furniture_store()
        created = await with_persistence_retry(
            store.create,
            FurnitureRequest(
                item_id=item.id,
                requesting_unit_id=request.requesting_unit_id,
                requested_by_user_id=requester.id,
                quantity=request.quantity,
                location=request.location,
                justification=request.justification,
                observations=request.observations,
            ),
        )
        logger.info(
            "furniture_request_submitted",
            request_id=created.id,
            item_id=created.item_id,
            unit_id=created.requesting_unit_id,
        )
        return created


@dataclass
class FurnitureReviewResult:
    request: FurnitureRequest
    batch: DeliveryBatch | None = None  # set by driver assignment


class ReviewFurnitureRequestUseCase(FulfillmentUseCase):
    """
    Move a furniture request through its gates.

    Designer approval, storage approval and rejection stamp the acting
    user on the request. Assigning a driver ships the request on its own
    single-member batch, so completion runs through the same receipt
    confirmation as any other delivery.
    """

    async def execute(
        self, request_id: str, review: ReviewFurnitureRequestRequest
    ) -> FurnitureReviewResult:
        store = await self._get_furniture_store()
        current = await store.get(request_id)
        if current is None:
            raise FurnitureRequestNotFoundError(request_id)

        actor = await self._require_user(review.actor_id)
        rule = FURNITURE_LIFECYCLE.check(
            review.action, current.id, current.status, actor=actor, reason=review.reason
        )

        if review.action == "assign_driver":
            return await self._assign_driver(current, review)

        now = utc_now()
        if review.action == "designer_approve":
            changes = {
                "status": FurnitureRequestStatus.APPROVED_DESIGNER,
                "reviewed_by_designer_id": actor.id,
                "reviewed_at": now,
            }
        elif review.action == "storage_approve":
            changes = {
                "status": FurnitureRequestStatus.APPROVED_STORAGE,
                "approved_by_storage_user_id": actor.id,
                "approved_by_storage_at": now,
            }
        else:
            changes = {
                "status": FurnitureRequestStatus.REJECTED,
                "rejection_reason": (review.reason or "").strip(),
            }
            if current.status == FurnitureRequestStatus.PENDING_DESIGNER:
                changes["reviewed_by_designer_id"] = actor.id
                changes["reviewed_at"] = now

        updated = await with_persistence_retry(
            store.compare_and_set, current.id, current.status, current.version, changes
        )
        if updated is None:
            latest = await store.get(current.id)
            raise StateConflictError(
                "Furniture request",
                current.id,
                sorted(rule.sources),
                actual=latest.status.value if latest else None,
            )

        logger.info(
            "furniture_request_reviewed",
            request_id=updated.id,
            action=review.action,
            actor_id=actor.id,
            status=updated.status.value,
        )
        return FurnitureReviewResult(request=updated)

    async def _assign_driver(
        self, current: FurnitureRequest, review: ReviewFurnitureRequestRequest
    ) -> FurnitureReviewResult:
        from src.application.use_cases.create_delivery_batch import CreateDeliveryBatchUseCase

        creator = CreateDeliveryBatchUseCase(
            inventory_store=self._inventory_store,
            request_store=await self._get_request_store(),
            furniture_store=await self._get_furniture_store(),
            batch_store=await self._get_batch_store(),
            directory=await self._get_directory(),
            projector=self._projector,
            warehouse=self._warehouse,
        )
        result = await creator.execute(
            CreateBatchRequest(
                furniture_request_ids=[current.id],
                target_unit_id=current.requesting_unit_id,
                driver_user_id=review.driver_user_id,
                notes=review.reason,
            )
        )
        logger.info(
            "furniture_driver_assigned",
            request_id=current.id,
            driver_id=review.driver_user_id,
            batch_id=result.batch.id,
        )
        return FurnitureReviewResult(request=result.furniture_requests[0], batch=result.batch)

    @staticmethod
    def to_response(result: FurnitureReviewResult) -> FurnitureTransitionResponse:
        return FurnitureTransitionResponse(
            request=FurnitureRequestResponse.from_entity(result.request),
            batch=BatchResponse.from_entity(result.batch) if result.batch else None,
        )


class QueryFurnitureRequestsUseCase(FulfillmentUseCase):
    """List and fetch furniture requests."""

    async def get_request(self, request_id: str) -> FurnitureRequest:
        store = await self._get_furniture_store()
        request = await store.get(request_id)
        if request is None:
            raise FurnitureRequestNotFoundError(request_id)
        return request

    async def list_requests(
        self,
        status: FurnitureRequestStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[FurnitureRequest]:
        store = await self._get_furniture_store()
        return await store.list(status=status, unit_id=unit_id, limit=limit, offset=offset)

    @staticmethod
    def to_list_response(requests: list[FurnitureRequest]) -> FurnitureRequestListResponse:
        return FurnitureRequestListResponse(
            requests=[FurnitureRequestResponse.from_entity(r) for r in requests],
            count=len(requests),
        )
