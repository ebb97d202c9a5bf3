"""Material request use cases: submit, approve/reject, query."""

from dataclasses import dataclass, field

from src.application.dto.requests import ReviewRequestRequest, SubmitRequestRequest
from src.application.dto.responses import (
    RequestListResponse,
    RequestResponse,
    RequestTransitionResponse,
    WarningResponse,
)
from src.application.resilience import with_persistence_retry
from src.application.use_cases.base import FulfillmentUseCase
from src.config import get_logger
from src.core.entities.directory import UserRole
from src.core.entities.inventory import utc_now
from src.core.entities.request import Request, RequestStatus
from src.core.exceptions import (
    InsufficientStockWarning,
    ItemNotFoundError,
    PermissionDeniedError,
    RequestNotFoundError,
    StateConflictError,
    ValidationError,
)
from src.core.services import MATERIAL_LIFECYCLE

logger = get_logger(__name__)

# Roles that may file a request on behalf of any unit
_UNIT_AGNOSTIC_ROLES = (UserRole.ADMIN, UserRole.CONTROLLER, UserRole.DEVELOPER)


class SubmitRequestUseCase(FulfillmentUseCase):
    """A unit asks the warehouse for material."""

    async def execute(self, request: SubmitRequestRequest) -> Request:
        requester = await self._require_user(request.requested_by_user_id)
        if requester.role not in _UNIT_AGNOSTIC_ROLES and not requester.belongs_to(
            request.requesting_unit_id
        ):
            raise PermissionDeniedError(
                requester.id,
                "submit request",
                f"not a member of unit {request.requesting_unit_id}",
            )

        directory = await self._get_directory()
        item = await directory.get_item_by_id(request.item_id)
        if item is None:
            raise ItemNotFoundError(request.item_id)
        if item.is_furniture:
            raise ValidationError(
                "item_id", "furniture is requested through the designer", request.item_id
            )

        store = await self._get_request_store()
        created = await with_persistence_retry(
            store.create,
            Request(
                item_id=request.item_id,
                requesting_unit_id=request.requesting_unit_id,
                requested_by_user_id=requester.id,
                quantity=request.quantity,
                urgency=request.urgency,
                observations=request.observations,
            ),
        )
        logger.info(
            "request_submitted",
            request_id=created.id,
            item_id=created.item_id,
            unit_id=created.requesting_unit_id,
            urgency=created.urgency.value,
        )
        return created

    def to_response(self, request: Request) -> RequestResponse:
        return RequestResponse.from_entity(request)


@dataclass
class ReviewRequestResult:
    request: Request
    warnings: list[InsufficientStockWarning] = field(default_factory=list)


class ReviewRequestUseCase(FulfillmentUseCase):
    """
    Approve or reject a pending material request.

    Approval never blocks on stock: when the warehouse holds less than
    requested, the approval goes through with an InsufficientStockWarning.
    """

    async def execute(self, request_id: str, review: ReviewRequestRequest) -> ReviewRequestResult:
        store = await self._get_request_store()
        current = await store.get(request_id)
        if current is None:
            raise RequestNotFoundError(request_id)

        actor = await self._require_user(review.actor_id)
        rule = MATERIAL_LIFECYCLE.check(
            review.action, current.id, current.status, actor=actor, reason=review.reason
        )

        now = utc_now()
        if review.action == "approve":
            changes = {
                "status": RequestStatus.APPROVED,
                "approved_by_user_id": actor.id,
                "approved_at": now,
            }
        else:
            changes = {
                "status": RequestStatus.REJECTED,
                "rejected_reason": (review.reason or "").strip(),
                "rejected_at": now,
            }

        updated = await with_persistence_retry(
            store.compare_and_set, current.id, current.status, current.version, changes
        )
        if updated is None:
            latest = await store.get(current.id)
            raise StateConflictError(
                "Request",
                current.id,
                sorted(rule.sources),
                actual=latest.status.value if latest else None,
            )

        warnings: list[InsufficientStockWarning] = []
        if review.action == "approve":
            warning = await self._check_warehouse_stock(updated)
            if warning is not None:
                warnings.append(warning)

        logger.info(
            "request_reviewed",
            request_id=updated.id,
            action=review.action,
            actor_id=actor.id,
            status=updated.status.value,
            warnings=len(warnings),
        )
        return ReviewRequestResult(request=updated, warnings=warnings)

    async def _check_warehouse_stock(self, request: Request) -> InsufficientStockWarning | None:
        warehouse = self._get_warehouse()
        projector = await self._get_projector()
        stock = await projector.read(request.item_id, warehouse.unit_id)
        available = stock.quantity if stock else 0.0
        if available >= request.quantity:
            return None

        logger.warning(
            "request_approved_insufficient_stock",
            request_id=request.id,
            item_id=request.item_id,
            requested=request.quantity,
            available=available,
        )
        return InsufficientStockWarning(
            item_id=request.item_id,
            unit_id=warehouse.unit_id,
            requested=request.quantity,
            available=available,
        )

    def to_response(self, result: ReviewRequestResult) -> RequestTransitionResponse:
        return RequestTransitionResponse(
            request=RequestResponse.from_entity(result.request),
            warnings=[WarningResponse.from_warning(w) for w in result.warnings],
        )


class QueryRequestsUseCase(FulfillmentUseCase):
    """List and fetch material requests."""

    async def get_request(self, request_id: str) -> Request:
        store = await self._get_request_store()
        request = await store.get(request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        return request

    async def list_requests(
        self,
        status: RequestStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Request]:
        store = await self._get_request_store()
        return await store.list(status=status, unit_id=unit_id, limit=limit, offset=offset)

    @staticmethod
    def to_list_response(requests: list[Request]) -> RequestListResponse:
        return RequestListResponse(
            requests=[RequestResponse.from_entity(r) for r in requests],
            count=len(requests),
        )
