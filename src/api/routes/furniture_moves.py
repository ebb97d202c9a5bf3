"""Furniture removal and transfer endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_query_removals_use_case,
    get_query_transfers_use_case,
    get_review_removal_use_case,
    get_review_transfer_use_case,
    get_submit_removal_use_case,
    get_submit_transfer_use_case,
)
from src.application.dto.requests import (
    ReviewRemovalRequest,
    ReviewTransferRequest,
    SubmitRemovalRequest,
    SubmitTransferRequest,
)
from src.application.dto.responses import (
    ErrorResponse,
    FurnitureMoveActionResponse,
    FurnitureRemovalListResponse,
    FurnitureRemovalResponse,
    FurnitureTransferListResponse,
    FurnitureTransferResponse,
)
from src.application.use_cases.manage_furniture_moves import (
    QueryRemovalsUseCase,
    QueryTransfersUseCase,
    ReviewRemovalUseCase,
    ReviewTransferUseCase,
    SubmitRemovalUseCase,
    SubmitTransferUseCase,
)
from src.core.entities.furniture_moves import RemovalStatus, TransferStatus

_TRANSITION_ERRORS = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}

removals_router = APIRouter(prefix="/api/furniture-removals", tags=["furniture-removals"])
transfers_router = APIRouter(prefix="/api/furniture-transfers", tags=["furniture-transfers"])


@removals_router.post(
    "",
    response_model=FurnitureRemovalResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def submit_removal(
    request: SubmitRemovalRequest,
    use_case: SubmitRemovalUseCase = Depends(get_submit_removal_use_case),
) -> FurnitureRemovalResponse:
    """Quantity may not exceed the unit's current stock of the item."""
    created = await use_case.execute(request)
    return FurnitureRemovalResponse.from_entity(created)


@removals_router.put(
    "/{removal_id}",
    response_model=FurnitureMoveActionResponse,
    responses=_TRANSITION_ERRORS,
)
async def review_removal(
    removal_id: str,
    review: ReviewRemovalRequest,
    use_case: ReviewRemovalUseCase = Depends(get_review_removal_use_case),
) -> FurnitureMoveActionResponse:
    """Designer decision, pickup scheduling, driver pickup or warehouse receipt."""
    result = await use_case.execute(removal_id, review)
    return use_case.to_response(result)


@removals_router.get("", response_model=FurnitureRemovalListResponse)
async def list_removals(
    status: RemovalStatus | None = None,
    unit_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    use_case: QueryRemovalsUseCase = Depends(get_query_removals_use_case),
) -> FurnitureRemovalListResponse:
    removals = await use_case.list_removals(
        status=status, unit_id=unit_id, limit=limit, offset=offset
    )
    return use_case.to_list_response(removals)


@removals_router.get(
    "/{removal_id}",
    response_model=FurnitureRemovalResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_removal(
    removal_id: str,
    use_case: QueryRemovalsUseCase = Depends(get_query_removals_use_case),
) -> FurnitureRemovalResponse:
    return FurnitureRemovalResponse.from_entity(await use_case.get_removal(removal_id))


@transfers_router.post(
    "",
    response_model=FurnitureTransferResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def submit_transfer(
    request: SubmitTransferRequest,
    use_case: SubmitTransferUseCase = Depends(get_submit_transfer_use_case),
) -> FurnitureTransferResponse:
    created = await use_case.execute(request)
    return FurnitureTransferResponse.from_entity(created)


@transfers_router.put(
    "/{transfer_id}",
    response_model=FurnitureMoveActionResponse,
    responses=_TRANSITION_ERRORS,
)
async def review_transfer(
    transfer_id: str,
    review: ReviewTransferRequest,
    use_case: ReviewTransferUseCase = Depends(get_review_transfer_use_case),
) -> FurnitureMoveActionResponse:
    """Designer approval or rejection; completion moves the stock."""
    result = await use_case.execute(transfer_id, review)
    return use_case.to_response(result)


@transfers_router.get("", response_model=FurnitureTransferListResponse)
async def list_transfers(
    status: TransferStatus | None = None,
    unit_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    use_case: QueryTransfersUseCase = Depends(get_query_transfers_use_case),
) -> FurnitureTransferListResponse:
    """Transfers leaving or entering ``unit_id``."""
    transfers = await use_case.list_transfers(
        status=status, unit_id=unit_id, limit=limit, offset=offset
    )
    return use_case.to_list_response(transfers)


@transfers_router.get(
    "/{transfer_id}",
    response_model=FurnitureTransferResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_transfer(
    transfer_id: str,
    use_case: QueryTransfersUseCase = Depends(get_query_transfers_use_case),
) -> FurnitureTransferResponse:
    return FurnitureTransferResponse.from_entity(await use_case.get_transfer(transfer_id))
