"""Delivery batch endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_create_batch_use_case,
    get_defer_confirmation_use_case,
    get_query_batches_use_case,
    get_separate_item_use_case,
)
from src.application.dto.requests import BatchActionRequest, CreateBatchRequest
from src.application.dto.responses import (
    BatchActionResponse,
    BatchListResponse,
    BatchResponse,
    ConfirmationListResponse,
    CreateBatchResponse,
    ErrorResponse,
)
from src.application.use_cases.confirm_delivery import DeferConfirmationUseCase
from src.application.use_cases.create_delivery_batch import CreateDeliveryBatchUseCase
from src.application.use_cases.query_batches import QueryBatchesUseCase
from src.application.use_cases.separate_batch_item import SeparateBatchItemUseCase
from src.core.entities.delivery import BatchStatus, ConfirmationType

router = APIRouter(prefix="/api/delivery-batches", tags=["delivery-batches"])


@router.post(
    "",
    response_model=CreateBatchResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def create_batch(
    request: CreateBatchRequest,
    use_case: CreateDeliveryBatchUseCase = Depends(get_create_batch_use_case),
) -> CreateBatchResponse:
    """
    Group approved requests for one unit into a shipment.

    Nothing is written when validation fails.
    """
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.put(
    "/{batch_id}",
    response_model=BatchActionResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def batch_action(
    batch_id: str,
    action: BatchActionRequest,
    separate: SeparateBatchItemUseCase = Depends(get_separate_item_use_case),
    defer: DeferConfirmationUseCase = Depends(get_defer_confirmation_use_case),
) -> BatchActionResponse:
    """Separate one request off the shelf, or defer the receiver check."""
    if action.action == "separate":
        result = await separate.execute(batch_id, action)
        return separate.to_response(result)

    batch = await defer.execute(batch_id, action)
    return defer.to_response(batch)


@router.get("", response_model=BatchListResponse)
async def list_batches(
    status: BatchStatus | None = None,
    driver_user_id: str | None = None,
    unit_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    use_case: QueryBatchesUseCase = Depends(get_query_batches_use_case),
) -> BatchListResponse:
    batches = await use_case.list_batches(
        status=status,
        driver_user_id=driver_user_id,
        unit_id=unit_id,
        limit=limit,
        offset=offset,
    )
    return use_case.to_list_response(batches)


@router.get(
    "/scan/{scan_code}",
    response_model=BatchResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_batch_by_scan_code(
    scan_code: str,
    use_case: QueryBatchesUseCase = Depends(get_query_batches_use_case),
) -> BatchResponse:
    batch = await use_case.get_by_scan_code(scan_code)
    return BatchResponse.from_entity(batch)


@router.get(
    "/{batch_id}",
    response_model=BatchResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_batch(
    batch_id: str,
    use_case: QueryBatchesUseCase = Depends(get_query_batches_use_case),
) -> BatchResponse:
    batch = await use_case.get_batch(batch_id)
    return BatchResponse.from_entity(batch)


@router.get(
    "/{batch_id}/confirmations",
    response_model=ConfirmationListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_confirmations(
    batch_id: str,
    confirmation_type: ConfirmationType | None = Query(default=None, alias="type"),
    use_case: QueryBatchesUseCase = Depends(get_query_batches_use_case),
) -> ConfirmationListResponse:
    confirmations = await use_case.list_confirmations(batch_id, confirmation_type)
    return use_case.to_confirmations_response(confirmations)
