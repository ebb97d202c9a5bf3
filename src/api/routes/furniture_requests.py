"""Furniture request endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_query_furniture_requests_use_case,
    get_review_furniture_request_use_case,
    get_submit_furniture_request_use_case,
)
from src.application.dto.requests import (
    ReviewFurnitureRequestRequest,
    SubmitFurnitureRequestRequest,
)
from src.application.dto.responses import (
    ErrorResponse,
    FurnitureRequestListResponse,
    FurnitureRequestResponse,
    FurnitureTransitionResponse,
)
from src.application.use_cases.manage_furniture_requests import (
    QueryFurnitureRequestsUseCase,
    ReviewFurnitureRequestUseCase,
    SubmitFurnitureRequestUseCase,
)
from src.core.entities.request import FurnitureRequestStatus

router = APIRouter(prefix="/api/furniture-requests", tags=["furniture-requests"])


@router.post(
    "",
    response_model=FurnitureRequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def submit_furniture_request(
    request: SubmitFurnitureRequestRequest,
    use_case: SubmitFurnitureRequestUseCase = Depends(get_submit_furniture_request_use_case),
) -> FurnitureRequestResponse:
    created = await use_case.execute(request)
    return FurnitureRequestResponse.from_entity(created)


@router.put(
    "/{request_id}",
    response_model=FurnitureTransitionResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def review_furniture_request(
    request_id: str,
    review: ReviewFurnitureRequestRequest,
    use_case: ReviewFurnitureRequestUseCase = Depends(get_review_furniture_request_use_case),
) -> FurnitureTransitionResponse:
    """Designer approval, storage approval, rejection or driver assignment."""
    result = await use_case.execute(request_id, review)
    return use_case.to_response(result)


@router.get("", response_model=FurnitureRequestListResponse)
async def list_furniture_requests(
    status: FurnitureRequestStatus | None = None,
    unit_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    use_case: QueryFurnitureRequestsUseCase = Depends(get_query_furniture_requests_use_case),
) -> FurnitureRequestListResponse:
    requests = await use_case.list_requests(
        status=status, unit_id=unit_id, limit=limit, offset=offset
    )
    return use_case.to_list_response(requests)


@router.get(
    "/{request_id}",
    response_model=FurnitureRequestResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_furniture_request(
    request_id: str,
    use_case: QueryFurnitureRequestsUseCase = Depends(get_query_furniture_requests_use_case),
) -> FurnitureRequestResponse:
    request = await use_case.get_request(request_id)
    return FurnitureRequestResponse.from_entity(request)
