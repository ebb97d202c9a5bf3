"""Material request endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_query_requests_use_case,
    get_review_request_use_case,
    get_submit_request_use_case,
)
from src.application.dto.requests import ReviewRequestRequest, SubmitRequestRequest
from src.application.dto.responses import (
    ErrorResponse,
    RequestListResponse,
    RequestResponse,
    RequestTransitionResponse,
)
from src.application.use_cases.manage_requests import (
    QueryRequestsUseCase,
    ReviewRequestUseCase,
    SubmitRequestUseCase,
)
from src.core.entities.request import RequestStatus

router = APIRouter(prefix="/api/requests", tags=["requests"])


@router.post(
    "",
    response_model=RequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def submit_request(
    request: SubmitRequestRequest,
    use_case: SubmitRequestUseCase = Depends(get_submit_request_use_case),
) -> RequestResponse:
    created = await use_case.execute(request)
    return use_case.to_response(created)


@router.put(
    "/{request_id}",
    response_model=RequestTransitionResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def review_request(
    request_id: str,
    review: ReviewRequestRequest,
    use_case: ReviewRequestUseCase = Depends(get_review_request_use_case),
) -> RequestTransitionResponse:
    """
    Approve or reject a pending request.

    Approval against insufficient warehouse stock succeeds and carries
    an INSUFFICIENT_STOCK entry in ``warnings``.
    """
    result = await use_case.execute(request_id, review)
    return use_case.to_response(result)


@router.get("", response_model=RequestListResponse)
async def list_requests(
    status: RequestStatus | None = None,
    unit_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    use_case: QueryRequestsUseCase = Depends(get_query_requests_use_case),
) -> RequestListResponse:
    requests = await use_case.list_requests(
        status=status, unit_id=unit_id, limit=limit, offset=offset
    )
    return use_case.to_list_response(requests)


@router.get(
    "/{request_id}",
    response_model=RequestResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_request(
    request_id: str,
    use_case: QueryRequestsUseCase = Depends(get_query_requests_use_case),
) -> RequestResponse:
    request = await use_case.get_request(request_id)
    return RequestResponse.from_entity(request)
