"""Movement ledger endpoints."""

from fastapi import APIRouter, Depends, Query, Response, status

from src.api.dependencies import get_query_stock_use_case, get_record_movement_use_case
from src.application.dto.requests import RecordMovementRequest
from src.application.dto.responses import (
    ErrorResponse,
    MovementListResponse,
    RecordMovementResponse,
)
from src.application.use_cases.manage_stock import QueryStockUseCase
from src.application.use_cases.record_movement import RecordMovementUseCase
from src.core.entities.inventory import MovementType

router = APIRouter(prefix="/api/movements", tags=["movements"])


@router.post(
    "",
    response_model=RecordMovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"model": RecordMovementResponse, "description": "Idempotency key replayed"},
        400: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def record_movement(
    request: RecordMovementRequest,
    response: Response,
    use_case: RecordMovementUseCase = Depends(get_record_movement_use_case),
) -> RecordMovementResponse:
    """Append a movement and update the (item, unit) stock."""
    result = await use_case.execute(request)
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return use_case.to_response(result)


@router.get("", response_model=MovementListResponse)
async def list_movements(
    item_id: str | None = None,
    unit_id: str | None = None,
    reference: str | None = None,
    movement_type: MovementType | None = Query(default=None, alias="type"),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    use_case: QueryStockUseCase = Depends(get_query_stock_use_case),
) -> MovementListResponse:
    """List ledger movements in append order."""
    movements = await use_case.list_movements(
        item_id=item_id,
        unit_id=unit_id,
        reference=reference,
        movement_type=movement_type,
        limit=limit,
        offset=offset,
    )
    return use_case.to_movements_response(movements)
