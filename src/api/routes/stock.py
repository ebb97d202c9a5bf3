"""Unit stock endpoints: projected quantities, low stock, rebuild, override."""

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import (
    get_override_stock_use_case,
    get_query_stock_use_case,
    get_rebuild_stock_use_case,
)
from src.application.dto.requests import StockOverrideRequest
from src.application.dto.responses import (
    ErrorResponse,
    RebuildStockResponse,
    StockListResponse,
    StockOverrideResponse,
    UnitStockResponse,
)
from src.application.use_cases.manage_stock import (
    OverrideStockUseCase,
    QueryStockUseCase,
    RebuildStockUseCase,
)

router = APIRouter(prefix="/api/stock", tags=["stock"])


@router.get("", response_model=StockListResponse)
async def list_stock(
    unit_id: str | None = None,
    item_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    use_case: QueryStockUseCase = Depends(get_query_stock_use_case),
) -> StockListResponse:
    """Projected stock, repaired from the ledger where stale."""
    stocks = await use_case.list_stock(
        unit_id=unit_id, item_id=item_id, limit=limit, offset=offset
    )
    return use_case.to_list_response(stocks)


@router.get("/low", response_model=StockListResponse)
async def list_low_stock(
    unit_id: str | None = None,
    use_case: QueryStockUseCase = Depends(get_query_stock_use_case),
) -> StockListResponse:
    """Rows at or below their minimum, negatives first."""
    stocks = await use_case.list_low_stock(unit_id=unit_id)
    return use_case.to_list_response(stocks)


@router.post("/rebuild", response_model=RebuildStockResponse)
async def rebuild_stock(
    use_case: RebuildStockUseCase = Depends(get_rebuild_stock_use_case),
) -> RebuildStockResponse:
    """Re-derive every stock row from the movement ledger."""
    stocks = await use_case.execute()
    return use_case.to_response(stocks)


@router.get(
    "/{item_id}/{unit_id}",
    response_model=UnitStockResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_stock(
    item_id: str,
    unit_id: str,
    use_case: QueryStockUseCase = Depends(get_query_stock_use_case),
) -> UnitStockResponse:
    stock = await use_case.get_stock(item_id, unit_id)
    return UnitStockResponse.from_entity(stock)


@router.put(
    "/{stock_id}",
    response_model=StockOverrideResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def override_stock(
    stock_id: int,
    request: StockOverrideRequest,
    use_case: OverrideStockUseCase = Depends(get_override_stock_use_case),
) -> StockOverrideResponse:
    """Admin edit; a quantity change is booked as a compensating movement."""
    result = await use_case.execute(stock_id, request)
    return use_case.to_response(result)
