"""Loan endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_close_loan_use_case,
    get_open_loan_use_case,
    get_query_loans_use_case,
)
from src.application.dto.requests import CloseLoanRequest, OpenLoanRequest
from src.application.dto.responses import (
    ErrorResponse,
    LoanActionResponse,
    LoanListResponse,
)
from src.application.use_cases.manage_loans import (
    CloseLoanUseCase,
    OpenLoanUseCase,
    QueryLoansUseCase,
)
from src.core.entities.loan import LoanStatus

router = APIRouter(prefix="/api/loans", tags=["loans"])


@router.post(
    "",
    response_model=LoanActionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def open_loan(
    request: OpenLoanRequest,
    use_case: OpenLoanUseCase = Depends(get_open_loan_use_case),
) -> LoanActionResponse:
    """Lend an item; the stock leaves through a loan movement."""
    result = await use_case.execute(request)
    return QueryLoansUseCase.to_response(result)


@router.post(
    "/{loan_id}/return",
    response_model=LoanActionResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def return_loan(
    loan_id: str,
    request: CloseLoanRequest,
    use_case: CloseLoanUseCase = Depends(get_close_loan_use_case),
) -> LoanActionResponse:
    result = await use_case.return_loan(loan_id, request)
    return QueryLoansUseCase.to_response(result)


@router.post(
    "/{loan_id}/lost",
    response_model=LoanActionResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def mark_loan_lost(
    loan_id: str,
    request: CloseLoanRequest,
    use_case: CloseLoanUseCase = Depends(get_close_loan_use_case),
) -> LoanActionResponse:
    """Close a loan without returning stock."""
    result = await use_case.mark_lost(loan_id, request)
    return QueryLoansUseCase.to_response(result)


@router.get("", response_model=LoanListResponse)
async def list_loans(
    status: LoanStatus | None = None,
    unit_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    use_case: QueryLoansUseCase = Depends(get_query_loans_use_case),
) -> LoanListResponse:
    """Loans by effective status; overdue is computed on read."""
    loans = await use_case.list_loans(status=status, unit_id=unit_id, limit=limit, offset=offset)
    return use_case.to_list_response(loans)
