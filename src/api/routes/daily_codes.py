"""Daily identity code endpoints."""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_daily_code_use_case
from src.application.dto.requests import ValidateDailyCodeRequest
from src.application.dto.responses import (
    DailyCodeResponse,
    DailyCodeValidationResponse,
    ErrorResponse,
)
from src.application.use_cases.daily_codes import DailyCodeUseCase

router = APIRouter(prefix="/api/daily-codes", tags=["daily-codes"])


@router.post("/validate", response_model=DailyCodeValidationResponse)
async def validate_daily_code(
    request: ValidateDailyCodeRequest,
    use_case: DailyCodeUseCase = Depends(get_daily_code_use_case),
) -> DailyCodeValidationResponse:
    return await use_case.validate(request)


@router.get(
    "/{user_id}",
    response_model=DailyCodeResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_daily_code(
    user_id: str,
    use_case: DailyCodeUseCase = Depends(get_daily_code_use_case),
) -> DailyCodeResponse:
    """Today's code for a user, valid until midnight in the configured zone."""
    return await use_case.current_code(user_id)
