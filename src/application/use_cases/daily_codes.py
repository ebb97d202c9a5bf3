"""Daily identity codes for the confirmation protocol."""

from src.application.dto.requests import ValidateDailyCodeRequest
from src.application.dto.responses import DailyCodeResponse, DailyCodeValidationResponse
from src.application.use_cases.base import FulfillmentUseCase
from src.config import get_logger

logger = get_logger(__name__)


class DailyCodeUseCase(FulfillmentUseCase):
    """Show a user today's code, or check one typed in by someone else."""

    async def current_code(self, user_id: str) -> DailyCodeResponse:
        user = await self._require_user(user_id)
        codes = self._get_daily_codes()
        day = codes.today()
        code = codes.code(user.id, day)
        return DailyCodeResponse(
            user_id=user.id,
            code=code,
            formatted=codes.format_code(code),
            day=day,
            expires_at=codes.expires_at(day),
        )

    async def validate(self, request: ValidateDailyCodeRequest) -> DailyCodeValidationResponse:
        user = await self._require_user(request.user_id)
        codes = self._get_daily_codes()
        day = codes.today()
        valid = codes.validate(user.id, request.code, day)
        logger.info("daily_code_checked", user_id=user.id, valid=valid)
        return DailyCodeValidationResponse(user_id=user.id, valid=valid, day=day)
