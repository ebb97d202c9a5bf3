"""Delivery confirmation endpoint."""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import (
    get_confirm_by_requester_use_case,
    get_confirm_delivery_use_case,
    get_confirm_receipt_use_case,
)
from src.application.dto.requests import ConfirmationRequest
from src.application.dto.responses import ConfirmationResultResponse, ErrorResponse
from src.application.use_cases.confirm_delivery import ConfirmDeliveryUseCase
from src.application.use_cases.confirm_receipt import (
    ConfirmByRequesterUseCase,
    ConfirmReceiptUseCase,
)

router = APIRouter(prefix="/api/delivery-confirmations", tags=["confirmations"])


@router.post(
    "",
    response_model=ConfirmationResultResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def create_confirmation(
    request: ConfirmationRequest,
    delivery: ConfirmDeliveryUseCase = Depends(get_confirm_delivery_use_case),
    receipt: ConfirmReceiptUseCase = Depends(get_confirm_receipt_use_case),
    requester: ConfirmByRequesterUseCase = Depends(get_confirm_by_requester_use_case),
) -> ConfirmationResultResponse:
    """
    Record a confirmation against a batch.

    - delivery: the driver hands over, with the receiver's daily code
    - receipt: the unit controller scans the batch code and completes it
    - requester: a unit member completes it with their own daily code
    """
    if request.type == "delivery":
        result = await delivery.execute(request)
    elif request.type == "receipt":
        result = await receipt.execute(request)
    else:
        result = await requester.execute(request)
    return result.to_response()
