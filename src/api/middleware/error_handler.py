"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.application.dto.responses import ErrorResponse
from src.config import get_logger
from src.core.exceptions import (
    BatchMembershipError,
    ConfigurationError,
    CrossUnitBatchError,
    FulfillmentError,
    InvalidDailyCodeError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ReconciliationRequiredError,
    StateConflictError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes; first match wins
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StateConflictError: status.HTTP_409_CONFLICT,
    BatchMembershipError: status.HTTP_409_CONFLICT,
    CrossUnitBatchError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidDailyCodeError: status.HTTP_403_FORBIDDEN,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    ReconciliationRequiredError: status.HTTP_503_SERVICE_UNAVAILABLE,
    PersistenceError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code / exception type
HINT_MAP: dict[str, str] = {
    "MISSING_DRIVER": "select a driver",
    "CROSS_UNIT_BATCH": "all items must belong to the same unit",
    "BATCH_MEMBERSHIP": "Finish or cancel the other batch, or pick requests from this batch.",
    "STATE_CONFLICT": "The record changed since it was read. Reload it and retry.",
    "INVALID_DAILY_CODE": "Ask the receiver for today's code from GET /api/daily-codes/{user_id}.",
    "PERMISSION_DENIED": "Use an account with the required role or unit membership.",
    "REQUEST_NOT_FOUND": "Check the request ID and try GET /api/requests to list requests.",
    "FURNITURE_REQUEST_NOT_FOUND": "Check the ID and try GET /api/furniture-requests.",
    "BATCH_NOT_FOUND": "Check the batch ID or scan code and try GET /api/delivery-batches.",
    "STOCK_NOT_FOUND": "No movement has been recorded for this item at this unit yet.",
    "LOAN_NOT_FOUND": "Check the loan ID and try GET /api/loans.",
    "USER_NOT_FOUND": "The user is not in the directory.",
    "ITEM_NOT_FOUND": "The item is not in the directory.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "PERSISTENCE_ERROR": "A database write failed after retry. Retry later.",
    "RECONCILIATION_REQUIRED": "The write was kept. Run POST /api/stock/rebuild or retry the step.",
    "ValueError": "A parameter value is invalid. Check the request.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    403: "The caller is not allowed to perform this action.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The resource changed. Reload and retry.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
    503: "The service is temporarily unavailable. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert an exception to the standard JSON envelope."""
    status_code = status_for(exc)

    # Prefer FulfillmentError.code, fall back to class name
    if isinstance(exc, FulfillmentError):
        error_code = exc.code
        message = exc.message
        detail = str(exc.details) if exc.details else None
    else:
        error_code = exc.__class__.__name__
        message = str(exc)
        detail = None

    request_id = getattr(request.state, "request_id", None)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=request_id,
        path=request.url.path,
        error_type=error_code,
        status=status_code,
        error=message,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error_code=error_code,
            message=message,
            hint=_get_hint(error_code, status_code),
            detail=detail,
            path=request.url.path,
        ).model_dump(mode="json"),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches anything the registered exception handlers did not.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Handle request with error catching."""
        try:
            return await call_next(request)

        except Exception as e:
            return error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(FulfillmentError)
    async def fulfillment_exception_handler(
        request: Request,
        exc: FulfillmentError,
    ) -> JSONResponse:
        """Map domain errors to their status and hint."""
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint="Check the request body fields and types.",
                detail="; ".join(errors),
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = _infer_error_code(exc.status_code)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=exc.detail or "An error occurred",
                hint=_get_hint(error_code, exc.status_code),
                path=request.url.path,
            ).model_dump(mode="json"),
        )


def _infer_error_code(status_code: int) -> str:
    """Infer a machine-readable error code from an HTTP status."""
    return {
        400: "BAD_REQUEST",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "UNPROCESSABLE_ENTITY",
    }.get(status_code, "HTTP_ERROR")
