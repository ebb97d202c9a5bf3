"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from src.application.dto.requests import (
    BatchActionRequest,
    CloseLoanRequest,
    ConfirmationRequest,
    CreateBatchRequest,
    OpenLoanRequest,
    RecordMovementRequest,
    ReviewFurnitureRequestRequest,
    ReviewRemovalRequest,
    ReviewRequestRequest,
    ReviewTransferRequest,
    StockOverrideRequest,
    SubmitFurnitureRequestRequest,
    SubmitRemovalRequest,
    SubmitRequestRequest,
    SubmitTransferRequest,
    ValidateDailyCodeRequest,
)
from src.application.dto.responses import (
    BatchActionResponse,
    BatchListResponse,
    BatchResponse,
    ComponentHealthResponse,
    ConfirmationListResponse,
    ConfirmationResponse,
    ConfirmationResultResponse,
    CreateBatchResponse,
    DailyCodeResponse,
    DailyCodeValidationResponse,
    ErrorResponse,
    FurnitureMoveActionResponse,
    FurnitureRemovalListResponse,
    FurnitureRemovalResponse,
    FurnitureRequestListResponse,
    FurnitureRequestResponse,
    FurnitureTransferListResponse,
    FurnitureTransferResponse,
    FurnitureTransitionResponse,
    HealthResponse,
    LoanActionResponse,
    LoanListResponse,
    LoanResponse,
    MovementListResponse,
    MovementResponse,
    RebuildStockResponse,
    RecordMovementResponse,
    RequestListResponse,
    RequestResponse,
    RequestTransitionResponse,
    StockListResponse,
    StockOverrideResponse,
    UnitStockResponse,
    WarningResponse,
)

__all__ = [
    # Requests
    "RecordMovementRequest",
    "StockOverrideRequest",
    "SubmitRequestRequest",
    "ReviewRequestRequest",
    "SubmitFurnitureRequestRequest",
    "ReviewFurnitureRequestRequest",
    "SubmitRemovalRequest",
    "ReviewRemovalRequest",
    "SubmitTransferRequest",
    "ReviewTransferRequest",
    "CreateBatchRequest",
    "BatchActionRequest",
    "ConfirmationRequest",
    "ValidateDailyCodeRequest",
    "OpenLoanRequest",
    "CloseLoanRequest",
    # Responses
    "WarningResponse",
    "ComponentHealthResponse",
    "HealthResponse",
    "ErrorResponse",
    "MovementResponse",
    "MovementListResponse",
    "UnitStockResponse",
    "StockListResponse",
    "RecordMovementResponse",
    "StockOverrideResponse",
    "RebuildStockResponse",
    "RequestResponse",
    "RequestListResponse",
    "RequestTransitionResponse",
    "FurnitureRequestResponse",
    "FurnitureTransitionResponse",
    "FurnitureRequestListResponse",
    "FurnitureRemovalResponse",
    "FurnitureRemovalListResponse",
    "FurnitureTransferResponse",
    "FurnitureTransferListResponse",
    "FurnitureMoveActionResponse",
    "BatchResponse",
    "BatchListResponse",
    "CreateBatchResponse",
    "BatchActionResponse",
    "ConfirmationResponse",
    "ConfirmationResultResponse",
    "ConfirmationListResponse",
    "DailyCodeResponse",
    "DailyCodeValidationResponse",
    "LoanResponse",
    "LoanListResponse",
    "LoanActionResponse",
]
