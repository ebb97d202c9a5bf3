"""
Application layer.

Use cases wrap the core ledger, lifecycle and batch services around the
SQLite stores; route handlers call nothing else. DTOs here are the HTTP
contract, never the core entities.
"""

from src.application.dto.requests import (
    BatchActionRequest,
    ConfirmationRequest,
    CreateBatchRequest,
    RecordMovementRequest,
    ReviewRequestRequest,
    SubmitRequestRequest,
)
from src.application.dto.responses import ErrorResponse, HealthResponse
from src.application.services import (
    WarehouseContext,
    get_daily_code_service,
    get_stock_projector,
    get_warehouse_context,
    reset_services,
    resolve_warehouse_context,
)
from src.application.use_cases import (
    ConfirmDeliveryUseCase,
    ConfirmReceiptUseCase,
    CreateDeliveryBatchUseCase,
    RecordMovementUseCase,
    ReviewRequestUseCase,
    SeparateBatchItemUseCase,
    SubmitRequestUseCase,
)

__all__ = [
    # Request DTOs
    "RecordMovementRequest",
    "SubmitRequestRequest",
    "ReviewRequestRequest",
    "CreateBatchRequest",
    "BatchActionRequest",
    "ConfirmationRequest",
    # Response DTOs
    "HealthResponse",
    "ErrorResponse",
    # Use Cases
    "RecordMovementUseCase",
    "SubmitRequestUseCase",
    "ReviewRequestUseCase",
    "CreateDeliveryBatchUseCase",
    "SeparateBatchItemUseCase",
    "ConfirmDeliveryUseCase",
    "ConfirmReceiptUseCase",
    # Service factories
    "WarehouseContext",
    "get_daily_code_service",
    "get_stock_projector",
    "get_warehouse_context",
    "resolve_warehouse_context",
    "reset_services",
]
