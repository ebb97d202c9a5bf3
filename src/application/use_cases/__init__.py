"""Application use cases."""

from src.application.use_cases.base import FulfillmentUseCase
from src.application.use_cases.confirm_delivery import (
    ConfirmationResult,
    ConfirmDeliveryUseCase,
    DeferConfirmationUseCase,
)
from src.application.use_cases.confirm_receipt import (
    ConfirmByRequesterUseCase,
    ConfirmReceiptUseCase,
)
from src.application.use_cases.create_delivery_batch import (
    CreateBatchResult,
    CreateDeliveryBatchUseCase,
)
from src.application.use_cases.daily_codes import DailyCodeUseCase
from src.application.use_cases.manage_furniture_moves import (
    FurnitureMoveResult,
    QueryRemovalsUseCase,
    QueryTransfersUseCase,
    ReviewRemovalUseCase,
    ReviewTransferUseCase,
    SubmitRemovalUseCase,
    SubmitTransferUseCase,
)
from src.application.use_cases.manage_furniture_requests import (
    FurnitureReviewResult,
    QueryFurnitureRequestsUseCase,
    ReviewFurnitureRequestUseCase,
    SubmitFurnitureRequestUseCase,
)
from src.application.use_cases.manage_loans import (
    CloseLoanUseCase,
    LoanActionResult,
    OpenLoanUseCase,
    QueryLoansUseCase,
)
from src.application.use_cases.manage_requests import (
    QueryRequestsUseCase,
    ReviewRequestResult,
    ReviewRequestUseCase,
    SubmitRequestUseCase,
)
from src.application.use_cases.manage_stock import (
    OverrideStockUseCase,
    QueryStockUseCase,
    RebuildStockUseCase,
    StockOverrideResult,
)
from src.application.use_cases.query_batches import QueryBatchesUseCase
from src.application.use_cases.record_movement import (
    RecordMovementResult,
    RecordMovementUseCase,
)
from src.application.use_cases.separate_batch_item import (
    SeparateBatchItemUseCase,
    SeparationResult,
)

__all__ = [
    "FulfillmentUseCase",
    # Ledger / stock
    "RecordMovementUseCase",
    "RecordMovementResult",
    "QueryStockUseCase",
    "RebuildStockUseCase",
    "OverrideStockUseCase",
    "StockOverrideResult",
    # Requests
    "SubmitRequestUseCase",
    "ReviewRequestUseCase",
    "ReviewRequestResult",
    "QueryRequestsUseCase",
    "SubmitFurnitureRequestUseCase",
    "ReviewFurnitureRequestUseCase",
    "FurnitureReviewResult",
    "QueryFurnitureRequestsUseCase",
    # Furniture removals and transfers
    "SubmitRemovalUseCase",
    "ReviewRemovalUseCase",
    "QueryRemovalsUseCase",
    "SubmitTransferUseCase",
    "ReviewTransferUseCase",
    "QueryTransfersUseCase",
    "FurnitureMoveResult",
    # Batches and confirmations
    "CreateDeliveryBatchUseCase",
    "CreateBatchResult",
    "SeparateBatchItemUseCase",
    "SeparationResult",
    "QueryBatchesUseCase",
    "ConfirmDeliveryUseCase",
    "DeferConfirmationUseCase",
    "ConfirmReceiptUseCase",
    "ConfirmByRequesterUseCase",
    "ConfirmationResult",
    # Daily codes and loans
    "DailyCodeUseCase",
    "OpenLoanUseCase",
    "CloseLoanUseCase",
    "QueryLoansUseCase",
    "LoanActionResult",
]
