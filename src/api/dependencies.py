"""
Dependency injection container for FastAPI.

Provides use case instances to route handlers. Tests replace any of
these through ``app.dependency_overrides``.
"""

from functools import lru_cache

from src.application.services import WarehouseContext, get_warehouse_context
from src.application.use_cases import (
    CloseLoanUseCase,
    ConfirmByRequesterUseCase,
    ConfirmDeliveryUseCase,
    ConfirmReceiptUseCase,
    CreateDeliveryBatchUseCase,
    DailyCodeUseCase,
    DeferConfirmationUseCase,
    OpenLoanUseCase,
    OverrideStockUseCase,
    QueryBatchesUseCase,
    QueryFurnitureRequestsUseCase,
    QueryLoansUseCase,
    QueryRemovalsUseCase,
    QueryRequestsUseCase,
    QueryStockUseCase,
    QueryTransfersUseCase,
    RebuildStockUseCase,
    RecordMovementUseCase,
    ReviewFurnitureRequestUseCase,
    ReviewRemovalUseCase,
    ReviewRequestUseCase,
    ReviewTransferUseCase,
    SeparateBatchItemUseCase,
    SubmitFurnitureRequestUseCase,
    SubmitRemovalUseCase,
    SubmitRequestUseCase,
    SubmitTransferUseCase,
)
from src.config import Settings, get_settings


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


def get_warehouse() -> WarehouseContext:
    """Warehouse unit resolved at startup."""
    return get_warehouse_context()


# Ledger / stock
def get_record_movement_use_case() -> RecordMovementUseCase:
    return RecordMovementUseCase(warehouse=get_warehouse())


def get_query_stock_use_case() -> QueryStockUseCase:
    return QueryStockUseCase()


def get_rebuild_stock_use_case() -> RebuildStockUseCase:
    return RebuildStockUseCase()


def get_override_stock_use_case() -> OverrideStockUseCase:
    return OverrideStockUseCase()


# Requests
def get_submit_request_use_case() -> SubmitRequestUseCase:
    return SubmitRequestUseCase()


def get_review_request_use_case() -> ReviewRequestUseCase:
    """Review needs the warehouse unit for its stock check."""
    return ReviewRequestUseCase(warehouse=get_warehouse())


def get_query_requests_use_case() -> QueryRequestsUseCase:
    return QueryRequestsUseCase()


def get_submit_furniture_request_use_case() -> SubmitFurnitureRequestUseCase:
    return SubmitFurnitureRequestUseCase()


def get_review_furniture_request_use_case() -> ReviewFurnitureRequestUseCase:
    return ReviewFurnitureRequestUseCase(warehouse=get_warehouse())


def get_query_furniture_requests_use_case() -> QueryFurnitureRequestsUseCase:
    return QueryFurnitureRequestsUseCase()


# Furniture removals and transfers
def get_submit_removal_use_case() -> SubmitRemovalUseCase:
    return SubmitRemovalUseCase()


def get_review_removal_use_case() -> ReviewRemovalUseCase:
    return ReviewRemovalUseCase(warehouse=get_warehouse())


def get_query_removals_use_case() -> QueryRemovalsUseCase:
    return QueryRemovalsUseCase()


def get_submit_transfer_use_case() -> SubmitTransferUseCase:
    return SubmitTransferUseCase()


def get_review_transfer_use_case() -> ReviewTransferUseCase:
    return ReviewTransferUseCase()


def get_query_transfers_use_case() -> QueryTransfersUseCase:
    return QueryTransfersUseCase()


# Delivery batches
def get_create_batch_use_case() -> CreateDeliveryBatchUseCase:
    return CreateDeliveryBatchUseCase(warehouse=get_warehouse())


def get_separate_item_use_case() -> SeparateBatchItemUseCase:
    return SeparateBatchItemUseCase(warehouse=get_warehouse())


def get_query_batches_use_case() -> QueryBatchesUseCase:
    return QueryBatchesUseCase()


# Confirmations
def get_confirm_delivery_use_case() -> ConfirmDeliveryUseCase:
    return ConfirmDeliveryUseCase()


def get_defer_confirmation_use_case() -> DeferConfirmationUseCase:
    return DeferConfirmationUseCase()


def get_confirm_receipt_use_case() -> ConfirmReceiptUseCase:
    return ConfirmReceiptUseCase()


def get_confirm_by_requester_use_case() -> ConfirmByRequesterUseCase:
    return ConfirmByRequesterUseCase(warehouse=get_warehouse())


def get_daily_code_use_case() -> DailyCodeUseCase:
    return DailyCodeUseCase()


# Loans
def get_open_loan_use_case() -> OpenLoanUseCase:
    return OpenLoanUseCase()


def get_close_loan_use_case() -> CloseLoanUseCase:
    return CloseLoanUseCase()


def get_query_loans_use_case() -> QueryLoansUseCase:
    return QueryLoansUseCase()
