"""Core domain entities."""

from src.core.entities.delivery import (
    BatchStatus,
    ConfirmationType,
    DeliveryBatch,
    DeliveryConfirmation,
)
from src.core.entities.directory import Item, Unit, User, UserRole, WarehouseType
from src.core.entities.furniture_moves import (
    FurnitureRemoval,
    FurnitureTransfer,
    RemovalDestination,
    RemovalStatus,
    TransferStatus,
)
from src.core.entities.inventory import (
    Movement,
    MovementType,
    StockHealth,
    UnitStock,
    project_quantity,
    utc_now,
)
from src.core.entities.loan import Loan, LoanStatus
from src.core.entities.request import (
    FurnitureRequest,
    FurnitureRequestStatus,
    Request,
    RequestKind,
    RequestStatus,
    Urgency,
    new_id,
)

__all__ = [
    # Ledger
    "Movement",
    "MovementType",
    "StockHealth",
    "UnitStock",
    "project_quantity",
    "utc_now",
    # Requests
    "Request",
    "RequestKind",
    "RequestStatus",
    "Urgency",
    "FurnitureRequest",
    "FurnitureRequestStatus",
    "new_id",
    # Furniture leaving a unit
    "FurnitureRemoval",
    "RemovalDestination",
    "RemovalStatus",
    "FurnitureTransfer",
    "TransferStatus",
    # Delivery
    "BatchStatus",
    "ConfirmationType",
    "DeliveryBatch",
    "DeliveryConfirmation",
    # Loans
    "Loan",
    "LoanStatus",
    # Directory
    "Item",
    "Unit",
    "User",
    "UserRole",
    "WarehouseType",
]
