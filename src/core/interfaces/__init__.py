"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.batch_store import IBatchStore
from src.core.interfaces.directory import IDirectory
from src.core.interfaces.furniture_move_store import (
    IFurnitureRemovalStore,
    IFurnitureTransferStore,
)
from src.core.interfaces.inventory_store import IInventoryStore, LedgerSummary
from src.core.interfaces.loan_store import ILoanStore
from src.core.interfaces.request_store import IFurnitureRequestStore, IRequestStore

__all__ = [
    # Storage interfaces
    "IInventoryStore",
    "LedgerSummary",
    "IRequestStore",
    "IFurnitureRequestStore",
    "IFurnitureRemovalStore",
    "IFurnitureTransferStore",
    "IBatchStore",
    "ILoanStore",
    # Directory
    "IDirectory",
]
