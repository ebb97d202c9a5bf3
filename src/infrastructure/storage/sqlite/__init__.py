"""SQLite storage implementations."""

from src.infrastructure.storage.sqlite.batch_store import SQLiteBatchStore
from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from src.infrastructure.storage.sqlite.directory_store import SQLiteDirectory
from src.infrastructure.storage.sqlite.furniture_move_store import (
    SQLiteFurnitureRemovalStore,
    SQLiteFurnitureTransferStore,
)
from src.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore
from src.infrastructure.storage.sqlite.loan_store import SQLiteLoanStore
from src.infrastructure.storage.sqlite.request_store import (
    SQLiteFurnitureRequestStore,
    SQLiteRequestStore,
)

# Singleton instances
_inventory_store: SQLiteInventoryStore | None = None
_request_store: SQLiteRequestStore | None = None
_furniture_request_store: SQLiteFurnitureRequestStore | None = None
_removal_store: SQLiteFurnitureRemovalStore | None = None
_transfer_store: SQLiteFurnitureTransferStore | None = None
_batch_store: SQLiteBatchStore | None = None
_loan_store: SQLiteLoanStore | None = None
_directory: SQLiteDirectory | None = None


async def get_inventory_store() -> SQLiteInventoryStore:
    """Get singleton ledger/projection store instance."""
    global _inventory_store
    if _inventory_store is None:
        _inventory_store = SQLiteInventoryStore()
    return _inventory_store


async def get_request_store() -> SQLiteRequestStore:
    """Get singleton material request store instance."""
    global _request_store
    if _request_store is None:
        _request_store = SQLiteRequestStore()
    return _request_store


async def get_furniture_request_store() -> SQLiteFurnitureRequestStore:
    """Get singleton furniture request store instance."""
    global _furniture_request_store
    if _furniture_request_store is None:
        _furniture_request_store = SQLiteFurnitureRequestStore()
    return _furniture_request_store


async def get_furniture_removal_store() -> SQLiteFurnitureRemovalStore:
    """Get singleton furniture removal store instance."""
    global _removal_store
    if _removal_store is None:
        _removal_store = SQLiteFurnitureRemovalStore()
    return _removal_store


async def get_furniture_transfer_store() -> SQLiteFurnitureTransferStore:
    """Get singleton furniture transfer store instance."""
    global _transfer_store
    if _transfer_store is None:
        _transfer_store = SQLiteFurnitureTransferStore()
    return _transfer_store


async def get_batch_store() -> SQLiteBatchStore:
    """Get singleton batch store instance."""
    global _batch_store
    if _batch_store is None:
        _batch_store = SQLiteBatchStore()
    return _batch_store


async def get_loan_store() -> SQLiteLoanStore:
    """Get singleton loan store instance."""
    global _loan_store
    if _loan_store is None:
        _loan_store = SQLiteLoanStore()
    return _loan_store


async def get_directory() -> SQLiteDirectory:
    """Get singleton directory instance."""
    global _directory
    if _directory is None:
        _directory = SQLiteDirectory()
    return _directory


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteInventoryStore",
    "SQLiteRequestStore",
    "SQLiteFurnitureRequestStore",
    "SQLiteFurnitureRemovalStore",
    "SQLiteFurnitureTransferStore",
    "SQLiteBatchStore",
    "SQLiteLoanStore",
    "SQLiteDirectory",
    # Factory functions
    "get_inventory_store",
    "get_request_store",
    "get_furniture_request_store",
    "get_furniture_removal_store",
    "get_furniture_transfer_store",
    "get_batch_store",
    "get_loan_store",
    "get_directory",
]
