"""Storage infrastructure implementations."""

from src.infrastructure.storage.sqlite import (
    SQLiteBatchStore,
    SQLiteDirectory,
    SQLiteFurnitureRequestStore,
    SQLiteInventoryStore,
    SQLiteLoanStore,
    SQLiteRequestStore,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)

__all__ = [
    # SQLite stores
    "SQLiteInventoryStore",
    "SQLiteRequestStore",
    "SQLiteFurnitureRequestStore",
    "SQLiteBatchStore",
    "SQLiteLoanStore",
    "SQLiteDirectory",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
