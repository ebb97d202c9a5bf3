"""
SQLite-backed directory.

The users, units and items tables belong to the surrounding application;
this service only reads them. ``upsert_*`` exists for seeding local
databases and tests.
"""

import json

import aiosqlite

from src.config import get_logger
from src.core.entities.directory import Item, Unit, User, UserRole, WarehouseType
from src.core.interfaces.directory import IDirectory
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


class SQLiteDirectory(IDirectory):
    """Read-only lookups over the directory tables."""

    async def get_user_by_id(self, user_id: str) -> User | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = await cursor.fetchone()
            return self._row_to_user(row) if row else None

    async def get_unit_by_id(self, unit_id: str) -> Unit | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM units WHERE id = ?", (unit_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return Unit(id=row["id"], name=row["name"], status=row["status"])

    async def get_item_by_id(self, item_id: str) -> Item | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM items WHERE id = ?", (item_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return Item(
                id=row["id"],
                name=row["name"],
                is_furniture=bool(row["is_furniture"]),
                default_minimum_quantity=float(row["default_minimum_quantity"]),
            )

    async def upsert_unit(self, unit: Unit) -> Unit:
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO units (id, name, status) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET name = excluded.name, status = excluded.status
                """,
                (unit.id, unit.name, unit.status),
            )
        return unit

    async def upsert_user(self, user: User) -> User:
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO users (
                    id, name, role, primary_unit_id, additional_unit_ids, warehouse_type
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    role = excluded.role,
                    primary_unit_id = excluded.primary_unit_id,
                    additional_unit_ids = excluded.additional_unit_ids,
                    warehouse_type = excluded.warehouse_type
                """,
                (
                    user.id,
                    user.name,
                    user.role.value,
                    user.primary_unit_id,
                    json.dumps(user.additional_unit_ids),
                    user.warehouse_type.value if user.warehouse_type else None,
                ),
            )
        return user

    async def upsert_item(self, item: Item) -> Item:
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO items (id, name, is_furniture, default_minimum_quantity)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    is_furniture = excluded.is_furniture,
                    default_minimum_quantity = excluded.default_minimum_quantity
                """,
                (item.id, item.name, int(item.is_furniture), item.default_minimum_quantity),
            )
        return item

    @staticmethod
    def _row_to_user(row: aiosqlite.Row) -> User:
        try:
            additional = json.loads(row["additional_unit_ids"] or "[]")
        except json.JSONDecodeError:
            logger.warning("user_units_unreadable", user_id=row["id"])
            additional = []
        return User(
            id=row["id"],
            name=row["name"],
            role=UserRole(row["role"]),
            primary_unit_id=row["primary_unit_id"],
            additional_unit_ids=additional,
            warehouse_type=WarehouseType(row["warehouse_type"]) if row["warehouse_type"] else None,
        )
