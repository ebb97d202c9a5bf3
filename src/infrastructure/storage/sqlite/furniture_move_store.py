"""SQLite implementation of furniture removal and transfer storage."""

from __future__ import annotations

from typing import Any

import aiosqlite

from src.config import get_logger
from src.core.entities.furniture_moves import (
    FurnitureRemoval,
    FurnitureTransfer,
    RemovalDestination,
    RemovalStatus,
    TransferStatus,
)
from src.core.entities.inventory import utc_now
from src.core.interfaces.furniture_move_store import (
    IFurnitureRemovalStore,
    IFurnitureTransferStore,
)
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from src.infrastructure.storage.sqlite.rows import compare_and_set, parse_datetime, to_db

logger = get_logger(__name__)

_REMOVAL_MUTABLE = (
    "status",
    "destination",
    "disposal_justification",
    "observations",
    "reviewed_by_user_id",
    "reviewed_at",
    "rejection_reason",
    "assigned_driver_id",
    "assigned_at",
    "picked_up_by_user_id",
    "picked_up_at",
    "pickup_movement_id",
    "received_by_user_id",
    "received_at",
    "entry_movement_id",
    "completed_at",
    "updated_at",
)

_TRANSFER_MUTABLE = (
    "status",
    "observations",
    "approved_by_user_id",
    "approved_at",
    "rejection_reason",
    "completed_by_user_id",
    "completed_at",
    "out_movement_id",
    "entry_movement_id",
    "updated_at",
)


async def _insert(table: str, data: dict[str, Any]) -> None:
    columns = list(data)
    async with get_transaction() as conn:
        await conn.execute(
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})",
            tuple(to_db(data[c]) for c in columns),
        )


async def _fetch(table: str, row_id: str) -> aiosqlite.Row | None:
    async with get_connection() as conn:
        cursor = await conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,))
        return await cursor.fetchone()


async def _select(
    table: str,
    clauses: list[str],
    params: list,
    limit: int,
    offset: int,
) -> list[aiosqlite.Row]:
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    async with get_connection() as conn:
        cursor = await conn.execute(
            f"SELECT * FROM {table} {where} ORDER BY created_at DESC, id LIMIT ? OFFSET ?",
            (*params, limit, offset),
        )
        return list(await cursor.fetchall())


class SQLiteFurnitureRemovalStore(IFurnitureRemovalStore):
    """SQLite storage for furniture removals."""

    async def create(self, removal: FurnitureRemoval) -> FurnitureRemoval:
        now = utc_now()
        removal = removal.model_copy(update={"created_at": now, "updated_at": now})
        await _insert("furniture_removals", removal.model_dump())
        logger.info(
            "furniture_removal_created",
            removal_id=removal.id,
            item_id=removal.item_id,
            unit_id=removal.unit_id,
            qty=removal.quantity,
        )
        return removal

    async def get(self, removal_id: str) -> FurnitureRemoval | None:
        row = await _fetch("furniture_removals", removal_id)
        return self._row_to_removal(row) if row else None

    async def list(
        self,
        status: RemovalStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[FurnitureRemoval]:
        clauses: list[str] = []
        params: list = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if unit_id is not None:
            clauses.append("unit_id = ?")
            params.append(unit_id)
        rows = await _select("furniture_removals", clauses, params, limit, offset)
        return [self._row_to_removal(row) for row in rows]

    async def compare_and_set(
        self,
        removal_id: str,
        expected_status: RemovalStatus,
        expected_version: int,
        changes: dict[str, Any],
    ) -> FurnitureRemoval | None:
        async with get_transaction() as conn:
            updated = await compare_and_set(
                conn,
                "furniture_removals",
                _REMOVAL_MUTABLE,
                removal_id,
                expected_status,
                expected_version,
                changes,
            )
        if not updated:
            logger.info(
                "furniture_removal_cas_missed",
                removal_id=removal_id,
                expected_status=to_db(expected_status),
                expected_version=expected_version,
            )
            return None
        return await self.get(removal_id)

    @staticmethod
    def _row_to_removal(row: aiosqlite.Row) -> FurnitureRemoval:
        return FurnitureRemoval(
            id=row["id"],
            item_id=row["item_id"],
            unit_id=row["unit_id"],
            requested_by_user_id=row["requested_by_user_id"],
            quantity=float(row["quantity"]),
            reason=row["reason"],
            status=RemovalStatus(row["status"]),
            destination=RemovalDestination(row["destination"]) if row["destination"] else None,
            disposal_justification=row["disposal_justification"],
            observations=row["observations"],
            version=int(row["version"]),
            reviewed_by_user_id=row["reviewed_by_user_id"],
            reviewed_at=parse_datetime(row["reviewed_at"]),
            rejection_reason=row["rejection_reason"],
            assigned_driver_id=row["assigned_driver_id"],
            assigned_at=parse_datetime(row["assigned_at"]),
            picked_up_by_user_id=row["picked_up_by_user_id"],
            picked_up_at=parse_datetime(row["picked_up_at"]),
            pickup_movement_id=row["pickup_movement_id"],
            received_by_user_id=row["received_by_user_id"],
            received_at=parse_datetime(row["received_at"]),
            entry_movement_id=row["entry_movement_id"],
            completed_at=parse_datetime(row["completed_at"]),
            created_at=parse_datetime(row["created_at"]) or utc_now(),
            updated_at=parse_datetime(row["updated_at"]) or utc_now(),
        )


class SQLiteFurnitureTransferStore(IFurnitureTransferStore):
    """SQLite storage for furniture transfers."""

    async def create(self, transfer: FurnitureTransfer) -> FurnitureTransfer:
        now = utc_now()
        transfer = transfer.model_copy(update={"created_at": now, "updated_at": now})
        await _insert("furniture_transfers", transfer.model_dump())
        logger.info(
            "furniture_transfer_created",
            transfer_id=transfer.id,
            item_id=transfer.item_id,
            from_unit_id=transfer.from_unit_id,
            to_unit_id=transfer.to_unit_id,
        )
        return transfer

    async def get(self, transfer_id: str) -> FurnitureTransfer | None:
        row = await _fetch("furniture_transfers", transfer_id)
        return self._row_to_transfer(row) if row else None

    async def list(
        self,
        status: TransferStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[FurnitureTransfer]:
        clauses: list[str] = []
        params: list = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if unit_id is not None:
            clauses.append("(from_unit_id = ? OR to_unit_id = ?)")
            params.extend([unit_id, unit_id])
        rows = await _select("furniture_transfers", clauses, params, limit, offset)
        return [self._row_to_transfer(row) for row in rows]

    async def compare_and_set(
        self,
        transfer_id: str,
        expected_status: TransferStatus,
        expected_version: int,
        changes: dict[str, Any],
    ) -> FurnitureTransfer | None:
        async with get_transaction() as conn:
            updated = await compare_and_set(
                conn,
                "furniture_transfers",
                _TRANSFER_MUTABLE,
                transfer_id,
                expected_status,
                expected_version,
                changes,
            )
        if not updated:
            logger.info(
                "furniture_transfer_cas_missed",
                transfer_id=transfer_id,
                expected_status=to_db(expected_status),
                expected_version=expected_version,
            )
            return None
        return await self.get(transfer_id)

    @staticmethod
    def _row_to_transfer(row: aiosqlite.Row) -> FurnitureTransfer:
        return FurnitureTransfer(
            id=row["id"],
            item_id=row["item_id"],
            from_unit_id=row["from_unit_id"],
            to_unit_id=row["to_unit_id"],
            requested_by_user_id=row["requested_by_user_id"],
            quantity=float(row["quantity"]),
            status=TransferStatus(row["status"]),
            observations=row["observations"],
            version=int(row["version"]),
            approved_by_user_id=row["approved_by_user_id"],
            approved_at=parse_datetime(row["approved_at"]),
            rejection_reason=row["rejection_reason"],
            completed_by_user_id=row["completed_by_user_id"],
            completed_at=parse_datetime(row["completed_at"]),
            out_movement_id=row["out_movement_id"],
            entry_movement_id=row["entry_movement_id"],
            created_at=parse_datetime(row["created_at"]) or utc_now(),
            updated_at=parse_datetime(row["updated_at"]) or utc_now(),
        )
