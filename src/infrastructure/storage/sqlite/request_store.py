"""SQLite implementation of material and furniture request storage."""

from __future__ import annotations

from typing import Any

import aiosqlite

from src.config import get_logger
from src.core.entities.inventory import utc_now
from src.core.entities.request import (
    FurnitureRequest,
    FurnitureRequestStatus,
    Request,
    RequestStatus,
    Urgency,
)
from src.core.interfaces.request_store import IFurnitureRequestStore, IRequestStore
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from src.infrastructure.storage.sqlite.rows import compare_and_set, parse_datetime, to_db

logger = get_logger(__name__)

_REQUEST_MUTABLE = (
    "status",
    "observations",
    "approved_by_user_id",
    "approved_at",
    "rejected_reason",
    "rejected_at",
    "pickup_ready_by_user_id",
    "pickup_ready_at",
    "picked_up_by_user_id",
    "picked_up_at",
    "completed_by_user_id",
    "completed_at",
    "updated_at",
)

_FURNITURE_MUTABLE = (
    "status",
    "observations",
    "reviewed_by_designer_id",
    "reviewed_at",
    "approved_by_storage_user_id",
    "approved_by_storage_at",
    "assigned_driver_id",
    "assigned_at",
    "completed_by_user_id",
    "completed_at",
    "rejection_reason",
    "updated_at",
)


async def _fetch_many(table: str, ids: list[str]) -> list[aiosqlite.Row]:
    if not ids:
        return []
    placeholders = ", ".join("?" for _ in ids)
    async with get_connection() as conn:
        cursor = await conn.execute(
            f"SELECT * FROM {table} WHERE id IN ({placeholders})", tuple(ids)
        )
        rows = {row["id"]: row for row in await cursor.fetchall()}
    return [rows[i] for i in ids if i in rows]


async def _list(
    table: str,
    status: Any,
    unit_id: str | None,
    limit: int,
    offset: int,
) -> list[aiosqlite.Row]:
    clauses: list[str] = []
    params: list = []
    if status is not None:
        clauses.append("status = ?")
        params.append(to_db(status))
    if unit_id is not None:
        clauses.append("requesting_unit_id = ?")
        params.append(unit_id)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

    async with get_connection() as conn:
        cursor = await conn.execute(
            f"SELECT * FROM {table} {where} ORDER BY created_at DESC, id LIMIT ? OFFSET ?",
            (*params, limit, offset),
        )
        return list(await cursor.fetchall())


class SQLiteRequestStore(IRequestStore):
    """SQLite storage for material requests."""

    async def create(self, request: Request) -> Request:
        now = utc_now()
        request = request.model_copy(update={"created_at": now, "updated_at": now})
        data = request.model_dump()
        columns = list(data)
        async with get_transaction() as conn:
            await conn.execute(
                f"INSERT INTO requests ({', '.join(columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})",
                tuple(to_db(data[c]) for c in columns),
            )
        logger.info(
            "request_created",
            request_id=request.id,
            item_id=request.item_id,
            unit_id=request.requesting_unit_id,
            qty=request.quantity,
        )
        return request

    async def get(self, request_id: str) -> Request | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM requests WHERE id = ?", (request_id,))
            row = await cursor.fetchone()
            return self._row_to_request(row) if row else None

    async def get_many(self, request_ids: list[str]) -> list[Request]:
        return [self._row_to_request(row) for row in await _fetch_many("requests", request_ids)]

    async def list(
        self,
        status: RequestStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Request]:
        rows = await _list("requests", status, unit_id, limit, offset)
        return [self._row_to_request(row) for row in rows]

    async def compare_and_set(
        self,
        request_id: str,
        expected_status: RequestStatus,
        expected_version: int,
        changes: dict[str, Any],
    ) -> Request | None:
        async with get_transaction() as conn:
            updated = await compare_and_set(
                conn,
                "requests",
                _REQUEST_MUTABLE,
                request_id,
                expected_status,
                expected_version,
                changes,
            )
        if not updated:
            logger.info(
                "request_cas_missed",
                request_id=request_id,
                expected_status=to_db(expected_status),
                expected_version=expected_version,
            )
            return None
        return await self.get(request_id)

    @staticmethod
    def _row_to_request(row: aiosqlite.Row) -> Request:
        return Request(
            id=row["id"],
            item_id=row["item_id"],
            requesting_unit_id=row["requesting_unit_id"],
            requested_by_user_id=row["requested_by_user_id"],
            quantity=float(row["quantity"]),
            urgency=Urgency(row["urgency"]),
            status=RequestStatus(row["status"]),
            observations=row["observations"],
            version=int(row["version"]),
            approved_by_user_id=row["approved_by_user_id"],
            approved_at=parse_datetime(row["approved_at"]),
            rejected_reason=row["rejected_reason"],
            rejected_at=parse_datetime(row["rejected_at"]),
            pickup_ready_by_user_id=row["pickup_ready_by_user_id"],
            pickup_ready_at=parse_datetime(row["pickup_ready_at"]),
            picked_up_by_user_id=row["picked_up_by_user_id"],
            picked_up_at=parse_datetime(row["picked_up_at"]),
            completed_by_user_id=row["completed_by_user_id"],
            completed_at=parse_datetime(row["completed_at"]),
            created_at=parse_datetime(row["created_at"]) or utc_now(),
            updated_at=parse_datetime(row["updated_at"]) or utc_now(),
        )


class SQLiteFurnitureRequestStore(IFurnitureRequestStore):
    """SQLite storage for furniture requests."""

    async def create(self, request: FurnitureRequest) -> FurnitureRequest:
        now = utc_now()
        request = request.model_copy(update={"created_at": now, "updated_at": now})
        data = request.model_dump()
        columns = list(data)
        async with get_transaction() as conn:
            await conn.execute(
                f"INSERT INTO furniture_requests ({', '.join(columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})",
                tuple(to_db(data[c]) for c in columns),
            )
        logger.info(
            "furniture_request_created",
            request_id=request.id,
            item_id=request.item_id,
            unit_id=request.requesting_unit_id,
        )
        return request

    async def get(self, request_id: str) -> FurnitureRequest | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM furniture_requests WHERE id = ?", (request_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_request(row) if row else None

    async def get_many(self, request_ids: list[str]) -> list[FurnitureRequest]:
        rows = await _fetch_many("furniture_requests", request_ids)
        return [self._row_to_request(row) for row in rows]

    async def list(
        self,
        status: FurnitureRequestStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[FurnitureRequest]:
        rows = await _list("furniture_requests", status, unit_id, limit, offset)
        return [self._row_to_request(row) for row in rows]

    async def compare_and_set(
        self,
        request_id: str,
        expected_status: FurnitureRequestStatus,
        expected_version: int,
        changes: dict[str, Any],
    ) -> FurnitureRequest | None:
        async with get_transaction() as conn:
            updated = await compare_and_set(
                conn,
                "furniture_requests",
                _FURNITURE_MUTABLE,
                request_id,
                expected_status,
                expected_version,
                changes,
            )
        if not updated:
            logger.info(
                "furniture_request_cas_missed",
                request_id=request_id,
                expected_status=to_db(expected_status),
                expected_version=expected_version,
            )
            return None
        return await self.get(request_id)

    @staticmethod
    def _row_to_request(row: aiosqlite.Row) -> FurnitureRequest:
        return FurnitureRequest(
            id=row["id"],
            item_id=row["item_id"],
            requesting_unit_id=row["requesting_unit_id"],
            requested_by_user_id=row["requested_by_user_id"],
            quantity=float(row["quantity"]),
            location=row["location"] or "",
            justification=row["justification"] or "",
            status=FurnitureRequestStatus(row["status"]),
            observations=row["observations"],
            version=int(row["version"]),
            reviewed_by_designer_id=row["reviewed_by_designer_id"],
            reviewed_at=parse_datetime(row["reviewed_at"]),
            approved_by_storage_user_id=row["approved_by_storage_user_id"],
            approved_by_storage_at=parse_datetime(row["approved_by_storage_at"]),
            assigned_driver_id=row["assigned_driver_id"],
            assigned_at=parse_datetime(row["assigned_at"]),
            completed_by_user_id=row["completed_by_user_id"],
            completed_at=parse_datetime(row["completed_at"]),
            rejection_reason=row["rejection_reason"],
            created_at=parse_datetime(row["created_at"]) or utc_now(),
            updated_at=parse_datetime(row["updated_at"]) or utc_now(),
        )
