"""SQLite implementation of delivery batch and confirmation storage."""

from __future__ import annotations

from typing import Any

import aiosqlite

from src.config import get_logger
from src.core.entities.delivery import (
    BatchStatus,
    ConfirmationType,
    DeliveryBatch,
    DeliveryConfirmation,
)
from src.core.entities.inventory import utc_now
from src.core.entities.request import RequestKind
from src.core.exceptions import BatchMembershipError, PersistenceError, StateConflictError
from src.core.interfaces.batch_store import IBatchStore
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from src.infrastructure.storage.sqlite.rows import compare_and_set, parse_datetime, to_db

logger = get_logger(__name__)

_BATCH_MUTABLE = (
    "status",
    "notes",
    "driver_user_id",
    "dispatched_at",
    "delivery_confirmed_at",
    "received_confirmed_at",
    "completed_at",
)


class SQLiteBatchStore(IBatchStore):
    """SQLite storage for delivery batches, membership and confirmations."""

    async def create(self, batch: DeliveryBatch) -> DeliveryBatch:
        members = [(rid, RequestKind.MATERIAL) for rid in batch.request_ids]
        members += [(fid, RequestKind.FURNITURE) for fid in batch.furniture_request_ids]

        try:
            async with get_transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO delivery_batches (
                        id, target_unit_id, driver_user_id, scan_code,
                        status, version, notes, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        batch.id,
                        batch.target_unit_id,
                        batch.driver_user_id,
                        batch.scan_code,
                        batch.status.value,
                        batch.version,
                        batch.notes,
                        batch.created_at.isoformat(),
                    ),
                )
                await conn.executemany(
                    """
                    INSERT INTO batch_members (batch_id, member_id, member_kind, position, is_open)
                    VALUES (?, ?, ?, ?, 1)
                    """,
                    [
                        (batch.id, member_id, kind.value, position)
                        for position, (member_id, kind) in enumerate(members)
                    ],
                )
        except aiosqlite.IntegrityError as e:
            for member_id, _ in members:
                open_batch = await self.find_open_batch_id(member_id)
                if open_batch is not None:
                    raise BatchMembershipError(
                        member_id, open_batch, "already belongs to an open batch"
                    ) from e
            raise PersistenceError("create_batch", str(e)) from e

        logger.info(
            "batch_created",
            batch_id=batch.id,
            scan_code=batch.scan_code,
            unit_id=batch.target_unit_id,
            members=len(members),
        )
        return batch

    async def get(self, batch_id: str) -> DeliveryBatch | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM delivery_batches WHERE id = ?", (batch_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return await self._hydrate(conn, row)

    async def get_by_scan_code(self, scan_code: str) -> DeliveryBatch | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM delivery_batches WHERE scan_code = ?", (scan_code,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return await self._hydrate(conn, row)

    async def list(
        self,
        status: BatchStatus | None = None,
        driver_user_id: str | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[DeliveryBatch]:
        clauses: list[str] = []
        params: list = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if driver_user_id is not None:
            clauses.append("driver_user_id = ?")
            params.append(driver_user_id)
        if unit_id is not None:
            clauses.append("target_unit_id = ?")
            params.append(unit_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM delivery_batches {where}
                ORDER BY created_at DESC, id
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [await self._hydrate(conn, row) for row in rows]

    async def find_open_batch_id(self, member_id: str) -> str | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT batch_id FROM batch_members WHERE member_id = ? AND is_open = 1",
                (member_id,),
            )
            row = await cursor.fetchone()
            return row["batch_id"] if row else None

    async def scan_code_exists(self, scan_code: str) -> bool:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT 1 FROM delivery_batches WHERE scan_code = ?", (scan_code,)
            )
            return await cursor.fetchone() is not None

    async def compare_and_set(
        self,
        batch_id: str,
        expected_status: BatchStatus,
        expected_version: int,
        changes: dict[str, Any],
    ) -> DeliveryBatch | None:
        async with get_transaction() as conn:
            updated = await compare_and_set(
                conn,
                "delivery_batches",
                _BATCH_MUTABLE,
                batch_id,
                expected_status,
                expected_version,
                changes,
                touch_column=None,
            )
            new_status = changes.get("status")
            if updated and new_status is not None and not BatchStatus(new_status).is_open:
                await conn.execute(
                    "UPDATE batch_members SET is_open = 0 WHERE batch_id = ?", (batch_id,)
                )

        if not updated:
            logger.info(
                "batch_cas_missed",
                batch_id=batch_id,
                expected_status=to_db(expected_status),
                expected_version=expected_version,
            )
            return None
        return await self.get(batch_id)

    async def add_confirmation(
        self, confirmation: DeliveryConfirmation
    ) -> DeliveryConfirmation:
        timestamp = utc_now()
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    """
                    INSERT INTO delivery_confirmations (
                        batch_id, type, confirmed_by_user_id, timestamp, photo_ref, notes
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        confirmation.batch_id,
                        confirmation.type.value,
                        confirmation.confirmed_by_user_id,
                        timestamp.isoformat(),
                        confirmation.photo_ref,
                        confirmation.notes,
                    ),
                )
                confirmation_id = cursor.lastrowid
        except aiosqlite.IntegrityError as e:
            raise StateConflictError(
                "Batch",
                confirmation.batch_id,
                expected=f"no {confirmation.type.value} confirmation",
                actual=f"{confirmation.type.value} already confirmed",
            ) from e

        logger.info(
            "confirmation_recorded",
            confirmation_id=confirmation_id,
            batch_id=confirmation.batch_id,
            type=confirmation.type.value,
            user_id=confirmation.confirmed_by_user_id,
        )
        return confirmation.model_copy(update={"id": confirmation_id, "timestamp": timestamp})

    async def list_confirmations(
        self,
        batch_id: str,
        confirmation_type: ConfirmationType | None = None,
    ) -> list[DeliveryConfirmation]:
        query = "SELECT * FROM delivery_confirmations WHERE batch_id = ?"
        params: list = [batch_id]
        if confirmation_type is not None:
            query += " AND type = ?"
            params.append(confirmation_type.value)
        query += " ORDER BY id ASC"

        async with get_connection() as conn:
            cursor = await conn.execute(query, tuple(params))
            rows = await cursor.fetchall()
            return [self._row_to_confirmation(row) for row in rows]

    async def _hydrate(self, conn: aiosqlite.Connection, row: aiosqlite.Row) -> DeliveryBatch:
        cursor = await conn.execute(
            """
            SELECT member_id, member_kind FROM batch_members
            WHERE batch_id = ? ORDER BY position
            """,
            (row["id"],),
        )
        members = await cursor.fetchall()
        return DeliveryBatch(
            id=row["id"],
            request_ids=[
                m["member_id"] for m in members if m["member_kind"] == RequestKind.MATERIAL.value
            ],
            furniture_request_ids=[
                m["member_id"] for m in members if m["member_kind"] == RequestKind.FURNITURE.value
            ],
            target_unit_id=row["target_unit_id"],
            driver_user_id=row["driver_user_id"],
            scan_code=row["scan_code"],
            status=BatchStatus(row["status"]),
            version=int(row["version"]),
            notes=row["notes"],
            created_at=parse_datetime(row["created_at"]) or utc_now(),
            dispatched_at=parse_datetime(row["dispatched_at"]),
            delivery_confirmed_at=parse_datetime(row["delivery_confirmed_at"]),
            received_confirmed_at=parse_datetime(row["received_confirmed_at"]),
            completed_at=parse_datetime(row["completed_at"]),
        )

    @staticmethod
    def _row_to_confirmation(row: aiosqlite.Row) -> DeliveryConfirmation:
        return DeliveryConfirmation(
            id=row["id"],
            batch_id=row["batch_id"],
            type=ConfirmationType(row["type"]),
            confirmed_by_user_id=row["confirmed_by_user_id"],
            timestamp=parse_datetime(row["timestamp"]),
            photo_ref=row["photo_ref"],
            notes=row["notes"],
        )
