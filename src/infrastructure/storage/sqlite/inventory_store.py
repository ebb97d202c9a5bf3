"""SQLite implementation of the movement ledger and stock projection."""

import aiosqlite

from src.config import get_logger
from src.core.entities.inventory import Movement, MovementType, UnitStock, utc_now
from src.core.exceptions import ValidationError
from src.core.interfaces.inventory_store import IInventoryStore, LedgerSummary
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from src.infrastructure.storage.sqlite.rows import parse_datetime

logger = get_logger(__name__)

_SIGNED_QUANTITY = (
    "CASE WHEN type IN ('entry', 'return') THEN quantity ELSE -quantity END"
)


class SQLiteInventoryStore(IInventoryStore):
    """SQLite implementation of ledger appends and projection rows."""

    async def append_movement(self, movement: Movement) -> tuple[Movement, bool]:
        """
        Append a movement; an existing idempotency key returns the stored one.

        Raises:
            ValidationError: The key was used for a different movement
        """
        if movement.idempotency_key:
            existing = await self.get_movement_by_key(movement.idempotency_key)
            if existing is not None:
                return self._replay(existing, movement), False

        timestamp = utc_now()
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    """
                    INSERT INTO movements (
                        type, item_id, unit_id, user_id, quantity,
                        timestamp, notes, reference, idempotency_key
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        movement.type.value,
                        movement.item_id,
                        movement.unit_id,
                        movement.user_id,
                        movement.quantity,
                        timestamp.isoformat(),
                        movement.notes,
                        movement.reference,
                        movement.idempotency_key,
                    ),
                )
                movement_id = cursor.lastrowid
        except aiosqlite.IntegrityError:
            # Lost a race on the idempotency key
            if not movement.idempotency_key:
                raise
            existing = await self.get_movement_by_key(movement.idempotency_key)
            if existing is None:
                raise
            return self._replay(existing, movement), False

        stored = movement.model_copy(update={"id": movement_id, "timestamp": timestamp})
        logger.info(
            "movement_appended",
            movement_id=movement_id,
            type=movement.type.value,
            item_id=movement.item_id,
            unit_id=movement.unit_id,
            qty=movement.quantity,
        )
        return stored, True

    async def get_movement(self, movement_id: int) -> Movement | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM movements WHERE id = ?", (movement_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_movement(row) if row else None

    async def get_movement_by_key(self, idempotency_key: str) -> Movement | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM movements WHERE idempotency_key = ?", (idempotency_key,)
            )
            row = await cursor.fetchone()
            return self._row_to_movement(row) if row else None

    async def list_movements(
        self,
        item_id: str | None = None,
        unit_id: str | None = None,
        reference: str | None = None,
        movement_type: MovementType | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Movement]:
        clauses: list[str] = []
        params: list = []
        if item_id is not None:
            clauses.append("item_id = ?")
            params.append(item_id)
        if unit_id is not None:
            clauses.append("unit_id = ?")
            params.append(unit_id)
        if reference is not None:
            clauses.append("reference = ?")
            params.append(reference)
        if movement_type is not None:
            clauses.append("type = ?")
            params.append(movement_type.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM movements {where} ORDER BY id ASC LIMIT ? OFFSET ?",
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_movement(row) for row in rows]

    async def summarize_ledger(self, item_id: str, unit_id: str) -> LedgerSummary:
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT COALESCE(SUM({_SIGNED_QUANTITY}), 0) AS quantity,
                       COALESCE(MAX(id), 0) AS version,
                       COUNT(*) AS movement_count
                FROM movements
                WHERE item_id = ? AND unit_id = ?
                """,
                (item_id, unit_id),
            )
            row = await cursor.fetchone()
            return LedgerSummary(
                item_id=item_id,
                unit_id=unit_id,
                quantity=float(row["quantity"]),
                version=int(row["version"]),
                movement_count=int(row["movement_count"]),
            )

    async def list_ledger_keys(self) -> list[tuple[str, str]]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT DISTINCT item_id, unit_id FROM movements ORDER BY item_id, unit_id"
            )
            return [(row["item_id"], row["unit_id"]) for row in await cursor.fetchall()]

    async def list_drifted(
        self,
        unit_id: str | None = None,
        item_id: str | None = None,
    ) -> list[LedgerSummary]:
        clauses: list[str] = []
        params: list = []
        if unit_id is not None:
            clauses.append("unit_id = ?")
            params.append(unit_id)
        if item_id is not None:
            clauses.append("item_id = ?")
            params.append(item_id)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT l.item_id, l.unit_id, l.quantity, l.version, l.movement_count
                FROM (
                    SELECT item_id, unit_id,
                           SUM({_SIGNED_QUANTITY}) AS quantity,
                           MAX(id) AS version,
                           COUNT(*) AS movement_count
                    FROM movements {where}
                    GROUP BY item_id, unit_id
                ) AS l
                LEFT JOIN unit_stocks s
                    ON s.item_id = l.item_id AND s.unit_id = l.unit_id
                WHERE s.id IS NULL
                   OR s.ledger_version != l.version
                   OR ABS(s.quantity - l.quantity) > 1e-9
                ORDER BY l.item_id, l.unit_id
                """,
                params,
            )
            return [
                LedgerSummary(
                    item_id=row["item_id"],
                    unit_id=row["unit_id"],
                    quantity=float(row["quantity"]),
                    version=int(row["version"]),
                    movement_count=int(row["movement_count"]),
                )
                for row in await cursor.fetchall()
            ]

    async def get_stock(self, item_id: str, unit_id: str) -> UnitStock | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM unit_stocks WHERE item_id = ? AND unit_id = ?",
                (item_id, unit_id),
            )
            row = await cursor.fetchone()
            return self._row_to_stock(row) if row else None

    async def get_stock_by_id(self, stock_id: int) -> UnitStock | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM unit_stocks WHERE id = ?", (stock_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_stock(row) if row else None

    async def save_projection(
        self,
        summary: LedgerSummary,
        default_minimum: float = 0.0,
    ) -> UnitStock:
        """Upsert the row; an older ledger version never overwrites a newer one."""
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO unit_stocks (
                    item_id, unit_id, quantity, minimum_quantity,
                    location, ledger_version, updated_at
                ) VALUES (?, ?, ?, ?, '', ?, ?)
                ON CONFLICT(item_id, unit_id) DO UPDATE SET
                    quantity = excluded.quantity,
                    ledger_version = excluded.ledger_version,
                    updated_at = excluded.updated_at
                WHERE excluded.ledger_version >= unit_stocks.ledger_version
                """,
                (
                    summary.item_id,
                    summary.unit_id,
                    summary.quantity,
                    default_minimum,
                    summary.version,
                    utc_now().isoformat(),
                ),
            )
            cursor = await conn.execute(
                "SELECT * FROM unit_stocks WHERE item_id = ? AND unit_id = ?",
                (summary.item_id, summary.unit_id),
            )
            row = await cursor.fetchone()
            return self._row_to_stock(row)

    async def update_stock_attributes(
        self,
        stock_id: int,
        minimum_quantity: float | None = None,
        location: str | None = None,
    ) -> UnitStock | None:
        assignments: list[str] = []
        params: list = []
        if minimum_quantity is not None:
            assignments.append("minimum_quantity = ?")
            params.append(minimum_quantity)
        if location is not None:
            assignments.append("location = ?")
            params.append(location)

        if assignments:
            assignments.append("updated_at = ?")
            params.append(utc_now().isoformat())
            async with get_transaction() as conn:
                await conn.execute(
                    f"UPDATE unit_stocks SET {', '.join(assignments)} WHERE id = ?",
                    (*params, stock_id),
                )
            logger.info(
                "stock_attributes_updated",
                stock_id=stock_id,
                minimum_quantity=minimum_quantity,
                location=location,
            )
        return await self.get_stock_by_id(stock_id)

    async def list_stock(
        self,
        unit_id: str | None = None,
        item_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[UnitStock]:
        clauses: list[str] = []
        params: list = []
        if unit_id is not None:
            clauses.append("unit_id = ?")
            params.append(unit_id)
        if item_id is not None:
            clauses.append("item_id = ?")
            params.append(item_id)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM unit_stocks {where}
                ORDER BY unit_id, item_id
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_stock(row) for row in rows]

    @staticmethod
    def _replay(existing: Movement, movement: Movement) -> Movement:
        if (
            existing.type != movement.type
            or existing.item_id != movement.item_id
            or existing.unit_id != movement.unit_id
            or abs(existing.quantity - movement.quantity) > 1e-9
        ):
            logger.warning(
                "idempotency_key_reused",
                idempotency_key=movement.idempotency_key,
                movement_id=existing.id,
            )
            raise ValidationError(
                "idempotency_key",
                f"already used by movement {existing.id} with a different payload",
                movement.idempotency_key,
            )
        logger.info(
            "movement_replayed",
            movement_id=existing.id,
            idempotency_key=movement.idempotency_key,
        )
        return existing

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> Movement:
        return Movement(
            id=row["id"],
            type=MovementType(row["type"]),
            item_id=row["item_id"],
            unit_id=row["unit_id"],
            user_id=row["user_id"],
            quantity=float(row["quantity"]),
            timestamp=parse_datetime(row["timestamp"]),
            notes=row["notes"],
            reference=row["reference"],
            idempotency_key=row["idempotency_key"],
        )

    @staticmethod
    def _row_to_stock(row: aiosqlite.Row) -> UnitStock:
        return UnitStock(
            id=row["id"],
            item_id=row["item_id"],
            unit_id=row["unit_id"],
            quantity=float(row["quantity"]),
            minimum_quantity=float(row["minimum_quantity"]),
            location=row["location"] or "",
            ledger_version=int(row["ledger_version"]),
            updated_at=parse_datetime(row["updated_at"]) or utc_now(),
        )
