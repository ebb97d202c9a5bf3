"""SQLite implementation of loan storage."""

from __future__ import annotations

from datetime import date
from typing import Any

import aiosqlite

from src.config import get_logger
from src.core.entities.inventory import utc_now
from src.core.entities.loan import Loan, LoanStatus
from src.core.interfaces.loan_store import ILoanStore
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from src.infrastructure.storage.sqlite.rows import (
    compare_and_set,
    parse_date,
    parse_datetime,
    to_db,
)

logger = get_logger(__name__)

_LOAN_MUTABLE = (
    "status",
    "return_date",
    "return_movement_id",
    "observations",
)


class SQLiteLoanStore(ILoanStore):
    """SQLite storage for loans."""

    async def create(self, loan: Loan) -> Loan:
        data = loan.model_dump()
        columns = list(data)
        async with get_transaction() as conn:
            await conn.execute(
                f"INSERT INTO loans ({', '.join(columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})",
                tuple(to_db(data[c]) for c in columns),
            )
        logger.info(
            "loan_created",
            loan_id=loan.id,
            item_id=loan.item_id,
            unit_id=loan.unit_id,
            responsible_user_id=loan.responsible_user_id,
        )
        return loan

    async def get(self, loan_id: str) -> Loan | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM loans WHERE id = ?", (loan_id,))
            row = await cursor.fetchone()
            return self._row_to_loan(row) if row else None

    async def list(
        self,
        status: LoanStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Loan]:
        clauses: list[str] = []
        params: list = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if unit_id is not None:
            clauses.append("unit_id = ?")
            params.append(unit_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM loans {where}
                ORDER BY withdrawal_date DESC, id
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            return [self._row_to_loan(row) for row in await cursor.fetchall()]

    async def compare_and_set(
        self,
        loan_id: str,
        expected_status: LoanStatus,
        expected_version: int,
        changes: dict[str, Any],
    ) -> Loan | None:
        async with get_transaction() as conn:
            updated = await compare_and_set(
                conn,
                "loans",
                _LOAN_MUTABLE,
                loan_id,
                expected_status,
                expected_version,
                changes,
                touch_column=None,
            )
        if not updated:
            logger.info("loan_cas_missed", loan_id=loan_id)
            return None
        return await self.get(loan_id)

    @staticmethod
    def _row_to_loan(row: aiosqlite.Row) -> Loan:
        return Loan(
            id=row["id"],
            item_id=row["item_id"],
            unit_id=row["unit_id"],
            responsible_user_id=row["responsible_user_id"],
            responsible_name=row["responsible_name"],
            quantity=float(row["quantity"]),
            withdrawal_date=parse_datetime(row["withdrawal_date"]) or utc_now(),
            expected_return_date=parse_date(row["expected_return_date"]) or date.today(),
            return_date=parse_datetime(row["return_date"]),
            status=LoanStatus(row["status"]),
            observations=row["observations"],
            loan_movement_id=row["loan_movement_id"],
            return_movement_id=row["return_movement_id"],
            version=int(row["version"]),
        )
