"""Row conversion and conditional-update helpers shared by the SQLite stores."""

from collections.abc import Iterable
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

import aiosqlite


def to_db(value: Any) -> Any:
    """Python value to its SQLite column form."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    return value


def parse_datetime(value: str | None) -> datetime | None:
    """ISO string to an aware datetime. Naive values are read as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except (ValueError, TypeError):
        return None


async def compare_and_set(
    conn: aiosqlite.Connection,
    table: str,
    allowed_columns: Iterable[str],
    row_id: str,
    expected_status: Any,
    expected_version: int,
    changes: dict[str, Any],
    touch_column: str | None = "updated_at",
) -> bool:
    """
    ``UPDATE ... WHERE id=? AND status=? AND version=?`` bumping the version.

    Returns whether exactly one row was updated.
    """
    allowed = set(allowed_columns)
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Columns not updatable on {table}: {sorted(unknown)}")

    values = {column: to_db(value) for column, value in changes.items()}
    if touch_column and touch_column not in values:
        values[touch_column] = datetime.now(UTC).isoformat()

    assignments = [f"{column} = ?" for column in values]
    assignments.append("version = version + 1")

    cursor = await conn.execute(
        f"UPDATE {table} SET {', '.join(assignments)} "
        "WHERE id = ? AND status = ? AND version = ?",
        (*values.values(), row_id, to_db(expected_status), expected_version),
    )
    return cursor.rowcount == 1
