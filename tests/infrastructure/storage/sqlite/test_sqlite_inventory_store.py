"""Tests for the SQLite movement ledger and stock projection rows."""

from dataclasses import replace

import aiosqlite
import pytest

from src.core.entities import Movement, MovementType
from src.core.exceptions import ValidationError
from src.core.interfaces.inventory_store import LedgerSummary
from src.infrastructure.storage.sqlite import SQLiteInventoryStore, get_connection

pytestmark = pytest.mark.usefixtures("db")


def _movement(kind: MovementType, quantity: float, key: str | None = None, **kw) -> Movement:
    return Movement(
        type=kind,
        item_id=kw.get("item_id", "item-paper"),
        unit_id=kw.get("unit_id", "warehouse-central"),
        user_id="u-storage",
        quantity=quantity,
        idempotency_key=key,
        reference=kw.get("reference"),
    )


class TestAppendMovement:
    async def test_append_assigns_id_and_timestamp(self):
        store = SQLiteInventoryStore()

        stored, created = await store.append_movement(_movement(MovementType.ENTRY, 20))

        assert created is True
        assert stored.id is not None
        assert stored.timestamp is not None
        assert (await store.get_movement(stored.id)).quantity == 20

    async def test_same_key_replays_stored_movement(self):
        store = SQLiteInventoryStore()

        first, created_first = await store.append_movement(
            _movement(MovementType.OUT, 5, key="separation:r1")
        )
        second, created_second = await store.append_movement(
            _movement(MovementType.OUT, 5, key="separation:r1")
        )

        assert created_first is True
        assert created_second is False
        assert second.id == first.id
        assert len(await store.list_movements(item_id="item-paper")) == 1

    @pytest.mark.parametrize(
        "changes",
        [
            {"quantity": 6},
            {"unit_id": "unit-1"},
            {"item_id": "item-toner"},
            {"type": MovementType.ENTRY},
        ],
    )
    async def test_same_key_different_payload_rejected(self, changes):
        store = SQLiteInventoryStore()
        original = _movement(MovementType.OUT, 5, key="separation:r1")
        await store.append_movement(original)

        with pytest.raises(ValidationError) as exc:
            await store.append_movement(original.model_copy(update=changes))

        assert exc.value.details["field"] == "idempotency_key"
        assert len(await store.list_movements()) == 1

    async def test_movements_cannot_be_edited(self):
        store = SQLiteInventoryStore()
        stored, _ = await store.append_movement(_movement(MovementType.ENTRY, 3))

        with pytest.raises(aiosqlite.IntegrityError):
            async with get_connection() as conn:
                await conn.execute(
                    "UPDATE movements SET quantity = 1 WHERE id = ?", (stored.id,)
                )

    async def test_list_filters(self):
        store = SQLiteInventoryStore()
        await store.append_movement(_movement(MovementType.ENTRY, 10))
        await store.append_movement(_movement(MovementType.OUT, 2, reference="DEL-ABC123"))
        await store.append_movement(_movement(MovementType.ENTRY, 4, item_id="item-toner"))

        by_reference = await store.list_movements(reference="DEL-ABC123")
        by_type = await store.list_movements(movement_type=MovementType.ENTRY)

        assert [m.quantity for m in by_reference] == [2]
        assert sorted(m.item_id for m in by_type) == ["item-paper", "item-toner"]


class TestLedgerSummary:
    async def test_signed_sum_and_version(self):
        store = SQLiteInventoryStore()
        await store.append_movement(_movement(MovementType.ENTRY, 20))
        await store.append_movement(_movement(MovementType.OUT, 5))
        await store.append_movement(_movement(MovementType.LOAN, 2))
        last, _ = await store.append_movement(_movement(MovementType.RETURN, 1))

        summary = await store.summarize_ledger("item-paper", "warehouse-central")

        assert summary.quantity == 14
        assert summary.version == last.id
        assert summary.movement_count == 4

    async def test_empty_key(self):
        summary = await SQLiteInventoryStore().summarize_ledger("item-none", "unit-1")

        assert (summary.quantity, summary.version, summary.movement_count) == (0, 0, 0)

    async def test_ledger_keys(self):
        store = SQLiteInventoryStore()
        await store.append_movement(_movement(MovementType.ENTRY, 1, unit_id="unit-2"))
        await store.append_movement(_movement(MovementType.ENTRY, 1))

        keys = await store.list_ledger_keys()

        assert keys == [("item-paper", "unit-2"), ("item-paper", "warehouse-central")]


class TestProjectionRows:
    async def test_save_creates_row_with_minimum(self):
        store = SQLiteInventoryStore()
        summary = LedgerSummary(
            item_id="item-paper", unit_id="unit-1", quantity=7, version=3, movement_count=2
        )

        stock = await store.save_projection(summary, default_minimum=10)

        assert stock.id is not None
        assert stock.quantity == 7
        assert stock.minimum_quantity == 10
        assert stock.ledger_version == 3

    async def test_older_version_does_not_overwrite(self):
        store = SQLiteInventoryStore()
        newer = LedgerSummary(
            item_id="item-paper", unit_id="unit-1", quantity=4, version=9, movement_count=3
        )
        older = LedgerSummary(
            item_id="item-paper", unit_id="unit-1", quantity=10, version=5, movement_count=1
        )

        await store.save_projection(newer)
        stock = await store.save_projection(older)

        assert stock.quantity == 4
        assert stock.ledger_version == 9

    async def test_attributes_survive_reprojection(self):
        store = SQLiteInventoryStore()
        summary = LedgerSummary(
            item_id="item-paper", unit_id="unit-1", quantity=1, version=1, movement_count=1
        )
        stock = await store.save_projection(summary)

        await store.update_stock_attributes(stock.id, minimum_quantity=5, location="Shelf B")
        stock = await store.save_projection(
            replace(summary, quantity=6, version=2)
        )

        assert stock.quantity == 6
        assert stock.minimum_quantity == 5
        assert stock.location == "Shelf B"

    async def test_list_stock_by_unit(self):
        store = SQLiteInventoryStore()
        for unit_id in ("unit-1", "unit-2"):
            await store.save_projection(
                LedgerSummary(
                    item_id="item-paper", unit_id=unit_id, quantity=1, version=1, movement_count=1
                )
            )

        rows = await store.list_stock(unit_id="unit-2")

        assert [row.unit_id for row in rows] == ["unit-2"]

    async def test_list_drifted_reports_missing_and_stale_rows(self):
        store = SQLiteInventoryStore()
        await store.append_movement(_movement(MovementType.ENTRY, 8, unit_id="unit-1"))
        await store.save_projection(await store.summarize_ledger("item-paper", "unit-1"))
        await store.append_movement(_movement(MovementType.ENTRY, 3))
        await store.save_projection(await store.summarize_ledger("item-paper", "warehouse-central"))
        latest, _ = await store.append_movement(_movement(MovementType.OUT, 1))
        await store.append_movement(_movement(MovementType.ENTRY, 2, unit_id="unit-2"))

        drifted = await store.list_drifted()

        assert [(s.unit_id, s.quantity) for s in drifted] == [
            ("unit-2", 2),
            ("warehouse-central", 2),
        ]
        assert drifted[1].version == latest.id
        assert [s.unit_id for s in await store.list_drifted(unit_id="unit-2")] == ["unit-2"]
        assert await store.list_drifted(unit_id="unit-1") == []
