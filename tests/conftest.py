"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from src.application.services import reset_services
from src.config import Settings, get_settings, reset_settings
from src.core.entities import Item, Unit, User, UserRole, WarehouseType

WAREHOUSE = "warehouse-central"
UNIT_1 = "unit-1"
UNIT_2 = "unit-2"


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Settings, None, None]:
    """Settings pointing at a throwaway data directory."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("STORAGE_POOL_SIZE", "2")
    monkeypatch.setenv("FULFILLMENT_WAREHOUSE_UNIT_ID", WAREHOUSE)
    monkeypatch.setenv("FULFILLMENT_DAILY_CODE_SECRET", "test-secret")
    reset_settings()
    reset_services()
    yield get_settings()
    reset_settings()
    reset_services()


@pytest.fixture
async def db(settings: Settings) -> AsyncGenerator[Path, None]:
    """Migrated temporary database; the global pool is closed afterwards."""
    from src.infrastructure.storage.sqlite import close_pool
    from src.infrastructure.storage.sqlite.migrations.migrator import run_migrations

    db_path = settings.storage.db_path
    await run_migrations(db_path, create_backup_before=False)
    yield db_path
    await close_pool()


@pytest.fixture
def units() -> list[Unit]:
    return [
        Unit(id=WAREHOUSE, name="Central Warehouse"),
        Unit(id=UNIT_1, name="Unit 1"),
        Unit(id=UNIT_2, name="Unit 2"),
    ]


@pytest.fixture
def users() -> list[User]:
    return [
        User(
            id="u-storage",
            name="Storage Clerk",
            role=UserRole.WAREHOUSE,
            primary_unit_id=WAREHOUSE,
            warehouse_type=WarehouseType.STORAGE,
        ),
        User(
            id="u-driver",
            name="Driver",
            role=UserRole.WAREHOUSE,
            primary_unit_id=WAREHOUSE,
            warehouse_type=WarehouseType.DELIVERY,
        ),
        User(id="u-controller", name="Controller 1", role=UserRole.CONTROLLER, primary_unit_id=UNIT_1),
        User(id="u-controller-2", name="Controller 2", role=UserRole.CONTROLLER, primary_unit_id=UNIT_2),
        User(id="u-requester", name="Requester 1", role=UserRole.REQUESTER, primary_unit_id=UNIT_1),
        User(id="u-requester-2", name="Requester 2", role=UserRole.REQUESTER, primary_unit_id=UNIT_2),
        User(id="u-designer", name="Designer", role=UserRole.DESIGNER),
        User(id="u-admin", name="Admin", role=UserRole.ADMIN),
    ]


@pytest.fixture
def items() -> list[Item]:
    return [
        Item(id="item-paper", name="Paper A4", default_minimum_quantity=10),
        Item(id="item-toner", name="Toner"),
        Item(id="item-desk", name="Desk", is_furniture=True),
    ]


@pytest.fixture
async def seeded_db(db: Path, units, users, items) -> Path:
    """Database with the directory tables filled in."""
    from src.infrastructure.storage.sqlite import SQLiteDirectory

    directory = SQLiteDirectory()
    for unit in units:
        await directory.upsert_unit(unit)
    for user in users:
        await directory.upsert_user(user)
    for item in items:
        await directory.upsert_item(item)
    return db


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client. The lifespan does not run under ASGITransport."""
    from src.api.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
