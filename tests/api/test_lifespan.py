"""Tests for application startup and shutdown."""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI

from src.api.main import lifespan
from src.application.use_cases import RebuildStockUseCase
from src.config import reset_settings
from src.infrastructure.storage.sqlite.migrations import get_migration_status


async def test_startup_migrates_and_resolves_warehouse(settings):
    app = FastAPI()

    async with lifespan(app):
        assert app.state.warehouse.unit_id == "warehouse-central"

    status = await get_migration_status(settings.storage.db_path)
    assert status["pending_migrations"] == []
    assert status["current_version"] == "002"


async def test_rebuild_on_startup(settings, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FULFILLMENT_REBUILD_STOCK_ON_STARTUP", "true")
    reset_settings()
    rebuild = AsyncMock(return_value=[])
    monkeypatch.setattr(RebuildStockUseCase, "execute", rebuild)

    async with lifespan(FastAPI()):
        pass

    rebuild.assert_awaited_once()
