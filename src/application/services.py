"""
Service factory functions for dependency injection.

This module provides factory functions that wire infrastructure
implementations to core services. Use cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.config import get_logger, get_settings
from src.core.services import DailyCodeService, StockProjector

if TYPE_CHECKING:
    from src.core.interfaces import IDirectory, IInventoryStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class WarehouseContext:
    """The canonical warehouse unit that holds real stock for materials."""

    unit_id: str
    unit_name: str | None = None
    known_to_directory: bool = False


# Singleton service instances
_daily_code_service: DailyCodeService | None = None
_warehouse_context: WarehouseContext | None = None


def get_daily_code_service() -> DailyCodeService:
    """Get or create the DailyCodeService from settings."""
    global _daily_code_service

    if _daily_code_service is None:
        _daily_code_service = DailyCodeService.from_settings()
    return _daily_code_service


async def get_stock_projector(
    inventory_store: "IInventoryStore | None" = None,
    directory: "IDirectory | None" = None,
) -> StockProjector:
    """
    Create a StockProjector.

    Projectors are cheap and stateless, so one is built per call around
    the given (or singleton) stores.
    """
    if inventory_store is None:
        from src.infrastructure.storage.sqlite import get_inventory_store

        inventory_store = await get_inventory_store()
    if directory is None:
        from src.infrastructure.storage.sqlite import get_directory

        directory = await get_directory()

    return StockProjector(
        inventory_store=inventory_store,
        directory=directory,
        default_minimum=get_settings().fulfillment.default_minimum_quantity,
    )


async def resolve_warehouse_context(
    directory: "IDirectory | None" = None,
) -> WarehouseContext:
    """
    Resolve the configured warehouse unit once, at startup.

    A unit missing from the directory is logged but not fatal: the
    directory is maintained elsewhere and may be seeded after boot.
    """
    global _warehouse_context

    unit_id = get_settings().fulfillment.warehouse_unit_id
    if directory is None:
        from src.infrastructure.storage.sqlite import get_directory

        directory = await get_directory()

    unit = await directory.get_unit_by_id(unit_id)
    if unit is None:
        logger.warning("warehouse_unit_not_in_directory", unit_id=unit_id)
        context = WarehouseContext(unit_id=unit_id)
    else:
        context = WarehouseContext(unit_id=unit.id, unit_name=unit.name, known_to_directory=True)

    _warehouse_context = context
    logger.info("warehouse_context_resolved", unit_id=context.unit_id, known=context.known_to_directory)
    return context


def get_warehouse_context() -> WarehouseContext:
    """Resolved context, or one built from settings when startup did not run."""
    if _warehouse_context is None:
        return WarehouseContext(unit_id=get_settings().fulfillment.warehouse_unit_id)
    return _warehouse_context


def reset_services() -> None:
    """Reset all singletons (for testing)."""
    global _daily_code_service
    global _warehouse_context

    _daily_code_service = None
    _warehouse_context = None
