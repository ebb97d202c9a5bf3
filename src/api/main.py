"""
FastAPI application for the fulfillment service.

Run with ``uvicorn src.api.main:app`` or ``python manage.py start``.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from src.api.middleware.error_handler import setup_exception_handlers
from src.api.routes import (
    confirmations_router,
    daily_codes_router,
    delivery_batches_router,
    furniture_removals_router,
    furniture_requests_router,
    furniture_transfers_router,
    health_router,
    loans_router,
    movements_router,
    requests_router,
    stock_router,
)
from src.config import get_logger, get_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Bring the ledger database up before the first request.

    Startup order: schema migrations, connection pool, warehouse unit
    lookup, then an optional full projection rebuild. Shutdown closes
    the pool.
    """
    from src.application.services import resolve_warehouse_context
    from src.infrastructure.storage.sqlite import close_pool, get_pool
    from src.infrastructure.storage.sqlite.migrations.migrator import run_migrations

    settings = get_settings()
    logger.info(
        "application_starting",
        environment=settings.environment,
        host=settings.api.host,
        port=settings.api.port,
    )

    try:
        applied = await run_migrations()
        pool = await get_pool()
    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise
    logger.info("database_ready", db_path=str(pool.db_path), migrations_applied=len(applied))

    app.state.warehouse = await resolve_warehouse_context()

    if settings.fulfillment.rebuild_stock_on_startup:
        from src.application.use_cases import RebuildStockUseCase

        await RebuildStockUseCase().execute()

    logger.info("application_started", warehouse_unit_id=app.state.warehouse.unit_id)
    try:
        yield
    finally:
        logger.info("application_stopping")
        try:
            await close_pool()
        except Exception as e:
            logger.warning("connection_pool_close_failed", error=str(e))
        logger.info("application_stopped")


_ROUTERS = (
    health_router,
    movements_router,
    stock_router,
    requests_router,
    furniture_requests_router,
    furniture_removals_router,
    furniture_transfers_router,
    delivery_batches_router,
    confirmations_router,
    daily_codes_router,
    loans_router,
)


def create_app() -> FastAPI:
    """Build the fulfillment API with middleware, error mapping and routes."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Inventory ledger, request approval and delivery confirmation",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Last added runs first: errors are mapped inside the logged span
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggingMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_methods=["GET", "POST", "PUT"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)
    for router in _ROUTERS:
        app.include_router(router)

    return app


app = create_app()


@app.get("/")
async def root() -> dict[str, str]:
    settings = get_settings()
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "warehouse_unit_id": settings.fulfillment.warehouse_unit_id,
    }


# Plain liveness check for container orchestrators
@app.get("/health")
async def root_health() -> dict[str, str]:
    return {"status": "healthy", "version": get_settings().app_version}


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
