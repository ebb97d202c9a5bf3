"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from src.application.dto.responses import ComponentHealthResponse, HealthResponse
from src.application.services import get_warehouse_context
from src.config import get_logger, get_settings

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

_start_time = time.time()


def _base(status: str, **extra) -> HealthResponse:
    return HealthResponse(
        status=status,
        version=get_settings().app_version,
        uptime_seconds=time.time() - _start_time,
        warehouse_unit_id=get_warehouse_context().unit_id,
        **extra,
    )


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness plus the warehouse unit every stock check runs against."""
    return _base("healthy")


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Database and ledger health.

    ``unhealthy`` when SQLite does not answer; ``degraded`` when some
    stock rows lag the ledger (``POST /api/stock/rebuild`` repairs them).
    """
    from src.infrastructure.storage.sqlite import get_pool
    from src.infrastructure.storage.sqlite.migrations.migrator import (
        find_projection_drift,
        get_migration_status,
    )

    try:
        pool = await get_pool()
        start = time.perf_counter()
        available = await pool.ping()
        database = ComponentHealthResponse(
            name="sqlite",
            available=available,
            latency_ms=(time.perf_counter() - start) * 1000,
        )
    except Exception as e:
        logger.warning("db_health_failed", error=str(e))
        return _base(
            "unhealthy",
            database=ComponentHealthResponse(name="sqlite", available=False, error=str(e)),
        )

    db_path = pool.db_path
    status = await get_migration_status(db_path)
    drift = await find_projection_drift(db_path)
    if drift:
        logger.warning("projection_drift_detected", rows=len(drift))

    if not available:
        health = "unhealthy"
    else:
        health = "degraded" if drift else "healthy"
    return _base(
        health,
        database=database,
        schema_version=status["current_version"],
        stale_stock_rows=len(drift),
    )
