"""API route modules."""

from src.api.routes.confirmations import router as confirmations_router
from src.api.routes.daily_codes import router as daily_codes_router
from src.api.routes.delivery_batches import router as delivery_batches_router
from src.api.routes.furniture_moves import removals_router as furniture_removals_router
from src.api.routes.furniture_moves import transfers_router as furniture_transfers_router
from src.api.routes.furniture_requests import router as furniture_requests_router
from src.api.routes.health import router as health_router
from src.api.routes.loans import router as loans_router
from src.api.routes.movements import router as movements_router
from src.api.routes.requests import router as requests_router
from src.api.routes.stock import router as stock_router

__all__ = [
    "health_router",
    "movements_router",
    "stock_router",
    "requests_router",
    "furniture_requests_router",
    "furniture_removals_router",
    "furniture_transfers_router",
    "delivery_batches_router",
    "confirmations_router",
    "daily_codes_router",
    "loans_router",
]
