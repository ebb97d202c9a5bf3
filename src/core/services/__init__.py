"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.daily_code import DailyCodeService
from src.core.services.request_lifecycle import (
    FURNITURE_LIFECYCLE,
    MATERIAL_LIFECYCLE,
    REMOVAL_LIFECYCLE,
    TRANSFER_LIFECYCLE,
    RequestLifecycle,
    TransitionRule,
)
from src.core.services.scan_codes import SCAN_CODE_ALPHABET, mint_scan_code
from src.core.services.stock_projector import StockProjector

__all__ = [
    # Daily codes
    "DailyCodeService",
    # Projection
    "StockProjector",
    # Lifecycle
    "RequestLifecycle",
    "TransitionRule",
    "MATERIAL_LIFECYCLE",
    "FURNITURE_LIFECYCLE",
    "REMOVAL_LIFECYCLE",
    "TRANSFER_LIFECYCLE",
    # Batches
    "mint_scan_code",
    "SCAN_CODE_ALPHABET",
]
