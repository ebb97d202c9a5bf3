"""Furniture leaving a unit: removals to the warehouse and unit-to-unit transfers."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.core.entities.inventory import utc_now
from src.core.entities.request import new_id


class RemovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED_STORAGE = "approved_storage"
    APPROVED_DISPOSAL = "approved_disposal"
    AWAITING_PICKUP = "awaiting_pickup"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"
    REJECTED = "rejected"


class RemovalDestination(str, Enum):
    """Designer's decision on where removed furniture ends up."""

    STORAGE = "storage"
    DISPOSAL = "disposal"


class FurnitureRemoval(BaseModel):
    """A unit handing furniture back for storage or disposal."""

    id: str = Field(default_factory=lambda: new_id("frm"))
    item_id: str
    unit_id: str
    requested_by_user_id: str
    quantity: float = Field(..., gt=0)
    reason: str
    status: RemovalStatus = RemovalStatus.PENDING
    destination: RemovalDestination | None = None
    disposal_justification: str | None = None
    observations: str | None = None
    version: int = 0

    reviewed_by_user_id: str | None = None
    reviewed_at: datetime | None = None
    rejection_reason: str | None = None
    assigned_driver_id: str | None = None
    assigned_at: datetime | None = None
    picked_up_by_user_id: str | None = None
    picked_up_at: datetime | None = None
    pickup_movement_id: int | None = None
    received_by_user_id: str | None = None
    received_at: datetime | None = None
    entry_movement_id: int | None = None
    completed_at: datetime | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class TransferStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    REJECTED = "rejected"


class FurnitureTransfer(BaseModel):
    """Furniture moved directly between two units once the designer agrees."""

    id: str = Field(default_factory=lambda: new_id("ftr"))
    item_id: str
    from_unit_id: str
    to_unit_id: str
    requested_by_user_id: str
    quantity: float = Field(default=1.0, gt=0)
    status: TransferStatus = TransferStatus.PENDING
    observations: str | None = None
    version: int = 0

    approved_by_user_id: str | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    completed_by_user_id: str | None = None
    completed_at: datetime | None = None
    out_movement_id: int | None = None
    entry_movement_id: int | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
