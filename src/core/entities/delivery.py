"""Delivery batch and confirmation entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.core.entities.inventory import utc_now
from src.core.entities.request import new_id


class BatchStatus(str, Enum):
    """Shipment lifecycle."""

    PENDING = "pending"  # awaiting separation
    IN_TRANSIT = "in_transit"
    DELIVERY_CONFIRMED = "delivery_confirmed"
    PENDING_CONFIRMATION = "pending_confirmation"  # driver deferred receiver check
    COMPLETED = "completed"
    CANCELLED = "cancelled"  # creation rolled back

    @property
    def is_open(self) -> bool:
        return self not in (BatchStatus.COMPLETED, BatchStatus.CANCELLED)


class ConfirmationType(str, Enum):
    DELIVERY = "delivery"
    RECEIPT = "receipt"
    REQUESTER = "requester"

    @property
    def is_receipt_equivalent(self) -> bool:
        return self in (ConfirmationType.RECEIPT, ConfirmationType.REQUESTER)


class DeliveryBatch(BaseModel):
    """Approved requests bound for one unit, tracked by a scan code."""

    id: str = Field(default_factory=lambda: new_id("batch"))
    request_ids: list[str] = Field(default_factory=list)
    furniture_request_ids: list[str] = Field(default_factory=list)
    target_unit_id: str
    driver_user_id: str
    scan_code: str
    status: BatchStatus = BatchStatus.PENDING
    version: int = 0
    notes: str | None = None

    created_at: datetime = Field(default_factory=utc_now)
    dispatched_at: datetime | None = None
    delivery_confirmed_at: datetime | None = None
    received_confirmed_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def item_count(self) -> int:
        return len(self.request_ids) + len(self.furniture_request_ids)


class DeliveryConfirmation(BaseModel):
    """Immutable acknowledgment recorded against a batch."""

    id: int | None = None
    batch_id: str
    type: ConfirmationType
    confirmed_by_user_id: str
    timestamp: datetime | None = None
    photo_ref: str | None = None
    notes: str | None = None

    model_config = {"frozen": True}
