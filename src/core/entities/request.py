"""Fulfillment request entities (material and furniture)."""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from src.core.entities.inventory import utc_now


def new_id(prefix: str) -> str:
    """Server-generated identifier."""
    return f"{prefix}-{uuid4().hex[:16]}"


class RequestKind(str, Enum):
    """Tag distinguishing the two request variants."""

    MATERIAL = "material"
    FURNITURE = "furniture"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RequestStatus(str, Enum):
    """Material request lifecycle."""

    PENDING = "pending"
    APPROVED = "approved"
    PROCESSING = "processing"
    AWAITING_PICKUP = "awaiting_pickup"
    OUT_FOR_DELIVERY = "out_for_delivery"
    COMPLETED = "completed"
    REJECTED = "rejected"


class FurnitureRequestStatus(str, Enum):
    """Furniture request lifecycle, with designer and storage gates."""

    PENDING_DESIGNER = "pending_designer"
    APPROVED_DESIGNER = "approved_designer"
    APPROVED_STORAGE = "approved_storage"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"
    REJECTED = "rejected"


class Request(BaseModel):
    """One unit's ask for material from the warehouse."""

    id: str = Field(default_factory=lambda: new_id("req"))
    item_id: str
    requesting_unit_id: str
    requested_by_user_id: str
    quantity: float = Field(..., gt=0)
    urgency: Urgency = Urgency.MEDIUM
    status: RequestStatus = RequestStatus.PENDING
    observations: str | None = None
    version: int = 0

    approved_by_user_id: str | None = None
    approved_at: datetime | None = None
    rejected_reason: str | None = None
    rejected_at: datetime | None = None
    pickup_ready_by_user_id: str | None = None
    pickup_ready_at: datetime | None = None
    picked_up_by_user_id: str | None = None
    picked_up_at: datetime | None = None
    completed_by_user_id: str | None = None
    completed_at: datetime | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def kind(self) -> RequestKind:
        return RequestKind.MATERIAL

    @property
    def destination_unit_id(self) -> str:
        return self.requesting_unit_id


class FurnitureRequest(BaseModel):
    """Furniture asked of the designer, delivered through the batch pipeline."""

    id: str = Field(default_factory=lambda: new_id("frq"))
    item_id: str
    requesting_unit_id: str
    requested_by_user_id: str
    quantity: float = Field(..., gt=0)
    location: str = ""
    justification: str = ""
    status: FurnitureRequestStatus = FurnitureRequestStatus.PENDING_DESIGNER
    observations: str | None = None
    version: int = 0

    reviewed_by_designer_id: str | None = None
    reviewed_at: datetime | None = None
    approved_by_storage_user_id: str | None = None
    approved_by_storage_at: datetime | None = None
    assigned_driver_id: str | None = None
    assigned_at: datetime | None = None
    completed_by_user_id: str | None = None
    completed_at: datetime | None = None
    rejection_reason: str | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def kind(self) -> RequestKind:
        return RequestKind.FURNITURE

    @property
    def destination_unit_id(self) -> str:
        return self.requesting_unit_id
