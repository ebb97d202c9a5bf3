"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from src.core.entities.inventory import MovementType
from src.core.entities.request import Urgency

# --- Ledger / Stock ---


class RecordMovementRequest(BaseModel):
    """Append one movement to the ledger."""

    type: MovementType = Field(..., description="entry, consumption, loan, return or out")
    item_id: str = Field(..., min_length=1, description="Item ID")
    unit_id: str = Field(..., min_length=1, description="Unit holding the stock")
    user_id: str = Field(..., min_length=1, description="User recording the movement")
    quantity: float = Field(..., gt=0, description="Quantity moved (always positive)")
    notes: str | None = Field(default=None, description="Free-text notes")
    reference: str | None = Field(
        default=None,
        description="Batch scan code or loan ID this movement belongs to",
        examples=["DEL-7K2QX9MA"],
    )
    idempotency_key: str | None = Field(
        default=None,
        max_length=200,
        description="Client key; re-posting the same key appends nothing",
    )


class StockOverrideRequest(BaseModel):
    """Administrative edit of a unit stock row.

    ``quantity`` is not written directly: the difference to the current
    quantity is recorded as a compensating movement.
    """

    actor_id: str = Field(..., min_length=1, description="Admin performing the override")
    quantity: float | None = Field(default=None, description="Target quantity")
    minimum_quantity: float | None = Field(default=None, ge=0, description="Low-stock threshold")
    location: str | None = Field(default=None, description="Storage location label")
    notes: str | None = Field(default=None, description="Reason for the override")


# --- Requests ---


class SubmitRequestRequest(BaseModel):
    """New material request from a unit."""

    item_id: str = Field(..., min_length=1)
    requesting_unit_id: str = Field(..., min_length=1)
    requested_by_user_id: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    urgency: Urgency = Field(default=Urgency.MEDIUM)
    observations: str | None = None


class ReviewRequestRequest(BaseModel):
    """Approve or reject a pending material request."""

    action: Literal["approve", "reject"]
    actor_id: str = Field(
        ...,
        min_length=1,
        description="Warehouse user approving, or warehouse/controller user rejecting",
    )
    reason: str | None = Field(default=None, description="Required when rejecting")


class SubmitFurnitureRequestRequest(BaseModel):
    """New furniture request addressed to the designer."""

    item_id: str = Field(..., min_length=1)
    requesting_unit_id: str = Field(..., min_length=1)
    requested_by_user_id: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    location: str = Field(default="", description="Where the furniture should go")
    justification: str = Field(default="", description="Why it is needed")
    observations: str | None = None


class ReviewFurnitureRequestRequest(BaseModel):
    """Advance a furniture request through its approval gates."""

    action: Literal["designer_approve", "storage_approve", "reject", "assign_driver"]
    actor_id: str = Field(..., min_length=1)
    reason: str | None = Field(default=None, description="Required when rejecting")
    driver_user_id: str | None = Field(default=None, description="Required when assigning")

    @model_validator(mode="after")
    def require_driver_for_assignment(self) -> "ReviewFurnitureRequestRequest":
        if self.action == "assign_driver" and not self.driver_user_id:
            raise ValueError("driver_user_id is required to assign a driver")
        return self


# --- Furniture removals and transfers ---


class SubmitRemovalRequest(BaseModel):
    """A unit hands furniture back to the warehouse."""

    item_id: str = Field(..., min_length=1)
    unit_id: str = Field(..., min_length=1)
    requested_by_user_id: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0, description="At most the unit's current stock")
    reason: str = Field(..., min_length=1, description="Why the furniture leaves the unit")
    observations: str | None = None


class ReviewRemovalRequest(BaseModel):
    """Advance a removal: designer decision, pickup scheduling, pickup, receipt."""

    action: Literal[
        "approve_storage", "approve_disposal", "reject", "schedule_pickup", "pick_up", "receive"
    ]
    actor_id: str = Field(..., min_length=1)
    reason: str | None = Field(
        default=None, description="Disposal justification, or why it is rejected"
    )
    driver_user_id: str | None = Field(default=None, description="Required when scheduling")
    notes: str | None = None

    @model_validator(mode="after")
    def require_driver_for_pickup(self) -> "ReviewRemovalRequest":
        if self.action == "schedule_pickup" and not self.driver_user_id:
            raise ValueError("driver_user_id is required to schedule a pickup")
        return self


class SubmitTransferRequest(BaseModel):
    """Move furniture from one unit to another."""

    item_id: str = Field(..., min_length=1)
    from_unit_id: str = Field(..., min_length=1)
    to_unit_id: str = Field(..., min_length=1)
    requested_by_user_id: str = Field(..., min_length=1)
    quantity: float = Field(default=1.0, gt=0)
    observations: str | None = None

    @model_validator(mode="after")
    def require_distinct_units(self) -> "SubmitTransferRequest":
        if self.from_unit_id == self.to_unit_id:
            raise ValueError("from_unit_id and to_unit_id must differ")
        return self


class ReviewTransferRequest(BaseModel):
    action: Literal["approve", "reject", "complete"]
    actor_id: str = Field(..., min_length=1)
    reason: str | None = Field(default=None, description="Required when rejecting")
    notes: str | None = None


# --- Delivery batches ---


class CreateBatchRequest(BaseModel):
    """Group approved requests for one unit into a shipment."""

    request_ids: list[str] = Field(default_factory=list, description="Approved material requests")
    furniture_request_ids: list[str] = Field(
        default_factory=list, description="Storage-approved furniture requests"
    )
    target_unit_id: str | None = Field(
        default=None,
        description="Destination unit (defaults to the members' unit)",
    )
    driver_user_id: str | None = Field(default=None, description="Warehouse user driving")
    notes: str | None = None


class BatchActionRequest(BaseModel):
    """Transition a batch: separate one item, or defer the receiver check."""

    action: Literal["separate", "defer"]
    actor_id: str = Field(..., min_length=1)
    request_id: str | None = Field(default=None, description="Request to separate")
    notes: str | None = None

    @model_validator(mode="after")
    def require_request_for_separation(self) -> "BatchActionRequest":
        if self.action == "separate" and not self.request_id:
            raise ValueError("request_id is required to separate an item")
        return self


class ConfirmationRequest(BaseModel):
    """Delivery, receipt or requester confirmation.

    - delivery: batch_id, user_id (driver), receiver_user_id, code
    - receipt: scan_code, user_id (controller)
    - requester: batch_id, user_id, code
    """

    type: Literal["delivery", "receipt", "requester"]
    user_id: str = Field(..., min_length=1, description="User confirming")
    batch_id: str | None = None
    scan_code: str | None = None
    receiver_user_id: str | None = None
    code: str | None = Field(default=None, description="Daily code, formatted or not")
    photo_ref: str | None = Field(default=None, description="Opaque photo reference")
    notes: str | None = None

    @model_validator(mode="after")
    def require_fields_for_type(self) -> "ConfirmationRequest":
        missing: list[str] = []
        if self.type == "delivery":
            missing = [
                name
                for name in ("batch_id", "receiver_user_id", "code")
                if not getattr(self, name)
            ]
        elif self.type == "receipt":
            if not self.scan_code:
                missing = ["scan_code"]
        elif self.type == "requester":
            missing = [name for name in ("batch_id", "code") if not getattr(self, name)]
        if missing:
            raise ValueError(f"{self.type} confirmation requires: {', '.join(missing)}")
        return self


# --- Daily codes ---


class ValidateDailyCodeRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, examples=["123-456", "123456"])


# --- Loans ---


class OpenLoanRequest(BaseModel):
    """Lend an item out of a unit's stock."""

    item_id: str = Field(..., min_length=1)
    unit_id: str = Field(..., min_length=1)
    responsible_user_id: str = Field(..., min_length=1)
    responsible_name: str | None = None
    quantity: float = Field(default=1.0, gt=0)
    expected_return_date: date
    observations: str | None = None


class CloseLoanRequest(BaseModel):
    """Return a loan, or write it off as lost."""

    actor_id: str = Field(..., min_length=1)
    notes: str | None = None
