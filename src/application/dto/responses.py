"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
Build them from domain entities with ``from_entity``.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from src.core.entities.delivery import DeliveryBatch, DeliveryConfirmation
from src.core.entities.furniture_moves import FurnitureRemoval, FurnitureTransfer
from src.core.entities.inventory import Movement, UnitStock
from src.core.entities.loan import Loan
from src.core.entities.request import FurnitureRequest, Request
from src.core.exceptions import InsufficientStockWarning

# --- Shared ---


class WarningResponse(BaseModel):
    """Soft failure attached to a successful operation."""

    code: str = Field(..., description="Machine-readable warning code")
    message: str = Field(..., description="Human-readable description")
    item_id: str | None = None
    unit_id: str | None = None
    requested: float | None = None
    available: float | None = None
    shortfall: float | None = None

    @classmethod
    def from_warning(cls, warning: InsufficientStockWarning) -> "WarningResponse":
        return cls(**warning.to_dict())


class ComponentHealthResponse(BaseModel):
    """Health of one dependency."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    warehouse_unit_id: str | None = None
    database: ComponentHealthResponse | None = None
    schema_version: str | None = None
    stale_stock_rows: int | None = Field(
        default=None, description="Projection rows that disagree with the ledger"
    )


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. BATCH_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)


# --- Ledger / Stock ---


class MovementResponse(BaseModel):
    id: int
    type: str
    item_id: str
    unit_id: str
    user_id: str
    quantity: float
    signed_quantity: float
    timestamp: datetime | None = None
    notes: str | None = None
    reference: str | None = None
    idempotency_key: str | None = None

    @classmethod
    def from_entity(cls, movement: Movement) -> "MovementResponse":
        return cls(
            id=movement.id,  # type: ignore[arg-type]
            type=movement.type.value,
            item_id=movement.item_id,
            unit_id=movement.unit_id,
            user_id=movement.user_id,
            quantity=movement.quantity,
            signed_quantity=movement.signed_quantity,
            timestamp=movement.timestamp,
            notes=movement.notes,
            reference=movement.reference,
            idempotency_key=movement.idempotency_key,
        )


class MovementListResponse(BaseModel):
    movements: list[MovementResponse]
    count: int


class UnitStockResponse(BaseModel):
    """Projected stock with derived health."""

    id: int
    item_id: str
    unit_id: str
    quantity: float
    minimum_quantity: float
    location: str
    health: str = Field(..., description="healthy, low or negative")
    ledger_version: int
    updated_at: datetime

    @classmethod
    def from_entity(cls, stock: UnitStock) -> "UnitStockResponse":
        return cls(
            id=stock.id,  # type: ignore[arg-type]
            item_id=stock.item_id,
            unit_id=stock.unit_id,
            quantity=stock.quantity,
            minimum_quantity=stock.minimum_quantity,
            location=stock.location,
            health=stock.health.value,
            ledger_version=stock.ledger_version,
            updated_at=stock.updated_at,
        )


class StockListResponse(BaseModel):
    stocks: list[UnitStockResponse]
    count: int


class RecordMovementResponse(BaseModel):
    movement: MovementResponse
    stock: UnitStockResponse | None = None
    created: bool = Field(..., description="False when the idempotency key was replayed")


class StockOverrideResponse(BaseModel):
    stock: UnitStockResponse
    movement: MovementResponse | None = Field(
        default=None, description="Compensating movement for a quantity change"
    )


class RebuildStockResponse(BaseModel):
    rebuilt: int
    stocks: list[UnitStockResponse]


# --- Requests ---


class RequestResponse(BaseModel):
    id: str
    kind: str = "material"
    item_id: str
    requesting_unit_id: str
    requested_by_user_id: str
    quantity: float
    urgency: str
    status: str
    observations: str | None = None
    version: int
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
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, request: Request) -> "RequestResponse":
        data = request.model_dump(mode="python")
        data["urgency"] = request.urgency.value
        data["status"] = request.status.value
        return cls(**data)


class RequestListResponse(BaseModel):
    requests: list[RequestResponse]
    count: int


class RequestTransitionResponse(BaseModel):
    request: RequestResponse
    warnings: list[WarningResponse] = Field(default_factory=list)


class FurnitureRequestResponse(BaseModel):
    id: str
    kind: str = "furniture"
    item_id: str
    requesting_unit_id: str
    requested_by_user_id: str
    quantity: float
    location: str
    justification: str
    status: str
    observations: str | None = None
    version: int
    reviewed_by_designer_id: str | None = None
    reviewed_at: datetime | None = None
    approved_by_storage_user_id: str | None = None
    approved_by_storage_at: datetime | None = None
    assigned_driver_id: str | None = None
    assigned_at: datetime | None = None
    completed_by_user_id: str | None = None
    completed_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, request: FurnitureRequest) -> "FurnitureRequestResponse":
        data = request.model_dump(mode="python")
        data["status"] = request.status.value
        return cls(**data)


class FurnitureRequestListResponse(BaseModel):
    requests: list[FurnitureRequestResponse]
    count: int


# --- Furniture removals and transfers ---


class FurnitureRemovalResponse(BaseModel):
    id: str
    item_id: str
    unit_id: str
    requested_by_user_id: str
    quantity: float
    reason: str
    status: str
    destination: str | None = Field(default=None, description="storage or disposal")
    disposal_justification: str | None = None
    observations: str | None = None
    version: int
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
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, removal: FurnitureRemoval) -> "FurnitureRemovalResponse":
        data = removal.model_dump(mode="python")
        data["status"] = removal.status.value
        data["destination"] = removal.destination.value if removal.destination else None
        return cls(**data)


class FurnitureRemovalListResponse(BaseModel):
    removals: list[FurnitureRemovalResponse]
    count: int


class FurnitureTransferResponse(BaseModel):
    id: str
    item_id: str
    from_unit_id: str
    to_unit_id: str
    requested_by_user_id: str
    quantity: float
    status: str
    observations: str | None = None
    version: int
    approved_by_user_id: str | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    completed_by_user_id: str | None = None
    completed_at: datetime | None = None
    out_movement_id: int | None = None
    entry_movement_id: int | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, transfer: FurnitureTransfer) -> "FurnitureTransferResponse":
        data = transfer.model_dump(mode="python")
        data["status"] = transfer.status.value
        return cls(**data)


class FurnitureTransferListResponse(BaseModel):
    transfers: list[FurnitureTransferResponse]
    count: int


class FurnitureMoveActionResponse(BaseModel):
    """A removal or transfer after one transition, with the movements it wrote."""

    removal: FurnitureRemovalResponse | None = None
    transfer: FurnitureTransferResponse | None = None
    movements: list[MovementResponse] = Field(default_factory=list)


# --- Delivery batches ---


class BatchResponse(BaseModel):
    id: str
    request_ids: list[str]
    furniture_request_ids: list[str]
    target_unit_id: str
    driver_user_id: str
    scan_code: str
    status: str
    version: int
    item_count: int
    notes: str | None = None
    created_at: datetime
    dispatched_at: datetime | None = None
    delivery_confirmed_at: datetime | None = None
    received_confirmed_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_entity(cls, batch: DeliveryBatch) -> "BatchResponse":
        data = batch.model_dump(mode="python")
        data["status"] = batch.status.value
        data["item_count"] = batch.item_count
        return cls(**data)


class BatchListResponse(BaseModel):
    batches: list[BatchResponse]
    count: int


class FurnitureTransitionResponse(BaseModel):
    """Furniture request after a gate, with the batch a driver assignment opened."""

    request: FurnitureRequestResponse
    batch: BatchResponse | None = None


class CreateBatchResponse(BaseModel):
    batch: BatchResponse
    requests: list[RequestResponse] = Field(default_factory=list)
    furniture_requests: list[FurnitureRequestResponse] = Field(default_factory=list)


class BatchActionResponse(BaseModel):
    """Result of separating an item or deferring confirmation."""

    batch: BatchResponse
    request: RequestResponse | None = None
    movement: MovementResponse | None = None
    dispatched: bool = Field(default=False, description="True when this call flipped the batch")


class ConfirmationResponse(BaseModel):
    id: int
    batch_id: str
    type: str
    confirmed_by_user_id: str
    timestamp: datetime | None = None
    photo_ref: str | None = None
    notes: str | None = None

    @classmethod
    def from_entity(cls, confirmation: DeliveryConfirmation) -> "ConfirmationResponse":
        return cls(
            id=confirmation.id,  # type: ignore[arg-type]
            batch_id=confirmation.batch_id,
            type=confirmation.type.value,
            confirmed_by_user_id=confirmation.confirmed_by_user_id,
            timestamp=confirmation.timestamp,
            photo_ref=confirmation.photo_ref,
            notes=confirmation.notes,
        )


class ConfirmationResultResponse(BaseModel):
    confirmation: ConfirmationResponse
    batch: BatchResponse
    movements: list[MovementResponse] = Field(
        default_factory=list, description="Backing movements emitted by this confirmation"
    )
    warnings: list[str] = Field(default_factory=list)


class ConfirmationListResponse(BaseModel):
    confirmations: list[ConfirmationResponse]
    count: int


# --- Daily codes ---


class DailyCodeResponse(BaseModel):
    user_id: str
    code: str
    formatted: str = Field(..., examples=["123-456"])
    day: date
    expires_at: datetime


class DailyCodeValidationResponse(BaseModel):
    user_id: str
    valid: bool
    day: date


# --- Loans ---


class LoanResponse(BaseModel):
    id: str
    item_id: str
    unit_id: str
    responsible_user_id: str
    responsible_name: str | None = None
    quantity: float
    withdrawal_date: datetime
    expected_return_date: date
    return_date: datetime | None = None
    status: str = Field(..., description="active, overdue, returned or lost")
    observations: str | None = None
    loan_movement_id: int | None = None
    return_movement_id: int | None = None
    version: int

    @classmethod
    def from_entity(cls, loan: Loan, today: date) -> "LoanResponse":
        data = loan.model_dump(mode="python")
        data["status"] = loan.effective_status(today).value
        return cls(**data)


class LoanListResponse(BaseModel):
    loans: list[LoanResponse]
    count: int


class LoanActionResponse(BaseModel):
    loan: LoanResponse
    movement: MovementResponse | None = None
