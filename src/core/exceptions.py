"""
Domain exceptions for the fulfillment service.

Provides specific exception types for different error scenarios.
"""

from typing import Any


class FulfillmentError(Exception):
    """Base exception for all fulfillment errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(FulfillmentError):
    """Input validation failed before any write."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class MissingDriverError(ValidationError):
    """Batch creation without a usable driver."""

    def __init__(self, driver_user_id: str | None = None):
        super().__init__(
            field="driver_user_id",
            message="select a driver",
            value=driver_user_id,
        )
        self.code = "MISSING_DRIVER"


class InvalidDailyCodeError(FulfillmentError):
    """Daily code is missing or not valid for the user today."""

    def __init__(self, user_id: str):
        super().__init__(
            f"Daily code is not valid today for user {user_id}",
            code="INVALID_DAILY_CODE",
            details={"user_id": user_id},
        )


class PermissionDeniedError(FulfillmentError):
    """Actor role or unit membership does not allow the operation."""

    def __init__(self, user_id: str, action: str, reason: str):
        super().__init__(
            f"User {user_id} may not {action}: {reason}",
            code="PERMISSION_DENIED",
            details={"user_id": user_id, "action": action, "reason": reason},
        )


# State Exceptions
class StateConflictError(FulfillmentError):
    """Entity status no longer matches what the transition expected."""

    def __init__(
        self,
        entity: str,
        entity_id: str,
        expected: str | list[str],
        actual: str | None = None,
    ):
        expected_list = [expected] if isinstance(expected, str) else list(expected)
        super().__init__(
            f"{entity} {entity_id} is '{actual}', expected {' or '.join(expected_list)}",
            code="STATE_CONFLICT",
            details={
                "entity": entity,
                "entity_id": entity_id,
                "expected": expected_list,
                "actual": actual,
            },
        )


class CrossUnitBatchError(FulfillmentError):
    """Batch would mix requests bound for different units."""

    def __init__(self, target_unit_id: str, offending: dict[str, str]):
        super().__init__(
            "all items must belong to the same unit",
            code="CROSS_UNIT_BATCH",
            details={"target_unit_id": target_unit_id, "offending": offending},
        )


class BatchMembershipError(FulfillmentError):
    """Request is not part of the batch, or already belongs to another open batch."""

    def __init__(self, request_id: str, batch_id: str | None, reason: str):
        super().__init__(
            f"Request {request_id} cannot be used with batch {batch_id}: {reason}",
            code="BATCH_MEMBERSHIP",
            details={"request_id": request_id, "batch_id": batch_id, "reason": reason},
        )


# Not Found Exceptions
class NotFoundError(FulfillmentError):
    """Base exception for unknown identifiers."""

    entity = "Entity"

    def __init__(self, entity_id: Any):
        code = f"{self.entity.upper().replace(' ', '_')}_NOT_FOUND"
        super().__init__(
            f"{self.entity} not found: {entity_id}",
            code=code,
            details={"id": str(entity_id)},
        )


class RequestNotFoundError(NotFoundError):
    entity = "Request"


class FurnitureRequestNotFoundError(NotFoundError):
    entity = "Furniture request"


class FurnitureRemovalNotFoundError(NotFoundError):
    entity = "Furniture removal"


class FurnitureTransferNotFoundError(NotFoundError):
    entity = "Furniture transfer"


class BatchNotFoundError(NotFoundError):
    entity = "Batch"


class StockNotFoundError(NotFoundError):
    entity = "Stock"


class LoanNotFoundError(NotFoundError):
    entity = "Loan"


class UserNotFoundError(NotFoundError):
    entity = "User"


class UnitNotFoundError(NotFoundError):
    entity = "Unit"


class ItemNotFoundError(NotFoundError):
    entity = "Item"


# Storage Exceptions
class StorageError(FulfillmentError):
    """Base exception for storage operations."""

    pass


class PersistenceError(StorageError):
    """Storage write failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Persistence error during {operation}: {error}",
            code="PERSISTENCE_ERROR",
            details={"operation": operation, "error": error},
        )


class ReconciliationRequiredError(StorageError):
    """A write committed but the derived state could not be brought in line."""

    def __init__(self, operation: str, error: str, committed: dict[str, Any] | None = None):
        super().__init__(
            f"Reconciliation required after {operation}: {error}",
            code="RECONCILIATION_REQUIRED",
            details={"operation": operation, "error": error, "committed": committed or {}},
        )


class ConfigurationError(FulfillmentError):
    """Configuration error."""

    pass


class InsufficientStockWarning:
    """
    Soft failure attached to a successful approval.

    Not an exception: approvals proceed against insufficient stock and the
    caller is told how far short the warehouse is.
    """

    code = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: str, unit_id: str, requested: float, available: float):
        self.item_id = item_id
        self.unit_id = unit_id
        self.requested = requested
        self.available = available

    @property
    def shortfall(self) -> float:
        return max(self.requested - self.available, 0.0)

    @property
    def message(self) -> str:
        return (
            f"Approved with insufficient stock: {self.available:g} available, "
            f"{self.requested:g} requested. Replenish the warehouse."
        )

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "item_id": self.item_id,
            "unit_id": self.unit_id,
            "requested": self.requested,
            "available": self.available,
            "shortfall": self.shortfall,
        }

    def __repr__(self) -> str:
        return (
            f"InsufficientStockWarning(item_id={self.item_id!r}, "
            f"requested={self.requested}, available={self.available})"
        )
