"""
Request lifecycle engine.

Material and furniture requests, furniture removals and transfers share
one engine driven by a table of named transitions. Each transition lists
the statuses it may start from, the status it ends in, and who may
trigger it. Transitions with no roles are system transitions, reachable
only through the batch orchestrator or the confirmation protocol.
"""

from dataclasses import dataclass, field

from src.core.entities.directory import User, UserRole, WarehouseType
from src.core.entities.furniture_moves import RemovalStatus, TransferStatus
from src.core.entities.request import FurnitureRequestStatus, RequestStatus
from src.core.exceptions import PermissionDeniedError, StateConflictError, ValidationError


@dataclass(frozen=True)
class TransitionRule:
    """One edge of a lifecycle graph."""

    action: str
    sources: frozenset[str]
    target: str
    roles: frozenset[UserRole] = field(default_factory=frozenset)
    requires_reason: bool = False
    storage_only: bool = False  # warehouse users of the delivery crew may not trigger

    @property
    def is_system(self) -> bool:
        return not self.roles


class RequestLifecycle:
    """Validates transitions for one request kind."""

    def __init__(self, entity: str, rules: list[TransitionRule]) -> None:
        self.entity = entity
        self._rules = {rule.action: rule for rule in rules}

    def extend(
        self,
        entity: str,
        rules: list[TransitionRule],
        drop: tuple[str, ...] = (),
    ) -> "RequestLifecycle":
        """New lifecycle with extra or replaced transitions."""
        merged = {a: r for a, r in self._rules.items() if a not in drop}
        merged.update({rule.action: rule for rule in rules})
        return RequestLifecycle(entity, list(merged.values()))

    @property
    def actions(self) -> list[str]:
        return list(self._rules)

    def rule(self, action: str) -> TransitionRule:
        try:
            return self._rules[action]
        except KeyError:
            raise ValidationError("action", f"unknown action for {self.entity}", action)

    def can(self, action: str, status: str) -> bool:
        rule = self._rules.get(action)
        return rule is not None and _value(status) in rule.sources

    def check(
        self,
        action: str,
        entity_id: str,
        status: str,
        actor: User | None = None,
        reason: str | None = None,
    ) -> TransitionRule:
        """
        Validate a transition before it is attempted.

        Raises:
            ValidationError: Unknown action or missing reason
            PermissionDeniedError: Actor role may not trigger it
            StateConflictError: Current status is not a legal source
        """
        rule = self.rule(action)

        if rule.requires_reason and not (reason and reason.strip()):
            raise ValidationError("reason", "a reason is required", reason)

        if not rule.is_system:
            if actor is None:
                raise ValidationError("actor_id", "an acting user is required")
            if actor.role not in rule.roles:
                raise PermissionDeniedError(
                    actor.id,
                    action,
                    f"role '{actor.role.value}' is not allowed",
                )
            if (
                rule.storage_only
                and actor.role == UserRole.WAREHOUSE
                and actor.warehouse_type == WarehouseType.DELIVERY
            ):
                raise PermissionDeniedError(actor.id, action, "storage staff only")

        current = _value(status)
        if current not in rule.sources:
            raise StateConflictError(
                self.entity, entity_id, sorted(rule.sources), actual=current
            )
        return rule


def _value(status: object) -> str:
    return getattr(status, "value", status)  # type: ignore[return-value]


_APPROVERS = frozenset({UserRole.WAREHOUSE})
_REJECTERS = frozenset({UserRole.WAREHOUSE, UserRole.CONTROLLER})
_M = RequestStatus

MATERIAL_LIFECYCLE = RequestLifecycle(
    "Request",
    [
        TransitionRule("approve", frozenset({_M.PENDING.value}), _M.APPROVED.value, _APPROVERS),
        TransitionRule(
            "reject",
            frozenset({_M.PENDING.value, _M.APPROVED.value}),
            _M.REJECTED.value,
            _REJECTERS,
            requires_reason=True,
        ),
        TransitionRule("start_processing", frozenset({_M.APPROVED.value}), _M.PROCESSING.value),
        TransitionRule("mark_ready", frozenset({_M.PROCESSING.value}), _M.AWAITING_PICKUP.value),
        TransitionRule(
            "dispatch", frozenset({_M.AWAITING_PICKUP.value}), _M.OUT_FOR_DELIVERY.value
        ),
        TransitionRule("complete", frozenset({_M.OUT_FOR_DELIVERY.value}), _M.COMPLETED.value),
    ],
)

_F = FurnitureRequestStatus

FURNITURE_LIFECYCLE = MATERIAL_LIFECYCLE.extend(
    "Furniture request",
    [
        TransitionRule(
            "designer_approve",
            frozenset({_F.PENDING_DESIGNER.value}),
            _F.APPROVED_DESIGNER.value,
            frozenset({UserRole.DESIGNER}),
        ),
        TransitionRule(
            "storage_approve",
            frozenset({_F.APPROVED_DESIGNER.value}),
            _F.APPROVED_STORAGE.value,
            frozenset({UserRole.WAREHOUSE}),
            storage_only=True,
        ),
        TransitionRule(
            "reject",
            frozenset({_F.PENDING_DESIGNER.value, _F.APPROVED_DESIGNER.value}),
            _F.REJECTED.value,
            frozenset({UserRole.DESIGNER, UserRole.WAREHOUSE}),
            requires_reason=True,
        ),
        # Batch creation moves furniture straight to in_transit
        TransitionRule(
            "start_processing", frozenset({_F.APPROVED_STORAGE.value}), _F.IN_TRANSIT.value
        ),
        TransitionRule(
            "assign_driver",
            frozenset({_F.APPROVED_STORAGE.value}),
            _F.IN_TRANSIT.value,
            frozenset({UserRole.WAREHOUSE}),
            storage_only=True,
        ),
        TransitionRule("complete", frozenset({_F.IN_TRANSIT.value}), _F.COMPLETED.value),
    ],
    drop=("approve", "mark_ready", "dispatch"),
)

_DESIGNER = frozenset({UserRole.DESIGNER})

# Furniture leaving a unit waits on the designer first
_DESIGNER_GATE = RequestLifecycle(
    "Furniture move",
    [
        TransitionRule(
            "reject",
            frozenset({"pending"}),
            "rejected",
            _DESIGNER,
            requires_reason=True,
        ),
    ],
)

_R = RemovalStatus

REMOVAL_LIFECYCLE = _DESIGNER_GATE.extend(
    "Furniture removal",
    [
        TransitionRule(
            "approve_storage",
            frozenset({_R.PENDING.value}),
            _R.APPROVED_STORAGE.value,
            _DESIGNER,
        ),
        # the reason is the disposal justification
        TransitionRule(
            "approve_disposal",
            frozenset({_R.PENDING.value}),
            _R.APPROVED_DISPOSAL.value,
            _DESIGNER,
            requires_reason=True,
        ),
        TransitionRule(
            "schedule_pickup",
            frozenset({_R.APPROVED_STORAGE.value, _R.APPROVED_DISPOSAL.value}),
            _R.AWAITING_PICKUP.value,
            frozenset({UserRole.WAREHOUSE}),
            storage_only=True,
        ),
        TransitionRule(
            "pick_up",
            frozenset({_R.AWAITING_PICKUP.value}),
            _R.IN_TRANSIT.value,
            frozenset({UserRole.WAREHOUSE}),
        ),
        TransitionRule(
            "receive",
            frozenset({_R.IN_TRANSIT.value}),
            _R.COMPLETED.value,
            frozenset({UserRole.WAREHOUSE}),
            storage_only=True,
        ),
    ],
)

_T = TransferStatus

TRANSFER_LIFECYCLE = _DESIGNER_GATE.extend(
    "Furniture transfer",
    [
        TransitionRule("approve", frozenset({_T.PENDING.value}), _T.APPROVED.value, _DESIGNER),
        TransitionRule(
            "reject",
            frozenset({_T.PENDING.value, _T.APPROVED.value}),
            _T.REJECTED.value,
            _DESIGNER,
            requires_reason=True,
        ),
        TransitionRule(
            "complete",
            frozenset({_T.APPROVED.value}),
            _T.COMPLETED.value,
            frozenset({UserRole.WAREHOUSE, UserRole.DESIGNER}),
        ),
    ],
)
