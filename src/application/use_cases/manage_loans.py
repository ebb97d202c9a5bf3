"""Loan use cases: lend, return, write off, list."""

from dataclasses import dataclass
from datetime import date

from src.application.dto.requests import CloseLoanRequest, OpenLoanRequest
from src.application.dto.responses import (
    LoanActionResponse,
    LoanListResponse,
    LoanResponse,
    MovementResponse,
)
from src.application.resilience import with_persistence_retry
from src.application.use_cases.base import FulfillmentUseCase
from src.config import get_logger
from src.core.entities.inventory import Movement, MovementType, utc_now
from src.core.entities.loan import Loan, LoanStatus
from src.core.exceptions import (
    ItemNotFoundError,
    LoanNotFoundError,
    PersistenceError,
    StateConflictError,
    ValidationError,
)

logger = get_logger(__name__)


def _today() -> date:
    return utc_now().date()


@dataclass
class LoanActionResult:
    loan: Loan
    movement: Movement | None = None


class OpenLoanUseCase(FulfillmentUseCase):
    """
    Lend an item out of a unit.

    The loan movement is written first under a key derived from the loan
    id. If the loan row then cannot be stored, a return movement puts the
    stock back. A stock row left stale is reported once the loan is stored.
    """

    async def execute(self, request: OpenLoanRequest) -> LoanActionResult:
        responsible = await self._require_user(request.responsible_user_id)
        directory = await self._get_directory()
        if await directory.get_item_by_id(request.item_id) is None:
            raise ItemNotFoundError(request.item_id)
        if request.expected_return_date < _today():
            raise ValidationError(
                "expected_return_date", "must not be in the past", request.expected_return_date
            )

        loan = Loan(
            item_id=request.item_id,
            unit_id=request.unit_id,
            responsible_user_id=responsible.id,
            responsible_name=request.responsible_name or responsible.name,
            quantity=request.quantity,
            expected_return_date=request.expected_return_date,
            observations=request.observations,
        )

        recorder = await self._get_recorder()
        taken = await recorder.record(
            Movement(
                type=MovementType.LOAN,
                item_id=loan.item_id,
                unit_id=loan.unit_id,
                user_id=responsible.id,
                quantity=loan.quantity,
                reference=loan.id,
                idempotency_key=f"loan:{loan.id}",
                notes=request.observations,
            )
        )
        loan = loan.model_copy(update={"loan_movement_id": taken.movement.id})

        store = await self._get_loan_store()
        try:
            loan = await with_persistence_retry(store.create, loan)
        except PersistenceError:
            logger.error("loan_create_failed_compensating", loan_id=loan.id)
            await recorder.record(
                Movement(
                    type=MovementType.RETURN,
                    item_id=loan.item_id,
                    unit_id=loan.unit_id,
                    user_id=responsible.id,
                    quantity=loan.quantity,
                    reference=loan.id,
                    idempotency_key=f"loan-void:{loan.id}",
                    notes="loan could not be stored",
                )
            )
            raise

        logger.info(
            "loan_opened",
            loan_id=loan.id,
            item_id=loan.item_id,
            unit_id=loan.unit_id,
            due=loan.expected_return_date.isoformat(),
        )
        taken.require_projected("open_loan", loan_id=loan.id)
        return LoanActionResult(loan=loan, movement=taken.movement)


class CloseLoanUseCase(FulfillmentUseCase):
    """Return a loan to stock, or write it off as lost."""

    async def return_loan(self, loan_id: str, request: CloseLoanRequest) -> LoanActionResult:
        actor = await self._require_user(request.actor_id)
        loan = await self._load_open_loan(loan_id)

        recorder = await self._get_recorder()
        returned = await recorder.record(
            Movement(
                type=MovementType.RETURN,
                item_id=loan.item_id,
                unit_id=loan.unit_id,
                user_id=actor.id,
                quantity=loan.quantity,
                reference=loan.id,
                idempotency_key=f"loan-return:{loan.id}",
                notes=request.notes,
            )
        )

        store = await self._get_loan_store()
        updated = await with_persistence_retry(
            store.compare_and_set,
            loan.id,
            loan.status,
            loan.version,
            {
                "status": LoanStatus.RETURNED,
                "return_date": utc_now(),
                "return_movement_id": returned.movement.id,
                "observations": request.notes or loan.observations,
            },
        )
        if updated is None:
            latest = await store.get(loan.id)
            if latest and latest.return_movement_id == returned.movement.id:
                returned.require_projected("return_loan", loan_id=latest.id)
                return LoanActionResult(loan=latest, movement=returned.movement)
            await self._void_return(loan, actor.id)
            raise StateConflictError(
                "Loan",
                loan.id,
                LoanStatus.ACTIVE.value,
                actual=latest.status.value if latest else None,
            )

        logger.info("loan_returned", loan_id=updated.id, movement_id=returned.movement.id)
        returned.require_projected("return_loan", loan_id=updated.id)
        return LoanActionResult(loan=updated, movement=returned.movement)

    async def mark_lost(self, loan_id: str, request: CloseLoanRequest) -> LoanActionResult:
        actor = await self._require_user(request.actor_id)
        loan = await self._load_open_loan(loan_id)

        store = await self._get_loan_store()
        updated = await with_persistence_retry(
            store.compare_and_set,
            loan.id,
            loan.status,
            loan.version,
            {"status": LoanStatus.LOST, "observations": request.notes or loan.observations},
        )
        if updated is None:
            latest = await store.get(loan.id)
            raise StateConflictError(
                "Loan",
                loan.id,
                LoanStatus.ACTIVE.value,
                actual=latest.status.value if latest else None,
            )

        logger.info("loan_marked_lost", loan_id=updated.id, actor_id=actor.id)
        return LoanActionResult(loan=updated)

    async def _load_open_loan(self, loan_id: str) -> Loan:
        store = await self._get_loan_store()
        loan = await store.get(loan_id)
        if loan is None:
            raise LoanNotFoundError(loan_id)
        if not loan.status.is_open:
            raise StateConflictError(
                "Loan",
                loan.id,
                [LoanStatus.ACTIVE.value, LoanStatus.OVERDUE.value],
                actual=loan.status.value,
            )
        return loan

    async def _void_return(self, loan: Loan, user_id: str) -> None:
        """Take back the stock of a return whose loan was closed by someone else."""
        logger.warning("loan_return_voided", loan_id=loan.id)
        recorder = await self._get_recorder()
        await recorder.record(
            Movement(
                type=MovementType.LOAN,
                item_id=loan.item_id,
                unit_id=loan.unit_id,
                user_id=user_id,
                quantity=loan.quantity,
                reference=loan.id,
                idempotency_key=f"loan-return-void:{loan.id}",
                notes="return raced with another close",
            )
        )


class QueryLoansUseCase(FulfillmentUseCase):
    async def get_loan(self, loan_id: str) -> Loan:
        store = await self._get_loan_store()
        loan = await store.get(loan_id)
        if loan is None:
            raise LoanNotFoundError(loan_id)
        return loan

    async def list_loans(
        self,
        status: LoanStatus | None = None,
        unit_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Loan]:
        """
        List loans by effective status.

        Overdue is not stored: it is an active loan past its due date, so
        both ``active`` and ``overdue`` read the active rows and split them.
        """
        store = await self._get_loan_store()
        if status not in (LoanStatus.ACTIVE, LoanStatus.OVERDUE):
            return await store.list(status=status, unit_id=unit_id, limit=limit, offset=offset)

        today = _today()
        active = await store.list(status=LoanStatus.ACTIVE, unit_id=unit_id, limit=10_000)
        matching = [loan for loan in active if loan.effective_status(today) == status]
        return matching[offset : offset + limit]

    @staticmethod
    def to_response(result: LoanActionResult) -> LoanActionResponse:
        return LoanActionResponse(
            loan=LoanResponse.from_entity(result.loan, _today()),
            movement=MovementResponse.from_entity(result.movement) if result.movement else None,
        )

    @staticmethod
    def to_list_response(loans: list[Loan]) -> LoanListResponse:
        today = _today()
        return LoanListResponse(
            loans=[LoanResponse.from_entity(loan, today) for loan in loans],
            count=len(loans),
        )
