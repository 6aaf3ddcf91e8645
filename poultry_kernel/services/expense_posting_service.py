"""
ExpensePostingService -- appends categorized entries to a period's ledger.

Responsibility:
    The only write path into ``period_expenses``.  Every other flow that
    produces an expense (utility derivation, utility recording, asset
    purchase, repair) posts through ``post()`` so the period rules are
    enforced in exactly one place.

Architecture position:
    Kernel > Services -- imperative shell, flush-only.

Invariants enforced:
    - Period exists, is ACTIVE, and expense_date >= period.start_date
      (``guards.ensure_period_accepts_posting``), checked against the period
      row read under ``SELECT ... FOR UPDATE`` where the backend supports it.
    - amount > 0.
    - Entries are append-only: there is no update or delete method.

Failure modes (checked in this order):
    - PeriodNotFoundError, ClosedPeriodError, InvalidAmountError,
      ExpenseBeforePeriodStartError.  Nothing is written on failure.

Audit relevance:
    ``expense_posted`` is logged with period, category, amount and source.
    There is no rollback path for a posted entry; a correction is an
    offsetting entry posted by the caller.
"""

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select

from poultry_kernel.domain.dtos import ExpenseCategory, ExpenseInfo, ExpenseSource, PeriodInfo
from poultry_kernel.domain.guards import ensure_period_accepts_posting, ensure_positive
from poultry_kernel.logging_config import get_logger
from poultry_kernel.models.period import Period
from poultry_kernel.models.period_expense import PeriodExpense
from poultry_kernel.services.base import BaseService

logger = get_logger("services.expense_posting")


class ExpensePostingService(BaseService):
    """
    Appends one immutable ledger entry per call.

    Contract:
        ``post(period_id, category, amount, actor_id, ...) -> ExpenseInfo``.

    Non-goals:
        - Does NOT commit; the caller owns the transaction.
        - Does NOT resolve which period to post to; callers pass an id.
    """

    def lock_period(self, period_id: UUID) -> PeriodInfo | None:
        """Read the period row for update (row lock on PostgreSQL)."""
        period = self.session.execute(
            select(Period).where(Period.id == period_id).with_for_update()
        ).scalar_one_or_none()
        return period.to_dto() if period is not None else None

    def post(
        self,
        period_id: UUID,
        category: ExpenseCategory,
        amount: Any,
        actor_id: UUID,
        expense_date: date | None = None,
        description: str = "",
        *,
        section_id: UUID | None = None,
        asset_id: UUID | None = None,
        incident_id: UUID | None = None,
        batch_id: UUID | None = None,
        quantity: Decimal | None = None,
        unit_cost: Decimal | None = None,
        source: ExpenseSource = ExpenseSource.MANUAL,
        daily_report_id: UUID | None = None,
    ) -> ExpenseInfo:
        """
        Post one expense.

        Args:
            expense_date: Defaults to today's date from the injected clock.

        Raises:
            PeriodNotFoundError, ClosedPeriodError, InvalidAmountError,
            ExpenseBeforePeriodStartError.
        """
        resolved_date = expense_date or self._clock.today()

        value = ensure_positive(amount, "amount")
        period = ensure_period_accepts_posting(
            self.lock_period(period_id), period_id, resolved_date
        )

        expense = PeriodExpense(
            period_id=period.id,
            category=ExpenseCategory(category).value,
            amount=value,
            description=description or "",
            expense_date=resolved_date,
            section_id=section_id,
            asset_id=asset_id,
            incident_id=incident_id,
            batch_id=batch_id,
            quantity=quantity,
            unit_cost=unit_cost,
            source=ExpenseSource(source).value,
            daily_report_id=daily_report_id,
            created_by_id=actor_id,
        )
        self.session.add(expense)
        self.session.flush()

        logger.info(
            "expense_posted",
            extra={
                "expense_id": str(expense.id),
                "period_id": str(period.id),
                "category": expense.category,
                "amount": str(value),
                "source": expense.source,
            },
        )
        return expense.to_dto()
