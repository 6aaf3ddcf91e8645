"""
UtilityService -- operator-entered utility costs (water / electricity bills).

Responsibility:
    ``record_cost`` writes a ``UtilityCost`` document together with the
    ledger entry it produces.  The two rows are one explicit unit of work:
    either both land or neither does.  Read helpers list costs and
    summarize a period's consumption per utility type.

Architecture position:
    Kernel > Services -- TransactionalService (owns its commit/rollback).

Invariants enforced:
    - Every UtilityCost row references the PeriodExpense posted for it.
    - Ledger posting rules (period open, amount > 0, date on or after the
      period start) via ExpensePostingService.

Failure modes:
    - Any posting failure: rollback, re-raise, nothing written.

Audit relevance:
    ``utility_cost_recorded`` on success; ``record_utility_cost_rejected`` /
    ``record_utility_cost_failed`` when the unit of work is abandoned.
"""

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select

from poultry_kernel.domain.dtos import (
    ExpenseCategory,
    ExpenseSource,
    PeriodUtilitySummary,
    UtilityCostInfo,
    UtilityTotals,
    UtilityType,
)
from poultry_kernel.domain.values import ZERO, to_decimal
from poultry_kernel.logging_config import get_logger
from poultry_kernel.models.utility_cost import UtilityCost
from poultry_kernel.services.base import TransactionalService
from poultry_kernel.services.expense_posting_service import ExpensePostingService

logger = get_logger("services.utility")

_CATEGORY_FOR_TYPE = {
    UtilityType.WATER: ExpenseCategory.WATER,
    UtilityType.ELECTRICITY: ExpenseCategory.ELECTRICITY,
}

_UNIT_FOR_TYPE = {
    UtilityType.WATER: "litre",
    UtilityType.ELECTRICITY: "kWh",
}


def _describe(utility_type: UtilityType, quantity: Decimal | None) -> str:
    label = "Water cost" if utility_type == UtilityType.WATER else "Electricity cost"
    if quantity:
        return f"{label}: {quantity} {_UNIT_FOR_TYPE[utility_type]}"
    return label


class UtilityService(TransactionalService):
    """
    Records utility bills and reads them back.

    Contract:
        ``record_cost(...) -> UtilityCostInfo``; all-or-nothing.
    """

    def record_cost(
        self,
        utility_type: UtilityType,
        period_id: UUID,
        amount: Any,
        actor_id: UUID,
        cost_date: date | None = None,
        *,
        section_id: UUID | None = None,
        quantity: Any = None,
        unit_cost: Any = None,
        notes: str = "",
    ) -> UtilityCostInfo:
        utility_type = UtilityType(utility_type)
        qty = to_decimal(quantity) if quantity is not None else None
        unit = to_decimal(unit_cost) if unit_cost is not None else None
        resolved_date = cost_date or self._clock.today()

        with self._unit_of_work(
            "record_utility_cost",
            period_id=str(period_id),
            utility_type=utility_type.value,
        ):
            expense = ExpensePostingService(self.session, self._clock).post(
                period_id,
                _CATEGORY_FOR_TYPE[utility_type],
                amount,
                actor_id,
                resolved_date,
                _describe(utility_type, qty),
                section_id=section_id,
                quantity=qty,
                unit_cost=unit,
                source=ExpenseSource.MANUAL,
            )
            cost = UtilityCost(
                utility_type=utility_type.value,
                section_id=section_id,
                period_id=period_id,
                amount=expense.amount,
                quantity=qty,
                unit_cost=unit,
                cost_date=resolved_date,
                expense_id=expense.id,
                notes=notes or "",
                created_by_id=actor_id,
            )
            self.session.add(cost)
            self.session.flush()

        logger.info(
            "utility_cost_recorded",
            extra={
                "utility_cost_id": str(cost.id),
                "expense_id": str(expense.id),
                "utility_type": utility_type.value,
                "amount": str(expense.amount),
            },
        )
        return cost.to_dto()

    def costs_by_period(
        self,
        period_id: UUID,
        utility_type: UtilityType | None = None,
    ) -> list[UtilityCostInfo]:
        stmt = select(UtilityCost).where(UtilityCost.period_id == period_id)
        if utility_type is not None:
            stmt = stmt.where(UtilityCost.utility_type == UtilityType(utility_type).value)
        rows = self.session.execute(stmt.order_by(UtilityCost.cost_date.desc())).scalars()
        return [row.to_dto() for row in rows]

    def costs_by_section(
        self,
        section_id: UUID,
        utility_type: UtilityType | None = None,
    ) -> list[UtilityCostInfo]:
        stmt = select(UtilityCost).where(UtilityCost.section_id == section_id)
        if utility_type is not None:
            stmt = stmt.where(UtilityCost.utility_type == UtilityType(utility_type).value)
        rows = self.session.execute(stmt.order_by(UtilityCost.cost_date.desc())).scalars()
        return [row.to_dto() for row in rows]

    def period_utility_summary(self, period_id: UUID) -> PeriodUtilitySummary:
        """Total amount and quantity per utility type; zero when nothing recorded."""
        rows = self.session.execute(
            select(
                UtilityCost.utility_type,
                func.sum(UtilityCost.amount),
                func.sum(func.coalesce(UtilityCost.quantity, 0)),
            )
            .where(UtilityCost.period_id == period_id)
            .group_by(UtilityCost.utility_type)
        )
        totals = {
            utility_type: UtilityTotals(total_amount=ZERO, total_quantity=ZERO)
            for utility_type in UtilityType
        }
        for utility_type, amount, quantity in rows:
            totals[UtilityType(utility_type)] = UtilityTotals(
                total_amount=to_decimal(amount),
                total_quantity=to_decimal(quantity),
            )
        return PeriodUtilitySummary(
            period_id=period_id,
            water=totals[UtilityType.WATER],
            electricity=totals[UtilityType.ELECTRICITY],
        )
