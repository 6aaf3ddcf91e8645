"""
poultry_services.period_pl_service -- Period-level profit and loss.

Responsibility:
    Period P&L: revenue from COMPLETE chick-outs of every batch started in
    the period, expenses from every ledger entry of the period.  Unlike the
    section P&L, an INCOMPLETE chick-out does not block: it yields a
    warning and ``is_revenue_complete=False``.  An incident awaiting its
    repair expense on any section of the period does block.

    Period KPIs (margin, cost per chick placed, revenue and profit per chick
    sold) are derived from the period P&L and the batch chick counters.

Architecture position:
    Services -- read-side orchestration over kernel selectors.  Never writes.

Failure modes:
    - PeriodNotFoundError: unknown period id.
    - UnresolvedOperationsError: a section of the period has an incident
      awaiting its repair expense.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from poultry_engines.profit import profit_margin_percent
from poultry_kernel.domain.values import ZERO, safe_ratio
from poultry_kernel.exceptions import PeriodNotFoundError, UnresolvedOperationsError
from poultry_kernel.logging_config import get_logger
from poultry_kernel.selectors.expense_selector import ExpenseSelector
from poultry_kernel.selectors.period_selector import PeriodSelector
from poultry_kernel.selectors.revenue_selector import RevenueSelector
from poultry_kernel.selectors.safety_guard import SafetyGuard

logger = get_logger("services.period_pl")


@dataclass(frozen=True)
class RevenueAggregation:
    period_id: UUID
    total_revenue: Decimal
    completed_chick_out_count: int
    batch_count_with_revenue: int


@dataclass(frozen=True)
class PeriodPL:
    period_id: UUID
    total_revenue: Decimal
    total_expenses: Decimal
    profit: Decimal
    is_profitable: bool
    is_revenue_complete: bool
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class PeriodKPITotals:
    total_chicks_in: int
    final_chicks_out: int
    total_revenue: Decimal
    total_expenses: Decimal
    profit: Decimal


@dataclass(frozen=True)
class PeriodKPIMetrics:
    """Per-chick figures are None when their denominator is 0."""

    profit_margin_percent: Decimal
    cost_per_chick: Decimal | None
    revenue_per_chick: Decimal | None
    profit_per_chick: Decimal | None


@dataclass(frozen=True)
class PeriodKPI:
    period_id: UUID
    totals: PeriodKPITotals
    kpis: PeriodKPIMetrics
    warnings: tuple[str, ...] = ()


class PeriodPLService:
    """
    Period P&L calculator.

    Non-goals:
        - Does NOT break the period down by section (SectionPLService).
    """

    def __init__(self, session: Session):
        self.session = session
        self._periods = PeriodSelector(session)
        self._revenue = RevenueSelector(session)
        self._expenses = ExpenseSelector(session)
        self._guard = SafetyGuard(session)

    def get_period_pl(self, period_id: UUID) -> PeriodPL:
        self._require_period(period_id)

        warnings: list[str] = []
        batch_ids = self._revenue.batch_ids_for_period(period_id)
        incomplete = self._guard.count_incomplete_chick_outs_for_batches(batch_ids)
        if incomplete:
            warnings.append(f"{incomplete} incomplete chick-out(s); revenue is not complete")

        section_ids = self._periods.section_ids_for_period(period_id)
        unresolved = self._guard.count_unresolved_expense_incidents(section_ids)
        if unresolved:
            logger.warning(
                "period_pl_blocked",
                extra={"period_id": str(period_id), "unresolved_expense_incidents": unresolved},
            )
            raise UnresolvedOperationsError(
                None,
                "Period has technical incidents awaiting a repair expense",
            )

        total_revenue = self._revenue.revenue_for_batches(batch_ids).total_revenue
        total_expenses = self._expenses.total_for_period(period_id)
        profit = total_revenue - total_expenses
        return PeriodPL(
            period_id=period_id,
            total_revenue=total_revenue,
            total_expenses=total_expenses,
            profit=profit,
            is_profitable=profit > ZERO,
            is_revenue_complete=incomplete == 0,
            warnings=tuple(warnings),
        )

    def get_period_kpi(self, period_id: UUID) -> PeriodKPI:
        """
        Headline KPIs for a period, built on ``get_period_pl``.

        cost_per_chick divides expenses by chicks placed; revenue and profit
        per chick divide by chicks sold through COMPLETE chick-outs.

        Raises:
            PeriodNotFoundError, UnresolvedOperationsError (from the P&L).
        """
        pl = self.get_period_pl(period_id)
        chicks_in = self._revenue.chick_counts_for_period(period_id).chicks_in
        chicks_out = self._revenue.revenue_for_period(period_id).sold_chicks

        kpi = PeriodKPI(
            period_id=period_id,
            totals=PeriodKPITotals(
                total_chicks_in=chicks_in,
                final_chicks_out=chicks_out,
                total_revenue=pl.total_revenue,
                total_expenses=pl.total_expenses,
                profit=pl.profit,
            ),
            kpis=PeriodKPIMetrics(
                profit_margin_percent=profit_margin_percent(pl.profit, pl.total_revenue),
                cost_per_chick=safe_ratio(pl.total_expenses, chicks_in),
                revenue_per_chick=safe_ratio(pl.total_revenue, chicks_out),
                profit_per_chick=safe_ratio(pl.profit, chicks_out),
            ),
            warnings=pl.warnings,
        )
        logger.info(
            "period_kpi_computed",
            extra={
                "period_id": str(period_id),
                "total_chicks_in": chicks_in,
                "final_chicks_out": chicks_out,
                "profit": str(pl.profit),
            },
        )
        return kpi

    def has_unfinished_operations(self, period_id: UUID) -> bool:
        """Any INCOMPLETE chick-out or any incident awaiting an expense."""
        self._require_period(period_id)
        return self._guard.has_unresolved_operations_for_batches(
            self._revenue.batch_ids_for_period(period_id),
            self._periods.section_ids_for_period(period_id),
        )

    def get_revenue_aggregation(self, period_id: UUID) -> RevenueAggregation:
        self._require_period(period_id)
        totals = self._revenue.revenue_for_period(period_id)
        return RevenueAggregation(
            period_id=period_id,
            total_revenue=totals.total_revenue,
            completed_chick_out_count=totals.completed_chick_out_count,
            batch_count_with_revenue=totals.batch_count_with_revenue,
        )

    def _require_period(self, period_id: UUID) -> None:
        if self._periods.get_period(period_id) is None:
            raise PeriodNotFoundError(period_id)
