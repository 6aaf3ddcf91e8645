"""
poultry_services.period_analytics_service -- Period cost breakdown and section insight.

Responsibility:
    Read-only decision support for one period:
    * the categorized cost breakdown of the period and its top categories;
    * the section insight table (rank, performance tier, main cost driver,
      KPIs, notes) with the period summary;
    * a head-to-head comparison of two sections.

Architecture position:
    Services -- composes SectionPLService with the pure
    ``poultry_engines.cost_breakdown`` and ``poultry_engines.insight``
    engines.  Never writes.

Invariants enforced:
    - If the P&L of any section of the period cannot be computed, the
      insight call returns a BLOCKED result carrying the failure messages
      and no table.  A blocked section is never silently omitted.
    - A period with no sections is BLOCKED as well.
    - Cost percentages are 0 (never NaN) when the period total is 0.

Failure modes:
    - PeriodNotFoundError: unknown period id.  A blocked period is a
      result, not an exception.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from sqlalchemy.orm import Session

from poultry_kernel.exceptions import PeriodNotFoundError, PoultryFinanceError
from poultry_kernel.logging_config import get_logger
from poultry_kernel.selectors.expense_selector import ExpenseSelector
from poultry_kernel.selectors.period_selector import PeriodSelector
from poultry_engines.cost_breakdown import CategoryShare, CostBreakdown, build_cost_breakdown
from poultry_engines.insight import (
    EMPTY_SUMMARY,
    InsightSummary,
    SectionComparison,
    SectionInput,
    SectionInsight,
    compare,
    rank_sections,
    summarize,
)
from poultry_services.section_pl_service import SectionPLService

logger = get_logger("services.period_analytics")

NO_SECTIONS_MESSAGE = "No sections found in the period"


class AnalyticsStatus(str, Enum):
    SUCCESS = "SUCCESS"
    BLOCKED = "BLOCKED"


@dataclass(frozen=True)
class PeriodAnalytics:
    status: AnalyticsStatus
    period_id: UUID
    sections: tuple[SectionInsight, ...] = ()
    summary: InsightSummary = EMPTY_SUMMARY
    message: str | None = None
    failures: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_blocked(self) -> bool:
        return self.status == AnalyticsStatus.BLOCKED


class PeriodAnalyticsService:
    """
    Period analytics over the ledger.

    Contract:
        ``get_cost_breakdown(period_id)`` -> CostBreakdown
        ``get_top_categories(period_id, limit)`` -> tuple[CategoryShare, ...]
        ``get_period_analytics(period_id)`` -> PeriodAnalytics
        ``compare_sections(a, b)`` -> SectionComparison

    Non-goals:
        - Does NOT forecast.
        - Does NOT alter any P&L figure; insight is analysis only.
    """

    def __init__(self, session: Session):
        self.session = session
        self._periods = PeriodSelector(session)
        self._expenses = ExpenseSelector(session)
        self._section_pl = SectionPLService(session)

    def get_cost_breakdown(self, period_id: UUID) -> CostBreakdown:
        self._require_period(period_id)
        return build_cost_breakdown(
            totals=self._expenses.totals_by_category(period_id=period_id)
        )

    def get_top_categories(self, period_id: UUID, limit: int = 3) -> tuple[CategoryShare, ...]:
        return self.get_cost_breakdown(period_id).top(limit)

    def get_period_analytics(self, period_id: UUID) -> PeriodAnalytics:
        self._require_period(period_id)

        sections = self._periods.sections_for_period(period_id)
        if not sections:
            return self._blocked(period_id, NO_SECTIONS_MESSAGE)

        inputs: list[SectionInput] = []
        failures: list[str] = []
        for section in sections:
            try:
                pl = self._section_pl.get_section_pl(section.id)
            except PoultryFinanceError as exc:
                failures.append(f"{section.name}: {exc}")
                continue
            inputs.append(
                SectionInput(
                    section_id=pl.section_id,
                    section_name=pl.section_name,
                    figures=pl.figures,
                    category_totals=self._expenses.totals_by_category(section_id=section.id),
                )
            )

        if failures:
            return self._blocked(period_id, "; ".join(failures), tuple(failures))

        insights = rank_sections(inputs)
        logger.info(
            "period_analytics_computed",
            extra={"period_id": str(period_id), "section_count": len(insights)},
        )
        return PeriodAnalytics(
            status=AnalyticsStatus.SUCCESS,
            period_id=period_id,
            sections=tuple(insights),
            summary=summarize(insights),
        )

    def compare_sections(self, first_id: UUID, second_id: UUID) -> SectionComparison:
        """Both sections must be computable; a blocked one raises."""
        first = self._section_pl.get_section_pl(first_id)
        second = self._section_pl.get_section_pl(second_id)
        return compare(first.section_name, first.figures, second.section_name, second.figures)

    def _blocked(
        self,
        period_id: UUID,
        message: str,
        failures: tuple[str, ...] = (),
    ) -> PeriodAnalytics:
        logger.warning(
            "period_analytics_blocked",
            extra={"period_id": str(period_id), "failed_count": len(failures)},
        )
        return PeriodAnalytics(
            status=AnalyticsStatus.BLOCKED,
            period_id=period_id,
            message=message,
            failures=failures,
        )

    def _require_period(self, period_id: UUID) -> None:
        if self._periods.get_period(period_id) is None:
            raise PeriodNotFoundError(period_id)
