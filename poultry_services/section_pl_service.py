"""
poultry_services.section_pl_service -- Section profit and loss.

Responsibility:
    Compute a section's P&L from the ledger: revenue from COMPLETE
    chick-outs of every batch of the section, expenses from the period
    expense entries tagged with the section, and the per-chick metrics.
    Also computes the P&L of every section of a period with per-section
    failure isolation.

Architecture position:
    Services -- read-side orchestration over kernel selectors and the pure
    ``poultry_engines.profit`` engine.  Never writes.

Invariants enforced:
    - A section blocked by the Safety Guard never reports a number: the
      call fails with ``UnresolvedOperationsError``.
    - Absence of revenue or expenses is 0, not an error.
    - Bulk form: one section's failure never aborts the others; failures
      surface as an error only when every section of the period failed.
    - Pure read: two calls with no intervening writes return equal values.

Failure modes:
    - SectionNotFoundError: unknown section id.
    - PeriodNotFoundError: unknown period id (bulk form).
    - UnresolvedOperationsError: the section has an INCOMPLETE chick-out
      or an incident awaiting its repair expense.
    - AllSectionsFailedError: every section of the period failed.

Audit relevance:
    A refusal logs ``section_pl_blocked`` with both guard counters.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from poultry_kernel.domain.dtos import SectionInfo
from poultry_kernel.exceptions import (
    AllSectionsFailedError,
    PeriodNotFoundError,
    PoultryFinanceError,
    SectionNotFoundError,
    UnresolvedOperationsError,
)
from poultry_kernel.logging_config import get_logger
from poultry_kernel.models.section import Section
from poultry_kernel.selectors.expense_selector import ExpenseSelector
from poultry_kernel.selectors.period_selector import PeriodSelector
from poultry_kernel.selectors.revenue_selector import RevenueSelector
from poultry_kernel.selectors.safety_guard import SafetyGuard
from poultry_engines.profit import ProfitFigures, SectionMetrics, calculate_section_profit

logger = get_logger("services.section_pl")

UNRESOLVED_MESSAGE = (
    "Cannot calculate P&L: section has unresolved financial operations"
)


@dataclass(frozen=True)
class SectionPL:
    """P&L of one section."""

    section_id: UUID
    section_name: str
    figures: ProfitFigures

    @property
    def total_revenue(self) -> Decimal:
        return self.figures.total_revenue

    @property
    def total_expenses(self) -> Decimal:
        return self.figures.total_expenses

    @property
    def profit(self) -> Decimal:
        return self.figures.profit

    @property
    def is_profitable(self) -> bool:
        return self.figures.is_profitable

    @property
    def metrics(self) -> SectionMetrics:
        return self.figures.metrics


@dataclass(frozen=True)
class SectionFailure:
    section_id: UUID
    section_name: str
    error_code: str
    message: str

    def describe(self) -> str:
        return f"{self.section_name}: {self.message}"


@dataclass(frozen=True)
class PeriodSectionsPL:
    """Bulk result: the sections that computed and the ones that failed."""

    period_id: UUID
    sections: tuple[SectionPL, ...]
    failures: tuple[SectionFailure, ...] = ()

    @property
    def is_complete(self) -> bool:
        return not self.failures


class SectionPLService:
    """
    Section P&L calculator.

    Contract:
        ``get_section_pl(section_id)`` -> SectionPL, or raises.
        ``get_all_sections_pl_for_period(period_id)`` -> PeriodSectionsPL.

    Guarantees:
        - The Safety Guard is consulted before any figure is computed.
        - Sections of a period are visited in (name, id) order.

    Non-goals:
        - Does NOT compute period-level P&L (see PeriodPLService).
        - Does NOT write to the session.
    """

    def __init__(self, session: Session):
        self.session = session
        self._guard = SafetyGuard(session)
        self._revenue = RevenueSelector(session)
        self._expenses = ExpenseSelector(session)
        self._periods = PeriodSelector(session)

    def get_section_pl(self, section_id: UUID) -> SectionPL:
        section = self.session.get(Section, section_id)
        if section is None:
            raise SectionNotFoundError(section_id)
        return self._compute(section.to_dto())

    def has_unfinished_operations(self, section_id: UUID) -> bool:
        return self._guard.has_unresolved_operations(section_id)

    def get_all_sections_pl_for_period(self, period_id: UUID) -> PeriodSectionsPL:
        if self._periods.get_period(period_id) is None:
            raise PeriodNotFoundError(period_id)

        results: list[SectionPL] = []
        failures: list[SectionFailure] = []
        for section in self._periods.sections_for_period(period_id):
            try:
                results.append(self._compute(section))
            except PoultryFinanceError as exc:
                failures.append(
                    SectionFailure(
                        section_id=section.id,
                        section_name=section.name,
                        error_code=exc.code,
                        message=str(exc),
                    )
                )

        if failures and not results:
            logger.warning(
                "period_sections_pl_all_failed",
                extra={"period_id": str(period_id), "failed_count": len(failures)},
            )
            raise AllSectionsFailedError(period_id, [f.describe() for f in failures])

        if failures:
            logger.info(
                "period_sections_pl_partial",
                extra={
                    "period_id": str(period_id),
                    "computed_count": len(results),
                    "failed_count": len(failures),
                },
            )
        return PeriodSectionsPL(
            period_id=period_id,
            sections=tuple(results),
            failures=tuple(failures),
        )

    def _compute(self, section: SectionInfo) -> SectionPL:
        guard = self._guard.check_section(section.id)
        if guard.is_blocked:
            logger.warning(
                "section_pl_blocked",
                extra={
                    "section_id": str(section.id),
                    "incomplete_chick_outs": guard.incomplete_chick_outs,
                    "unresolved_expense_incidents": guard.unresolved_expense_incidents,
                },
            )
            raise UnresolvedOperationsError(section.id, UNRESOLVED_MESSAGE)

        revenue = self._revenue.revenue_for_section(section.id)
        counts = self._revenue.chick_counts_for_section(section.id)
        figures = calculate_section_profit(
            total_revenue=revenue.total_revenue,
            total_expenses=self._expenses.total_for_section(section.id),
            chicks_in=counts.chicks_in,
            sold_chicks=revenue.sold_chicks,
            deaths=counts.deaths,
        )
        return SectionPL(section_id=section.id, section_name=section.name, figures=figures)
