"""
poultry_engines.insight -- Section ranking, performance tiers and period summary.

Responsibility:
    Rank the sections of a period by profit, classify each into a
    performance tier, attach its KPIs, main cost driver and a short
    human-readable note, and summarize the period.  Also compares two
    sections head to head.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by poultry_services.period_analytics_service, which is
    responsible for deciding that every section's P&L was computable.

Invariants enforced:
    - Rank 1 is the highest profit; ranks are 1..n and distinct.  Equal
      profits are ordered by (section name, section id).
    - profit < 0 is LOSS_MAKING regardless of rank.
    - Otherwise the tier follows percentile = rank / n x 100:
      <= 20 TOP_PERFORMER, <= 40 GOOD, <= 70 AVERAGE, else UNDERPERFORMING.
    - profit_margin_percent is 0 when a section has no revenue.

Failure modes:
    - None.  An empty input yields an empty ranking and the empty summary.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from poultry_kernel.domain.dtos import ExpenseCategory
from poultry_kernel.domain.values import HUNDRED, ZERO, round_money, to_decimal
from poultry_engines.cost_breakdown import main_cost_driver
from poultry_engines.profit import ProfitFigures
from poultry_engines.tracer import traced_engine

HIGH_MARGIN_PERCENT = Decimal("30")


class PerformanceStatus(str, Enum):
    TOP_PERFORMER = "TOP_PERFORMER"
    GOOD = "GOOD"
    AVERAGE = "AVERAGE"
    UNDERPERFORMING = "UNDERPERFORMING"
    LOSS_MAKING = "LOSS_MAKING"


@dataclass(frozen=True)
class SectionInput:
    """One computable section: its P&L figures and its category totals."""

    section_id: UUID
    section_name: str
    figures: ProfitFigures
    category_totals: Mapping[ExpenseCategory, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class SectionInsight:
    section_id: UUID
    section_name: str
    profit: Decimal
    revenue: Decimal
    expenses: Decimal
    rank: int
    status: PerformanceStatus
    main_cost_driver: ExpenseCategory | None
    cost_breakdown: Mapping[ExpenseCategory, Decimal]
    profit_margin_percent: Decimal
    revenue_per_sold_chick: Decimal | None
    cost_per_alive_chick: Decimal | None
    profit_per_sold_chick: Decimal | None
    notes: str


@dataclass(frozen=True)
class InsightSummary:
    best_section: str | None
    worst_section: str | None
    most_expensive_category: ExpenseCategory | None
    total_period_profit: Decimal
    total_period_revenue: Decimal
    total_period_expenses: Decimal
    profitable_sections_count: int
    loss_making_sections_count: int


EMPTY_SUMMARY = InsightSummary(
    best_section=None,
    worst_section=None,
    most_expensive_category=None,
    total_period_profit=ZERO,
    total_period_revenue=ZERO,
    total_period_expenses=ZERO,
    profitable_sections_count=0,
    loss_making_sections_count=0,
)


@dataclass(frozen=True)
class SectionComparison:
    profit_difference: Decimal
    revenue_difference: Decimal
    cost_difference: Decimal
    winner: str


def classify(rank: int, total_sections: int, profit: Any) -> PerformanceStatus:
    """Tier for one section given its 1-based rank among ``total_sections``."""
    if to_decimal(profit) < ZERO:
        return PerformanceStatus.LOSS_MAKING

    percentile = Decimal(rank) * HUNDRED / Decimal(total_sections)
    if percentile <= 20:
        return PerformanceStatus.TOP_PERFORMER
    if percentile <= 40:
        return PerformanceStatus.GOOD
    if percentile <= 70:
        return PerformanceStatus.AVERAGE
    return PerformanceStatus.UNDERPERFORMING


def generate_notes(
    profit: Decimal,
    margin_percent: Decimal,
    driver: ExpenseCategory | None,
    status: PerformanceStatus,
) -> str:
    notes: list[str] = []
    if profit < ZERO:
        notes.append(f"Loss: {round_money(abs(profit)):,}")
    elif margin_percent > HIGH_MARGIN_PERCENT:
        notes.append(f"High margin: {margin_percent}%")

    if driver is not None:
        notes.append(f"Main cost: {driver.value}")

    if status == PerformanceStatus.TOP_PERFORMER:
        notes.append("Best result in the period")
    elif status == PerformanceStatus.UNDERPERFORMING:
        notes.append("Room to improve results")

    return ". ".join(notes) or "Insufficient data"


@traced_engine("insight", "1.0")
def rank_sections(sections: Sequence[SectionInput]) -> list[SectionInsight]:
    """Rank by profit descending and classify every section."""
    ordered = sorted(
        sections,
        key=lambda s: (-s.figures.profit, s.section_name, str(s.section_id)),
    )
    total = len(ordered)

    insights: list[SectionInsight] = []
    for index, section in enumerate(ordered):
        figures = section.figures
        rank = index + 1
        status = classify(rank, total, figures.profit)
        driver = main_cost_driver(section.category_totals)
        margin = figures.profit_margin_percent
        insights.append(
            SectionInsight(
                section_id=section.section_id,
                section_name=section.section_name,
                profit=figures.profit,
                revenue=figures.total_revenue,
                expenses=figures.total_expenses,
                rank=rank,
                status=status,
                main_cost_driver=driver,
                cost_breakdown={
                    ExpenseCategory(category): amount
                    for category, amount in section.category_totals.items()
                    if amount
                },
                profit_margin_percent=margin,
                revenue_per_sold_chick=figures.metrics.revenue_per_sold_chick,
                cost_per_alive_chick=figures.metrics.cost_per_alive_chick,
                profit_per_sold_chick=figures.metrics.profit_per_sold_chick,
                notes=generate_notes(figures.profit, margin, driver, status),
            )
        )
    return insights


def summarize(insights: Sequence[SectionInsight]) -> InsightSummary:
    """Period summary over an already ranked list (rank 1 first)."""
    if not insights:
        return EMPTY_SUMMARY

    global_costs: dict[ExpenseCategory, Decimal] = {}
    for insight in insights:
        for category, amount in insight.cost_breakdown.items():
            global_costs[category] = global_costs.get(category, ZERO) + amount

    return InsightSummary(
        best_section=insights[0].section_name,
        worst_section=insights[-1].section_name,
        most_expensive_category=main_cost_driver(global_costs),
        total_period_profit=sum((s.profit for s in insights), ZERO),
        total_period_revenue=sum((s.revenue for s in insights), ZERO),
        total_period_expenses=sum((s.expenses for s in insights), ZERO),
        profitable_sections_count=sum(1 for s in insights if s.profit > ZERO),
        loss_making_sections_count=sum(1 for s in insights if s.profit < ZERO),
    )


def compare(
    first_name: str,
    first: ProfitFigures,
    second_name: str,
    second: ProfitFigures,
) -> SectionComparison:
    """Head-to-head comparison; a tie goes to the second section."""
    return SectionComparison(
        profit_difference=first.profit - second.profit,
        revenue_difference=first.total_revenue - second.total_revenue,
        cost_difference=first.total_expenses - second.total_expenses,
        winner=first_name if first.profit > second.profit else second_name,
    )
