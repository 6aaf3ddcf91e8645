"""
poultry_engines.profit -- Section profit-and-loss figures and per-chick metrics.

Responsibility:
    Turn already-aggregated section totals (revenue from COMPLETE
    chick-outs, ledger expenses, chick counters) into profit, the
    profitability flag and the normalized per-chick metrics.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imports only poultry_kernel.domain.values and the tracer.
    Consumed by poultry_services.section_pl_service.

Invariants enforced:
    - profit = total_revenue - total_expenses.
    - is_profitable is ``profit > 0``; break-even is not profitable.
    - alive_chicks = max(0, chicks_in - sold_chicks - deaths).
    - A per-chick metric whose denominator is zero is ``None``, never 0 and
      never a ZeroDivisionError.
    - Every monetary ratio is rounded half away from zero to 2 places.

Failure modes:
    - ValueError when a chick counter is negative.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from poultry_kernel.domain.values import ZERO, percent_of, round_money, safe_ratio, to_decimal
from poultry_engines.tracer import traced_engine


@dataclass(frozen=True)
class SectionMetrics:
    """Per-chick metrics; ``None`` means "no data" (zero denominator)."""

    cost_per_alive_chick: Decimal | None
    revenue_per_sold_chick: Decimal | None
    profit_per_sold_chick: Decimal | None
    alive_chicks: int
    sold_chicks: int
    dead_chicks: int


@dataclass(frozen=True)
class ProfitFigures:
    total_revenue: Decimal
    total_expenses: Decimal
    profit: Decimal
    is_profitable: bool
    metrics: SectionMetrics

    @property
    def profit_margin_percent(self) -> Decimal:
        return profit_margin_percent(self.profit, self.total_revenue)


def profit_margin_percent(profit: Any, revenue: Any) -> Decimal:
    """profit / revenue x 100, rounded; 0 when there is no revenue."""
    if to_decimal(revenue) <= ZERO:
        return round_money(ZERO)
    return percent_of(profit, revenue)


@traced_engine(
    "profit",
    "1.0",
    fingerprint_fields=("total_revenue", "total_expenses", "chicks_in", "sold_chicks", "deaths"),
)
def calculate_section_profit(
    *,
    total_revenue: Any,
    total_expenses: Any,
    chicks_in: int = 0,
    sold_chicks: int = 0,
    deaths: int = 0,
) -> ProfitFigures:
    for name, count in (("chicks_in", chicks_in), ("sold_chicks", sold_chicks), ("deaths", deaths)):
        if count < 0:
            raise ValueError(f"{name} cannot be negative: {count}")

    revenue = to_decimal(total_revenue)
    expenses = to_decimal(total_expenses)
    profit = revenue - expenses
    alive = max(0, chicks_in - sold_chicks - deaths)

    return ProfitFigures(
        total_revenue=revenue,
        total_expenses=expenses,
        profit=profit,
        is_profitable=profit > ZERO,
        metrics=SectionMetrics(
            cost_per_alive_chick=safe_ratio(expenses, alive),
            revenue_per_sold_chick=safe_ratio(revenue, sold_chicks),
            profit_per_sold_chick=safe_ratio(profit, sold_chicks),
            alive_chicks=alive,
            sold_chicks=sold_chicks,
            dead_chicks=deaths,
        ),
    )
