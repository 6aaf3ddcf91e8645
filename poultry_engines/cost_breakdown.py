"""
poultry_engines.cost_breakdown -- Categorized cost composition.

Responsibility:
    Given per-category expense totals for a scope (a period or a section),
    produce every category's share of the scope total, ordered by amount,
    and pick the scope's main cost driver.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Every ExpenseCategory appears exactly once, zero filled.
    - Percentages are rounded half away from zero to 2 places and are 0
      for every category when the total is 0 (never NaN).
    - Ordering: amount descending; equal amounts keep category declaration
      order, so the output is deterministic.
    - Main cost driver: the category with the largest amount; among equal
      maxima the alphabetically first category code wins.  A scope whose
      categories are all zero has no driver.

Failure modes:
    - ValueError when a category total is negative.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from poultry_kernel.domain.dtos import ExpenseCategory
from poultry_kernel.domain.values import ZERO, percent_of, to_decimal
from poultry_engines.tracer import traced_engine


@dataclass(frozen=True)
class CategoryShare:
    category: ExpenseCategory
    amount: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class CostBreakdown:
    """
    Cost composition of one scope.

    Guarantees:
        - ``items`` holds every category, sorted by amount descending.
        - ``sum(item.amount) == total_expenses``.
    """

    total_expenses: Decimal
    items: tuple[CategoryShare, ...]

    def top(self, limit: int = 3) -> tuple[CategoryShare, ...]:
        return self.items[:max(0, limit)]

    def amount_for(self, category: ExpenseCategory) -> Decimal:
        for item in self.items:
            if item.category == category:
                return item.amount
        return ZERO

    def as_dict(self) -> dict[ExpenseCategory, Decimal]:
        return {item.category: item.amount for item in self.items}


def _normalize(totals: Mapping[Any, Any]) -> dict[ExpenseCategory, Decimal]:
    amounts = {category: ZERO for category in ExpenseCategory}
    for category, amount in totals.items():
        value = to_decimal(amount)
        if value < ZERO:
            raise ValueError(f"Category total cannot be negative: {category}={value}")
        key = ExpenseCategory(category)
        amounts[key] = amounts[key] + value
    return amounts


@traced_engine("cost_breakdown", "1.0", fingerprint_fields=("totals",))
def build_cost_breakdown(*, totals: Mapping[Any, Any]) -> CostBreakdown:
    amounts = _normalize(totals)
    total = sum(amounts.values(), ZERO)

    # sorted() is stable: ties keep declaration order
    ordered = sorted(amounts.items(), key=lambda kv: kv[1], reverse=True)
    return CostBreakdown(
        total_expenses=total,
        items=tuple(
            CategoryShare(
                category=category,
                amount=amount,
                percentage=percent_of(amount, total),
            )
            for category, amount in ordered
        ),
    )


def main_cost_driver(totals: Mapping[Any, Any]) -> ExpenseCategory | None:
    """Largest category; alphabetical tie-break; None when everything is zero."""
    amounts = _normalize(totals)
    top = max(amounts.values(), default=ZERO)
    if top <= ZERO:
        return None
    return min(
        (category for category, amount in amounts.items() if amount == top),
        key=lambda category: category.value,
    )
