"""
Tests for the cost breakdown engine.

Covers:
- zero-filled categories and percentages
- ordering by amount with deterministic ties
- main cost driver tie-break
"""

from decimal import Decimal

import pytest

from poultry_kernel.domain.dtos import ExpenseCategory
from poultry_engines.cost_breakdown import build_cost_breakdown, main_cost_driver


class TestBuildCostBreakdown:
    def test_zero_total_gives_zero_percent_everywhere(self):
        breakdown = build_cost_breakdown(totals={})

        assert breakdown.total_expenses == Decimal("0")
        assert len(breakdown.items) == len(ExpenseCategory)
        assert all(item.percentage == Decimal("0") for item in breakdown.items)
        assert all(item.amount == Decimal("0") for item in breakdown.items)

    def test_percentages_and_ordering(self):
        breakdown = build_cost_breakdown(
            totals={
                ExpenseCategory.FEED: Decimal("600"),
                ExpenseCategory.WATER: Decimal("300"),
                ExpenseCategory.MEDICINE: Decimal("100"),
            }
        )

        top = breakdown.top(3)
        assert [item.category for item in top] == [
            ExpenseCategory.FEED,
            ExpenseCategory.WATER,
            ExpenseCategory.MEDICINE,
        ]
        assert [item.percentage for item in top] == [
            Decimal("60.00"),
            Decimal("30.00"),
            Decimal("10.00"),
        ]
        assert breakdown.total_expenses == Decimal("1000")

    def test_amounts_sum_to_total(self):
        breakdown = build_cost_breakdown(
            totals={"FEED": "33.33", "LABOR_DAILY": "33.33", "OTHER": "33.34"}
        )

        assert sum(item.amount for item in breakdown.items) == breakdown.total_expenses

    def test_equal_amounts_keep_declaration_order(self):
        breakdown = build_cost_breakdown(
            totals={ExpenseCategory.OTHER: Decimal("5"), ExpenseCategory.WATER: Decimal("5")}
        )

        assert [item.category for item in breakdown.top(2)] == [
            ExpenseCategory.WATER,
            ExpenseCategory.OTHER,
        ]

    def test_negative_total_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            build_cost_breakdown(totals={ExpenseCategory.FEED: Decimal("-1")})

    def test_amount_for_and_as_dict(self):
        breakdown = build_cost_breakdown(totals={ExpenseCategory.TRANSPORT: Decimal("12")})

        assert breakdown.amount_for(ExpenseCategory.TRANSPORT) == Decimal("12")
        assert breakdown.as_dict()[ExpenseCategory.FEED] == Decimal("0")


class TestMainCostDriver:
    def test_largest_category_wins(self):
        driver = main_cost_driver({ExpenseCategory.FEED: 10, ExpenseCategory.WATER: 20})

        assert driver == ExpenseCategory.WATER

    def test_tie_goes_to_alphabetically_first_code(self):
        driver = main_cost_driver(
            {ExpenseCategory.WATER: Decimal("50"), ExpenseCategory.FEED: Decimal("50")}
        )

        assert driver == ExpenseCategory.FEED

    def test_tie_break_does_not_depend_on_input_order(self):
        first = {ExpenseCategory.MEDICINE: 7, ExpenseCategory.ELECTRICITY: 7}
        second = {ExpenseCategory.ELECTRICITY: 7, ExpenseCategory.MEDICINE: 7}

        assert main_cost_driver(first) == main_cost_driver(second) == ExpenseCategory.ELECTRICITY

    def test_no_driver_when_everything_zero(self):
        assert main_cost_driver({}) is None
        assert main_cost_driver({ExpenseCategory.FEED: 0}) is None
