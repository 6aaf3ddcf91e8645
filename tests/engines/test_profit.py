"""
Tests for the section profit engine.

Covers:
- profit and the strict profitability flag
- per-chick metrics and their zero-denominator behavior
- margin percentage
"""

from decimal import Decimal

import pytest

from poultry_engines.profit import calculate_section_profit, profit_margin_percent


class TestProfit:
    def test_profit_is_revenue_minus_expenses(self):
        figures = calculate_section_profit(
            total_revenue=Decimal("1500.00"),
            total_expenses=Decimal("400.00"),
        )

        assert figures.profit == Decimal("1100.00")
        assert figures.is_profitable is True

    def test_break_even_is_not_profitable(self):
        figures = calculate_section_profit(total_revenue="250", total_expenses="250")

        assert figures.profit == Decimal("0")
        assert figures.is_profitable is False

    def test_loss(self):
        figures = calculate_section_profit(total_revenue=0, total_expenses="75.50")

        assert figures.profit == Decimal("-75.50")
        assert figures.is_profitable is False


class TestMetrics:
    def test_empty_section_has_null_metrics(self):
        """No chicks, no revenue, no expenses: every ratio is None, not 0."""
        figures = calculate_section_profit(total_revenue=0, total_expenses=0)

        assert figures.profit == Decimal("0")
        assert figures.is_profitable is False
        assert figures.metrics.cost_per_alive_chick is None
        assert figures.metrics.revenue_per_sold_chick is None
        assert figures.metrics.profit_per_sold_chick is None

    def test_fully_sold_section_has_no_cost_per_alive_chick(self):
        figures = calculate_section_profit(
            total_revenue="3000",
            total_expenses="1000",
            chicks_in=100,
            sold_chicks=95,
            deaths=5,
        )

        assert figures.metrics.alive_chicks == 0
        assert figures.metrics.cost_per_alive_chick is None
        assert figures.metrics.revenue_per_sold_chick == Decimal("31.58")
        assert figures.metrics.profit_per_sold_chick == Decimal("21.05")

    def test_alive_chicks_never_negative(self):
        figures = calculate_section_profit(
            total_revenue=0, total_expenses=0, chicks_in=10, sold_chicks=8, deaths=5
        )

        assert figures.metrics.alive_chicks == 0

    def test_cost_per_alive_chick_rounds_half_up(self):
        figures = calculate_section_profit(
            total_revenue=0, total_expenses="10.01", chicks_in=2
        )

        # 5.005 -> 5.01
        assert figures.metrics.cost_per_alive_chick == Decimal("5.01")

    def test_negative_counter_rejected(self):
        with pytest.raises(ValueError, match="deaths"):
            calculate_section_profit(total_revenue=0, total_expenses=0, deaths=-1)


class TestMargin:
    def test_margin_zero_without_revenue(self):
        assert profit_margin_percent(Decimal("-50"), Decimal("0")) == Decimal("0.00")

    def test_margin_percent(self):
        assert profit_margin_percent(Decimal("25"), Decimal("200")) == Decimal("12.50")

    def test_figures_expose_margin(self):
        figures = calculate_section_profit(total_revenue="400", total_expenses="100")

        assert figures.profit_margin_percent == Decimal("75.00")
