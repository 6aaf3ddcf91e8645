"""
Property-based fuzzing of the money paths.

Verifies:
- revenue never exceeds gross weight x price and never goes negative
- profit is exactly revenue minus expenses for any inputs
- cost breakdown amounts always sum to the total, percentages stay in [0, 100]
- hostile readings never escape the daily-report hook
"""

from decimal import Decimal
from uuid import uuid4

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from poultry_engines.cost_breakdown import build_cost_breakdown
from poultry_engines.profit import calculate_section_profit
from poultry_kernel.domain.dtos import ExpenseCategory
from poultry_kernel.domain.values import round_money
from poultry_kernel.services.chick_out_service import compute_revenue
from poultry_services import DailyReportReading, DailyReportUtilityHook

from tests.conftest import TODAY

money = st.decimals(min_value=Decimal("0"), max_value=Decimal("1000000000"), places=2)
positive = st.decimals(min_value=Decimal("0.01"), max_value=Decimal("100000"), places=2)
waste = st.decimals(min_value=Decimal("0"), max_value=Decimal("100"), places=2)


@given(weight=positive, waste_percent=waste, price=positive)
def test_revenue_bounded_by_gross(weight, waste_percent, price):
    net, revenue = compute_revenue(weight, waste_percent, price)

    assert Decimal("0") <= net <= weight
    assert Decimal("0") <= revenue <= round_money(weight * price)
    assert revenue == revenue.quantize(Decimal("0.01"))


@given(
    revenue=money,
    expenses=money,
    chicks_in=st.integers(min_value=0, max_value=100000),
    sold=st.integers(min_value=0, max_value=100000),
    deaths=st.integers(min_value=0, max_value=100000),
)
def test_profit_is_revenue_minus_expenses(revenue, expenses, chicks_in, sold, deaths):
    figures = calculate_section_profit(
        total_revenue=revenue,
        total_expenses=expenses,
        chicks_in=chicks_in,
        sold_chicks=sold,
        deaths=deaths,
    )

    assert figures.profit == revenue - expenses
    assert figures.is_profitable == (figures.profit > 0)
    assert figures.metrics.alive_chicks >= 0
    assert (figures.metrics.revenue_per_sold_chick is None) == (sold == 0)


@given(totals=st.dictionaries(st.sampled_from(list(ExpenseCategory)), money))
def test_breakdown_sums_to_total(totals):
    breakdown = build_cost_breakdown(totals=totals)

    assert sum(item.amount for item in breakdown.items) == breakdown.total_expenses
    assert all(Decimal("0") <= item.percentage <= Decimal("100") for item in breakdown.items)
    amounts = [item.amount for item in breakdown.items]
    assert amounts == sorted(amounts, reverse=True)


@settings(
    max_examples=30,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
    deadline=None,
)
@given(
    water=st.one_of(st.none(), st.text(max_size=5), st.integers(-1000, 1000)),
    electricity=st.one_of(st.none(), st.decimals(allow_nan=False, allow_infinity=False, places=3)),
)
def test_hook_never_raises(
    session, tariffs, deterministic_clock, active_period, test_actor_id, water, electricity
):
    hook = DailyReportUtilityHook(session, tariffs, deterministic_clock)

    outcome = hook.derive(
        DailyReportReading(
            report_id=uuid4(),
            period_id=active_period.id,
            section_id=None,
            report_date=TODAY,
            actor_id=test_actor_id,
            water_litres=water,
            electricity_kwh=electricity,
        )
    )

    assert len(outcome.expenses) + len(outcome.failures) <= 2
    session.rollback()
