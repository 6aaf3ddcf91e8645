"""
Period P&L: revenue over the period's batches, expenses over its ledger.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from poultry_kernel.domain.dtos import ExpenseCategory
from poultry_kernel.exceptions import PeriodNotFoundError, UnresolvedOperationsError
from poultry_kernel.services import ExpensePostingService
from poultry_services import PeriodPLService


@pytest.fixture
def period_pl(session):
    return PeriodPLService(session)


@pytest.fixture
def post_expense(session, deterministic_clock, active_period, test_actor_id):
    def _post(amount, section_id=None, category=ExpenseCategory.FEED):
        ExpensePostingService(session, deterministic_clock).post(
            active_period.id, category, Decimal(amount), test_actor_id, section_id=section_id
        )
        session.commit()

    return _post


def test_empty_period(period_pl, active_period):
    pl = period_pl.get_period_pl(active_period.id)

    assert pl.total_revenue == Decimal("0")
    assert pl.total_expenses == Decimal("0")
    assert pl.profit == Decimal("0")
    assert pl.is_profitable is False
    assert pl.is_revenue_complete is True
    assert pl.warnings == ()


def test_includes_unsectioned_expenses(
    period_pl, active_period, active_section, start_batch, create_chick_out,
    complete_chick_out, post_expense
):
    start_batch(active_section.id)
    complete_chick_out(create_chick_out(active_section.id).id, weight="3000", price="10")
    post_expense("10000", active_section.id)
    post_expense("2500")

    pl = period_pl.get_period_pl(active_period.id)

    assert pl.total_revenue == Decimal("30000")
    assert pl.total_expenses == Decimal("12500")
    assert pl.profit == Decimal("17500")
    assert pl.is_profitable is True


def test_loss(period_pl, active_period, post_expense):
    post_expense("400")

    pl = period_pl.get_period_pl(active_period.id)

    assert pl.profit == Decimal("-400")
    assert pl.is_profitable is False


def test_incomplete_chick_out_is_a_warning(
    period_pl, active_period, active_section, start_batch, create_chick_out, complete_chick_out
):
    start_batch(active_section.id)
    complete_chick_out(create_chick_out(active_section.id).id)
    create_chick_out(active_section.id)

    pl = period_pl.get_period_pl(active_period.id)

    assert pl.is_revenue_complete is False
    assert pl.warnings == ("1 incomplete chick-out(s); revenue is not complete",)
    assert pl.total_revenue == Decimal("10000")
    assert period_pl.has_unfinished_operations(active_period.id) is True


def test_unresolved_incident_blocks(
    period_pl, active_period, active_section, create_asset, create_incident, captured_logs
):
    create_incident(create_asset(section_id=active_section.id).id)

    with pytest.raises(UnresolvedOperationsError, match="awaiting a repair expense"):
        period_pl.get_period_pl(active_period.id)

    assert any(r["message"] == "period_pl_blocked" for r in captured_logs())


def test_revenue_aggregation(
    period_pl, active_period, active_section, create_section, start_batch,
    create_chick_out, complete_chick_out
):
    other = create_section("Section B", active_period.id)
    start_batch(active_section.id)
    start_batch(other.id)
    complete_chick_out(create_chick_out(active_section.id).id, weight="100", price="10")
    complete_chick_out(create_chick_out(active_section.id).id, weight="100", price="10")
    complete_chick_out(create_chick_out(other.id).id, weight="50", price="10")
    create_chick_out(other.id)

    aggregation = period_pl.get_revenue_aggregation(active_period.id)

    assert aggregation.total_revenue == Decimal("2500")
    assert aggregation.completed_chick_out_count == 3
    assert aggregation.batch_count_with_revenue == 2


class TestPeriodKPI:
    def test_empty_period(self, period_pl, active_period):
        kpi = period_pl.get_period_kpi(active_period.id)

        assert kpi.totals.total_chicks_in == 0
        assert kpi.totals.final_chicks_out == 0
        assert kpi.kpis.profit_margin_percent == Decimal("0.00")
        assert kpi.kpis.cost_per_chick is None
        assert kpi.kpis.revenue_per_chick is None
        assert kpi.kpis.profit_per_chick is None

    def test_figures(
        self, period_pl, active_period, active_section, start_batch, create_chick_out,
        complete_chick_out, post_expense, captured_logs
    ):
        start_batch(active_section.id, chicks_in=1000)
        complete_chick_out(create_chick_out(active_section.id, count=100).id, weight="3000", price="10")
        create_chick_out(active_section.id, count=50)
        post_expense("12500")

        kpi = period_pl.get_period_kpi(active_period.id)

        assert kpi.totals.total_chicks_in == 1000
        assert kpi.totals.final_chicks_out == 100
        assert kpi.totals.total_revenue == Decimal("30000")
        assert kpi.totals.total_expenses == Decimal("12500")
        assert kpi.totals.profit == Decimal("17500")
        assert kpi.kpis.profit_margin_percent == Decimal("58.33")
        assert kpi.kpis.cost_per_chick == Decimal("12.50")
        assert kpi.kpis.revenue_per_chick == Decimal("300.00")
        assert kpi.kpis.profit_per_chick == Decimal("175.00")
        assert kpi.warnings == ("1 incomplete chick-out(s); revenue is not complete",)
        assert any(r["message"] == "period_kpi_computed" for r in captured_logs())

    def test_expenses_without_chicks(self, period_pl, active_period, post_expense):
        post_expense("400")

        kpi = period_pl.get_period_kpi(active_period.id)

        assert kpi.totals.profit == Decimal("-400")
        assert kpi.kpis.profit_margin_percent == Decimal("0.00")
        assert kpi.kpis.cost_per_chick is None

    def test_blocked_by_unresolved_incident(
        self, period_pl, active_period, active_section, create_asset, create_incident
    ):
        create_incident(create_asset(section_id=active_section.id).id)

        with pytest.raises(UnresolvedOperationsError):
            period_pl.get_period_kpi(active_period.id)


def test_clean_period_has_no_unfinished_operations(period_pl, active_period, active_section):
    assert period_pl.has_unfinished_operations(active_period.id) is False


@pytest.mark.parametrize(
    "method",
    ["get_period_pl", "get_period_kpi", "has_unfinished_operations", "get_revenue_aggregation"],
)
def test_unknown_period(period_pl, method):
    with pytest.raises(PeriodNotFoundError):
        getattr(period_pl, method)(uuid4())
