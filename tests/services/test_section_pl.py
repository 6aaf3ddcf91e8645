"""
Section P&L: guarded computation, per-chick metrics, bulk period form.

Verifies:
- a section with no revenue and no expenses yields zeros and null metrics
- a blocked section raises even when it also has COMPLETE chick-outs
- repeated calls over unchanged data return identical results
- the bulk form reports partial failures and raises when all fail
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from poultry_kernel.domain.dtos import ExpenseCategory
from poultry_kernel.exceptions import (
    AllSectionsFailedError,
    PeriodNotFoundError,
    SectionNotFoundError,
    UnresolvedOperationsError,
)
from poultry_kernel.services import BatchService, ExpensePostingService
from poultry_services import SectionPLService


@pytest.fixture
def section_pl(session):
    return SectionPLService(session)


@pytest.fixture
def post_expense(session, deterministic_clock, active_period, test_actor_id):
    def _post(section_id, category=ExpenseCategory.FEED, amount="5000"):
        expense = ExpensePostingService(session, deterministic_clock).post(
            active_period.id, category, Decimal(amount), test_actor_id, section_id=section_id
        )
        session.commit()
        return expense

    return _post


@pytest.fixture
def sold_section(session, active_section, start_batch, create_chick_out, complete_chick_out, post_expense):
    """1000 chicks in, 50 dead, 900 sold for 20000, 5000 of feed."""
    batch = start_batch(active_section.id, chicks_in=1000)
    BatchService(session).record_deaths(batch.id, 50)
    session.commit()
    complete_chick_out(create_chick_out(active_section.id, count=900).id, weight="2000", price="10")
    post_expense(active_section.id)
    return active_section


class TestSectionPL:
    def test_empty_section(self, section_pl, active_section):
        pl = section_pl.get_section_pl(active_section.id)

        assert pl.total_revenue == Decimal("0")
        assert pl.total_expenses == Decimal("0")
        assert pl.profit == Decimal("0")
        assert pl.is_profitable is False
        assert pl.metrics.cost_per_alive_chick is None
        assert pl.metrics.revenue_per_sold_chick is None
        assert pl.metrics.profit_per_sold_chick is None

    def test_figures_and_metrics(self, section_pl, sold_section):
        pl = section_pl.get_section_pl(sold_section.id)

        assert pl.section_name == "Section A"
        assert pl.total_revenue == Decimal("20000")
        assert pl.total_expenses == Decimal("5000")
        assert pl.profit == Decimal("15000")
        assert pl.is_profitable is True
        assert pl.metrics.alive_chicks == 50
        assert pl.metrics.sold_chicks == 900
        assert pl.metrics.dead_chicks == 50
        assert pl.metrics.cost_per_alive_chick == Decimal("100.00")
        assert pl.metrics.revenue_per_sold_chick == Decimal("22.22")
        assert pl.metrics.profit_per_sold_chick == Decimal("16.67")

    def test_other_sections_expenses_are_excluded(
        self, section_pl, active_period, sold_section, create_section, post_expense
    ):
        other = create_section("Section B", active_period.id)
        post_expense(other.id, amount="999")
        post_expense(None, amount="111")

        assert section_pl.get_section_pl(sold_section.id).total_expenses == Decimal("5000")

    def test_idempotent(self, section_pl, sold_section):
        assert section_pl.get_section_pl(sold_section.id) == section_pl.get_section_pl(sold_section.id)

    def test_blocked_even_with_complete_chick_outs(
        self, section_pl, sold_section, create_chick_out, captured_logs
    ):
        create_chick_out(sold_section.id, count=10)

        with pytest.raises(UnresolvedOperationsError, match="unresolved financial operations"):
            section_pl.get_section_pl(sold_section.id)

        assert section_pl.has_unfinished_operations(sold_section.id) is True
        assert any(r["message"] == "section_pl_blocked" for r in captured_logs())

    def test_blocked_by_incident(self, section_pl, active_section, create_asset, create_incident):
        create_incident(create_asset(section_id=active_section.id).id)

        with pytest.raises(UnresolvedOperationsError):
            section_pl.get_section_pl(active_section.id)

    def test_unknown_section(self, section_pl):
        with pytest.raises(SectionNotFoundError):
            section_pl.get_section_pl(uuid4())


class TestPeriodSectionsPL:
    def test_all_computed(self, section_pl, active_period, sold_section, create_section):
        create_section("Section B", active_period.id)

        result = section_pl.get_all_sections_pl_for_period(active_period.id)

        assert result.is_complete is True
        assert [pl.section_name for pl in result.sections] == ["Section A", "Section B"]

    def test_partial_failure(
        self, section_pl, active_period, sold_section, create_section, create_asset,
        create_incident, captured_logs
    ):
        broken = create_section("Section B", active_period.id)
        create_incident(create_asset(section_id=broken.id).id)

        result = section_pl.get_all_sections_pl_for_period(active_period.id)

        assert [pl.section_id for pl in result.sections] == [sold_section.id]
        assert len(result.failures) == 1
        assert result.failures[0].section_id == broken.id
        assert result.failures[0].error_code == "UNRESOLVED_OPERATIONS"
        assert result.failures[0].describe().startswith("Section B: Cannot calculate P&L")
        assert any(r["message"] == "period_sections_pl_partial" for r in captured_logs())

    def test_all_failed(
        self, section_pl, active_period, active_section, create_asset, create_incident
    ):
        create_incident(create_asset(section_id=active_section.id).id)

        with pytest.raises(AllSectionsFailedError, match="All sections failed: Section A: "):
            section_pl.get_all_sections_pl_for_period(active_period.id)

    def test_period_without_sections(self, section_pl, create_period):
        period = create_period("Empty")

        result = section_pl.get_all_sections_pl_for_period(period.id)

        assert result.sections == ()
        assert result.is_complete is True

    def test_unknown_period(self, section_pl):
        with pytest.raises(PeriodNotFoundError):
            section_pl.get_all_sections_pl_for_period(uuid4())
