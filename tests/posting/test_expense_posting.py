"""
Expense posting against the ledger store.

Verifies:
- a posted entry carries its period, category, amount and tags
- CLOSED periods, unknown periods, non-positive amounts and dates before
  the period start are refused and write nothing
- the expense queries (by period, category totals, period total)
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from sqlalchemy import func, select

from poultry_kernel.domain.dtos import ExpenseCategory, ExpenseSource
from poultry_kernel.exceptions import (
    ClosedPeriodError,
    ExpenseBeforePeriodStartError,
    InvalidAmountError,
    PeriodNotFoundError,
)
from poultry_kernel.models.period_expense import PeriodExpense
from poultry_kernel.selectors import ExpenseSelector
from poultry_kernel.services import ExpensePostingService, PeriodService

from tests.conftest import PERIOD_START, TODAY


def _count(session) -> int:
    return session.execute(select(func.count(PeriodExpense.id))).scalar_one()


@pytest.fixture
def posting(session, deterministic_clock):
    return ExpensePostingService(session, deterministic_clock)


class TestPost:
    def test_posts_entry(self, session, posting, active_period, active_section, test_actor_id):
        expense = posting.post(
            active_period.id,
            ExpenseCategory.FEED,
            Decimal("125000"),
            test_actor_id,
            description="Starter feed",
            section_id=active_section.id,
        )
        session.commit()

        assert expense.period_id == active_period.id
        assert expense.category == ExpenseCategory.FEED
        assert expense.amount == Decimal("125000")
        assert expense.expense_date == TODAY
        assert expense.section_id == active_section.id
        assert expense.source == ExpenseSource.MANUAL
        assert _count(session) == 1

    def test_logs_expense_posted(self, posting, active_period, test_actor_id, captured_logs):
        posting.post(active_period.id, ExpenseCategory.OTHER, 10, test_actor_id)

        assert any(r["message"] == "expense_posted" for r in captured_logs())

    def test_unknown_period(self, session, posting, test_actor_id):
        with pytest.raises(PeriodNotFoundError):
            posting.post(uuid4(), ExpenseCategory.FEED, 10, test_actor_id)

        assert _count(session) == 0

    def test_closed_period(self, session, posting, deterministic_clock, active_period, test_actor_id):
        PeriodService(session, deterministic_clock).close_period(active_period.id, test_actor_id)
        session.commit()

        with pytest.raises(ClosedPeriodError, match="Cannot post to closed period"):
            posting.post(active_period.id, ExpenseCategory.FEED, 10, test_actor_id)

        assert _count(session) == 0

    @pytest.mark.parametrize("amount", [0, -1, Decimal("-0.01")])
    def test_non_positive_amount(self, session, posting, active_period, test_actor_id, amount):
        with pytest.raises(InvalidAmountError):
            posting.post(active_period.id, ExpenseCategory.FEED, amount, test_actor_id)

    @pytest.mark.parametrize("amount", [Decimal("NaN"), Decimal("Infinity"), Decimal("-Infinity")])
    def test_non_finite_amount(self, session, posting, active_period, test_actor_id, amount):
        with pytest.raises(InvalidAmountError):
            posting.post(active_period.id, ExpenseCategory.FEED, amount, test_actor_id)

        assert _count(session) == 0

    def test_amount_checked_before_period(self, session, posting, test_actor_id):
        with pytest.raises(InvalidAmountError):
            posting.post(uuid4(), ExpenseCategory.FEED, 0, test_actor_id)

        assert _count(session) == 0

    def test_date_before_start(self, session, posting, active_period, test_actor_id):
        with pytest.raises(ExpenseBeforePeriodStartError):
            posting.post(
                active_period.id,
                ExpenseCategory.FEED,
                10,
                test_actor_id,
                PERIOD_START - timedelta(days=1),
            )

        assert _count(session) == 0

    def test_start_date_itself_is_accepted(self, posting, active_period, test_actor_id):
        expense = posting.post(
            active_period.id, ExpenseCategory.FEED, 10, test_actor_id, PERIOD_START
        )

        assert expense.expense_date == PERIOD_START

    @settings(
        max_examples=25,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
        deadline=None,
    )
    @given(
        days_before=st.integers(min_value=1, max_value=2000),
        amount=st.decimals(min_value=Decimal("0.01"), max_value=Decimal("1000000000"), places=2),
        category=st.sampled_from(list(ExpenseCategory)),
    )
    def test_before_start_fails_for_any_amount_and_category(
        self, session, posting, active_period, test_actor_id, days_before, amount, category
    ):
        with pytest.raises(ExpenseBeforePeriodStartError):
            posting.post(
                active_period.id,
                category,
                amount,
                test_actor_id,
                PERIOD_START - timedelta(days=days_before),
            )

        assert _count(session) == 0


class TestExpenseQueries:
    def test_totals_by_category_zero_filled(self, session, posting, active_period, test_actor_id):
        posting.post(active_period.id, ExpenseCategory.FEED, 300, test_actor_id)
        posting.post(active_period.id, ExpenseCategory.FEED, 200, test_actor_id)
        posting.post(active_period.id, ExpenseCategory.WATER, 50, test_actor_id)
        session.commit()

        selector = ExpenseSelector(session)
        totals = selector.totals_by_category(period_id=active_period.id)

        assert set(totals) == set(ExpenseCategory)
        assert totals[ExpenseCategory.FEED] == Decimal("500")
        assert totals[ExpenseCategory.WATER] == Decimal("50")
        assert totals[ExpenseCategory.MEDICINE] == Decimal("0")
        assert selector.total_for_period(active_period.id) == Decimal("550")
        assert len(selector.list_by_period(active_period.id)) == 3

    def test_empty_period_totals(self, session, active_period):
        selector = ExpenseSelector(session)

        assert selector.total_for_period(active_period.id) == Decimal("0")
        assert selector.list_by_period(active_period.id) == []

    def test_category_totals_need_a_scope(self, session):
        with pytest.raises(ValueError):
            ExpenseSelector(session).totals_by_category()
