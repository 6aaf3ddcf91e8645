"""
Period lifecycle: creation, edits, the close gate and CLOSED immutability.

Verifies:
- close is refused while a batch of the period is open
- close is refused while any section of the period is blocked by the
  Safety Guard
- a CLOSED period rejects edits, section assignment and new postings
"""

from uuid import uuid4

import pytest

from poultry_kernel.domain.dtos import ExpenseCategory, PeriodStatus
from poultry_kernel.exceptions import (
    ClosedPeriodError,
    PeriodAlreadyClosedError,
    PeriodCloseBlockedError,
    PeriodImmutableError,
    PeriodNotFoundError,
    SectionNotFoundError,
)
from poultry_kernel.services import (
    BatchService,
    ExpensePostingService,
    PeriodService,
    SectionService,
)

from tests.conftest import TODAY


@pytest.fixture
def periods(session, deterministic_clock):
    return PeriodService(session, deterministic_clock)


def _finish_section(section_id, start_batch, create_chick_out, complete_chick_out):
    start_batch(section_id)
    complete_chick_out(create_chick_out(section_id, count=1000, is_final=True).id)


class TestCreateAndEdit:
    def test_several_active_periods_coexist(self, periods, create_period):
        create_period("Winter")
        create_period("Spring")

        assert len(periods.list_active_periods()) == 2

    def test_create_with_unknown_section(self, periods, test_actor_id):
        with pytest.raises(SectionNotFoundError):
            periods.create_period("Winter", TODAY, test_actor_id, section_ids=[uuid4()])

    def test_update_replaces_section_set(
        self, session, periods, active_period, create_section, test_actor_id
    ):
        first = create_section("A", active_period.id)
        second = create_section("B")

        updated = periods.update_period(
            active_period.id, test_actor_id, name="Winter (late)", section_ids=[second.id]
        )

        assert updated.name == "Winter (late)"
        assert set(updated.section_ids) == {second.id}
        assert first.id not in updated.section_ids

    def test_section_assignment_links_period(self, periods, active_period, active_section):
        assert active_section.id in periods.get_period(active_period.id).section_ids


class TestClosePeriod:
    def test_close_empty_period(self, session, periods, active_period, test_actor_id, captured_logs):
        closed = periods.close_period(active_period.id, test_actor_id)

        assert closed.status == PeriodStatus.CLOSED
        assert closed.end_date == TODAY
        assert any(r["message"] == "period_closed" for r in captured_logs())

    def test_close_twice(self, session, periods, active_period, test_actor_id):
        periods.close_period(active_period.id, test_actor_id)
        session.commit()

        with pytest.raises(PeriodAlreadyClosedError):
            periods.close_period(active_period.id, test_actor_id)

    def test_unknown_period(self, periods, test_actor_id):
        with pytest.raises(PeriodNotFoundError):
            periods.close_period(uuid4(), test_actor_id)

    def test_open_batch_blocks_close(
        self, periods, active_period, active_section, start_batch, test_actor_id, captured_logs
    ):
        start_batch(active_section.id)

        with pytest.raises(PeriodCloseBlockedError, match="active batches"):
            periods.close_period(active_period.id, test_actor_id)

        assert any(r["message"] == "period_close_blocked" for r in captured_logs())

    def test_incomplete_final_chick_out_blocks_close(
        self, periods, active_period, active_section, start_batch, create_chick_out, test_actor_id
    ):
        start_batch(active_section.id)
        create_chick_out(active_section.id, count=1000, is_final=True)

        with pytest.raises(PeriodCloseBlockedError, match="incomplete chick-out"):
            periods.close_period(active_period.id, test_actor_id)

    def test_unresolved_incident_blocks_close(
        self, periods, active_period, active_section, create_asset, create_incident, test_actor_id
    ):
        create_incident(create_asset(section_id=active_section.id).id)

        with pytest.raises(PeriodCloseBlockedError, match="repair expense"):
            periods.close_period(active_period.id, test_actor_id)

    def test_close_after_everything_settled(
        self, session, periods, active_period, active_section, start_batch,
        create_chick_out, complete_chick_out, test_actor_id
    ):
        _finish_section(active_section.id, start_batch, create_chick_out, complete_chick_out)

        closed = periods.close_period(active_period.id, test_actor_id)

        assert closed.status == PeriodStatus.CLOSED


class TestClosedPeriodIsImmutable:
    @pytest.fixture
    def closed_period(self, session, periods, active_period, test_actor_id):
        periods.close_period(active_period.id, test_actor_id)
        session.commit()
        return active_period

    def test_update_refused(self, periods, closed_period, test_actor_id):
        with pytest.raises(PeriodImmutableError, match="Cannot update a CLOSED period"):
            periods.update_period(closed_period.id, test_actor_id, name="Renamed")

    def test_assign_sections_refused(self, periods, closed_period, create_section):
        section = create_section("Late")

        with pytest.raises(PeriodImmutableError):
            periods.assign_sections(closed_period.id, [section.id])

    def test_section_assignment_refused(self, session, closed_period, create_section):
        section = create_section("Late")

        with pytest.raises(ClosedPeriodError, match="CLOSED period"):
            SectionService(session).assign_period(section.id, closed_period.id)

    def test_posting_refused(self, session, deterministic_clock, closed_period, test_actor_id):
        with pytest.raises(ClosedPeriodError):
            ExpensePostingService(session, deterministic_clock).post(
                closed_period.id, ExpenseCategory.FEED, 10, test_actor_id
            )

    def test_batch_start_refused(
        self, session, deterministic_clock, periods, active_period, active_section, test_actor_id
    ):
        # Closing does not move the section's active period pointer.
        periods.close_period(active_period.id, test_actor_id)
        session.commit()

        with pytest.raises(ClosedPeriodError, match="closed period"):
            BatchService(session, deterministic_clock).start_batch(
                active_section.id, 100, test_actor_id
            )
