"""
Batch lifecycle inside a section: start, deaths, close gate.
"""

from uuid import uuid4

import pytest

from poultry_kernel.domain.dtos import BatchStatus, SectionStatus
from poultry_kernel.exceptions import (
    BatchAlreadyActiveError,
    BatchAlreadyClosedError,
    BatchCloseBlockedError,
    BatchNotFoundError,
    InvalidAmountError,
    NoActivePeriodError,
)
from poultry_kernel.services import BatchService, SectionService

from tests.conftest import TODAY


@pytest.fixture
def batches(session, deterministic_clock):
    return BatchService(session, deterministic_clock)


class TestStart:
    def test_binds_section_period(self, session, active_period, active_section, start_batch):
        batch = start_batch(active_section.id, chicks_in=5000)

        section = SectionService(session).get_section(active_section.id)
        assert batch.period_id == active_period.id
        assert batch.started_at == TODAY
        assert section.status == SectionStatus.ACTIVE
        assert section.active_batch_id == batch.id

    def test_one_open_batch_per_section(self, batches, active_section, start_batch, test_actor_id):
        start_batch(active_section.id)

        with pytest.raises(BatchAlreadyActiveError):
            batches.start_batch(active_section.id, 100, test_actor_id)

    def test_section_needs_active_period(self, batches, create_section, test_actor_id):
        section = create_section("Idle")

        with pytest.raises(NoActivePeriodError):
            batches.start_batch(section.id, 100, test_actor_id)

    def test_negative_chicks(self, batches, active_section, test_actor_id):
        with pytest.raises(InvalidAmountError):
            batches.start_batch(active_section.id, -1, test_actor_id)


class TestDeaths:
    def test_accumulates(self, batches, active_section, start_batch):
        batch = start_batch(active_section.id)

        batches.record_deaths(batch.id, 10)
        updated = batches.record_deaths(batch.id, 5)

        assert updated.total_deaths == 15

    def test_unknown_batch(self, batches):
        with pytest.raises(BatchNotFoundError):
            batches.record_deaths(uuid4(), 1)


class TestClose:
    def test_close_after_completed_chick_out(
        self, session, batches, active_section, start_batch, create_chick_out, complete_chick_out
    ):
        batch = start_batch(active_section.id)
        complete_chick_out(create_chick_out(active_section.id, count=900).id)

        closed = batches.close_batch(batch.id)

        section = SectionService(session).get_section(active_section.id)
        assert closed.status == BatchStatus.CLOSED
        assert closed.ended_at == TODAY
        assert section.status == SectionStatus.CLEANING
        assert section.active_batch_id is None

    def test_incomplete_chick_out_blocks(
        self, batches, active_section, start_batch, create_chick_out, captured_logs
    ):
        batch = start_batch(active_section.id)
        create_chick_out(active_section.id)

        with pytest.raises(BatchCloseBlockedError, match="incomplete chick-outs exist"):
            batches.close_batch(batch.id)

        assert any(r["message"] == "batch_close_blocked" for r in captured_logs())

    def test_no_completed_chick_out_blocks(self, batches, active_section, start_batch):
        batch = start_batch(active_section.id)

        with pytest.raises(BatchCloseBlockedError, match="no chick-outs have been completed"):
            batches.close_batch(batch.id)

    def test_empty_batch_closes(self, batches, active_section, start_batch):
        batch = start_batch(active_section.id, chicks_in=0)

        assert batches.close_batch(batch.id).status == BatchStatus.CLOSED

    def test_unresolved_incident_blocks(
        self, batches, active_section, start_batch, create_chick_out, complete_chick_out,
        create_asset, create_incident
    ):
        batch = start_batch(active_section.id)
        complete_chick_out(create_chick_out(active_section.id).id)
        create_incident(create_asset(section_id=active_section.id).id)

        with pytest.raises(BatchCloseBlockedError, match="repair expense"):
            batches.close_batch(batch.id)

    def test_close_twice(self, session, batches, active_section, start_batch):
        batch = start_batch(active_section.id, chicks_in=0)
        batches.close_batch(batch.id)
        session.commit()

        with pytest.raises(BatchAlreadyClosedError):
            batches.close_batch(batch.id)
