"""
BatchService -- flock (batch) lifecycle inside a section.

Responsibility:
    Starts a batch in a section that has an ACTIVE period, records deaths,
    and closes the batch once its revenue and repair obligations are
    settled.  Closing a batch is the "section close": the section moves to
    CLEANING and loses its active batch pointer.

Architecture position:
    Kernel > Services -- flush-only.

Invariants enforced:
    - At most one open (ACTIVE / PARTIAL_OUT) batch per section.
    - A batch is always bound to the ACTIVE period its section was assigned
      to when it started.
    - A batch cannot be closed while an INCOMPLETE chick-out exists on it,
      while none of its chick-outs is COMPLETE (unless it never received
      chicks), or while the section has an incident awaiting a repair
      expense.

Failure modes:
    - SectionNotFoundError, BatchNotFoundError, PeriodNotFoundError.
    - BatchAlreadyActiveError, NoActivePeriodError, ClosedPeriodError.
    - BatchAlreadyClosedError, BatchCloseBlockedError.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import func, select

from poultry_kernel.domain.dtos import BatchInfo, BatchStatus, ChickOutStatus, SectionStatus
from poultry_kernel.domain.guards import ensure_positive
from poultry_kernel.exceptions import (
    BatchAlreadyActiveError,
    BatchAlreadyClosedError,
    BatchCloseBlockedError,
    BatchNotFoundError,
    ClosedPeriodError,
    InvalidAmountError,
    NoActivePeriodError,
    PeriodNotFoundError,
    SectionNotFoundError,
)
from poultry_kernel.logging_config import get_logger
from poultry_kernel.models.chick_out import ChickOutModel
from poultry_kernel.models.period import Period
from poultry_kernel.models.section import Batch, Section
from poultry_kernel.selectors.safety_guard import SafetyGuard
from poultry_kernel.services.base import BaseService
from poultry_kernel.services.section_service import ensure_period_link

logger = get_logger("services.batch")

_OPEN_STATUSES = (BatchStatus.ACTIVE.value, BatchStatus.PARTIAL_OUT.value)


class BatchService(BaseService):
    """
    Batch lifecycle.

    Non-goals:
        - Does NOT create chick-outs; ChickOutService moves the chick-out
          counter and may close the batch on a final chick-out.
    """

    def start_batch(
        self,
        section_id: UUID,
        total_chicks_in: int,
        actor_id: UUID,
        started_at: date | None = None,
    ) -> BatchInfo:
        section = self.session.execute(
            select(Section).where(Section.id == section_id).with_for_update()
        ).scalar_one_or_none()
        if section is None:
            raise SectionNotFoundError(section_id)

        open_batch = self.session.execute(
            select(Batch.id).where(
                Batch.section_id == section_id,
                Batch.status.in_(_OPEN_STATUSES),
            )
        ).scalar()
        if open_batch is not None:
            raise BatchAlreadyActiveError(section_id, open_batch)

        if section.active_period_id is None:
            raise NoActivePeriodError(section_id, "Section is not assigned to an active period")
        period = self.session.get(Period, section.active_period_id)
        if period is None:
            raise PeriodNotFoundError(section.active_period_id)
        if not period.is_active:
            raise ClosedPeriodError(period.id, "Cannot create batch in closed period")

        if total_chicks_in is None or int(total_chicks_in) < 0:
            raise InvalidAmountError(
                "total_chicks_in", total_chicks_in, "Chick count cannot be negative"
            )

        batch = Batch(
            section_id=section.id,
            period_id=period.id,
            status=BatchStatus.ACTIVE.value,
            started_at=started_at or self._clock.today(),
            total_chicks_in=int(total_chicks_in),
            total_chicks_out=0,
            total_deaths=0,
            created_by_id=actor_id,
        )
        self.session.add(batch)
        self.session.flush()

        section.status = SectionStatus.ACTIVE.value
        section.active_batch_id = batch.id
        section.closed_at = None
        ensure_period_link(period, section.id)
        self.session.flush()

        logger.info(
            "batch_started",
            extra={
                "batch_id": str(batch.id),
                "section_id": str(section.id),
                "period_id": str(period.id),
                "total_chicks_in": batch.total_chicks_in,
            },
        )
        return batch.to_dto()

    def record_deaths(self, batch_id: UUID, count: int) -> BatchInfo:
        """Add ``count`` dead chicks to the batch counter."""
        batch = self._get_batch_for_update(batch_id)
        if not batch.is_open:
            raise BatchAlreadyClosedError(batch_id)
        deaths = int(ensure_positive(count, "count", "Death count must be greater than 0"))

        batch.total_deaths += deaths
        self.session.flush()
        logger.info(
            "batch_deaths_recorded",
            extra={"batch_id": str(batch_id), "count": deaths, "total": batch.total_deaths},
        )
        return batch.to_dto()

    def close_batch(self, batch_id: UUID, ended_at: date | None = None) -> BatchInfo:
        """
        Close a batch and move its section to CLEANING.

        Raises:
            BatchNotFoundError, BatchAlreadyClosedError, BatchCloseBlockedError.
        """
        batch = self._get_batch_for_update(batch_id)
        if not batch.is_open:
            raise BatchAlreadyClosedError(batch_id)

        incomplete = self._count_chick_outs(batch_id, ChickOutStatus.INCOMPLETE)
        if incomplete > 0:
            self._refuse(
                batch_id,
                "Cannot close batch: incomplete chick-outs exist for this section. "
                "Please complete all chick-outs first.",
            )

        completed = self._count_chick_outs(batch_id, ChickOutStatus.COMPLETE)
        if completed == 0 and batch.total_chicks_in > 0:
            self._refuse(
                batch_id,
                "Cannot close batch: no chick-outs have been completed. "
                "At least one chick-out must be done before closing.",
            )

        if SafetyGuard(self.session).count_unresolved_expense_incidents([batch.section_id]):
            self._refuse(
                batch_id,
                "Cannot close batch: technical incidents are awaiting a repair expense",
            )

        batch.status = BatchStatus.CLOSED.value
        batch.ended_at = ended_at or self._clock.today()

        section = self.session.get(Section, batch.section_id)
        if section is not None:
            section.status = SectionStatus.CLEANING.value
            section.active_batch_id = None
            section.closed_at = batch.ended_at
        self.session.flush()

        logger.info(
            "batch_closed",
            extra={"batch_id": str(batch_id), "section_id": str(batch.section_id)},
        )
        return batch.to_dto()

    def get_batch(self, batch_id: UUID) -> BatchInfo | None:
        batch = self.session.get(Batch, batch_id)
        return batch.to_dto() if batch is not None else None

    def get_active_batch(self, section_id: UUID) -> BatchInfo | None:
        batch = self.session.execute(
            select(Batch).where(
                Batch.section_id == section_id,
                Batch.status.in_(_OPEN_STATUSES),
            )
        ).scalar()
        return batch.to_dto() if batch is not None else None

    def list_by_section(self, section_id: UUID) -> list[BatchInfo]:
        rows = self.session.execute(
            select(Batch)
            .where(Batch.section_id == section_id)
            .order_by(Batch.started_at.desc())
        ).scalars()
        return [row.to_dto() for row in rows]

    def list_by_period(self, period_id: UUID) -> list[BatchInfo]:
        rows = self.session.execute(
            select(Batch)
            .where(Batch.period_id == period_id)
            .order_by(Batch.started_at.desc())
        ).scalars()
        return [row.to_dto() for row in rows]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_batch_for_update(self, batch_id: UUID) -> Batch:
        batch = self.session.execute(
            select(Batch).where(Batch.id == batch_id).with_for_update()
        ).scalar_one_or_none()
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch

    def _count_chick_outs(self, batch_id: UUID, status: ChickOutStatus) -> int:
        return int(
            self.session.execute(
                select(func.count(ChickOutModel.id)).where(
                    ChickOutModel.batch_id == batch_id,
                    ChickOutModel.status == status.value,
                )
            ).scalar_one()
        )

    def _refuse(self, batch_id: UUID, reason: str) -> None:
        logger.warning("batch_close_blocked", extra={"batch_id": str(batch_id), "reason": reason})
        raise BatchCloseBlockedError(batch_id, reason)
