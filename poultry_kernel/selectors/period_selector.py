"""
Module: poultry_kernel.selectors.period_selector
Responsibility: Read-only period lookups and the "which sections belong to
    this period" resolution shared by period close, period P&L and the
    insight engine.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - The sections of a period are the union of its explicit section set
      and the sections of every batch started in the period, so a section
      that grew a batch in the period cannot drop out of period analytics
      by being unassigned later.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from poultry_kernel.domain.dtos import PeriodInfo, PeriodStatus, SectionInfo
from poultry_kernel.models.period import Period, PeriodSection
from poultry_kernel.models.section import Batch, Section
from poultry_kernel.selectors.base import BaseSelector


class PeriodSelector(BaseSelector):
    """Period read path."""

    def get_period(self, period_id: UUID) -> PeriodInfo | None:
        period = self.session.get(Period, period_id)
        return period.to_dto() if period is not None else None

    def list_periods(self, status: PeriodStatus | None = None) -> list[PeriodInfo]:
        """Periods, most recent start date first."""
        stmt = select(Period).order_by(Period.start_date.desc(), Period.name)
        if status is not None:
            stmt = stmt.where(Period.status == PeriodStatus(status).value)
        return [row.to_dto() for row in self.session.execute(stmt).scalars()]

    def section_ids_for_period(self, period_id: UUID) -> list[UUID]:
        assigned = select(PeriodSection.section_id).where(
            PeriodSection.period_id == period_id
        )
        from_batches = select(Batch.section_id).where(Batch.period_id == period_id)
        ids = set(self.session.execute(assigned).scalars())
        ids.update(self.session.execute(from_batches).scalars())
        return sorted(ids, key=str)

    def sections_for_period(self, period_id: UUID) -> list[SectionInfo]:
        """Sections of the period ordered by (name, id)."""
        ids = self.section_ids_for_period(period_id)
        if not ids:
            return []
        rows = self.session.execute(
            select(Section).where(Section.id.in_(ids)).order_by(Section.name, Section.id)
        ).scalars()
        return [row.to_dto() for row in rows]
