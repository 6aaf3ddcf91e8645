"""
SectionService -- growing units and their period assignment.

Responsibility:
    Creates sections and maintains the section -> active period pointer
    that the asset purchase and repair flows resolve their posting period
    from.  Assigning a section to a period also records the section in the
    period's section set.

Architecture position:
    Kernel > Services -- flush-only.

Invariants enforced:
    - A section can only be assigned to an ACTIVE period.

Failure modes:
    - SectionNotFoundError, PeriodNotFoundError.
    - ClosedPeriodError("Cannot assign section to a CLOSED period").
"""

from uuid import UUID

from sqlalchemy import select

from poultry_kernel.domain.dtos import SectionInfo, SectionStatus
from poultry_kernel.exceptions import (
    ClosedPeriodError,
    PeriodNotFoundError,
    SectionNotFoundError,
)
from poultry_kernel.logging_config import get_logger
from poultry_kernel.models.period import Period, PeriodSection
from poultry_kernel.models.section import Section
from poultry_kernel.services.base import BaseService

logger = get_logger("services.section")


def ensure_period_link(period: Period, section_id: UUID) -> bool:
    """Add section to the period's section set; False if it was already there."""
    if section_id in period.section_ids:
        return False
    period.section_links.append(PeriodSection(section_id=section_id))
    return True


class SectionService(BaseService):
    """Section CRUD and period assignment."""

    def create_section(self, name: str, actor_id: UUID) -> SectionInfo:
        section = Section(
            name=name,
            status=SectionStatus.EMPTY.value,
            created_by_id=actor_id,
        )
        self.session.add(section)
        self.session.flush()
        logger.info("section_created", extra={"section_id": str(section.id)})
        return section.to_dto()

    def get_section(self, section_id: UUID) -> SectionInfo | None:
        section = self.session.get(Section, section_id)
        return section.to_dto() if section is not None else None

    def list_sections(self, status: SectionStatus | None = None) -> list[SectionInfo]:
        stmt = select(Section).order_by(Section.name, Section.id)
        if status is not None:
            stmt = stmt.where(Section.status == SectionStatus(status).value)
        return [row.to_dto() for row in self.session.execute(stmt).scalars()]

    def assign_period(self, section_id: UUID, period_id: UUID) -> SectionInfo:
        section = self.session.get(Section, section_id)
        if section is None:
            raise SectionNotFoundError(section_id)

        period = self.session.get(Period, period_id)
        if period is None:
            raise PeriodNotFoundError(period_id)
        if not period.is_active:
            raise ClosedPeriodError(period_id, "Cannot assign section to a CLOSED period")

        section.active_period_id = period.id
        ensure_period_link(period, section.id)
        self.session.flush()

        logger.info(
            "section_period_assigned",
            extra={"section_id": str(section.id), "period_id": str(period.id)},
        )
        return section.to_dto()

    def unassign_period(self, section_id: UUID) -> SectionInfo:
        """Clear the active period pointer.  The period keeps its history."""
        section = self.session.get(Section, section_id)
        if section is None:
            raise SectionNotFoundError(section_id)

        section.active_period_id = None
        self.session.flush()
        logger.info("section_period_unassigned", extra={"section_id": str(section.id)})
        return section.to_dto()
