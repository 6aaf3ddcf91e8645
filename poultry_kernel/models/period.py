"""
Module: poultry_kernel.models.period
Responsibility: ORM persistence for growing periods and their section
    membership -- controls which accounting window accepts ledger entries.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - Expenses may only be posted while status = ACTIVE and on or after
      start_date (checked by guards.ensure_period_accepts_posting).
    - ACTIVE -> CLOSED exactly once (PeriodService.close_period).

Audit relevance:
    end_date is stamped from the injected clock on close; closed periods are
    never reopened.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from poultry_kernel.db.base import Base, TrackedBase, UUIDString
from poultry_kernel.domain.dtos import PeriodInfo, PeriodStatus


class PeriodSection(Base):
    """Membership of a section in a period (the period's "sections" set)."""

    __tablename__ = "period_sections"

    __table_args__ = (
        UniqueConstraint("period_id", "section_id", name="uq_period_section"),
        Index("idx_period_sections_section", "section_id"),
    )

    period_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("periods.id", ondelete="CASCADE"),
        nullable=False,
    )

    section_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )


class Period(TrackedBase):
    """
    Growing period (accounting window).

    Contract:
        Only ACTIVE periods accept postings.  A CLOSED period is immutable.

    Non-goals:
        - Does NOT enforce its own transitions; PeriodService does.
    """

    __tablename__ = "periods"

    __table_args__ = (
        Index("idx_period_status", "status"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        default=PeriodStatus.ACTIVE.value,
        nullable=False,
    )

    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)

    section_links: Mapped[list[PeriodSection]] = relationship(
        PeriodSection,
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=PeriodSection.section_id,
    )

    def __repr__(self) -> str:
        return f"<Period {self.name}: {self.status}>"

    @property
    def is_active(self) -> bool:
        return self.status == PeriodStatus.ACTIVE.value

    @property
    def section_ids(self) -> tuple[UUID, ...]:
        return tuple(link.section_id for link in self.section_links)

    def to_dto(self) -> PeriodInfo:
        return PeriodInfo(
            id=self.id,
            name=self.name,
            start_date=self.start_date,
            status=PeriodStatus(self.status),
            section_ids=self.section_ids,
            end_date=self.end_date,
            notes=self.notes or "",
            created_by_id=self.created_by_id,
        )
