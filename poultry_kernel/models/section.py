"""
Module: poultry_kernel.models.section
Responsibility: ORM persistence for sections (barns) and the batches
    (growing cycles) that run in them.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - A section references at most one active period and one active batch.
    - A batch belongs to exactly one section and one period; its period is
      the historical link used for period revenue and close checks.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import BigInteger, Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from poultry_kernel.db.base import TrackedBase, UUIDString
from poultry_kernel.domain.dtos import BatchInfo, BatchStatus, SectionInfo, SectionStatus


class Section(TrackedBase):
    """A physical growing unit."""

    __tablename__ = "sections"

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=SectionStatus.EMPTY.value,
        nullable=False,
    )

    active_period_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    active_batch_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    closed_at: Mapped[date | None] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return f"<Section {self.name}: {self.status}>"

    def to_dto(self) -> SectionInfo:
        return SectionInfo(
            id=self.id,
            name=self.name,
            status=SectionStatus(self.status),
            active_period_id=self.active_period_id,
            active_batch_id=self.active_batch_id,
        )


class Batch(TrackedBase):
    """One flock grown in a section during a period."""

    __tablename__ = "batches"

    __table_args__ = (
        Index("idx_batch_section", "section_id"),
        Index("idx_batch_period", "period_id"),
    )

    section_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    period_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=BatchStatus.ACTIVE.value,
        nullable=False,
    )

    started_at: Mapped[date] = mapped_column(Date, nullable=False)

    ended_at: Mapped[date | None] = mapped_column(Date, nullable=True)

    total_chicks_in: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    total_chicks_out: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    total_deaths: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<Batch {self.id}: {self.status}>"

    @property
    def is_open(self) -> bool:
        return self.status != BatchStatus.CLOSED.value

    def to_dto(self) -> BatchInfo:
        return BatchInfo(
            id=self.id,
            section_id=self.section_id,
            period_id=self.period_id,
            status=BatchStatus(self.status),
            started_at=self.started_at,
            total_chicks_in=self.total_chicks_in,
            total_chicks_out=self.total_chicks_out,
            total_deaths=self.total_deaths,
            ended_at=self.ended_at,
        )
