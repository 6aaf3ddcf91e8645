"""
Module: poultry_kernel.models.chick_out
Responsibility: ORM persistence for the two-phase ChickOut revenue event.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - Revenue columns are NULL while status = INCOMPLETE and all set once
      status = COMPLETE.  ``to_dto()`` returns the matching tagged variant,
      so callers never see a half-populated record.
    - INCOMPLETE -> COMPLETE is the only transition (ChickOutService).
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, Date, DateTime, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from poultry_kernel.db.base import TrackedBase, UUIDString
from poultry_kernel.domain.dtos import (
    ChickOut,
    ChickOutStatus,
    CompleteChickOut,
    IncompleteChickOut,
)


class ChickOutModel(TrackedBase):
    """Livestock removed from a batch for sale."""

    __tablename__ = "chick_outs"

    __table_args__ = (
        Index("idx_chick_out_batch_status", "batch_id", "status"),
        Index("idx_chick_out_section", "section_id"),
    )

    section_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    batch_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    out_date: Mapped[date] = mapped_column("date", Date, nullable=False)

    count: Mapped[int] = mapped_column(BigInteger, nullable=False)

    vehicle_number: Mapped[str] = mapped_column(String(50), nullable=False)

    machine_number: Mapped[str] = mapped_column(String(50), nullable=False)

    is_final: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=ChickOutStatus.INCOMPLETE.value,
        nullable=False,
    )

    # Financial phase (COMPLETE only)
    total_weight_kg: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    waste_percent: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    net_weight_kg: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    price_per_kg: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    total_revenue: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    completed_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<ChickOut {self.id}: {self.status} x{self.count}>"

    @property
    def is_complete(self) -> bool:
        return self.status == ChickOutStatus.COMPLETE.value

    def to_dto(self) -> ChickOut:
        if not self.is_complete:
            return IncompleteChickOut(
                id=self.id,
                section_id=self.section_id,
                batch_id=self.batch_id,
                out_date=self.out_date,
                count=self.count,
                vehicle_number=self.vehicle_number,
                machine_number=self.machine_number,
                is_final=self.is_final,
                created_by_id=self.created_by_id,
            )
        return CompleteChickOut(
            id=self.id,
            section_id=self.section_id,
            batch_id=self.batch_id,
            out_date=self.out_date,
            count=self.count,
            vehicle_number=self.vehicle_number,
            machine_number=self.machine_number,
            is_final=self.is_final,
            total_weight_kg=self.total_weight_kg,
            waste_percent=self.waste_percent,
            net_weight_kg=self.net_weight_kg,
            price_per_kg=self.price_per_kg,
            total_revenue=self.total_revenue,
            completed_at=self.completed_at,
            completed_by_id=self.completed_by_id,
            created_by_id=self.created_by_id,
        )
