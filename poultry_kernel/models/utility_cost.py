"""
Module: poultry_kernel.models.utility_cost
Responsibility: ORM persistence for recorded utility costs (water and
    electricity), each paired with the ledger entry posted for it.
Architecture position: Kernel > Models.

Invariants enforced:
    - A UtilityCost and its PeriodExpense are written in one transaction
      (UtilityService.record_cost); expense_id is never dangling.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from poultry_kernel.db.base import TrackedBase, UUIDString
from poultry_kernel.domain.dtos import UtilityCostInfo, UtilityType


class UtilityCost(TrackedBase):
    __tablename__ = "utility_costs"

    __table_args__ = (
        Index("idx_utility_cost_period", "period_id", "utility_type"),
        Index("idx_utility_cost_section", "section_id"),
    )

    utility_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # NULL = office / general consumption
    section_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    period_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    quantity: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    unit_cost: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    cost_date: Mapped[date] = mapped_column(Date, nullable=False)

    expense_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)

    def to_dto(self) -> UtilityCostInfo:
        return UtilityCostInfo(
            id=self.id,
            utility_type=UtilityType(self.utility_type),
            period_id=self.period_id,
            amount=self.amount,
            cost_date=self.cost_date,
            expense_id=self.expense_id,
            section_id=self.section_id,
            quantity=self.quantity,
            unit_cost=self.unit_cost,
            notes=self.notes or "",
            created_by_id=self.created_by_id,
        )
