"""
Module: poultry_kernel.models.period_expense
Responsibility: ORM persistence for ledger entries (PeriodExpense).
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - Append-only: there is no update path for a posted entry.
    - incident_id is UNIQUE: at most one repair expense per incident, backed
      by the store as well as by the check-then-act guard.

Audit relevance:
    quantity/unit_cost/source/daily_report_id make derived utility entries
    traceable back to the consumption report that produced them.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from poultry_kernel.db.base import TrackedBase, UUIDString
from poultry_kernel.domain.dtos import ExpenseCategory, ExpenseInfo, ExpenseSource


class PeriodExpense(TrackedBase):
    """
    One categorized monetary ledger entry against a period.

    Guarantees:
        - amount is positive (enforced at posting time).
        - Never mutated after INSERT.
    """

    __tablename__ = "period_expenses"

    __table_args__ = (
        UniqueConstraint("incident_id", name="uq_period_expense_incident"),
        Index("idx_period_expense_period", "period_id"),
        Index("idx_period_expense_section", "section_id"),
        Index("idx_period_expense_asset", "asset_id"),
        Index("idx_period_expense_daily_report", "daily_report_id"),
    )

    period_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    category: Mapped[str] = mapped_column(String(30), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    description: Mapped[str] = mapped_column(Text, default="", nullable=False)

    expense_date: Mapped[date] = mapped_column(Date, nullable=False)

    section_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    asset_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    incident_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    batch_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    # Derived utility entries: quantity x unit_cost = amount
    quantity: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    unit_cost: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    source: Mapped[str] = mapped_column(
        String(20),
        default=ExpenseSource.MANUAL.value,
        nullable=False,
    )

    daily_report_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<PeriodExpense {self.category} {self.amount}>"

    def to_dto(self) -> ExpenseInfo:
        return ExpenseInfo(
            id=self.id,
            period_id=self.period_id,
            category=ExpenseCategory(self.category),
            amount=self.amount,
            expense_date=self.expense_date,
            description=self.description or "",
            section_id=self.section_id,
            asset_id=self.asset_id,
            incident_id=self.incident_id,
            batch_id=self.batch_id,
            quantity=self.quantity,
            unit_cost=self.unit_cost,
            source=ExpenseSource(self.source),
            daily_report_id=self.daily_report_id,
            created_by_id=self.created_by_id,
        )
