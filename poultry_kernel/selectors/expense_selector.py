"""
Module: poultry_kernel.selectors.expense_selector
Responsibility: Read-only queries over the expense ledger (PeriodExpense):
    per-period listing, per-category totals for a period or a section,
    grand totals, and lookups by incident / daily report / asset.
Architecture position: Kernel > Selectors.  Read-only; returns DTOs and
    Decimal totals.

Invariants enforced:
    - Totals are derived from ledger rows on every call; nothing is cached.
    - ``totals_by_category`` always returns every ExpenseCategory, zero
      filled, in enum declaration order.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from poultry_kernel.domain.dtos import ExpenseCategory, ExpenseInfo
from poultry_kernel.domain.values import ZERO, to_decimal
from poultry_kernel.models.period_expense import PeriodExpense
from poultry_kernel.selectors.base import BaseSelector


class ExpenseSelector(BaseSelector):
    """Ledger read path."""

    def list_by_period(self, period_id: UUID) -> list[ExpenseInfo]:
        """Entries of a period, newest expense date first."""
        rows = self.session.execute(
            select(PeriodExpense)
            .where(PeriodExpense.period_id == period_id)
            .order_by(PeriodExpense.expense_date.desc(), PeriodExpense.created_at.desc())
        ).scalars()
        return [row.to_dto() for row in rows]

    def list_by_section(self, section_id: UUID) -> list[ExpenseInfo]:
        rows = self.session.execute(
            select(PeriodExpense)
            .where(PeriodExpense.section_id == section_id)
            .order_by(PeriodExpense.expense_date.desc())
        ).scalars()
        return [row.to_dto() for row in rows]

    def list_by_asset(self, asset_id: UUID) -> list[ExpenseInfo]:
        rows = self.session.execute(
            select(PeriodExpense).where(PeriodExpense.asset_id == asset_id)
        ).scalars()
        return [row.to_dto() for row in rows]

    def list_by_daily_report(self, daily_report_id: UUID) -> list[ExpenseInfo]:
        rows = self.session.execute(
            select(PeriodExpense)
            .where(PeriodExpense.daily_report_id == daily_report_id)
            .order_by(PeriodExpense.category)
        ).scalars()
        return [row.to_dto() for row in rows]

    def get_by_incident(self, incident_id: UUID) -> ExpenseInfo | None:
        row = self.session.execute(
            select(PeriodExpense).where(PeriodExpense.incident_id == incident_id)
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None

    def totals_by_category(
        self,
        *,
        period_id: UUID | None = None,
        section_id: UUID | None = None,
    ) -> dict[ExpenseCategory, Decimal]:
        """
        Sum of amounts per category for a period and/or a section.

        At least one scope id is required.
        """
        if period_id is None and section_id is None:
            raise ValueError("totals_by_category requires period_id or section_id")

        stmt = select(PeriodExpense.category, func.sum(PeriodExpense.amount)).group_by(
            PeriodExpense.category
        )
        if period_id is not None:
            stmt = stmt.where(PeriodExpense.period_id == period_id)
        if section_id is not None:
            stmt = stmt.where(PeriodExpense.section_id == section_id)

        totals = {category: ZERO for category in ExpenseCategory}
        for category, total in self.session.execute(stmt):
            totals[ExpenseCategory(category)] = to_decimal(total)
        return totals

    def total_for_period(self, period_id: UUID) -> Decimal:
        total = self.session.execute(
            select(func.sum(PeriodExpense.amount)).where(
                PeriodExpense.period_id == period_id
            )
        ).scalar_one()
        return to_decimal(total)

    def total_for_section(self, section_id: UUID) -> Decimal:
        total = self.session.execute(
            select(func.sum(PeriodExpense.amount)).where(
                PeriodExpense.section_id == section_id
            )
        ).scalar_one()
        return to_decimal(total)
