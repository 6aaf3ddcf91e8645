"""
UtilityExpenseService -- derives WATER / ELECTRICITY ledger entries from
daily consumption readings.

Responsibility:
    Converts a consumed quantity into money with the injected per-unit
    tariff (amount = quantity x tariff) and posts it through
    ExpensePostingService with the quantity and unit cost kept on the entry
    for traceability.  The entry is tagged ``source=DAILY_REPORT`` and
    carries the originating report id.

Architecture position:
    Kernel > Services -- flush-only.  Called from the daily-report
    side channel (``poultry_services.daily_report_hook``), which owns the
    failure isolation.

Invariants enforced:
    - quantity > 0.
    - Every posting rule of ExpensePostingService (period open, date on or
      after the period start, amount > 0).
    - Tariffs come from configuration passed in at construction time.

Failure modes:
    - InvalidAmountError for a non-positive quantity.
    - Any ExpensePostingService failure, unchanged.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from poultry_kernel.domain.clock import Clock
from poultry_kernel.domain.dtos import ExpenseCategory, ExpenseInfo, ExpenseSource
from poultry_kernel.domain.guards import ensure_positive
from poultry_kernel.domain.values import round_money, to_decimal
from poultry_kernel.logging_config import get_logger
from poultry_kernel.selectors.expense_selector import ExpenseSelector
from poultry_kernel.services.base import BaseService
from poultry_kernel.services.expense_posting_service import ExpensePostingService

logger = get_logger("services.utility_expense")


class UtilityTariffs(Protocol):
    """Per-unit utility prices.  ``poultry_config.TariffConfig`` satisfies this."""

    @property
    def water_tariff(self) -> Decimal: ...

    @property
    def electricity_tariff(self) -> Decimal: ...


class UtilityExpenseService(BaseService):
    """
    Tariff-based utility expense derivation.

    Contract:
        ``derive_water(...)`` / ``derive_electricity(...)`` -> ExpenseInfo.

    Non-goals:
        - Does NOT swallow failures; isolation is the caller's job.
    """

    def __init__(
        self,
        session: Session,
        tariffs: UtilityTariffs,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._tariffs = tariffs
        self._posting = ExpensePostingService(session, self._clock)

    def derive_water(
        self,
        period_id: UUID,
        section_id: UUID | None,
        quantity: Any,
        expense_date: date,
        daily_report_id: UUID,
        actor_id: UUID,
    ) -> ExpenseInfo:
        return self._derive(
            ExpenseCategory.WATER,
            to_decimal(self._tariffs.water_tariff),
            "Water consumption (daily report)",
            period_id, section_id, quantity, expense_date, daily_report_id, actor_id,
        )

    def derive_electricity(
        self,
        period_id: UUID,
        section_id: UUID | None,
        quantity: Any,
        expense_date: date,
        daily_report_id: UUID,
        actor_id: UUID,
    ) -> ExpenseInfo:
        return self._derive(
            ExpenseCategory.ELECTRICITY,
            to_decimal(self._tariffs.electricity_tariff),
            "Electricity consumption (daily report)",
            period_id, section_id, quantity, expense_date, daily_report_id, actor_id,
        )

    def by_daily_report(self, daily_report_id: UUID) -> list[ExpenseInfo]:
        """Entries derived from one daily report."""
        return ExpenseSelector(self.session).list_by_daily_report(daily_report_id)

    def _derive(
        self,
        category: ExpenseCategory,
        tariff: Decimal,
        description: str,
        period_id: UUID,
        section_id: UUID | None,
        quantity: Any,
        expense_date: date,
        daily_report_id: UUID,
        actor_id: UUID,
    ) -> ExpenseInfo:
        qty = ensure_positive(quantity, "quantity", "Quantity must be greater than 0")
        amount = round_money(qty * tariff)

        expense = self._posting.post(
            period_id,
            category,
            amount,
            actor_id,
            expense_date,
            description,
            section_id=section_id,
            quantity=qty,
            unit_cost=tariff,
            source=ExpenseSource.DAILY_REPORT,
            daily_report_id=daily_report_id,
        )
        logger.info(
            "utility_expense_derived",
            extra={
                "category": category.value,
                "quantity": str(qty),
                "unit_cost": str(tariff),
                "amount": str(amount),
                "daily_report_id": str(daily_report_id),
            },
        )
        return expense
