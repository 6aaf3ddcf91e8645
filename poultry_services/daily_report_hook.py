"""
poultry_services.daily_report_hook -- Utility expenses derived from a daily report.

Responsibility:
    When a section's daily report is recorded, derive its WATER and
    ELECTRICITY expenses through ``UtilityExpenseService``.  This is a
    best-effort side channel of the report write: the report itself must
    never fail because a utility expense could not be posted.

Architecture position:
    Services -- orchestration over the kernel's utility derivation.
    Tariffs arrive by constructor injection (``poultry_config.TariffConfig``
    or anything satisfying ``UtilityTariffs``).

Invariants enforced:
    - The water and electricity derivations are attempted independently;
      a failure of one never prevents the other.
    - No exception escapes ``derive()``.  Every failure is logged with
      exc_info and recorded in the ``ErrorSink``.
    - A reading with no quantity (None or 0) for a utility derives nothing
      for that utility and is not a failure.
    - Each derivation runs inside its own SAVEPOINT, so a failure raised by
      the store (not only by a guard) is rolled back to that savepoint and
      the caller's transaction can still commit the report.

Failure modes:
    - None raised.  Failures are returned in ``DerivationOutcome.failures``.

Audit relevance:
    Derived entries carry ``source=DAILY_REPORT`` and the report id, so
    ``UtilityExpenseService.by_daily_report`` reconstructs them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from poultry_kernel.domain.clock import Clock, SystemClock
from poultry_kernel.domain.dtos import ExpenseInfo, UtilityType
from poultry_kernel.domain.values import ZERO, to_decimal
from poultry_kernel.logging_config import get_logger
from poultry_kernel.services.utility_expense_service import (
    UtilityExpenseService,
    UtilityTariffs,
)
from poultry_services.error_sink import CapturedFailure, ErrorSink

logger = get_logger("services.daily_report_hook")


@dataclass(frozen=True)
class DailyReportReading:
    """The utility part of one daily report."""

    report_id: UUID
    period_id: UUID
    section_id: UUID | None
    report_date: date
    actor_id: UUID
    water_litres: Decimal | None = None
    electricity_kwh: Decimal | None = None


@dataclass(frozen=True)
class DerivationOutcome:
    report_id: UUID
    expenses: tuple[ExpenseInfo, ...]
    failures: tuple[CapturedFailure, ...]

    @property
    def ok(self) -> bool:
        return not self.failures


class DailyReportUtilityHook:
    """
    Derives utility expenses for a daily report without ever raising.

    Contract:
        ``derive(reading)`` -> DerivationOutcome.

    Non-goals:
        - Does NOT commit; the report write owns the transaction.
        - Does NOT retry a failed derivation.
    """

    def __init__(
        self,
        session: Session,
        tariffs: UtilityTariffs,
        clock: Clock | None = None,
        sink: ErrorSink | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._utilities = UtilityExpenseService(session, tariffs, self._clock)
        self.sink = sink if sink is not None else ErrorSink(self._clock)

    def derive(self, reading: DailyReportReading) -> DerivationOutcome:
        derivations = (
            (UtilityType.WATER, reading.water_litres, self._utilities.derive_water),
            (UtilityType.ELECTRICITY, reading.electricity_kwh, self._utilities.derive_electricity),
        )

        expenses: list[ExpenseInfo] = []
        failures: list[CapturedFailure] = []
        for utility, quantity, derive in derivations:
            if quantity is None:
                continue
            try:
                if to_decimal(quantity) == ZERO:
                    continue
                # Per-derivation SAVEPOINT: a store failure during flush rolls
                # back only this derivation and leaves the report's session usable.
                with self._session.begin_nested():
                    expense = derive(
                        reading.period_id,
                        reading.section_id,
                        quantity,
                        reading.report_date,
                        reading.report_id,
                        reading.actor_id,
                    )
                expenses.append(expense)
            except Exception as exc:
                failures.append(
                    self.sink.capture(
                        f"daily_report_{utility.value.lower()}",
                        exc,
                        daily_report_id=str(reading.report_id),
                        period_id=str(reading.period_id),
                    )
                )

        logger.info(
            "daily_report_utilities_derived",
            extra={
                "daily_report_id": str(reading.report_id),
                "derived_count": len(expenses),
                "failure_count": len(failures),
            },
        )
        return DerivationOutcome(
            report_id=reading.report_id,
            expenses=tuple(expenses),
            failures=tuple(failures),
        )
