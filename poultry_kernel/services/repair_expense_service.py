"""
RepairExpenseService -- settles an expense-requiring incident with exactly
one ASSET_REPAIR ledger entry.

Responsibility:
    Posts the repair cost of a technical incident to the right period and,
    in the same unit of work, attaches the expense to the incident and
    marks it resolved.  This is the only way an expense-requiring incident
    stops blocking its section.

Architecture position:
    Kernel > Services -- TransactionalService.

Invariants enforced:
    - At most one repair expense per incident.  Checked under the incident
      row lock and backed by the UNIQUE constraint on
      ``period_expenses.incident_id``; a concurrent second attempt fails
      with IncidentAlreadyHasExpenseError instead of double-posting.
    - Posting the expense and updating the incident are all-or-nothing: a
      failure after the expense is flushed rolls both back, so a retry
      starts from a clean incident.
    - Period resolution: incidents with a section post to the section's
      active period (which must be ACTIVE); incidents without a section
      require an explicit ACTIVE period.

Failure modes (in check order):
    - IncidentNotFoundError, ExpenseNotRequiredError,
      IncidentAlreadyHasExpenseError.
    - InvalidAmountError, DescriptionTooShortError.
    - AssetNotFoundError, SectionNotFoundError.
    - NoActivePeriodError, MissingPeriodError, PeriodNotFoundError,
      ClosedPeriodError.

Audit relevance:
    ``repair_expense_posted`` with incident, expense and period ids.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from poultry_kernel.domain.dtos import ExpenseCategory, ExpenseInfo, RepairExpenseResult
from poultry_kernel.domain.guards import (
    ensure_description,
    ensure_incident_accepts_repair_expense,
    ensure_positive,
)
from poultry_kernel.exceptions import (
    AssetNotFoundError,
    ClosedPeriodError,
    IncidentAlreadyHasExpenseError,
    MissingPeriodError,
    NoActivePeriodError,
    PeriodNotFoundError,
    SectionNotFoundError,
)
from poultry_kernel.logging_config import get_logger
from poultry_kernel.models.asset import Asset
from poultry_kernel.models.incident import TechnicalIncident
from poultry_kernel.models.period import Period
from poultry_kernel.models.section import Section
from poultry_kernel.selectors.expense_selector import ExpenseSelector
from poultry_kernel.services.base import TransactionalService
from poultry_kernel.services.expense_posting_service import ExpensePostingService

logger = get_logger("services.repair_expense")


class RepairExpenseService(TransactionalService):
    """
    Repair-expense posting for technical incidents.

    Contract:
        ``create_repair_expense(...) -> RepairExpenseResult``.

    Guarantees:
        - On success the incident has ``expense_id`` set, ``resolved=True``
          and ``linked_period_id`` equal to the expense's period.
        - On failure the ledger and the incident are unchanged.
    """

    def create_repair_expense(
        self,
        incident_id: UUID,
        amount: Any,
        description: str,
        actor_id: UUID,
        period_id: UUID | None = None,
    ) -> RepairExpenseResult:
        with self._unit_of_work("create_repair_expense", incident_id=str(incident_id)):
            incident = self.session.execute(
                select(TechnicalIncident)
                .where(TechnicalIncident.id == incident_id)
                .with_for_update()
            ).scalar_one_or_none()
            ensure_incident_accepts_repair_expense(
                incident.to_dto() if incident is not None else None, incident_id
            )

            value = ensure_positive(amount, "amount", "Amount must be a positive number")
            text = ensure_description(description)

            if self.session.get(Asset, incident.asset_id) is None:
                raise AssetNotFoundError(incident.asset_id)

            target_period_id = self._resolve_period(incident, period_id)

            try:
                expense = ExpensePostingService(self.session, self._clock).post(
                    target_period_id,
                    ExpenseCategory.ASSET_REPAIR,
                    value,
                    actor_id,
                    self._clock.today(),
                    text,
                    section_id=incident.section_id,
                    asset_id=incident.asset_id,
                    incident_id=incident.id,
                )
            except IntegrityError as exc:
                raise IncidentAlreadyHasExpenseError(incident_id) from exc

            self._attach_expense(incident, expense)

        logger.info(
            "repair_expense_posted",
            extra={
                "incident_id": str(incident_id),
                "expense_id": str(expense.id),
                "period_id": str(expense.period_id),
                "amount": str(expense.amount),
            },
        )
        return RepairExpenseResult(expense=expense, incident=incident.to_dto())

    def get_expense_by_incident(self, incident_id: UUID) -> ExpenseInfo | None:
        return ExpenseSelector(self.session).get_by_incident(incident_id)

    def _attach_expense(self, incident: TechnicalIncident, expense: ExpenseInfo) -> None:
        incident.expense_id = expense.id
        incident.resolved = True
        incident.linked_period_id = expense.period_id
        self.session.flush()

    def _resolve_period(
        self,
        incident: TechnicalIncident,
        period_id: UUID | None,
    ) -> UUID:
        if incident.section_id is not None:
            section = self.session.get(Section, incident.section_id)
            if section is None:
                raise SectionNotFoundError(incident.section_id)
            if section.active_period_id is None:
                raise NoActivePeriodError(section.id)
            period = self.session.get(Period, section.active_period_id)
            if period is None or not period.is_active:
                raise NoActivePeriodError(
                    section.id, "Section active period is invalid or closed"
                )
            return period.id

        if period_id is None:
            raise MissingPeriodError("periodId is required for assets without section")
        period = self.session.get(Period, period_id)
        if period is None:
            raise PeriodNotFoundError(period_id)
        if not period.is_active:
            raise ClosedPeriodError(period_id, "Cannot add expense to closed period")
        return period.id
