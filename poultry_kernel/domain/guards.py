"""
Guards -- check-then-act predicates for cross-document ledger invariants.

Responsibility:
    One reusable function per invariant that write paths depend on.  Each
    guard takes plain DTOs / values, raises the typed exception when the
    invariant does not hold, and otherwise returns the normalized value so
    the caller acts on exactly what was checked.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Called by kernel services immediately before every dependent write
    (and re-run inside the same transaction, after the row lock where the
    backend supports one).

Invariants enforced:
    - Posting only into an existing, ACTIVE period, on or after its start.
    - Strictly positive, finite amounts / weights / quantities (NaN and
      Infinity are rejected as invalid arguments).
    - Descriptions of at least five characters after trimming.
    - At most one repair expense per expense-requiring incident.
    - isNewPurchase <=> purchaseCost present (and positive).
    - ChickOut INCOMPLETE -> COMPLETE exactly once, waste in [0, 100].

Failure modes:
    - NotFound / InvalidArgument / Conflict subclasses from
      poultry_kernel.exceptions, with the caller-visible messages.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from poultry_kernel.domain.dtos import (
    ChickOut,
    CompleteChickOut,
    IncidentInfo,
    IncompleteChickOut,
    PeriodInfo,
)
from poultry_kernel.domain.values import HUNDRED, ZERO, to_decimal
from poultry_kernel.exceptions import (
    ChickOutAlreadyCompleteError,
    ChickOutNotFoundError,
    ClosedPeriodError,
    DescriptionTooShortError,
    ExpenseBeforePeriodStartError,
    ExpenseNotRequiredError,
    IncidentAlreadyHasExpenseError,
    IncidentNotFoundError,
    InvalidAmountError,
    InvalidWastePercentError,
    PeriodNotFoundError,
    PurchaseCostMismatchError,
)

MIN_DESCRIPTION_LENGTH = 5


def ensure_period_accepts_posting(
    period: PeriodInfo | None,
    period_id: UUID,
    expense_date: date | None = None,
) -> PeriodInfo:
    """
    The period exists, is ACTIVE and (when a date is given) the date is not
    before its start date.
    """
    if period is None:
        raise PeriodNotFoundError(period_id)
    if not period.is_active:
        raise ClosedPeriodError(period.id)
    if expense_date is not None and expense_date < period.start_date:
        raise ExpenseBeforePeriodStartError(period.id, expense_date, period.start_date)
    return period


def ensure_positive(value: Any, field: str = "amount", message: str | None = None) -> Decimal:
    """Return ``value`` as Decimal if it is finite and strictly greater than zero."""
    if value is None:
        raise InvalidAmountError(field, value, message)
    amount = to_decimal(value)
    if not amount.is_finite() or amount <= ZERO:
        raise InvalidAmountError(field, value, message)
    return amount


def ensure_non_negative(value: Any, field: str, message: str | None = None) -> Decimal:
    if value is None:
        raise InvalidAmountError(field, value, message)
    amount = to_decimal(value)
    if not amount.is_finite() or amount < ZERO:
        raise InvalidAmountError(field, value, message)
    return amount


def ensure_description(
    description: str | None,
    min_length: int = MIN_DESCRIPTION_LENGTH,
) -> str:
    """Return the trimmed description if it is long enough."""
    text = (description or "").strip()
    if len(text) < min_length:
        raise DescriptionTooShortError(min_length)
    return text


def ensure_incident_accepts_repair_expense(
    incident: IncidentInfo | None,
    incident_id: UUID,
) -> IncidentInfo:
    """
    The incident exists, requires an expense and has none attached yet.
    """
    if incident is None:
        raise IncidentNotFoundError(incident_id)
    if not incident.requires_expense:
        raise ExpenseNotRequiredError(incident.id)
    if incident.expense_id is not None:
        raise IncidentAlreadyHasExpenseError(incident.id, incident.expense_id)
    return incident


def ensure_purchase_cost_pairing(
    is_new_purchase: bool,
    purchase_cost: Any,
) -> Decimal | None:
    """
    purchase_cost is required (and positive) for new purchases and
    forbidden for legacy assets.
    """
    if is_new_purchase:
        cost = None if purchase_cost is None else to_decimal(purchase_cost)
        if cost is None or not cost.is_finite() or cost <= ZERO:
            raise PurchaseCostMismatchError(
                "purchaseCost is required for new purchases and must be greater than 0"
            )
        return cost
    if purchase_cost is not None:
        raise PurchaseCostMismatchError(
            "purchaseCost is not allowed for legacy assets (isNewPurchase = false)"
        )
    return None


def ensure_chick_out_completable(
    chick_out: ChickOut | None,
    chick_out_id: UUID,
) -> IncompleteChickOut:
    """The chick-out exists and is still INCOMPLETE."""
    if chick_out is None:
        raise ChickOutNotFoundError(chick_out_id)
    if isinstance(chick_out, CompleteChickOut):
        raise ChickOutAlreadyCompleteError(chick_out.id)
    return chick_out


def ensure_waste_percent(value: Any) -> Decimal:
    """Waste percent within [0, 100] inclusive."""
    if value is None:
        raise InvalidWastePercentError(value)
    waste = to_decimal(value)
    if not waste.is_finite() or waste < ZERO or waste > HUNDRED:
        raise InvalidWastePercentError(value)
    return waste
