"""
Typed Exception Hierarchy for the Poultry Finance Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the engine (an HTTP controller layer, batch tooling, tests) must
map failures to a response without parsing message strings.  Every error
therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. A KIND class attribute (NOT_FOUND / INVALID_ARGUMENT / CONFLICT) that
     maps directly to a 404 / 400 / 409 style response
  4. Structured DATA attributes carrying the ids involved

The message text is part of the contract as well: it is what the operator
sees, and it is asserted on in the test suite.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PoultryFinanceError (base)
    |
    +-- NotFoundError
    |   +-- PeriodNotFoundError
    |   +-- SectionNotFoundError
    |   +-- BatchNotFoundError
    |   +-- AssetNotFoundError
    |   +-- IncidentNotFoundError
    |   +-- ChickOutNotFoundError
    |
    +-- InvalidArgumentError
    |   +-- InvalidAmountError
    |   +-- ExpenseBeforePeriodStartError
    |   +-- DescriptionTooShortError
    |   +-- PurchaseCostMismatchError
    |   +-- MissingPeriodError
    |   +-- InvalidWastePercentError
    |   +-- InvalidLocationError
    |
    +-- ConflictError
        +-- ClosedPeriodError
        +-- PeriodAlreadyClosedError
        +-- PeriodImmutableError
        +-- NoActivePeriodError
        +-- ExpenseNotRequiredError
        +-- IncidentAlreadyHasExpenseError
        +-- IncidentExpenseRequiredError
        +-- ChickOutAlreadyCompleteError
        +-- NoActiveBatchError
        +-- BatchAlreadyActiveError
        +-- BatchAlreadyClosedError
        +-- BatchCloseBlockedError
        +-- UnresolvedOperationsError
        +-- PeriodCloseBlockedError
        +-- AllSectionsFailedError

===============================================================================
DESIGN DECISIONS
===============================================================================

1. WHY INHERIT FROM Exception (not ValueError, etc.)?
   Domain exceptions should be catchable as a group.  Inheriting from
   built-in types mixes domain errors with programming errors.

2. WHY code AND kind AS CLASS ATTRIBUTES?
   Both are static per exception type, so they can be read without an
   instance (API documentation, response mapping tables).

3. SOFT SKIP IS NOT AN EXCEPTION.
   A new-purchase asset with no resolvable period is created without its
   expense; that path is logged and reflected in the result, never raised.

===============================================================================
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Caller-visible failure category."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    CONFLICT = "CONFLICT"


class PoultryFinanceError(Exception):
    """
    Base exception for all poultry finance kernel errors.

    All subclasses must have `code` and `kind` class attributes.
    """

    code: str = "POULTRY_FINANCE_ERROR"
    kind: ErrorKind = ErrorKind.CONFLICT


# Not found


class NotFoundError(PoultryFinanceError):
    """Base exception for missing referenced documents."""

    code: str = "NOT_FOUND"
    kind: ErrorKind = ErrorKind.NOT_FOUND


class PeriodNotFoundError(NotFoundError):
    code: str = "PERIOD_NOT_FOUND"

    def __init__(self, period_id):
        self.period_id = period_id
        super().__init__("Period not found")


class SectionNotFoundError(NotFoundError):
    code: str = "SECTION_NOT_FOUND"

    def __init__(self, section_id):
        self.section_id = section_id
        super().__init__("Section not found")


class BatchNotFoundError(NotFoundError):
    code: str = "BATCH_NOT_FOUND"

    def __init__(self, batch_id):
        self.batch_id = batch_id
        super().__init__("Batch not found")


class AssetNotFoundError(NotFoundError):
    code: str = "ASSET_NOT_FOUND"

    def __init__(self, asset_id):
        self.asset_id = asset_id
        super().__init__("Asset not found")


class IncidentNotFoundError(NotFoundError):
    code: str = "INCIDENT_NOT_FOUND"

    def __init__(self, incident_id):
        self.incident_id = incident_id
        super().__init__("Incident not found")


class ChickOutNotFoundError(NotFoundError):
    code: str = "CHICK_OUT_NOT_FOUND"

    def __init__(self, chick_out_id):
        self.chick_out_id = chick_out_id
        super().__init__("ChickOut not found")


# Invalid argument


class InvalidArgumentError(PoultryFinanceError):
    """Base exception for malformed input."""

    code: str = "INVALID_ARGUMENT"
    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT


class InvalidAmountError(InvalidArgumentError):
    """A monetary amount, weight, quantity or count is out of range."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value, message: str | None = None):
        self.field = field
        self.value = value
        super().__init__(message or "Amount must be positive")


class ExpenseBeforePeriodStartError(InvalidArgumentError):
    code: str = "EXPENSE_BEFORE_PERIOD_START"

    def __init__(self, period_id, expense_date, start_date):
        self.period_id = period_id
        self.expense_date = expense_date
        self.start_date = start_date
        super().__init__("Expense date cannot be before period start date")


class DescriptionTooShortError(InvalidArgumentError):
    code: str = "DESCRIPTION_TOO_SHORT"

    def __init__(self, min_length: int = 5):
        self.min_length = min_length
        super().__init__(f"Description must be at least {min_length} characters")


class PurchaseCostMismatchError(InvalidArgumentError):
    """isNewPurchase / purchaseCost pairing violated."""

    code: str = "PURCHASE_COST_MISMATCH"

    def __init__(self, message: str):
        super().__init__(message)


class MissingPeriodError(InvalidArgumentError):
    """An explicit period id is required because no section resolves one."""

    code: str = "MISSING_PERIOD"

    def __init__(self, message: str):
        super().__init__(message)


class InvalidWastePercentError(InvalidArgumentError):
    code: str = "INVALID_WASTE_PERCENT"

    def __init__(self, waste_percent):
        self.waste_percent = waste_percent
        super().__init__("Waste percent must be between 0 and 100")


class InvalidLocationError(InvalidArgumentError):
    code: str = "INVALID_LOCATION"

    def __init__(self, lat, lng):
        self.lat = lat
        self.lng = lng
        super().__init__(
            "Location must have lat in [-90, 90] and lng in [-180, 180]"
        )


# Conflict


class ConflictError(PoultryFinanceError):
    """Base exception for state-machine violations."""

    code: str = "CONFLICT"
    kind: ErrorKind = ErrorKind.CONFLICT


class ClosedPeriodError(ConflictError):
    """Attempted to post to (or complete revenue in) a closed period."""

    code: str = "CLOSED_PERIOD"

    def __init__(self, period_id, message: str = "Cannot post to closed period"):
        self.period_id = period_id
        super().__init__(message)


class PeriodAlreadyClosedError(ConflictError):
    code: str = "PERIOD_ALREADY_CLOSED"

    def __init__(self, period_id):
        self.period_id = period_id
        super().__init__("Period is already closed")


class PeriodImmutableError(ConflictError):
    code: str = "PERIOD_IMMUTABLE"

    def __init__(self, period_id):
        self.period_id = period_id
        super().__init__("Cannot update a CLOSED period")


class NoActivePeriodError(ConflictError):
    """A section does not resolve to an ACTIVE period."""

    code: str = "NO_ACTIVE_PERIOD"

    def __init__(self, section_id, message: str = "No active period assigned to this section"):
        self.section_id = section_id
        super().__init__(message)


class ExpenseNotRequiredError(ConflictError):
    code: str = "EXPENSE_NOT_REQUIRED"

    def __init__(self, incident_id):
        self.incident_id = incident_id
        super().__init__("This incident does not require expense")


class IncidentAlreadyHasExpenseError(ConflictError):
    code: str = "INCIDENT_ALREADY_HAS_EXPENSE"

    def __init__(self, incident_id, expense_id=None):
        self.incident_id = incident_id
        self.expense_id = expense_id
        super().__init__("Incident already has an expense attached")


class IncidentExpenseRequiredError(ConflictError):
    """Direct resolve of an incident whose repair cost is still unposted."""

    code: str = "INCIDENT_EXPENSE_REQUIRED"

    def __init__(self, incident_id):
        self.incident_id = incident_id
        super().__init__(
            "Incident requires an expense; post a repair expense to resolve it"
        )


class ChickOutAlreadyCompleteError(ConflictError):
    code: str = "CHICK_OUT_ALREADY_COMPLETE"

    def __init__(self, chick_out_id):
        self.chick_out_id = chick_out_id
        super().__init__("ChickOut is already complete")


class NoActiveBatchError(ConflictError):
    code: str = "NO_ACTIVE_BATCH"

    def __init__(self, section_id):
        self.section_id = section_id
        super().__init__("No active batch in this section")


class BatchAlreadyActiveError(ConflictError):
    code: str = "BATCH_ALREADY_ACTIVE"

    def __init__(self, section_id, batch_id):
        self.section_id = section_id
        self.batch_id = batch_id
        super().__init__("Section already has an active batch")


class BatchAlreadyClosedError(ConflictError):
    code: str = "BATCH_ALREADY_CLOSED"

    def __init__(self, batch_id):
        self.batch_id = batch_id
        super().__init__("Batch is already closed")


class BatchCloseBlockedError(ConflictError):
    """A batch (section growing cycle) cannot be closed yet."""

    code: str = "BATCH_CLOSE_BLOCKED"

    def __init__(self, batch_id, reason: str):
        self.batch_id = batch_id
        self.reason = reason
        super().__init__(reason)


class UnresolvedOperationsError(ConflictError):
    """The Safety Guard reports a section with unresolved obligations."""

    code: str = "UNRESOLVED_OPERATIONS"

    def __init__(self, section_id, message: str = "Section has unresolved financial operations"):
        self.section_id = section_id
        super().__init__(message)


class PeriodCloseBlockedError(ConflictError):
    code: str = "PERIOD_CLOSE_BLOCKED"

    def __init__(self, period_id, reason: str):
        self.period_id = period_id
        self.reason = reason
        super().__init__(reason)


class AllSectionsFailedError(ConflictError):
    """Every section of a bulk P&L call failed."""

    code: str = "ALL_SECTIONS_FAILED"

    def __init__(self, period_id, failures: list[str]):
        self.period_id = period_id
        self.failures = failures
        super().__init__(f"All sections failed: {'; '.join(failures)}")
