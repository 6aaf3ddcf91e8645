"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the enumerations and immutable snapshots that cross the service
    boundary: periods, ledger entries (PeriodExpense), sections, batches,
    assets and their history, technical incidents, utility costs, and the
    two-phase ChickOut revenue event.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies.  ORM models convert themselves to these DTOs
    via ``to_dto()``; services and selectors return DTOs, never ORM rows.

Invariants enforced:
    - ChickOut is a tagged variant: ``IncompleteChickOut`` carries no
      revenue fields at all, ``CompleteChickOut`` carries all of them.
      Code that needs revenue must hold a ``CompleteChickOut``.
    - Every DTO is a frozen dataclass.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Union
from uuid import UUID

from poultry_kernel.domain.values import GeoPoint


# =============================================================================
# Enumerations
# =============================================================================


class PeriodStatus(str, Enum):
    """Lifecycle status of a growing period. ACTIVE -> CLOSED, once."""

    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class ExpenseCategory(str, Enum):
    """Ledger entry categories."""

    ELECTRICITY = "ELECTRICITY"
    WATER = "WATER"
    FEED = "FEED"
    MEDICINE = "MEDICINE"
    LABOR_FIXED = "LABOR_FIXED"
    LABOR_DAILY = "LABOR_DAILY"
    MAINTENANCE = "MAINTENANCE"
    TRANSPORT = "TRANSPORT"
    ASSET_PURCHASE = "ASSET_PURCHASE"
    ASSET_REPAIR = "ASSET_REPAIR"
    OTHER = "OTHER"


class ExpenseSource(str, Enum):
    """Whether a ledger entry was keyed in or derived from a daily report."""

    MANUAL = "MANUAL"
    DAILY_REPORT = "DAILY_REPORT"


class SectionStatus(str, Enum):
    EMPTY = "EMPTY"
    PREPARING = "PREPARING"
    ACTIVE = "ACTIVE"
    PARTIAL_OUT = "PARTIAL_OUT"
    CLEANING = "CLEANING"


class BatchStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PARTIAL_OUT = "PARTIAL_OUT"
    CLOSED = "CLOSED"


class ChickOutStatus(str, Enum):
    INCOMPLETE = "INCOMPLETE"
    COMPLETE = "COMPLETE"


class AssetCategory(str, Enum):
    MOTOR = "MOTOR"
    COUNTER = "COUNTER"
    ENGINE = "ENGINE"
    OTHER = "OTHER"


class AssetStatus(str, Enum):
    ACTIVE = "ACTIVE"
    BROKEN = "BROKEN"
    REPAIRED = "REPAIRED"
    DECOMMISSIONED = "DECOMMISSIONED"


class UtilityType(str, Enum):
    WATER = "WATER"
    ELECTRICITY = "ELECTRICITY"


# =============================================================================
# Periods and ledger entries
# =============================================================================


@dataclass(frozen=True)
class PeriodInfo:
    """
    Immutable snapshot of a growing period.

    Non-goals:
        - Does NOT enforce posting rules (guards and services do that).
    """

    id: UUID
    name: str
    start_date: date
    status: PeriodStatus
    section_ids: tuple[UUID, ...] = ()
    end_date: date | None = None
    notes: str = ""
    created_by_id: UUID | None = None

    @property
    def is_active(self) -> bool:
        return self.status == PeriodStatus.ACTIVE


@dataclass(frozen=True)
class ExpenseInfo:
    """One immutable ledger entry (PeriodExpense)."""

    id: UUID
    period_id: UUID
    category: ExpenseCategory
    amount: Decimal
    expense_date: date
    description: str = ""
    section_id: UUID | None = None
    asset_id: UUID | None = None
    incident_id: UUID | None = None
    batch_id: UUID | None = None
    quantity: Decimal | None = None
    unit_cost: Decimal | None = None
    source: ExpenseSource = ExpenseSource.MANUAL
    daily_report_id: UUID | None = None
    created_by_id: UUID | None = None


@dataclass(frozen=True)
class UtilityCostInfo:
    id: UUID
    utility_type: UtilityType
    period_id: UUID
    amount: Decimal
    cost_date: date
    expense_id: UUID | None
    section_id: UUID | None = None
    quantity: Decimal | None = None
    unit_cost: Decimal | None = None
    notes: str = ""
    created_by_id: UUID | None = None


@dataclass(frozen=True)
class UtilityTotals:
    total_amount: Decimal
    total_quantity: Decimal


@dataclass(frozen=True)
class PeriodUtilitySummary:
    period_id: UUID
    water: UtilityTotals
    electricity: UtilityTotals


# =============================================================================
# Sections and batches
# =============================================================================


@dataclass(frozen=True)
class SectionInfo:
    id: UUID
    name: str
    status: SectionStatus
    active_period_id: UUID | None = None
    active_batch_id: UUID | None = None


@dataclass(frozen=True)
class BatchInfo:
    id: UUID
    section_id: UUID
    period_id: UUID
    status: BatchStatus
    started_at: date
    total_chicks_in: int
    total_chicks_out: int = 0
    total_deaths: int = 0
    ended_at: date | None = None

    @property
    def is_open(self) -> bool:
        return self.status != BatchStatus.CLOSED


# =============================================================================
# Revenue events (ChickOut) -- tagged variant
# =============================================================================


@dataclass(frozen=True)
class IncompleteChickOut:
    """
    Operational phase of a chick-out: counted and shipped, not yet priced.

    Contract:
        Has no revenue fields.  Blocks P&L for its section (Safety Guard).
    """

    id: UUID
    section_id: UUID
    batch_id: UUID
    out_date: date
    count: int
    vehicle_number: str
    machine_number: str
    is_final: bool
    created_by_id: UUID | None = None

    @property
    def status(self) -> ChickOutStatus:
        return ChickOutStatus.INCOMPLETE


@dataclass(frozen=True)
class CompleteChickOut:
    """
    Financial phase of a chick-out: weighed and priced.

    Guarantees:
        - total_revenue = total_weight_kg * (1 - waste_percent/100) * price_per_kg,
          rounded half away from zero to 2 decimals.
        - Immutable once recorded.
    """

    id: UUID
    section_id: UUID
    batch_id: UUID
    out_date: date
    count: int
    vehicle_number: str
    machine_number: str
    is_final: bool
    total_weight_kg: Decimal
    waste_percent: Decimal
    net_weight_kg: Decimal
    price_per_kg: Decimal
    total_revenue: Decimal
    completed_at: datetime | None = None
    completed_by_id: UUID | None = None
    created_by_id: UUID | None = None

    @property
    def status(self) -> ChickOutStatus:
        return ChickOutStatus.COMPLETE


ChickOut = Union[IncompleteChickOut, CompleteChickOut]


# =============================================================================
# Assets and incidents
# =============================================================================


@dataclass(frozen=True)
class AssetInfo:
    """
    Immutable snapshot of an asset.

    Guarantees:
        - purchase_cost is not None iff is_new_purchase.
        - purchase_period_id is None when the purchase expense was soft-skipped.
    """

    id: UUID
    name: str
    category: AssetCategory
    status: AssetStatus
    is_new_purchase: bool
    section_id: UUID | None = None
    location: GeoPoint | None = None
    purchase_cost: Decimal | None = None
    purchase_period_id: UUID | None = None
    created_by_id: UUID | None = None


@dataclass(frozen=True)
class AssetHistoryInfo:
    id: UUID
    asset_id: UUID
    old_status: AssetStatus
    new_status: AssetStatus
    changed_by_id: UUID
    changed_at: datetime
    note: str = ""


@dataclass(frozen=True)
class AssetCreationResult:
    """
    Outcome of createAsset.

    ``expense`` is None for non-purchases and for a soft-skipped purchase
    (``purchase_expense_skipped`` tells the two apart).
    """

    asset: AssetInfo
    expense: ExpenseInfo | None = None
    purchase_expense_skipped: bool = False


@dataclass(frozen=True)
class IncidentInfo:
    """
    Immutable snapshot of a technical incident.

    Guarantees:
        - expense_id is set at most once, by the repair flow.
    """

    id: UUID
    asset_id: UUID
    description: str
    requires_expense: bool
    resolved: bool
    reported_by_id: UUID
    section_id: UUID | None = None
    linked_period_id: UUID | None = None
    expense_id: UUID | None = None
    created_at: datetime | None = None

    @property
    def is_unresolved_obligation(self) -> bool:
        """An expense-requiring incident still waiting for its repair cost."""
        return self.requires_expense and self.expense_id is None


@dataclass(frozen=True)
class RepairExpenseResult:
    expense: ExpenseInfo
    incident: IncidentInfo
