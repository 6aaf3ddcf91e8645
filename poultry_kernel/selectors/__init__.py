"""Read-only selectors over the ledger store."""

from poultry_kernel.selectors.base import BaseSelector
from poultry_kernel.selectors.expense_selector import ExpenseSelector
from poultry_kernel.selectors.period_selector import PeriodSelector
from poultry_kernel.selectors.revenue_selector import (
    ChickCounts,
    RevenueSelector,
    RevenueTotals,
)
from poultry_kernel.selectors.safety_guard import GuardResult, SafetyGuard

__all__ = [
    "BaseSelector",
    "ExpenseSelector",
    "PeriodSelector",
    "RevenueSelector",
    "RevenueTotals",
    "ChickCounts",
    "SafetyGuard",
    "GuardResult",
]
