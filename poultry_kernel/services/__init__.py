"""Services for the poultry kernel (write side)."""

from poultry_kernel.services.asset_service import AssetService
from poultry_kernel.services.base import BaseService, TransactionalService
from poultry_kernel.services.batch_service import BatchService
from poultry_kernel.services.chick_out_service import ChickOutService, compute_revenue
from poultry_kernel.services.expense_posting_service import ExpensePostingService
from poultry_kernel.services.incident_service import IncidentService
from poultry_kernel.services.period_service import PeriodService
from poultry_kernel.services.repair_expense_service import RepairExpenseService
from poultry_kernel.services.section_service import SectionService
from poultry_kernel.services.utility_expense_service import (
    UtilityExpenseService,
    UtilityTariffs,
)
from poultry_kernel.services.utility_service import UtilityService

__all__ = [
    "AssetService",
    "BaseService",
    "BatchService",
    "ChickOutService",
    "ExpensePostingService",
    "IncidentService",
    "PeriodService",
    "RepairExpenseService",
    "SectionService",
    "TransactionalService",
    "UtilityExpenseService",
    "UtilityService",
    "UtilityTariffs",
    "compute_revenue",
]
