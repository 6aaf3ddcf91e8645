"""SQLAlchemy ORM models for the ledger store."""

from poultry_kernel.models.asset import Asset, AssetHistory
from poultry_kernel.models.chick_out import ChickOutModel
from poultry_kernel.models.incident import TechnicalIncident
from poultry_kernel.models.period import Period, PeriodSection
from poultry_kernel.models.period_expense import PeriodExpense
from poultry_kernel.models.section import Batch, Section
from poultry_kernel.models.utility_cost import UtilityCost

__all__ = [
    "Period",
    "PeriodSection",
    "PeriodExpense",
    "Section",
    "Batch",
    "ChickOutModel",
    "Asset",
    "AssetHistory",
    "TechnicalIncident",
    "UtilityCost",
]
