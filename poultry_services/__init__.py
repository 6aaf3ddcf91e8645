"""
Read-side orchestration for the poultry finance engine.

Composes kernel selectors with the pure engines: section and period P&L,
period cost breakdown and section insight, and the daily-report utility
derivation hook.  Services here take a ``Session`` (and, where needed, a
clock and the tariffs) by constructor injection.
"""

from poultry_services.daily_report_hook import (
    DailyReportReading,
    DailyReportUtilityHook,
    DerivationOutcome,
)
from poultry_services.error_sink import CapturedFailure, ErrorSink
from poultry_services.period_analytics_service import (
    AnalyticsStatus,
    PeriodAnalytics,
    PeriodAnalyticsService,
)
from poultry_services.period_pl_service import (
    PeriodKPI,
    PeriodKPIMetrics,
    PeriodKPITotals,
    PeriodPL,
    PeriodPLService,
    RevenueAggregation,
)
from poultry_services.section_pl_service import (
    PeriodSectionsPL,
    SectionFailure,
    SectionPL,
    SectionPLService,
)

__all__ = [
    "AnalyticsStatus",
    "CapturedFailure",
    "DailyReportReading",
    "DailyReportUtilityHook",
    "DerivationOutcome",
    "ErrorSink",
    "PeriodAnalytics",
    "PeriodAnalyticsService",
    "PeriodKPI",
    "PeriodKPIMetrics",
    "PeriodKPITotals",
    "PeriodPL",
    "PeriodPLService",
    "PeriodSectionsPL",
    "RevenueAggregation",
    "SectionFailure",
    "SectionPL",
    "SectionPLService",
]
