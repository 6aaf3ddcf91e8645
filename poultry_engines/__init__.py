"""
Module: poultry_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines used by the
    read-side services: section profit, cost breakdown and section insight.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import poultry_kernel.domain (values, DTO enums).
    MUST NOT import poultry_services or touch a Session.

Invariants enforced:
    - Purity: engines never read the clock or the database.
    - Decimal-only arithmetic with a single money rounding rule.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine calls are traced via ``@traced_engine`` (POULTRY_ENGINE_TRACE).
"""

from poultry_engines.cost_breakdown import (
    CategoryShare,
    CostBreakdown,
    build_cost_breakdown,
    main_cost_driver,
)
from poultry_engines.insight import (
    EMPTY_SUMMARY,
    InsightSummary,
    PerformanceStatus,
    SectionComparison,
    SectionInput,
    SectionInsight,
    classify,
    compare,
    rank_sections,
    summarize,
)
from poultry_engines.profit import (
    ProfitFigures,
    SectionMetrics,
    calculate_section_profit,
    profit_margin_percent,
)
from poultry_engines.tracer import traced_engine

__all__ = [
    "CategoryShare",
    "CostBreakdown",
    "EMPTY_SUMMARY",
    "InsightSummary",
    "PerformanceStatus",
    "ProfitFigures",
    "SectionComparison",
    "SectionInput",
    "SectionInsight",
    "SectionMetrics",
    "build_cost_breakdown",
    "calculate_section_profit",
    "classify",
    "compare",
    "main_cost_driver",
    "profit_margin_percent",
    "rank_sections",
    "summarize",
    "traced_engine",
]
