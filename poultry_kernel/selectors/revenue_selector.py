"""
Module: poultry_kernel.selectors.revenue_selector
Responsibility: Read-only aggregation of recognized revenue -- only COMPLETE
    chick-outs count -- plus the chick counters P&L metrics need.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - INCOMPLETE chick-outs contribute no revenue and no sold chicks.
    - No chick-outs at all is zero revenue, not an error.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from poultry_kernel.domain.dtos import ChickOutStatus
from poultry_kernel.domain.values import ZERO, to_decimal
from poultry_kernel.models.chick_out import ChickOutModel
from poultry_kernel.models.section import Batch
from poultry_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class RevenueTotals:
    total_revenue: Decimal
    sold_chicks: int
    completed_chick_out_count: int
    batch_count_with_revenue: int


@dataclass(frozen=True)
class ChickCounts:
    chicks_in: int
    deaths: int


_EMPTY = RevenueTotals(
    total_revenue=ZERO,
    sold_chicks=0,
    completed_chick_out_count=0,
    batch_count_with_revenue=0,
)


class RevenueSelector(BaseSelector):
    """Revenue read path over COMPLETE chick-outs."""

    def batch_ids_for_section(self, section_id: UUID) -> list[UUID]:
        return list(
            self.session.execute(
                select(Batch.id).where(Batch.section_id == section_id)
            ).scalars()
        )

    def batch_ids_for_period(self, period_id: UUID) -> list[UUID]:
        return list(
            self.session.execute(
                select(Batch.id).where(Batch.period_id == period_id)
            ).scalars()
        )

    def revenue_for_batches(self, batch_ids: Iterable[UUID]) -> RevenueTotals:
        ids = list(batch_ids)
        if not ids:
            return _EMPTY

        total, sold, completed, batches = self.session.execute(
            select(
                func.sum(ChickOutModel.total_revenue),
                func.sum(ChickOutModel.count),
                func.count(ChickOutModel.id),
                func.count(func.distinct(ChickOutModel.batch_id)),
            ).where(
                ChickOutModel.batch_id.in_(ids),
                ChickOutModel.status == ChickOutStatus.COMPLETE.value,
            )
        ).one()

        return RevenueTotals(
            total_revenue=to_decimal(total),
            sold_chicks=int(sold or 0),
            completed_chick_out_count=int(completed or 0),
            batch_count_with_revenue=int(batches or 0),
        )

    def revenue_for_section(self, section_id: UUID) -> RevenueTotals:
        return self.revenue_for_batches(self.batch_ids_for_section(section_id))

    def revenue_for_period(self, period_id: UUID) -> RevenueTotals:
        return self.revenue_for_batches(self.batch_ids_for_period(period_id))

    def chick_counts_for_section(self, section_id: UUID) -> ChickCounts:
        chicks_in, deaths = self.session.execute(
            select(
                func.sum(Batch.total_chicks_in),
                func.sum(Batch.total_deaths),
            ).where(Batch.section_id == section_id)
        ).one()
        return ChickCounts(chicks_in=int(chicks_in or 0), deaths=int(deaths or 0))

    def chick_counts_for_period(self, period_id: UUID) -> ChickCounts:
        chicks_in, deaths = self.session.execute(
            select(
                func.sum(Batch.total_chicks_in),
                func.sum(Batch.total_deaths),
            ).where(Batch.period_id == period_id)
        ).one()
        return ChickCounts(chicks_in=int(chicks_in or 0), deaths=int(deaths or 0))
