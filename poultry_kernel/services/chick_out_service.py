"""
ChickOutService -- two-phase revenue recording for livestock sales.

Responsibility:
    ``create`` records the operational phase of a sale (count, date,
    vehicle and machine identifiers, final flag) as an INCOMPLETE
    chick-out.  ``complete`` records the financial phase (weight, waste,
    price), derives the recognized revenue and moves the chick-out to
    COMPLETE.  Nothing else writes revenue numbers.

Architecture position:
    Kernel > Services -- flush-only.

Invariants enforced:
    - INCOMPLETE -> COMPLETE exactly once; COMPLETE is terminal.
    - Revenue fields are written only by ``complete`` and never changed.
    - total_revenue = round_money(weight x (1 - waste / 100) x price).
    - A chick-out whose batch belongs to a CLOSED period cannot be completed.
    - The section must have an open batch to record a chick-out against.

Failure modes:
    - SectionNotFoundError, NoActiveBatchError, InvalidAmountError on create.
    - ChickOutNotFoundError, ChickOutAlreadyCompleteError, BatchNotFoundError,
      ClosedPeriodError, InvalidWastePercentError, InvalidAmountError on
      complete.

Audit relevance:
    ``chick_out_created`` and ``chick_out_completed`` (with the revenue)
    are logged.
"""

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select

from poultry_kernel.domain.dtos import (
    BatchStatus,
    ChickOut,
    ChickOutStatus,
    CompleteChickOut,
    SectionStatus,
)
from poultry_kernel.domain.guards import (
    ensure_chick_out_completable,
    ensure_non_negative,
    ensure_positive,
    ensure_waste_percent,
)
from poultry_kernel.domain.values import HUNDRED, round_money
from poultry_kernel.exceptions import (
    BatchNotFoundError,
    ClosedPeriodError,
    NoActiveBatchError,
    SectionNotFoundError,
)
from poultry_kernel.logging_config import get_logger
from poultry_kernel.models.chick_out import ChickOutModel
from poultry_kernel.models.period import Period
from poultry_kernel.models.section import Batch, Section
from poultry_kernel.services.base import BaseService

logger = get_logger("services.chick_out")

_OPEN_STATUSES = (BatchStatus.ACTIVE.value, BatchStatus.PARTIAL_OUT.value)


def compute_revenue(
    total_weight_kg: Decimal,
    waste_percent: Decimal,
    price_per_kg: Decimal,
) -> tuple[Decimal, Decimal]:
    """Return (net_weight_kg, total_revenue) for a weighed and priced sale."""
    net_weight = total_weight_kg * (1 - waste_percent / HUNDRED)
    return net_weight, round_money(net_weight * price_per_kg)


class ChickOutService(BaseService):
    """
    ChickOut state machine.

    Contract:
        ``create(...) -> IncompleteChickOut``;
        ``complete(...) -> CompleteChickOut``.
    """

    def create(
        self,
        section_id: UUID,
        count: int,
        vehicle_number: str,
        machine_number: str,
        actor_id: UUID,
        *,
        is_final: bool = False,
        out_date: date | None = None,
    ) -> ChickOut:
        section = self.session.execute(
            select(Section).where(Section.id == section_id).with_for_update()
        ).scalar_one_or_none()
        if section is None:
            raise SectionNotFoundError(section_id)
        if section.active_batch_id is None:
            raise NoActiveBatchError(section_id)

        batch = self.session.get(Batch, section.active_batch_id)
        if batch is None or batch.status not in _OPEN_STATUSES:
            raise NoActiveBatchError(section_id)

        chicks = int(ensure_positive(count, "count", "Chick count must be greater than 0"))
        resolved_date = out_date or self._clock.today()

        chick_out = ChickOutModel(
            section_id=section.id,
            batch_id=batch.id,
            out_date=resolved_date,
            count=chicks,
            vehicle_number=vehicle_number,
            machine_number=machine_number,
            is_final=bool(is_final),
            status=ChickOutStatus.INCOMPLETE.value,
            created_by_id=actor_id,
        )
        self.session.add(chick_out)
        batch.total_chicks_out += chicks

        if is_final:
            batch.status = BatchStatus.CLOSED.value
            batch.ended_at = resolved_date
            section.status = SectionStatus.CLEANING.value
            section.active_batch_id = None
            section.closed_at = resolved_date
        else:
            batch.status = BatchStatus.PARTIAL_OUT.value
            section.status = SectionStatus.PARTIAL_OUT.value
        self.session.flush()

        logger.info(
            "chick_out_created",
            extra={
                "chick_out_id": str(chick_out.id),
                "section_id": str(section.id),
                "batch_id": str(batch.id),
                "count": chicks,
                "is_final": chick_out.is_final,
            },
        )
        return chick_out.to_dto()

    def complete(
        self,
        chick_out_id: UUID,
        total_weight_kg: Any,
        waste_percent: Any,
        price_per_kg: Any,
        actor_id: UUID,
    ) -> CompleteChickOut:
        """
        Record the financial phase of a chick-out.

        Raises:
            ChickOutNotFoundError, ChickOutAlreadyCompleteError,
            BatchNotFoundError, ClosedPeriodError, InvalidWastePercentError,
            InvalidAmountError.
        """
        row = self.session.execute(
            select(ChickOutModel).where(ChickOutModel.id == chick_out_id).with_for_update()
        ).scalar_one_or_none()
        ensure_chick_out_completable(row.to_dto() if row is not None else None, chick_out_id)

        batch = self.session.get(Batch, row.batch_id)
        if batch is None:
            raise BatchNotFoundError(row.batch_id)
        period = self.session.get(Period, batch.period_id)
        if period is not None and not period.is_active:
            raise ClosedPeriodError(period.id, "Cannot complete chick-out in closed period")

        waste = ensure_waste_percent(waste_percent)
        weight = ensure_positive(
            total_weight_kg, "total_weight_kg", "Total weight must be greater than 0"
        )
        price = ensure_non_negative(
            price_per_kg, "price_per_kg", "Price per kg cannot be negative"
        )
        net_weight, revenue = compute_revenue(weight, waste, price)

        row.status = ChickOutStatus.COMPLETE.value
        row.total_weight_kg = weight
        row.waste_percent = waste
        row.net_weight_kg = net_weight
        row.price_per_kg = price
        row.total_revenue = revenue
        row.completed_at = self._clock.now()
        row.completed_by_id = actor_id
        self.session.flush()

        logger.info(
            "chick_out_completed",
            extra={
                "chick_out_id": str(row.id),
                "batch_id": str(row.batch_id),
                "total_revenue": str(revenue),
            },
        )
        return row.to_dto()

    def get(self, chick_out_id: UUID) -> ChickOut | None:
        row = self.session.get(ChickOutModel, chick_out_id)
        return row.to_dto() if row is not None else None

    def list_by_section(self, section_id: UUID) -> list[ChickOut]:
        rows = self.session.execute(
            select(ChickOutModel)
            .where(ChickOutModel.section_id == section_id)
            .order_by(ChickOutModel.out_date.desc())
        ).scalars()
        return [row.to_dto() for row in rows]

    def list_by_batch(self, batch_id: UUID) -> list[ChickOut]:
        rows = self.session.execute(
            select(ChickOutModel)
            .where(ChickOutModel.batch_id == batch_id)
            .order_by(ChickOutModel.out_date.desc())
        ).scalars()
        return [row.to_dto() for row in rows]

    def has_incomplete(self, batch_id: UUID) -> bool:
        count = self.session.execute(
            select(func.count(ChickOutModel.id)).where(
                ChickOutModel.batch_id == batch_id,
                ChickOutModel.status == ChickOutStatus.INCOMPLETE.value,
            )
        ).scalar_one()
        return count > 0

    def count_incomplete_for_period(self, period_id: UUID) -> int:
        batch_ids = select(Batch.id).where(Batch.period_id == period_id)
        return int(
            self.session.execute(
                select(func.count(ChickOutModel.id)).where(
                    ChickOutModel.batch_id.in_(batch_ids),
                    ChickOutModel.status == ChickOutStatus.INCOMPLETE.value,
                )
            ).scalar_one()
        )
