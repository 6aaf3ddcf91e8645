"""
PeriodService -- growing-period lifecycle.

Responsibility:
    Opens periods, edits them while ACTIVE, maintains their section set and
    closes them.  Closing is the one irreversible transition
    (ACTIVE -> CLOSED) and is refused while any of the period's operational
    work is unfinished.

Architecture position:
    Kernel > Services -- flush-only.

Invariants enforced:
    - Several ACTIVE periods may coexist.
    - A CLOSED period is immutable: no edit, no section change, no posting.
    - close_period requires every batch of the period to be CLOSED and the
      Safety Guard to clear every section of the period.

Failure modes:
    - PeriodNotFoundError, SectionNotFoundError.
    - PeriodImmutableError on edits to a CLOSED period.
    - PeriodAlreadyClosedError, PeriodCloseBlockedError on close.

Audit relevance:
    ``period_created``, ``period_updated`` and ``period_closed`` are logged.
    A refused close logs ``period_close_blocked`` with the reason.
"""

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import func, select

from poultry_kernel.domain.dtos import BatchStatus, PeriodInfo, PeriodStatus
from poultry_kernel.exceptions import (
    PeriodAlreadyClosedError,
    PeriodCloseBlockedError,
    PeriodImmutableError,
    PeriodNotFoundError,
    SectionNotFoundError,
)
from poultry_kernel.logging_config import get_logger
from poultry_kernel.models.period import Period
from poultry_kernel.models.section import Batch, Section
from poultry_kernel.selectors.period_selector import PeriodSelector
from poultry_kernel.selectors.safety_guard import SafetyGuard
from poultry_kernel.services.base import BaseService
from poultry_kernel.services.section_service import ensure_period_link

logger = get_logger("services.period")


class PeriodService(BaseService):
    """
    Period lifecycle operations.

    Contract:
        Every mutating method returns the updated ``PeriodInfo``.

    Non-goals:
        - Does NOT commit; the caller owns the transaction.
        - Does NOT move sections' active-period pointers on close.
    """

    def create_period(
        self,
        name: str,
        start_date: date,
        actor_id: UUID,
        section_ids: Iterable[UUID] = (),
        notes: str = "",
    ) -> PeriodInfo:
        period = Period(
            name=name,
            start_date=start_date,
            status=PeriodStatus.ACTIVE.value,
            notes=notes or "",
            created_by_id=actor_id,
        )
        self.session.add(period)
        for section_id in self._existing_sections(section_ids):
            ensure_period_link(period, section_id)
        self.session.flush()

        logger.info(
            "period_created",
            extra={"period_id": str(period.id), "start_date": start_date.isoformat()},
        )
        return period.to_dto()

    def update_period(
        self,
        period_id: UUID,
        actor_id: UUID,
        *,
        name: str | None = None,
        section_ids: Iterable[UUID] | None = None,
        notes: str | None = None,
    ) -> PeriodInfo:
        """Edit an ACTIVE period.  ``section_ids`` replaces the section set."""
        period = self._get_period_for_update(period_id)
        if not period.is_active:
            raise PeriodImmutableError(period_id)

        if name is not None:
            period.name = name
        if notes is not None:
            period.notes = notes
        if section_ids is not None:
            wanted = self._existing_sections(section_ids)
            period.section_links = [
                link for link in period.section_links if link.section_id in wanted
            ]
            for section_id in wanted:
                ensure_period_link(period, section_id)
        period.updated_by_id = actor_id
        self.session.flush()

        logger.info("period_updated", extra={"period_id": str(period_id)})
        return period.to_dto()

    def assign_sections(self, period_id: UUID, section_ids: Iterable[UUID]) -> PeriodInfo:
        """Add sections to an ACTIVE period's section set."""
        period = self._get_period_for_update(period_id)
        if not period.is_active:
            raise PeriodImmutableError(period_id)

        added = [
            section_id
            for section_id in self._existing_sections(section_ids)
            if ensure_period_link(period, section_id)
        ]
        self.session.flush()

        logger.info(
            "period_sections_assigned",
            extra={"period_id": str(period_id), "added": len(added)},
        )
        return period.to_dto()

    def get_period(self, period_id: UUID) -> PeriodInfo | None:
        return PeriodSelector(self.session).get_period(period_id)

    def list_periods(self) -> list[PeriodInfo]:
        return PeriodSelector(self.session).list_periods()

    def list_active_periods(self) -> list[PeriodInfo]:
        return PeriodSelector(self.session).list_periods(PeriodStatus.ACTIVE)

    def close_period(self, period_id: UUID, actor_id: UUID) -> PeriodInfo:
        """
        Close a period.

        Uses SELECT FOR UPDATE to serialize concurrent close attempts.

        Postconditions:
            - ``status`` is CLOSED and ``end_date`` is today's clock date.
            - Posting, chick-out completion and edits against the period
              are refused from now on.

        Raises:
            PeriodNotFoundError, PeriodAlreadyClosedError,
            PeriodCloseBlockedError.
        """
        period = self._get_period_for_update(period_id)
        if not period.is_active:
            raise PeriodAlreadyClosedError(period_id)

        open_batches = self.session.execute(
            select(func.count(Batch.id)).where(
                Batch.period_id == period_id,
                Batch.status != BatchStatus.CLOSED.value,
            )
        ).scalar_one()
        if open_batches:
            self._refuse(period_id, "Cannot close period with active batches")

        section_ids = PeriodSelector(self.session).section_ids_for_period(period_id)
        blocked = SafetyGuard(self.session).blocked_sections(section_ids)
        if blocked:
            detail = "; ".join(
                f"{result.section_id}: {', '.join(result.reasons)}" for result in blocked
            )
            self._refuse(
                period_id,
                f"Cannot close period: unresolved financial operations ({detail})",
            )

        period.status = PeriodStatus.CLOSED.value
        period.end_date = self._clock.today()
        period.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "period_closed",
            extra={"period_id": str(period_id), "end_date": period.end_date.isoformat()},
        )
        return period.to_dto()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_period_for_update(self, period_id: UUID) -> Period:
        period = self.session.execute(
            select(Period).where(Period.id == period_id).with_for_update()
        ).scalar_one_or_none()
        if period is None:
            raise PeriodNotFoundError(period_id)
        return period

    def _existing_sections(self, section_ids: Iterable[UUID]) -> list[UUID]:
        ids = list(dict.fromkeys(section_ids))
        if not ids:
            return []
        found = set(
            self.session.execute(select(Section.id).where(Section.id.in_(ids))).scalars()
        )
        for section_id in ids:
            if section_id not in found:
                raise SectionNotFoundError(section_id)
        return ids

    def _refuse(self, period_id: UUID, reason: str) -> None:
        logger.warning(
            "period_close_blocked",
            extra={"period_id": str(period_id), "reason": reason},
        )
        raise PeriodCloseBlockedError(period_id, reason)
