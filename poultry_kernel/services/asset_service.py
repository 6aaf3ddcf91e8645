"""
AssetService -- equipment register and capital-expense posting.

Responsibility:
    Creates assets and, for new purchases, posts the purchase cost to the
    ledger as an ASSET_PURCHASE expense in the right period.  Maintains the
    asset status with an append-only AssetHistory trail.

Architecture position:
    Kernel > Services -- TransactionalService.  ``create_asset`` and
    ``update_status`` each commit (or roll back) as one unit of work.

Invariants enforced:
    - is_new_purchase <=> purchase_cost present, and the cost is > 0.
    - New purchase with a section: the period is resolved automatically
      (the section's ACTIVE period).  When none is found the asset is still
      created and no expense is posted (soft skip).
    - New purchase without a section: an explicit period id is required and
      that period must exist and be ACTIVE.
    - One AssetHistory row per actual status change, none for a no-op.

Failure modes:
    - PurchaseCostMismatchError, MissingPeriodError, PeriodNotFoundError,
      ClosedPeriodError, SectionNotFoundError, AssetNotFoundError.
    - Posting failures from ExpensePostingService.  In every failure case
      neither the asset nor an expense is written.

Audit relevance:
    ``asset_created``, ``asset_purchase_expense_posted``,
    ``asset_purchase_expense_skipped`` and ``asset_status_changed``.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import select

from poultry_kernel.domain.dtos import (
    AssetCategory,
    AssetCreationResult,
    AssetHistoryInfo,
    AssetInfo,
    AssetStatus,
    ExpenseCategory,
    PeriodStatus,
)
from poultry_kernel.domain.guards import ensure_purchase_cost_pairing
from poultry_kernel.domain.values import GeoPoint
from poultry_kernel.exceptions import (
    AssetNotFoundError,
    ClosedPeriodError,
    MissingPeriodError,
    PeriodNotFoundError,
    SectionNotFoundError,
)
from poultry_kernel.logging_config import get_logger
from poultry_kernel.models.asset import Asset, AssetHistory
from poultry_kernel.models.period import Period, PeriodSection
from poultry_kernel.models.section import Section
from poultry_kernel.services.base import TransactionalService
from poultry_kernel.services.expense_posting_service import ExpensePostingService

logger = get_logger("services.asset")


class AssetService(TransactionalService):
    """
    Asset register.

    Contract:
        ``create_asset(...) -> AssetCreationResult``; ``expense`` is None
        for legacy assets and for soft-skipped purchases.
    """

    def create_asset(
        self,
        name: str,
        category: AssetCategory,
        actor_id: UUID,
        *,
        section_id: UUID | None = None,
        location: GeoPoint | None = None,
        is_new_purchase: bool = False,
        purchase_cost: Any = None,
        period_id: UUID | None = None,
    ) -> AssetCreationResult:
        """
        Register an asset and post its purchase cost when it is new.

        Args:
            period_id: Only used for new purchases without a section.
        """
        with self._unit_of_work(
            "create_asset",
            section_id=str(section_id) if section_id else None,
            is_new_purchase=is_new_purchase,
        ):
            cost = ensure_purchase_cost_pairing(is_new_purchase, purchase_cost)

            purchase_period_id: UUID | None = None
            if cost is not None:
                if section_id is not None:
                    purchase_period_id = self._resolve_section_period(section_id)
                else:
                    purchase_period_id = self._require_explicit_period(period_id)
            elif section_id is not None and self.session.get(Section, section_id) is None:
                raise SectionNotFoundError(section_id)

            asset = Asset(
                name=name,
                category=AssetCategory(category).value,
                section_id=section_id,
                status=AssetStatus.ACTIVE.value,
                location_lat=location.lat if location is not None else None,
                location_lng=location.lng if location is not None else None,
                is_new_purchase=bool(is_new_purchase),
                purchase_cost=cost,
                purchase_period_id=purchase_period_id,
                created_by_id=actor_id,
            )
            self.session.add(asset)
            self.session.flush()

            expense = None
            if purchase_period_id is not None:
                expense = ExpensePostingService(self.session, self._clock).post(
                    purchase_period_id,
                    ExpenseCategory.ASSET_PURCHASE,
                    cost,
                    actor_id,
                    self._clock.today(),
                    f"Asset purchase: {name}",
                    section_id=section_id,
                    asset_id=asset.id,
                )

        skipped = cost is not None and expense is None
        logger.info(
            "asset_created",
            extra={"asset_id": str(asset.id), "is_new_purchase": asset.is_new_purchase},
        )
        if expense is not None:
            logger.info(
                "asset_purchase_expense_posted",
                extra={
                    "asset_id": str(asset.id),
                    "expense_id": str(expense.id),
                    "period_id": str(purchase_period_id),
                },
            )
        elif skipped:
            logger.info(
                "asset_purchase_expense_skipped",
                extra={
                    "asset_id": str(asset.id),
                    "section_id": str(section_id),
                    "reason": "no ACTIVE period for section",
                },
            )

        return AssetCreationResult(
            asset=asset.to_dto(),
            expense=expense,
            purchase_expense_skipped=skipped,
        )

    def update_status(
        self,
        asset_id: UUID,
        new_status: AssetStatus,
        actor_id: UUID,
        note: str = "",
    ) -> AssetInfo:
        """Change status; writes AssetHistory only when the status really changes."""
        new_status = AssetStatus(new_status)
        with self._unit_of_work("update_asset_status", asset_id=str(asset_id)):
            asset = self.session.execute(
                select(Asset).where(Asset.id == asset_id).with_for_update()
            ).scalar_one_or_none()
            if asset is None:
                raise AssetNotFoundError(asset_id)

            old_status = asset.status
            changed = old_status != new_status.value
            if changed:
                self.session.add(
                    AssetHistory(
                        asset_id=asset.id,
                        old_status=old_status,
                        new_status=new_status.value,
                        changed_by_id=actor_id,
                        changed_at=self._clock.now(),
                        note=note or "",
                    )
                )
                asset.status = new_status.value
                asset.updated_by_id = actor_id
                self.session.flush()

        if changed:
            logger.info(
                "asset_status_changed",
                extra={
                    "asset_id": str(asset_id),
                    "old_status": old_status,
                    "new_status": new_status.value,
                },
            )
        return asset.to_dto()

    def get_asset(self, asset_id: UUID) -> AssetInfo | None:
        asset = self.session.get(Asset, asset_id)
        return asset.to_dto() if asset is not None else None

    def list_assets(self) -> list[AssetInfo]:
        rows = self.session.execute(select(Asset).order_by(Asset.created_at.desc())).scalars()
        return [row.to_dto() for row in rows]

    def list_by_section(self, section_id: UUID) -> list[AssetInfo]:
        rows = self.session.execute(
            select(Asset)
            .where(Asset.section_id == section_id)
            .order_by(Asset.created_at.desc())
        ).scalars()
        return [row.to_dto() for row in rows]

    def list_unassigned(self) -> list[AssetInfo]:
        """Shared assets (no section)."""
        rows = self.session.execute(
            select(Asset)
            .where(Asset.section_id.is_(None))
            .order_by(Asset.created_at.desc())
        ).scalars()
        return [row.to_dto() for row in rows]

    def history(self, asset_id: UUID) -> list[AssetHistoryInfo]:
        """Status changes, newest first."""
        rows = self.session.execute(
            select(AssetHistory)
            .where(AssetHistory.asset_id == asset_id)
            .order_by(AssetHistory.changed_at.desc())
        ).scalars()
        return [row.to_dto() for row in rows]

    # ------------------------------------------------------------------
    # Period resolution
    # ------------------------------------------------------------------

    def _resolve_section_period(self, section_id: UUID) -> UUID | None:
        """
        The ACTIVE period the section belongs to, or None (soft skip).

        A period whose section set contains the section wins; the section's
        own active period pointer is the fallback.
        """
        section = self.session.get(Section, section_id)
        if section is None:
            raise SectionNotFoundError(section_id)

        period_id = self.session.execute(
            select(Period.id)
            .join(PeriodSection, PeriodSection.period_id == Period.id)
            .where(
                PeriodSection.section_id == section_id,
                Period.status == PeriodStatus.ACTIVE.value,
            )
            .order_by(Period.start_date.desc())
        ).scalar()
        if period_id is not None:
            return period_id

        if section.active_period_id is not None:
            period = self.session.get(Period, section.active_period_id)
            if period is not None and period.is_active:
                return period.id
        return None

    def _require_explicit_period(self, period_id: UUID | None) -> UUID:
        if period_id is None:
            raise MissingPeriodError(
                "periodId is required for assets without section when isNewPurchase is true"
            )
        period = self.session.get(Period, period_id)
        if period is None:
            raise PeriodNotFoundError(period_id)
        if not period.is_active:
            raise ClosedPeriodError(period_id, "Cannot add expense to closed period")
        return period.id
