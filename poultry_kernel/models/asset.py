"""
Module: poultry_kernel.models.asset
Responsibility: ORM persistence for equipment (assets) and the append-only
    status history of each asset.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - purchase_cost is NOT NULL iff is_new_purchase (AssetService guard).
    - purchase_period_id is NULL when the purchase expense was soft-skipped.
    - AssetHistory rows are never updated; one row per status change.

Audit relevance:
    AssetHistory is the audit-log sink for asset status transitions
    (old status, new status, actor, timestamp).
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from poultry_kernel.db.base import Base, TrackedBase, UUIDString
from poultry_kernel.domain.dtos import (
    AssetCategory,
    AssetHistoryInfo,
    AssetInfo,
    AssetStatus,
)
from poultry_kernel.domain.values import GeoPoint


class Asset(TrackedBase):
    """A piece of equipment, optionally bound to a section."""

    __tablename__ = "assets"

    __table_args__ = (
        Index("idx_asset_section", "section_id"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    category: Mapped[str] = mapped_column(String(20), nullable=False)

    # NULL = shared / unassigned equipment
    section_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        default=AssetStatus.ACTIVE.value,
        nullable=False,
    )

    location_lat: Mapped[Decimal | None] = mapped_column(Numeric(12, 8), nullable=True)

    location_lng: Mapped[Decimal | None] = mapped_column(Numeric(12, 8), nullable=True)

    is_new_purchase: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    purchase_cost: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    purchase_period_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<Asset {self.name}: {self.status}>"

    @property
    def location(self) -> GeoPoint | None:
        if self.location_lat is None or self.location_lng is None:
            return None
        return GeoPoint(self.location_lat, self.location_lng)

    def to_dto(self) -> AssetInfo:
        return AssetInfo(
            id=self.id,
            name=self.name,
            category=AssetCategory(self.category),
            status=AssetStatus(self.status),
            is_new_purchase=self.is_new_purchase,
            section_id=self.section_id,
            location=self.location,
            purchase_cost=self.purchase_cost,
            purchase_period_id=self.purchase_period_id,
            created_by_id=self.created_by_id,
        )


class AssetHistory(Base):
    """Append-only record of one asset status change."""

    __tablename__ = "asset_history"

    __table_args__ = (
        Index("idx_asset_history_asset", "asset_id", "changed_at"),
    )

    asset_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    old_status: Mapped[str] = mapped_column(String(20), nullable=False)

    new_status: Mapped[str] = mapped_column(String(20), nullable=False)

    changed_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    note: Mapped[str] = mapped_column(Text, default="", nullable=False)

    def to_dto(self) -> AssetHistoryInfo:
        return AssetHistoryInfo(
            id=self.id,
            asset_id=self.asset_id,
            old_status=AssetStatus(self.old_status),
            new_status=AssetStatus(self.new_status),
            changed_by_id=self.changed_by_id,
            changed_at=self.changed_at,
            note=self.note or "",
        )
