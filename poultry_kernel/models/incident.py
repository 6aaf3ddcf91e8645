"""
Module: poultry_kernel.models.incident
Responsibility: ORM persistence for technical incidents reported on assets.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - section_id is copied from the asset at creation time and never
      re-derived.
    - expense_id is set at most once (repair flow), and together with
      resolved=True and linked_period_id.
    - requires_expense AND expense_id IS NULL is a standing unresolved
      obligation (Safety Guard disjunct #2).
"""

from uuid import UUID

from sqlalchemy import Boolean, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from poultry_kernel.db.base import TrackedBase, UUIDString
from poultry_kernel.domain.dtos import IncidentInfo


class TechnicalIncident(TrackedBase):
    """A reported fault on an asset."""

    __tablename__ = "technical_incidents"

    __table_args__ = (
        Index("idx_incident_section_obligation", "section_id", "requires_expense", "expense_id"),
        Index("idx_incident_asset", "asset_id"),
    )

    asset_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    section_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    requires_expense: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    linked_period_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    expense_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<TechnicalIncident {self.id}: resolved={self.resolved}>"

    def to_dto(self) -> IncidentInfo:
        return IncidentInfo(
            id=self.id,
            asset_id=self.asset_id,
            description=self.description,
            requires_expense=self.requires_expense,
            resolved=self.resolved,
            reported_by_id=self.created_by_id,
            section_id=self.section_id,
            linked_period_id=self.linked_period_id,
            expense_id=self.expense_id,
            created_at=self.created_at,
        )
