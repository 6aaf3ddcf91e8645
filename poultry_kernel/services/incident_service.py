"""
IncidentService -- technical incidents reported against assets.

Responsibility:
    Records faults on assets, lists them, and lets an operator flip the
    resolved flag directly for incidents that carry no repair cost.
    Incidents that require an expense are resolved only by
    RepairExpenseService attaching the expense.

Architecture position:
    Kernel > Services -- flush-only.

Invariants enforced:
    - The asset exists; the incident's section is copied from the asset at
      creation time and never re-derived.
    - Description is at least 5 characters after trimming.
    - An expense-requiring incident without an expense cannot be marked
      resolved directly.

Failure modes:
    - AssetNotFoundError, DescriptionTooShortError, IncidentNotFoundError,
      IncidentExpenseRequiredError.
"""

from uuid import UUID

from sqlalchemy import func, select

from poultry_kernel.domain.dtos import IncidentInfo
from poultry_kernel.domain.guards import ensure_description
from poultry_kernel.exceptions import (
    AssetNotFoundError,
    IncidentExpenseRequiredError,
    IncidentNotFoundError,
)
from poultry_kernel.logging_config import get_logger
from poultry_kernel.models.asset import Asset
from poultry_kernel.models.incident import TechnicalIncident
from poultry_kernel.services.base import BaseService

logger = get_logger("services.incident")


class IncidentService(BaseService):
    """Technical incident register."""

    def create_incident(
        self,
        asset_id: UUID,
        description: str,
        actor_id: UUID,
        requires_expense: bool = False,
        linked_period_id: UUID | None = None,
    ) -> IncidentInfo:
        asset = self.session.get(Asset, asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)
        text = ensure_description(description)

        incident = TechnicalIncident(
            asset_id=asset.id,
            section_id=asset.section_id,
            description=text,
            requires_expense=bool(requires_expense),
            resolved=False,
            linked_period_id=linked_period_id,
            created_by_id=actor_id,
        )
        self.session.add(incident)
        self.session.flush()

        logger.info(
            "incident_created",
            extra={
                "incident_id": str(incident.id),
                "asset_id": str(asset.id),
                "requires_expense": incident.requires_expense,
            },
        )
        return incident.to_dto()

    def resolve_incident(self, incident_id: UUID, resolved: bool = True) -> IncidentInfo:
        incident = self.session.execute(
            select(TechnicalIncident)
            .where(TechnicalIncident.id == incident_id)
            .with_for_update()
        ).scalar_one_or_none()
        if incident is None:
            raise IncidentNotFoundError(incident_id)
        if resolved and incident.requires_expense and incident.expense_id is None:
            raise IncidentExpenseRequiredError(incident_id)

        incident.resolved = bool(resolved)
        self.session.flush()
        logger.info(
            "incident_resolved_flag_set",
            extra={"incident_id": str(incident_id), "resolved": incident.resolved},
        )
        return incident.to_dto()

    def get_incident(self, incident_id: UUID) -> IncidentInfo | None:
        incident = self.session.get(TechnicalIncident, incident_id)
        return incident.to_dto() if incident is not None else None

    def list_incidents(self, resolved: bool | None = None) -> list[IncidentInfo]:
        return self._list(None, resolved)

    def list_by_asset(self, asset_id: UUID, resolved: bool | None = None) -> list[IncidentInfo]:
        return self._list(TechnicalIncident.asset_id == asset_id, resolved)

    def list_by_section(
        self,
        section_id: UUID,
        resolved: bool | None = None,
    ) -> list[IncidentInfo]:
        return self._list(TechnicalIncident.section_id == section_id, resolved)

    def count_unresolved(self, section_id: UUID | None = None) -> int:
        stmt = select(func.count(TechnicalIncident.id)).where(
            TechnicalIncident.resolved.is_(False)
        )
        if section_id is not None:
            stmt = stmt.where(TechnicalIncident.section_id == section_id)
        return int(self.session.execute(stmt).scalar_one())

    def _list(self, criterion, resolved: bool | None) -> list[IncidentInfo]:
        stmt = select(TechnicalIncident).order_by(TechnicalIncident.created_at.desc())
        if criterion is not None:
            stmt = stmt.where(criterion)
        if resolved is not None:
            stmt = stmt.where(TechnicalIncident.resolved.is_(resolved))
        return [row.to_dto() for row in self.session.execute(stmt).scalars()]
