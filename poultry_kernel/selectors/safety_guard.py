"""
Module: poultry_kernel.selectors.safety_guard
Responsibility: The single source of truth for "does this section still have
    unresolved financial obligations?".
Architecture position: Kernel > Selectors.  Read-only.  Every component that
    decides whether a section's finances may be computed or closed (section
    P&L, period P&L, batch close, period close, insight) calls this selector
    instead of re-deriving the logic.

Invariants enforced:
    A section is blocked iff at least one of two independent disjuncts holds:
      1. a ChickOut with status INCOMPLETE exists on one of its batches;
      2. a TechnicalIncident with requires_expense = True and
         expense_id IS NULL exists whose section_id is the section.

Failure modes:
    - SectionNotFoundError from ``has_unresolved_operations`` /
      ``check_section`` when the section does not exist.

Audit relevance:
    Every guard evaluation that blocks is logged (``safety_guard_blocked``)
    with the counts for both disjuncts.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select

from poultry_kernel.domain.dtos import ChickOutStatus
from poultry_kernel.exceptions import SectionNotFoundError
from poultry_kernel.logging_config import get_logger
from poultry_kernel.models.chick_out import ChickOutModel
from poultry_kernel.models.incident import TechnicalIncident
from poultry_kernel.models.section import Batch, Section
from poultry_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.safety_guard")


@dataclass(frozen=True)
class GuardResult:
    """Outcome of one Safety Guard evaluation."""

    section_id: UUID
    incomplete_chick_outs: int
    unresolved_expense_incidents: int

    @property
    def is_blocked(self) -> bool:
        return self.incomplete_chick_outs > 0 or self.unresolved_expense_incidents > 0

    @property
    def reasons(self) -> tuple[str, ...]:
        out: list[str] = []
        if self.incomplete_chick_outs:
            out.append(f"{self.incomplete_chick_outs} incomplete chick-out(s)")
        if self.unresolved_expense_incidents:
            out.append(
                f"{self.unresolved_expense_incidents} incident(s) awaiting a repair expense"
            )
        return tuple(out)


class SafetyGuard(BaseSelector):
    """
    Read-only predicate over the ledger store.

    Contract:
        ``has_unresolved_operations(section_id)`` is the canonical check;
        the ``*_for_batches`` / ``*_for_sections`` variants are the bulk
        forms used when the caller already holds the id sets.

    Non-goals:
        - Does NOT raise Conflict itself; callers decide whether a blocked
          section is an error (P&L, close) or a warning (period P&L).
    """

    def check_section(self, section_id: UUID) -> GuardResult:
        """Evaluate both disjuncts for one section."""
        if self.session.get(Section, section_id) is None:
            raise SectionNotFoundError(section_id)

        batch_ids = select(Batch.id).where(Batch.section_id == section_id)
        incomplete = self.session.execute(
            select(func.count(ChickOutModel.id)).where(
                ChickOutModel.batch_id.in_(batch_ids),
                ChickOutModel.status == ChickOutStatus.INCOMPLETE.value,
            )
        ).scalar_one()

        unresolved = self.count_unresolved_expense_incidents([section_id])

        result = GuardResult(
            section_id=section_id,
            incomplete_chick_outs=int(incomplete),
            unresolved_expense_incidents=unresolved,
        )
        if result.is_blocked:
            logger.info(
                "safety_guard_blocked",
                extra={
                    "section_id": str(section_id),
                    "incomplete_chick_outs": result.incomplete_chick_outs,
                    "unresolved_expense_incidents": result.unresolved_expense_incidents,
                },
            )
        return result

    def has_unresolved_operations(self, section_id: UUID) -> bool:
        """True iff the section has any unresolved financial obligation."""
        return self.check_section(section_id).is_blocked

    # ------------------------------------------------------------------
    # Bulk variants
    # ------------------------------------------------------------------

    def count_incomplete_chick_outs_for_batches(self, batch_ids: Iterable[UUID]) -> int:
        ids = list(batch_ids)
        if not ids:
            return 0
        return int(
            self.session.execute(
                select(func.count(ChickOutModel.id)).where(
                    ChickOutModel.batch_id.in_(ids),
                    ChickOutModel.status == ChickOutStatus.INCOMPLETE.value,
                )
            ).scalar_one()
        )

    def count_unresolved_expense_incidents(self, section_ids: Iterable[UUID]) -> int:
        ids = list(section_ids)
        if not ids:
            return 0
        return int(
            self.session.execute(
                select(func.count(TechnicalIncident.id)).where(
                    TechnicalIncident.section_id.in_(ids),
                    TechnicalIncident.requires_expense.is_(True),
                    TechnicalIncident.expense_id.is_(None),
                )
            ).scalar_one()
        )

    def has_unresolved_operations_for_batches(
        self,
        batch_ids: Iterable[UUID],
        section_ids: Iterable[UUID] = (),
    ) -> bool:
        """
        Batch-oriented form: incomplete chick-outs on the given batches or
        unresolved expense incidents on the given sections.
        """
        if self.count_incomplete_chick_outs_for_batches(batch_ids) > 0:
            return True
        return self.count_unresolved_expense_incidents(section_ids) > 0

    def blocked_sections(self, section_ids: Iterable[UUID]) -> list[GuardResult]:
        """Guard results for every blocked section among ``section_ids``."""
        return [
            result
            for result in (self.check_section(sid) for sid in section_ids)
            if result.is_blocked
        ]
