"""
BaseService -- abstract bases for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for every
    write service in the kernel.  Two flavours exist:

    * ``BaseService`` -- flush-only.  The caller owns commit/rollback, so a
      service call can be one step of a larger atomic unit of work.
    * ``TransactionalService`` -- for the multi-document flows that must be
      all-or-nothing on their own (utility cost recording, asset purchase,
      repair-expense posting).  With ``auto_commit=True`` (the default) the
      service commits on success and rolls back and re-raises on any
      exception.  With ``auto_commit=False`` it only flushes and leaves the
      boundary to the caller.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: flush-only services never call
      ``session.commit()``; transactional services commit exactly once per
      public operation, and never leave a half-written unit of work behind.

Audit relevance:
    Transactional operations log ``<operation>_rejected`` (typed domain
    error) or ``<operation>_failed`` (anything else, with exc_info) together
    with the duration when the unit of work is abandoned.
"""

import time
from abc import ABC
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy.orm import Session

from poultry_kernel.domain.clock import Clock, SystemClock
from poultry_kernel.exceptions import PoultryFinanceError
from poultry_kernel.logging_config import get_logger

logger = get_logger("services.base")


class BaseService(ABC):
    """
    Abstract base class for flush-only kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide aggregate read methods -- those belong in
          ``poultry_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self._clock = clock or SystemClock()


class TransactionalService(BaseService):
    """
    Base class for services whose public operations own the transaction.

    Guarantees:
        - ``auto_commit=True``: commit on success; rollback and re-raise on
          any exception.
        - ``auto_commit=False``: flush on success; on exception nothing is
          rolled back here (the caller owns the boundary) and the exception
          propagates unchanged.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
    ):
        super().__init__(session, clock)
        self._auto_commit = auto_commit

    @contextmanager
    def _unit_of_work(self, operation: str, **log_fields: Any) -> Iterator[None]:
        t0 = time.monotonic()
        try:
            yield
            if self._auto_commit:
                self.session.commit()
            else:
                self.session.flush()
        except Exception as exc:
            if self._auto_commit:
                self.session.rollback()
            extra = {
                **log_fields,
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                "rolled_back": self._auto_commit,
            }
            if isinstance(exc, PoultryFinanceError):
                # Rejected by a guard: expected, not an incident
                logger.warning(f"{operation}_rejected", extra={**extra, "error_code": exc.code})
            else:
                logger.error(f"{operation}_failed", extra=extra, exc_info=True)
            raise
