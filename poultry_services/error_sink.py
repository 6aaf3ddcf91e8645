"""
Error sink for best-effort side channels.

A side channel (the daily-report utility derivation) must never fail the
operation that triggered it.  Failures it swallows are still recorded: each
one is logged with ``exc_info`` under a stable ``observability_event`` field
and kept in memory so the caller (or a test) can inspect what was dropped.

Usage:
    from poultry_services.error_sink import ErrorSink

    sink = ErrorSink()
    try:
        derive_water(...)
    except Exception as exc:
        sink.capture("water", exc, daily_report_id=str(report_id))
    sink.failures  # -> (CapturedFailure(...),)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from poultry_kernel.domain.clock import Clock, SystemClock
from poultry_kernel.exceptions import PoultryFinanceError
from poultry_kernel.logging_config import get_logger

logger = get_logger("services.error_sink")

EVENT_SIDE_CHANNEL_FAILURE = "side_channel_failure"


@dataclass(frozen=True)
class CapturedFailure:
    """One swallowed failure."""

    channel: str
    error_type: str
    message: str
    captured_at: datetime
    error_code: str | None = None
    context: dict[str, Any] = field(default_factory=dict)


class ErrorSink:
    """
    In-memory collector for failures that are logged but not propagated.

    Not thread-safe; one sink per request or per hook instance.
    """

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()
        self._failures: list[CapturedFailure] = []

    def capture(self, channel: str, exc: BaseException, **context: Any) -> CapturedFailure:
        failure = CapturedFailure(
            channel=channel,
            error_type=type(exc).__name__,
            message=str(exc),
            captured_at=self._clock.now(),
            error_code=exc.code if isinstance(exc, PoultryFinanceError) else None,
            context=dict(context),
        )
        self._failures.append(failure)
        logger.error(
            "side_channel_failure_captured",
            extra={
                "observability_event": EVENT_SIDE_CHANNEL_FAILURE,
                "channel": channel,
                "error_type": failure.error_type,
                "error_code": failure.error_code,
                **context,
            },
            exc_info=exc,
        )
        return failure

    @property
    def failures(self) -> tuple[CapturedFailure, ...]:
        return tuple(self._failures)

    def clear(self) -> None:
        self._failures.clear()

    def __len__(self) -> int:
        return len(self._failures)
