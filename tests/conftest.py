"""
Pytest fixtures for the poultry finance test suite.

Provides:
- A per-test in-memory SQLite ledger store with every table created
- A deterministic clock (2024-01-01 12:00 UTC) and a test actor id
- Factories that create and commit periods, sections, batches, assets,
  incidents and chick-outs through the real services
- ``captured_logs`` for asserting on structured log events

Environment Variables:
- DATABASE_URL: run against another database (e.g. PostgreSQL) instead of
  in-memory SQLite.
"""

import json
import logging
import os
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from poultry_config import TariffConfig
from poultry_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from poultry_kernel.domain.clock import DeterministicClock
from poultry_kernel.domain.dtos import AssetCategory
from poultry_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from poultry_kernel.services import (
    AssetService,
    BatchService,
    ChickOutService,
    IncidentService,
    PeriodService,
    SectionService,
)

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

PERIOD_START = date(2023, 12, 1)
TODAY = date(2024, 1, 1)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture poultry_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ...):
            ...
            logs = captured_logs()
            assert any(r["message"] == "expense_posted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("poultry_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", "sqlite://")


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """A fresh ledger store per test."""
    init_engine_from_url(get_database_url())
    create_tables()
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        drop_tables()
        reset_engine()


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def test_actor_id():
    return TEST_ACTOR_ID


@pytest.fixture
def tariffs() -> TariffConfig:
    return TariffConfig(water_tariff=Decimal("1000"), electricity_tariff=Decimal("800"))


# =============================================================================
# Factories (every factory commits)
# =============================================================================


@pytest.fixture
def create_period(session, deterministic_clock, test_actor_id):
    def _create(name: str = "Winter 2024", start_date: date = PERIOD_START, section_ids=()):
        period = PeriodService(session, deterministic_clock).create_period(
            name, start_date, test_actor_id, section_ids=section_ids
        )
        session.commit()
        return period

    return _create


@pytest.fixture
def create_section(session, deterministic_clock, test_actor_id):
    def _create(name: str = "Section A", period_id=None):
        service = SectionService(session, deterministic_clock)
        section = service.create_section(name, test_actor_id)
        if period_id is not None:
            section = service.assign_period(section.id, period_id)
        session.commit()
        return section

    return _create


@pytest.fixture
def start_batch(session, deterministic_clock, test_actor_id):
    def _start(section_id, chicks_in: int = 1000):
        batch = BatchService(session, deterministic_clock).start_batch(
            section_id, chicks_in, test_actor_id
        )
        session.commit()
        return batch

    return _start


@pytest.fixture
def create_asset(session, deterministic_clock, test_actor_id):
    def _create(name: str = "Feeder line", section_id=None, **kwargs):
        result = AssetService(session, deterministic_clock).create_asset(
            name,
            kwargs.pop("category", AssetCategory.MOTOR),
            test_actor_id,
            section_id=section_id,
            **kwargs,
        )
        return result.asset

    return _create


@pytest.fixture
def create_incident(session, deterministic_clock, test_actor_id):
    def _create(asset_id, requires_expense: bool = True, description: str = "Motor burnt out"):
        incident = IncidentService(session, deterministic_clock).create_incident(
            asset_id, description, test_actor_id, requires_expense=requires_expense
        )
        session.commit()
        return incident

    return _create


@pytest.fixture
def create_chick_out(session, deterministic_clock, test_actor_id):
    def _create(section_id, count: int = 100, is_final: bool = False):
        chick_out = ChickOutService(session, deterministic_clock).create(
            section_id, count, "01A123BC", "M-1", test_actor_id, is_final=is_final
        )
        session.commit()
        return chick_out

    return _create


@pytest.fixture
def complete_chick_out(session, deterministic_clock, test_actor_id):
    def _complete(chick_out_id, weight="1000", waste="0", price="10"):
        completed = ChickOutService(session, deterministic_clock).complete(
            chick_out_id, Decimal(weight), Decimal(waste), Decimal(price), test_actor_id
        )
        session.commit()
        return completed

    return _complete


@pytest.fixture
def active_period(create_period):
    return create_period()


@pytest.fixture
def active_section(create_section, active_period):
    return create_section("Section A", active_period.id)
