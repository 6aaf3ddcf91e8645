"""
session_scope(): commit on success, rollback on failure, always close.
"""

import pytest

import poultry_kernel.db.engine as engine_module
from poultry_kernel.db.engine import get_session_factory, session_scope
from poultry_kernel.services import PeriodService

from tests.conftest import PERIOD_START


class _Boom(Exception):
    pass


@pytest.fixture
def tracked_sessions(session, monkeypatch):
    """Sessions handed out by session_scope, with their close() calls counted."""
    opened = []

    def _get_session():
        scoped = get_session_factory()()
        scoped.close_calls = 0
        real_close = scoped.close

        def _close():
            scoped.close_calls += 1
            real_close()

        scoped.close = _close
        opened.append(scoped)
        return scoped

    monkeypatch.setattr(engine_module, "get_session", _get_session)
    return opened


def _period_names(session):
    session.expire_all()
    return [p.name for p in PeriodService(session).list_periods()]


def test_commits_on_success(session, deterministic_clock, test_actor_id, tracked_sessions):
    with session_scope() as scoped:
        PeriodService(scoped, deterministic_clock).create_period(
            "Committed", PERIOD_START, test_actor_id
        )

    assert _period_names(session) == ["Committed"]
    assert tracked_sessions[0].close_calls == 1


def test_rolls_back_and_reraises_on_failure(
    session, deterministic_clock, test_actor_id, tracked_sessions, captured_logs
):
    with pytest.raises(_Boom):
        with session_scope() as scoped:
            PeriodService(scoped, deterministic_clock).create_period(
                "Discarded", PERIOD_START, test_actor_id
            )
            scoped.flush()
            raise _Boom()

    assert _period_names(session) == []
    assert tracked_sessions[0].close_calls == 1
    assert any(r["message"] == "transaction_rolled_back" for r in captured_logs())


def test_closes_when_commit_fails(tracked_sessions, monkeypatch):
    with pytest.raises(_Boom):
        with session_scope() as scoped:
            def _failing_commit():
                raise _Boom()

            monkeypatch.setattr(scoped, "commit", _failing_commit)

    assert tracked_sessions[0].close_calls == 1
