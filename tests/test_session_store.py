from datetime import datetime, timedelta, timezone

from services.session_store import SessionManager
from services.states import State


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def test_start_replaces_previous_session():
    sessions = SessionManager()
    first = sessions.start(1)
    first.state = State.AWAITING_KIDS

    second = sessions.start(1)

    assert second is not first
    assert sessions.get(1) is second
    assert second.state == State.AWAITING_DESTINATION
    assert len(sessions) == 1


def test_idle_session_expires():
    clock = FakeClock()
    sessions = SessionManager(ttl=timedelta(minutes=30), clock=clock)
    sessions.start(1)

    clock.advance(minutes=29)
    assert 1 in sessions

    clock.advance(minutes=2)
    assert sessions.get(1) is None
    assert len(sessions) == 0


def test_touch_extends_session():
    clock = FakeClock()
    sessions = SessionManager(ttl=timedelta(minutes=30), clock=clock)
    session = sessions.start(1)

    clock.advance(minutes=20)
    sessions.touch(session)
    clock.advance(minutes=20)

    assert sessions.get(1) is session


def test_evict_expired_only_drops_idle_sessions():
    clock = FakeClock()
    sessions = SessionManager(ttl=timedelta(minutes=10), clock=clock)
    sessions.start(1)
    clock.advance(minutes=8)
    sessions.start(2)
    clock.advance(minutes=5)

    assert sessions.evict_expired() == 1
    assert 1 not in sessions
    assert 2 in sessions


def test_delete_and_get_or_create():
    sessions = SessionManager()

    assert sessions.delete(7) is False
    session = sessions.get_or_create(7)
    assert sessions.get_or_create(7) is session
    assert sessions.delete(7) is True
    assert sessions.get(7) is None


def test_default_clock_is_timezone_aware():
    session = SessionManager().start(1)

    assert session.created_at.tzinfo is not None
    assert session.updated_at.utcoffset() == timedelta(0)
