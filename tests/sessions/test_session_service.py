from __future__ import annotations

import threading
from datetime import date, datetime, timedelta, timezone

import pytest

from work_tracker.core.enums import SessionStatus
from work_tracker.core.exceptions import ConflictError, NotFoundError, ValidationError
from work_tracker.sessions.memory_session_repository import InMemorySessionRepository
from work_tracker.sessions.model import ActiveSession, CancelledSession, SessionCompleted, SessionDiscarded
from work_tracker.sessions.service import SessionService
from work_tracker.projects.memory_project_repository import InMemoryProjectRepository
from work_tracker.stats.memory_stat_repository import InMemoryStatRepository


def test_punch_in_creates_single_active_session(sessions, user_id, now):
    active = sessions.punch_in(user_id, notes="  planning  ", now=now)

    assert isinstance(active, ActiveSession)
    assert active.status == SessionStatus.ACTIVE
    assert active.start_time == now
    assert active.notes == "planning"
    assert sessions.get_active_session(user_id) == active


def test_second_punch_in_conflicts_and_keeps_first(sessions, user_id, now):
    first = sessions.punch_in(user_id, now=now)

    with pytest.raises(ConflictError):
        sessions.punch_in(user_id, now=now + timedelta(minutes=1))

    assert sessions.get_active_session(user_id) == first


def test_users_are_isolated(sessions, now):
    sessions.punch_in("alice", now=now)
    sessions.punch_in("bob", now=now)

    assert sessions.get_active_session("alice").user_id == "alice"
    assert sessions.get_active_session("bob").user_id == "bob"


def test_five_minute_session_round_trip(sessions, container, user_id, now):
    sessions.punch_in(user_id, now=now)
    result = sessions.punch_out(user_id, now=now + timedelta(minutes=5))

    assert isinstance(result, SessionCompleted)
    assert result.discarded is False
    assert result.session.duration_minutes == 5
    assert result.session.end_time == now + timedelta(minutes=5)
    assert result.daily_stat.total_minutes == 5
    assert result.daily_stat.session_count == 1
    assert container.stats_repo.get_daily(user_id, date(2026, 3, 4)) == result.daily_stat
    assert sessions.get_active_session(user_id) is None


def test_duration_is_floored(sessions, user_id, now):
    sessions.punch_in(user_id, now=now)
    result = sessions.punch_out(user_id, now=now + timedelta(minutes=7, seconds=59))
    assert result.session.duration_minutes == 7


def test_thirty_second_session_is_discarded(sessions, container, user_id, now):
    sessions.punch_in(user_id, now=now)
    result = sessions.punch_out(user_id, now=now + timedelta(seconds=30))

    assert isinstance(result, SessionDiscarded)
    assert result.discarded is True
    assert result.elapsed_seconds == 30
    assert sessions.get_active_session(user_id) is None
    assert container.stats_repo.get_daily(user_id, date(2026, 3, 4)) is None
    assert container.sessions_repo.list_all(user_id) == []


def test_punch_out_without_active_session(sessions, user_id, now):
    with pytest.raises(NotFoundError):
        sessions.punch_out(user_id, now=now)


def test_daily_stat_accumulates(sessions, user_id, now):
    for offset in (0, 60):
        start = now + timedelta(minutes=offset)
        sessions.punch_in(user_id, now=start)
        result = sessions.punch_out(user_id, now=start + timedelta(minutes=20))

    assert result.daily_stat.total_minutes == 40
    assert result.daily_stat.session_count == 2


def test_stat_date_is_local_start_date():
    stats = InMemoryStatRepository()
    est = timezone(timedelta(hours=-5))
    service = SessionService(InMemorySessionRepository(stats), InMemoryProjectRepository(), tz=est)

    start = datetime(2026, 3, 4, 4, 30, tzinfo=timezone.utc)  # 23:30 on the 3rd, local
    service.punch_in("u", now=start)
    result = service.punch_out("u", now=start + timedelta(hours=1))

    assert result.daily_stat.stat_date == date(2026, 3, 3)


def test_cancel_is_idempotent(sessions, container, user_id, now):
    sessions.punch_in(user_id, now=now)

    cancelled = sessions.cancel_session(user_id, now=now + timedelta(minutes=10))
    assert isinstance(cancelled, CancelledSession)
    assert cancelled.cancelled_at == now + timedelta(minutes=10)

    assert sessions.cancel_session(user_id, now=now + timedelta(minutes=11)) is None
    assert sessions.get_active_session(user_id) is None
    assert container.stats_repo.list_daily(user_id, start_date=date(2026, 3, 1), end_date=date(2026, 3, 31)) == []


def test_cancelled_session_not_in_history(sessions, user_id, now):
    sessions.punch_in(user_id, now=now)
    sessions.cancel_session(user_id, now=now + timedelta(minutes=3))

    assert sessions.recent_sessions(user_id) == []
    with pytest.raises(NotFoundError):
        sessions.punch_out(user_id, now=now + timedelta(minutes=4))


def test_punch_in_defaults_to_oldest_active_project(sessions, projects, user_id, now):
    oldest = projects.create_project(user_id, name="Oldest", now=now - timedelta(days=2))
    projects.create_project(user_id, name="Newer", now=now - timedelta(days=1))

    active = sessions.punch_in(user_id, now=now)

    assert active.project_id == oldest.project_id
    assert active.project.name == "Oldest"


def test_punch_in_without_projects_uses_fallback_snapshot(sessions, user_id, now):
    active = sessions.punch_in(user_id, now=now)

    assert active.project_id is None
    assert (active.project.name, active.project.color, active.project.icon) == ("General Work", "blue", "work")


def test_punch_in_rejects_unknown_and_archived_projects(sessions, projects, user_id, now):
    with pytest.raises(NotFoundError):
        sessions.punch_in(user_id, project_id="missing", now=now)

    archived = projects.create_project(user_id, name="Old", now=now)
    projects.archive_project(user_id, archived.project_id)
    with pytest.raises(ValidationError):
        sessions.punch_in(user_id, project_id=archived.project_id, now=now)

    assert sessions.get_active_session(user_id) is None


def test_project_snapshot_survives_rename(sessions, projects, user_id, now):
    p = projects.create_project(user_id, name="Before", color="amber", now=now)
    sessions.punch_in(user_id, project_id=p.project_id, now=now)
    sessions.punch_out(user_id, now=now + timedelta(minutes=10))

    projects.update_project(user_id, p.project_id, name="After")

    (recorded,) = sessions.recent_sessions(user_id)
    assert recorded.project.name == "Before"
    assert recorded.project.color == "amber"


def test_notes_too_long(sessions, user_id, now):
    with pytest.raises(ValidationError):
        sessions.punch_in(user_id, notes="x" * 1001, now=now)


def test_update_notes(sessions, user_id, now):
    active = sessions.punch_in(user_id, now=now)
    updated = sessions.update_notes(user_id, active.session_id, "reviewed PRs")

    assert updated.notes == "reviewed PRs"
    assert sessions.get_session(user_id, active.session_id).notes == "reviewed PRs"

    with pytest.raises(NotFoundError):
        sessions.update_notes("someone-else", active.session_id, "nope")


def test_current_elapsed(sessions, user_id, now):
    assert sessions.current_elapsed(user_id, now=now) == 0
    sessions.punch_in(user_id, now=now)
    assert sessions.current_elapsed(user_id, now=now + timedelta(minutes=12, seconds=40)) == 12


def _record(sessions, user_id, start, minutes, project_id=None):
    sessions.punch_in(user_id, project_id=project_id, now=start)
    return sessions.punch_out(user_id, now=start + timedelta(minutes=minutes)).session


def test_recent_sessions_newest_first_with_limit(sessions, user_id, now):
    for day in range(4):
        _record(sessions, user_id, now - timedelta(days=day), 10)

    recent = sessions.recent_sessions(user_id, limit=3)

    assert [s.start_time for s in recent] == [now, now - timedelta(days=1), now - timedelta(days=2)]


def test_history_filters_by_date_and_project(sessions, projects, user_id, now):
    p = projects.create_project(user_id, name="Client", now=now - timedelta(days=10))
    internal = projects.create_project(user_id, name="Internal", now=now - timedelta(days=9))
    _record(sessions, user_id, now - timedelta(days=3), 10, project_id=p.project_id)
    _record(sessions, user_id, now - timedelta(days=1), 10, project_id=internal.project_id)
    _record(sessions, user_id, now, 10, project_id=p.project_id)

    by_project = sessions.history(user_id, project_id=p.project_id)
    assert len(by_project) == 2

    in_range = sessions.history(user_id, start_date=date(2026, 3, 2), end_date=date(2026, 3, 3))
    assert [s.start_time for s in in_range] == [now - timedelta(days=1)]

    paged = sessions.history(user_id, limit=1, offset=1)
    assert [s.start_time for s in paged] == [now - timedelta(days=1)]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"start_date": date(2026, 3, 5), "end_date": date(2026, 3, 1)},
        {"limit": 0},
        {"limit": 101},
        {"offset": -1},
    ],
)
def test_history_rejects_bad_filters(sessions, user_id, kwargs):
    with pytest.raises(ValidationError):
        sessions.history(user_id, **kwargs)


def test_concurrent_punch_in_yields_exactly_one_session(now):
    stats = InMemoryStatRepository()
    service = SessionService(InMemorySessionRepository(stats), InMemoryProjectRepository())
    workers = 8
    barrier = threading.Barrier(workers)
    started, conflicts = [], []

    def attempt():
        barrier.wait()
        try:
            started.append(service.punch_in("racer", now=now))
        except ConflictError:
            conflicts.append(1)

    threads = [threading.Thread(target=attempt) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(started) == 1
    assert len(conflicts) == workers - 1
    assert service.get_active_session("racer") == started[0]
