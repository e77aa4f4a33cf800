from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta, timezone

import pytest

from work_tracker.core.exceptions import ValidationError
from work_tracker.sessions.model import DailyStat
from work_tracker.stats.service import streak_from_days, weekly_progress_from_minutes

MONDAY = date(2026, 3, 2)


def _at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, day, hour, minute, tzinfo=timezone.utc)


def _record(sessions, user_id, start, minutes):
    sessions.punch_in(user_id, now=start)
    return sessions.punch_out(user_id, now=start + timedelta(minutes=minutes))


def test_weekly_math_uses_full_precision():
    progress = weekly_progress_from_minutes(20 * 60 + 30, 40, week_start_date=MONDAY)

    assert progress.total_hours == 20.5
    assert progress.display_hours == 20
    assert progress.percentage == 51
    assert progress.remaining_hours == 19.5
    assert progress.formatted == "20h / 40h"
    assert progress.week_end == date(2026, 3, 8)


def test_weekly_percentage_caps_at_100():
    progress = weekly_progress_from_minutes(50 * 60, 40, week_start_date=MONDAY)

    assert progress.percentage == 100
    assert progress.remaining_hours == 0


def test_weekly_percentage_rounds_to_nearest():
    # 4h03m of 40h = 10.125% -> 10; 20h06m of 40h = 50.25% -> 50; 20h30m = 51.25% -> 51
    assert weekly_progress_from_minutes(243, 40, week_start_date=MONDAY).percentage == 10
    assert weekly_progress_from_minutes(1206, 40, week_start_date=MONDAY).percentage == 50
    assert weekly_progress_from_minutes(27, 1, week_start_date=MONDAY).percentage == 45


@pytest.mark.parametrize(
    "days, today, expected",
    [
        (set(), date(2026, 3, 4), 0),
        ({date(2026, 3, 2), date(2026, 3, 3), date(2026, 3, 4)}, date(2026, 3, 4), 3),
        # nothing yet today: the run ending yesterday still counts
        ({date(2026, 3, 2), date(2026, 3, 3)}, date(2026, 3, 4), 2),
        ({date(2026, 3, 2), date(2026, 3, 4)}, date(2026, 3, 4), 1),
        ({date(2026, 3, 1)}, date(2026, 3, 4), 0),
    ],
)
def test_streak_from_days(days, today, expected):
    assert streak_from_days(days, today) == expected


def test_weekly_progress_sums_this_week_only(sessions, statistics, user_id, now):
    _record(sessions, user_id, _at(1, 10), 120)  # Sunday, previous week
    _record(sessions, user_id, _at(2, 8), 600)
    _record(sessions, user_id, _at(3, 8), 600)
    _record(sessions, user_id, _at(4, 6), 30)

    progress = statistics.weekly_progress(user_id, now=now)

    assert progress.week_start == MONDAY
    assert progress.total_minutes == 1230
    assert progress.percentage == 51
    assert progress.remaining_hours == 19.5
    assert progress.target_hours == 40


def test_active_session_counts_live(sessions, statistics, user_id, now):
    _record(sessions, user_id, _at(4, 6), 30)
    sessions.punch_in(user_id, now=_at(4, 8))

    today = statistics.today_total(user_id, now=now)
    assert today.total_minutes == 90
    assert today.session_count == 1
    assert today.has_active_session is True
    assert today.formatted == "1h 30m"

    later = statistics.today_total(user_id, now=now + timedelta(minutes=15))
    assert later.total_minutes == 105

    assert statistics.weekly_progress(user_id, now=now).total_minutes == 90


def test_streak_through_service(sessions, statistics, user_id, now):
    _record(sessions, user_id, _at(2, 9), 30)
    _record(sessions, user_id, _at(3, 9), 30)

    assert statistics.streak(user_id, now=now) == 2

    _record(sessions, user_id, _at(4, 7), 30)
    assert statistics.streak(user_id, now=now) == 3


def test_daily_stats_match_completed_sessions(sessions, statistics, container, user_id, now):
    _record(sessions, user_id, _at(2, 8), 45)
    _record(sessions, user_id, _at(2, 13), 15)
    _record(sessions, user_id, _at(3, 8), 61)
    sessions.punch_in(user_id, now=_at(3, 12))
    sessions.cancel_session(user_id, now=_at(3, 13))
    sessions.punch_in(user_id, now=_at(4, 8))
    sessions.punch_out(user_id, now=_at(4, 8) + timedelta(seconds=20))

    expected = defaultdict(lambda: [0, 0])
    for s in container.sessions_repo.list_completed(user_id):
        expected[s.start_time.date()][0] += s.duration_minutes
        expected[s.start_time.date()][1] += 1

    stored = statistics.daily_stats(user_id, start_date=MONDAY, end_date=date(2026, 3, 8))
    assert {s.stat_date: [s.total_minutes, s.session_count] for s in stored} == dict(expected)
    assert statistics.reconcile_daily_stats(user_id, start_date=MONDAY, end_date=date(2026, 3, 8)) == []


def test_reconcile_repairs_drifted_rows(sessions, statistics, container, user_id):
    _record(sessions, user_id, _at(2, 8), 45)
    container.stats_repo.replace_daily(DailyStat(user_id=user_id, stat_date=MONDAY, total_minutes=999, session_count=9))
    container.stats_repo.replace_daily(
        DailyStat(user_id=user_id, stat_date=date(2026, 3, 5), total_minutes=10, session_count=1)
    )

    changed = statistics.reconcile_daily_stats(user_id, start_date=MONDAY, end_date=date(2026, 3, 8))

    assert {c.stat_date for c in changed} == {MONDAY, date(2026, 3, 5)}
    stored = statistics.daily_stats(user_id, start_date=MONDAY, end_date=date(2026, 3, 8))
    assert [(s.stat_date, s.total_minutes, s.session_count) for s in stored] == [(MONDAY, 45, 1)]


def test_daily_stats_rejects_reversed_range(statistics, user_id):
    with pytest.raises(ValidationError):
        statistics.daily_stats(user_id, start_date=date(2026, 3, 8), end_date=MONDAY)


def test_weekly_goal_defaults_then_persists(statistics, user_id, now):
    default = statistics.get_weekly_goal(user_id, now=now)
    assert default.target_hours == 40
    assert default.is_default is True

    goal = statistics.set_weekly_goal(user_id, 30, week_start_date=date(2026, 3, 4))
    assert goal.week_start_date == MONDAY

    current = statistics.get_weekly_goal(user_id, now=now)
    assert current.target_hours == 30
    assert current.is_default is False
    assert statistics.weekly_progress(user_id, now=now).target_hours == 30

    next_week = statistics.get_weekly_goal(user_id, week_start_date=date(2026, 3, 9))
    assert next_week.is_default is True


def test_weekly_goal_accepts_numeric_string(statistics, user_id, now):
    assert statistics.set_weekly_goal(user_id, "25", now=now).target_hours == 25


@pytest.mark.parametrize("target", [0, 169, -5, 12.5, True, "lots", None])
def test_weekly_goal_rejects_invalid_targets(statistics, user_id, now, target):
    with pytest.raises(ValidationError):
        statistics.set_weekly_goal(user_id, target, now=now)


def test_dashboard_bundles_everything(sessions, statistics, user_id, now):
    for day in (2, 3, 4):
        _record(sessions, user_id, _at(day, 6), 30)
    # previous week and not adjacent to the run
    _record(sessions, user_id, datetime(2026, 2, 27, 6, 0, tzinfo=timezone.utc), 30)
    sessions.punch_in(user_id, now=_at(4, 8, 30))

    board = statistics.dashboard(user_id, now=now, recent_limit=3)

    assert board.today.total_minutes == 60
    assert board.weekly.total_minutes == 120
    assert board.streak == 3
    assert board.active_session is not None
    assert board.active_elapsed_minutes == 30
    assert [s.start_time for s in board.recent_sessions] == [_at(4, 6), _at(3, 6), _at(2, 6)]
