from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Iterable, Sequence

from ..common.datetime_utils import (
    day_bounds,
    elapsed_minutes,
    ensure_utc,
    format_duration,
    local_date,
    now_utc,
    round_half_up,
    week_bounds,
    week_end,
    week_start,
)
from ..common.validators import require_date_order, require_int_range
from ..core.constants import (
    DEFAULT_DASHBOARD_RECENT_LIMIT,
    DEFAULT_WEEKLY_GOAL_HOURS,
    MAX_WEEKLY_GOAL_HOURS,
    MIN_WEEKLY_GOAL_HOURS,
)
from ..sessions.model import DailyStat
from ..sessions.repository import SessionRepository
from .model import Dashboard, TodaySummary, WeeklyGoal, WeeklyProgress
from .repository import StatRepository

logger = logging.getLogger(__name__)


def weekly_progress_from_minutes(
    total_minutes: int,
    target_hours: int,
    *,
    week_start_date: date,
) -> WeeklyProgress:
    """Goal math. Full precision drives percentage and remaining hours; only display_hours is floored."""
    total_hours = total_minutes / 60
    percentage = min(100, round_half_up(total_hours / target_hours * 100))
    display_hours = math.floor(total_hours)
    return WeeklyProgress(
        week_start=week_start_date,
        week_end=week_end(week_start_date),
        total_minutes=int(total_minutes),
        total_hours=total_hours,
        display_hours=display_hours,
        target_hours=int(target_hours),
        percentage=percentage,
        remaining_hours=max(0.0, target_hours - total_hours),
        formatted=f"{display_hours}h / {target_hours}h",
    )


def streak_from_days(worked_days: Iterable[date], today: date) -> int:
    """Consecutive worked days ending today, or ending yesterday when today has nothing yet."""
    days = set(worked_days)
    if not days:
        return 0

    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


class StatisticsService:
    """Aggregations over the session history.

    Every figure is recomputed from sessions on each read; an active session
    contributes its live elapsed minutes and is never cached.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        stats: StatRepository,
        *,
        tz: tzinfo = timezone.utc,
        default_goal_hours: int = DEFAULT_WEEKLY_GOAL_HOURS,
    ):
        self._sessions = sessions
        self._stats = stats
        self._tz = tz
        self._default_goal_hours = int(default_goal_hours)

    def _live_minutes_in(self, user_id: str, start: datetime, end: datetime, now: datetime) -> tuple[int, bool]:
        active = self._sessions.get_active(user_id)
        if active is None or not (start <= active.start_time < end):
            return 0, False
        return elapsed_minutes(active.start_time, now), True

    def today_total(self, user_id: str, *, now: datetime | None = None) -> TodaySummary:
        now = ensure_utc(now or now_utc())
        start, end = day_bounds(local_date(now, self._tz), self._tz)

        completed = self._sessions.list_completed(user_id, start=start, end=end)
        total = sum(s.duration_minutes for s in completed)
        live, has_active = self._live_minutes_in(user_id, start, end, now)
        total += live

        return TodaySummary(
            total_minutes=total,
            session_count=len(completed),
            has_active_session=has_active,
            formatted=format_duration(total),
        )

    def weekly_progress(self, user_id: str, *, now: datetime | None = None) -> WeeklyProgress:
        now = ensure_utc(now or now_utc())
        today = local_date(now, self._tz)
        start, end = week_bounds(today, self._tz)

        total = sum(s.duration_minutes for s in self._sessions.list_completed(user_id, start=start, end=end))
        live, _ = self._live_minutes_in(user_id, start, end, now)

        goal = self.get_weekly_goal(user_id, now=now)
        return weekly_progress_from_minutes(total + live, goal.target_hours, week_start_date=week_start(today))

    def streak(self, user_id: str, *, now: datetime | None = None) -> int:
        now = ensure_utc(now or now_utc())
        worked = (
            local_date(s.start_time, self._tz)
            for s in self._sessions.list_completed(user_id)
            if s.duration_minutes > 0
        )
        return streak_from_days(worked, local_date(now, self._tz))

    def dashboard(
        self,
        user_id: str,
        *,
        now: datetime | None = None,
        recent_limit: int = DEFAULT_DASHBOARD_RECENT_LIMIT,
    ) -> Dashboard:
        now = ensure_utc(now or now_utc())
        active = self._sessions.get_active(user_id)
        return Dashboard(
            today=self.today_total(user_id, now=now),
            weekly=self.weekly_progress(user_id, now=now),
            streak=self.streak(user_id, now=now),
            active_session=active,
            active_elapsed_minutes=elapsed_minutes(active.start_time, now) if active else 0,
            recent_sessions=tuple(self._sessions.list_completed(user_id, limit=int(recent_limit))),
        )

    def local_today(self, *, now: datetime | None = None) -> date:
        return local_date(ensure_utc(now or now_utc()), self._tz)

    def daily_stats(self, user_id: str, *, start_date: date, end_date: date) -> Sequence[DailyStat]:
        require_date_order(start_date, end_date)
        return self._stats.list_daily(user_id, start_date=start_date, end_date=end_date)

    def get_weekly_goal(
        self,
        user_id: str,
        *,
        week_start_date: date | None = None,
        now: datetime | None = None,
    ) -> WeeklyGoal:
        monday = week_start(week_start_date or local_date(ensure_utc(now or now_utc()), self._tz))
        goal = self._stats.get_weekly_goal(user_id, monday)
        if goal:
            return goal
        return WeeklyGoal(
            user_id=user_id,
            week_start_date=monday,
            target_hours=self._default_goal_hours,
            is_default=True,
        )

    def set_weekly_goal(
        self,
        user_id: str,
        target_hours,
        *,
        week_start_date: date | None = None,
        now: datetime | None = None,
    ) -> WeeklyGoal:
        target = require_int_range(target_hours, "Target hours", MIN_WEEKLY_GOAL_HOURS, MAX_WEEKLY_GOAL_HOURS)
        monday = week_start(week_start_date or local_date(ensure_utc(now or now_utc()), self._tz))
        goal = self._stats.upsert_weekly_goal(WeeklyGoal(user_id=user_id, week_start_date=monday, target_hours=target))
        logger.info("Weekly goal for user %s, week of %s set to %sh", user_id, monday, target)
        return goal

    def reconcile_daily_stats(self, user_id: str, *, start_date: date, end_date: date) -> Sequence[DailyStat]:
        """Rebuild DailyStat rows for the range from completed sessions; returns the rows that changed."""
        require_date_order(start_date, end_date)
        start = day_bounds(start_date, self._tz)[0]
        end = day_bounds(end_date, self._tz)[1]

        expected: dict[date, list[int]] = {}
        for s in self._sessions.list_completed(user_id, start=start, end=end):
            bucket = expected.setdefault(local_date(s.start_time, self._tz), [0, 0])
            bucket[0] += s.duration_minutes
            bucket[1] += 1

        stored = {s.stat_date: s for s in self._stats.list_daily(user_id, start_date=start_date, end_date=end_date)}

        changed: list[DailyStat] = []
        for day in sorted(set(expected) | set(stored)):
            minutes, count = expected.get(day, [0, 0])
            current = stored.get(day)
            if current and current.total_minutes == minutes and current.session_count == count:
                continue
            stat = DailyStat(user_id=user_id, stat_date=day, total_minutes=minutes, session_count=count)
            self._stats.replace_daily(stat)
            changed.append(stat)

        if changed:
            logger.info("Rebuilt %s daily stat row(s) for user %s", len(changed), user_id)
        return changed

