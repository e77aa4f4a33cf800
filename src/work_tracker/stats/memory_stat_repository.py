from __future__ import annotations

import threading
from datetime import date
from typing import Optional, Sequence

from ..sessions.model import DailyStat
from .model import WeeklyGoal
from .repository import StatRepository


class InMemoryStatRepository(StatRepository):
    """Process-local stat store (single-user/local deployments and tests)."""

    def __init__(self):
        self.lock = threading.RLock()
        self._daily: dict[tuple[str, date], DailyStat] = {}
        self._goals: dict[tuple[str, date], WeeklyGoal] = {}

    def get_daily(self, user_id: str, stat_date: date) -> Optional[DailyStat]:
        with self.lock:
            return self._daily.get((user_id, stat_date))

    def list_daily(self, user_id: str, *, start_date: date, end_date: date) -> Sequence[DailyStat]:
        with self.lock:
            rows = [
                s
                for (uid, d), s in self._daily.items()
                if uid == user_id and start_date <= d <= end_date
            ]
        rows.sort(key=lambda s: s.stat_date)
        return rows

    def increment_daily(self, user_id: str, stat_date: date, minutes: int) -> DailyStat:
        """Additive upsert. Callers hold `lock` when pairing it with a session write."""
        with self.lock:
            current = self._daily.get((user_id, stat_date))
            stat = DailyStat(
                user_id=user_id,
                stat_date=stat_date,
                total_minutes=(current.total_minutes if current else 0) + int(minutes),
                session_count=(current.session_count if current else 0) + 1,
            )
            self._daily[(user_id, stat_date)] = stat
            return stat

    def replace_daily(self, stat: DailyStat) -> None:
        with self.lock:
            key = (stat.user_id, stat.stat_date)
            if stat.session_count <= 0 and stat.total_minutes <= 0:
                self._daily.pop(key, None)
            else:
                self._daily[key] = stat

    def get_weekly_goal(self, user_id: str, week_start_date: date) -> Optional[WeeklyGoal]:
        with self.lock:
            return self._goals.get((user_id, week_start_date))

    def upsert_weekly_goal(self, goal: WeeklyGoal) -> WeeklyGoal:
        with self.lock:
            self._goals[(goal.user_id, goal.week_start_date)] = goal
            return goal
