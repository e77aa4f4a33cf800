from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..sessions.model import DailyStat
from .model import WeeklyGoal


class StatRepository(Protocol):
    """Stat store: materialized daily totals and weekly goals."""

    def get_daily(self, user_id: str, stat_date: date) -> Optional[DailyStat]:
        raise NotImplementedError

    def list_daily(self, user_id: str, *, start_date: date, end_date: date) -> Sequence[DailyStat]:
        """Inclusive range, ascending by date."""

        raise NotImplementedError

    def replace_daily(self, stat: DailyStat) -> None:
        """Overwrite a day's totals (used when rebuilding from sessions). Zero totals remove the row."""

        raise NotImplementedError

    def get_weekly_goal(self, user_id: str, week_start_date: date) -> Optional[WeeklyGoal]:
        raise NotImplementedError

    def upsert_weekly_goal(self, goal: WeeklyGoal) -> WeeklyGoal:
        raise NotImplementedError
