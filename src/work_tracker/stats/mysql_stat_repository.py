from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..sessions.model import DailyStat
from .model import WeeklyGoal
from .repository import StatRepository


def _row_to_stat(r: dict) -> DailyStat:
    return DailyStat(
        user_id=str(r["user_id"]),
        stat_date=r["stat_date"],
        total_minutes=int(r["total_minutes"]),
        session_count=int(r["session_count"]),
    )


class MySQLStatRepository(StatRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_daily(self, user_id: str, stat_date: date) -> Optional[DailyStat]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, stat_date, total_minutes, session_count
                FROM daily_stats
                WHERE user_id=%s AND stat_date=%s
                """,
                (user_id, stat_date),
            )
            r = fetchone(cur)
            return _row_to_stat(r) if r else None

    def list_daily(self, user_id: str, *, start_date: date, end_date: date) -> Sequence[DailyStat]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, stat_date, total_minutes, session_count
                FROM daily_stats
                WHERE user_id=%s AND stat_date BETWEEN %s AND %s
                ORDER BY stat_date ASC
                """,
                (user_id, start_date, end_date),
            )
            return [_row_to_stat(r) for r in fetchall(cur)]

    def replace_daily(self, stat: DailyStat) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            if stat.session_count <= 0 and stat.total_minutes <= 0:
                cur.execute(
                    "DELETE FROM daily_stats WHERE user_id=%s AND stat_date=%s",
                    (stat.user_id, stat.stat_date),
                )
                return
            cur.execute(
                """
                INSERT INTO daily_stats(user_id, stat_date, total_minutes, session_count)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    total_minutes=VALUES(total_minutes),
                    session_count=VALUES(session_count)
                """,
                (stat.user_id, stat.stat_date, int(stat.total_minutes), int(stat.session_count)),
            )

    def get_weekly_goal(self, user_id: str, week_start_date: date) -> Optional[WeeklyGoal]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id, week_start_date, target_hours FROM weekly_goals WHERE user_id=%s AND week_start_date=%s",
                (user_id, week_start_date),
            )
            r = fetchone(cur)
            if not r:
                return None
            return WeeklyGoal(
                user_id=str(r["user_id"]),
                week_start_date=r["week_start_date"],
                target_hours=int(r["target_hours"]),
            )

    def upsert_weekly_goal(self, goal: WeeklyGoal) -> WeeklyGoal:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO weekly_goals(user_id, week_start_date, target_hours)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE target_hours=VALUES(target_hours)
                """,
                (goal.user_id, goal.week_start_date, int(goal.target_hours)),
            )
            return goal
