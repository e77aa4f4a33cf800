from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import SessionStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    is_duplicate_key,
    to_db_datetime,
)
from .model import (
    ActiveSession,
    CancelledSession,
    CompletedSession,
    DailyStat,
    ProjectSnapshot,
    WorkSession,
)
from .repository import SessionRepository

logger = logging.getLogger(__name__)

_COLUMNS = (
    "session_id, user_id, project_id, project_name, project_color, project_icon, "
    "start_time, end_time, duration_minutes, cancelled_at, notes, status"
)


def _row_to_session(r: dict) -> WorkSession:
    common = dict(
        session_id=str(r["session_id"]),
        user_id=str(r["user_id"]),
        project_id=r.get("project_id"),
        project=ProjectSnapshot(
            name=r["project_name"],
            color=r["project_color"],
            icon=r["project_icon"],
        ),
        start_time=from_db_datetime(r["start_time"]),
        notes=r.get("notes"),
    )
    status = SessionStatus(r["status"])
    if status == SessionStatus.ACTIVE:
        return ActiveSession(**common)
    if status == SessionStatus.COMPLETED:
        return CompletedSession(
            end_time=from_db_datetime(r["end_time"]),
            duration_minutes=int(r["duration_minutes"]),
            **common,
        )
    return CancelledSession(cancelled_at=from_db_datetime(r.get("cancelled_at")), **common)


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_active(self, user_id: str) -> Optional[ActiveSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM work_sessions WHERE user_id=%s AND status='active' LIMIT 1",
                (user_id,),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def get_by_id(self, user_id: str, session_id: str) -> Optional[WorkSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM work_sessions WHERE session_id=%s AND user_id=%s",
                (session_id, user_id),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def _insert(self, cur, session: WorkSession) -> None:
        cur.execute(
            """
            INSERT INTO work_sessions(
                session_id, user_id, project_id, project_name, project_color, project_icon,
                start_time, end_time, duration_minutes, cancelled_at, notes, status
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                session.session_id,
                session.user_id,
                session.project_id,
                session.project.name,
                session.project.color,
                session.project.icon,
                to_db_datetime(session.start_time),
                to_db_datetime(getattr(session, "end_time", None)),
                getattr(session, "duration_minutes", None),
                to_db_datetime(getattr(session, "cancelled_at", None)),
                session.notes,
                session.status.value,
            ),
        )

    def add_active(self, session: ActiveSession) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                self._insert(cur, session)
        except IntegrityError as e:
            if is_duplicate_key(e):
                logger.warning("Concurrent punch in rejected for user %s", session.user_id)
                raise ConflictError("You already have an active session. Please punch out first.") from e
            raise

    def complete(
        self,
        *,
        user_id: str,
        session_id: str,
        end_time: datetime,
        duration_minutes: int,
        stat_date: date,
    ) -> Optional[tuple[CompletedSession, DailyStat]]:
        # Session completion and the daily stat upsert share one transaction.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM work_sessions WHERE user_id=%s AND session_id=%s AND status='active' FOR UPDATE",
                (user_id, session_id),
            )
            r = fetchone(cur)
            if not r:
                return None
            active = _row_to_session(r)

            cur.execute(
                """
                UPDATE work_sessions
                SET status='completed', end_time=%s, duration_minutes=%s
                WHERE user_id=%s AND session_id=%s AND status='active'
                """,
                (to_db_datetime(end_time), int(duration_minutes), user_id, session_id),
            )
            cur.execute(
                """
                INSERT INTO daily_stats(user_id, stat_date, total_minutes, session_count)
                VALUES(%s,%s,%s,1)
                ON DUPLICATE KEY UPDATE
                    total_minutes=total_minutes + VALUES(total_minutes),
                    session_count=session_count + 1
                """,
                (active.user_id, stat_date, int(duration_minutes)),
            )
            cur.execute(
                """
                SELECT user_id, stat_date, total_minutes, session_count
                FROM daily_stats
                WHERE user_id=%s AND stat_date=%s
                """,
                (active.user_id, stat_date),
            )
            s = fetchone(cur)

            completed = CompletedSession(
                session_id=active.session_id,
                user_id=active.user_id,
                project_id=active.project_id,
                project=active.project,
                start_time=active.start_time,
                end_time=end_time,
                duration_minutes=int(duration_minutes),
                notes=active.notes,
            )
            stat = DailyStat(
                user_id=str(s["user_id"]),
                stat_date=s["stat_date"],
                total_minutes=int(s["total_minutes"]),
                session_count=int(s["session_count"]),
            )
            return completed, stat

    def discard_active(self, user_id: str, session_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM work_sessions WHERE user_id=%s AND session_id=%s AND status='active'",
                (user_id, session_id),
            )
            return cur.rowcount > 0

    def cancel_active(self, user_id: str, *, cancelled_at: datetime) -> Optional[CancelledSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM work_sessions WHERE user_id=%s AND status='active' FOR UPDATE",
                (user_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            cur.execute(
                "UPDATE work_sessions SET status='cancelled', cancelled_at=%s WHERE user_id=%s AND session_id=%s",
                (to_db_datetime(cancelled_at), user_id, r["session_id"]),
            )
            r = dict(r, status=SessionStatus.CANCELLED.value, cancelled_at=to_db_datetime(cancelled_at))
            return _row_to_session(r)

    def update_notes(self, user_id: str, session_id: str, notes: Optional[str]) -> Optional[WorkSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE work_sessions SET notes=%s WHERE session_id=%s AND user_id=%s",
                (notes, session_id, user_id),
            )
            cur.execute(
                f"SELECT {_COLUMNS} FROM work_sessions WHERE session_id=%s AND user_id=%s",
                (session_id, user_id),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def list_completed(
        self,
        user_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        project_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Sequence[CompletedSession]:
        clauses = ["user_id=%s", "status='completed'"]
        params: list[object] = [user_id]

        if start is not None:
            clauses.append("start_time >= %s")
            params.append(to_db_datetime(start))
        if end is not None:
            clauses.append("start_time < %s")
            params.append(to_db_datetime(end))
        if project_id is not None:
            clauses.append("project_id=%s")
            params.append(project_id)

        where = " AND ".join(clauses)
        paging = ""
        if limit is not None:
            paging = " LIMIT %s OFFSET %s"
            params.extend([int(limit), int(offset)])
        elif offset:
            # MySQL needs a LIMIT to use OFFSET
            paging = " LIMIT 18446744073709551615 OFFSET %s"
            params.append(int(offset))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM work_sessions WHERE {where} ORDER BY start_time DESC{paging}",
                tuple(params),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def list_all(self, user_id: str) -> Sequence[WorkSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM work_sessions WHERE user_id=%s ORDER BY start_time ASC",
                (user_id,),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def add_imported(self, session: WorkSession) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "SELECT 1 AS found FROM work_sessions WHERE user_id=%s AND session_id=%s",
                    (session.user_id, session.session_id),
                )
                if fetchone(cur):
                    return False
                self._insert(cur, session)
                return True
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictError("An active session already exists for this user") from e
            raise
