from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.exceptions import ConflictError
from ..stats.memory_stat_repository import InMemoryStatRepository
from .model import ActiveSession, CancelledSession, CompletedSession, DailyStat, WorkSession
from .repository import SessionRepository


class InMemorySessionRepository(SessionRepository):
    """Process-local session store.

    Shares the stat store's lock so that completing a session and bumping the
    daily stat are observed together or not at all.
    """

    def __init__(self, stats: InMemoryStatRepository):
        self._stats = stats
        self._lock = stats.lock
        self._sessions: dict[tuple[str, str], WorkSession] = {}

    def get_active(self, user_id: str) -> Optional[ActiveSession]:
        with self._lock:
            for s in self._sessions.values():
                if isinstance(s, ActiveSession) and s.user_id == user_id:
                    return s
            return None

    def get_by_id(self, user_id: str, session_id: str) -> Optional[WorkSession]:
        with self._lock:
            return self._sessions.get((user_id, session_id))

    def add_active(self, session: ActiveSession) -> None:
        with self._lock:
            if self.get_active(session.user_id) is not None:
                raise ConflictError("You already have an active session. Please punch out first.")
            self._sessions[(session.user_id, session.session_id)] = session

    def complete(
        self,
        *,
        user_id: str,
        session_id: str,
        end_time: datetime,
        duration_minutes: int,
        stat_date: date,
    ) -> Optional[tuple[CompletedSession, DailyStat]]:
        with self._lock:
            current = self._sessions.get((user_id, session_id))
            if not isinstance(current, ActiveSession):
                return None

            completed = CompletedSession(
                session_id=current.session_id,
                user_id=current.user_id,
                project_id=current.project_id,
                project=current.project,
                start_time=current.start_time,
                end_time=end_time,
                duration_minutes=int(duration_minutes),
                notes=current.notes,
            )
            stat = self._stats.increment_daily(user_id, stat_date, int(duration_minutes))
            self._sessions[(user_id, session_id)] = completed
            return completed, stat

    def discard_active(self, user_id: str, session_id: str) -> bool:
        with self._lock:
            if isinstance(self._sessions.get((user_id, session_id)), ActiveSession):
                del self._sessions[(user_id, session_id)]
                return True
            return False

    def cancel_active(self, user_id: str, *, cancelled_at: datetime) -> Optional[CancelledSession]:
        with self._lock:
            active = self.get_active(user_id)
            if active is None:
                return None
            cancelled = CancelledSession(
                session_id=active.session_id,
                user_id=active.user_id,
                project_id=active.project_id,
                project=active.project,
                start_time=active.start_time,
                cancelled_at=cancelled_at,
                notes=active.notes,
            )
            self._sessions[(user_id, active.session_id)] = cancelled
            return cancelled

    def update_notes(self, user_id: str, session_id: str, notes: Optional[str]) -> Optional[WorkSession]:
        with self._lock:
            current = self._sessions.get((user_id, session_id))
            if current is None:
                return None
            updated = replace(current, notes=notes)
            self._sessions[(user_id, session_id)] = updated
            return updated

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
        with self._lock:
            items = [
                s
                for s in self._sessions.values()
                if isinstance(s, CompletedSession)
                and s.user_id == user_id
                and (start is None or s.start_time >= start)
                and (end is None or s.start_time < end)
                and (project_id is None or s.project_id == project_id)
            ]
        items.sort(key=lambda s: s.start_time, reverse=True)
        items = items[int(offset):]
        if limit is not None:
            items = items[: int(limit)]
        return items

    def list_all(self, user_id: str) -> Sequence[WorkSession]:
        with self._lock:
            items = [s for s in self._sessions.values() if s.user_id == user_id]
        items.sort(key=lambda s: s.start_time)
        return items

    def add_imported(self, session: WorkSession) -> bool:
        key = (session.user_id, session.session_id)
        with self._lock:
            if key in self._sessions:
                return False
            if isinstance(session, ActiveSession) and self.get_active(session.user_id) is not None:
                raise ConflictError("An active session already exists for this user")
            self._sessions[key] = session
            return True
