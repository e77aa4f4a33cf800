from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import ActiveSession, CancelledSession, CompletedSession, DailyStat, WorkSession


class SessionRepository(Protocol):
    """Session store.

    Implementations must guarantee at most one active session per user
    (`add_active` raises ConflictError otherwise) and must apply `complete`
    atomically: the session update and the daily stat upsert both happen or
    neither does.
    """

    def get_active(self, user_id: str) -> Optional[ActiveSession]:
        raise NotImplementedError

    def get_by_id(self, user_id: str, session_id: str) -> Optional[WorkSession]:
        raise NotImplementedError

    def add_active(self, session: ActiveSession) -> None:
        raise NotImplementedError

    def complete(
        self,
        *,
        user_id: str,
        session_id: str,
        end_time: datetime,
        duration_minutes: int,
        stat_date: date,
    ) -> Optional[tuple[CompletedSession, DailyStat]]:
        """Returns None when the session is no longer active (nothing is written)."""

        raise NotImplementedError

    def discard_active(self, user_id: str, session_id: str) -> bool:
        raise NotImplementedError

    def cancel_active(self, user_id: str, *, cancelled_at: datetime) -> Optional[CancelledSession]:
        raise NotImplementedError

    def update_notes(self, user_id: str, session_id: str, notes: Optional[str]) -> Optional[WorkSession]:
        raise NotImplementedError

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
        """Completed sessions with start_time in [start, end), newest first."""

        raise NotImplementedError

    def list_all(self, user_id: str) -> Sequence[WorkSession]:
        """Every session of the user (any status), oldest first."""

        raise NotImplementedError

    def add_imported(self, session: WorkSession) -> bool:
        """Insert a session restored from an export. False if the id already exists."""

        raise NotImplementedError
