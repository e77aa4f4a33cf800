from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, tzinfo, timezone
from typing import Optional, Sequence

from ..common.datetime_utils import (
    day_bounds,
    elapsed_minutes,
    elapsed_seconds,
    ensure_utc,
    local_date,
    now_utc,
)
from ..common.validators import optional_text, require_date_order, require_int_range
from ..core.constants import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_RECENT_LIMIT,
    FALLBACK_PROJECT_COLOR,
    FALLBACK_PROJECT_ICON,
    FALLBACK_PROJECT_NAME,
    MAX_HISTORY_LIMIT,
    MAX_NOTES_LENGTH,
    MIN_SESSION_MINUTES,
)
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..projects.repository import ProjectRepository
from .model import (
    ActiveSession,
    CancelledSession,
    CompletedSession,
    ProjectSnapshot,
    PunchOutResult,
    SessionCompleted,
    SessionDiscarded,
    WorkSession,
)
from .repository import SessionRepository

logger = logging.getLogger(__name__)

FALLBACK_SNAPSHOT = ProjectSnapshot(
    name=FALLBACK_PROJECT_NAME,
    color=FALLBACK_PROJECT_COLOR,
    icon=FALLBACK_PROJECT_ICON,
)


class SessionService:
    """Punch in / punch out state machine.

    NoActiveSession -> Active -> {Completed, Cancelled}. A user holds at most
    one Active session; the store enforces it as well, so two racing punch ins
    end with exactly one ConflictError.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        projects: ProjectRepository,
        *,
        tz: tzinfo = timezone.utc,
    ):
        self._sessions = sessions
        self._projects = projects
        self._tz = tz

    def _resolve_project(self, user_id: str, project_id: Optional[str]) -> tuple[Optional[str], ProjectSnapshot]:
        if project_id:
            project = self._projects.get_by_id(user_id, project_id)
            if not project:
                raise NotFoundError("Project not found")
            if not project.is_active:
                raise ValidationError("Project is archived")
        else:
            active_projects = self._projects.list_for_user(user_id)
            # Oldest active project is the user's default
            project = active_projects[-1] if active_projects else None

        if project is None:
            return None, FALLBACK_SNAPSHOT
        return project.project_id, ProjectSnapshot(name=project.name, color=project.color, icon=project.icon)

    def punch_in(
        self,
        user_id: str,
        *,
        project_id: Optional[str] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> ActiveSession:
        now = ensure_utc(now or now_utc())
        notes = optional_text(notes, "Notes", MAX_NOTES_LENGTH)

        if self._sessions.get_active(user_id) is not None:
            raise ConflictError("You already have an active session. Please punch out first.")

        resolved_id, snapshot = self._resolve_project(user_id, project_id)
        session = ActiveSession(
            session_id=str(uuid.uuid4()),
            user_id=user_id,
            project_id=resolved_id,
            project=snapshot,
            start_time=now,
            notes=notes,
        )
        self._sessions.add_active(session)
        logger.info("User %s punched in (session %s, project %s)", user_id, session.session_id, snapshot.name)
        return session

    def punch_out(self, user_id: str, *, now: datetime | None = None) -> PunchOutResult:
        now = ensure_utc(now or now_utc())

        active = self._sessions.get_active(user_id)
        if active is None:
            raise NotFoundError("No active session found")

        duration = elapsed_minutes(active.start_time, now)
        if duration < MIN_SESSION_MINUTES:
            if not self._sessions.discard_active(user_id, active.session_id):
                raise NotFoundError("No active session found")
            seconds = elapsed_seconds(active.start_time, now)
            logger.warning("Session %s discarded: too short (%ss)", active.session_id, seconds)
            return SessionDiscarded(session=active, elapsed_seconds=seconds)

        result = self._sessions.complete(
            user_id=user_id,
            session_id=active.session_id,
            end_time=now,
            duration_minutes=duration,
            stat_date=local_date(active.start_time, self._tz),
        )
        if result is None:
            # Punched out or cancelled by a concurrent request
            raise NotFoundError("No active session found")

        completed, stat = result
        logger.info("User %s punched out (session %s, %s min)", user_id, completed.session_id, duration)
        return SessionCompleted(session=completed, daily_stat=stat)

    def cancel_session(self, user_id: str, *, now: datetime | None = None) -> Optional[CancelledSession]:
        cancelled = self._sessions.cancel_active(user_id, cancelled_at=ensure_utc(now or now_utc()))
        if cancelled is not None:
            logger.info("User %s cancelled session %s", user_id, cancelled.session_id)
        return cancelled

    def get_active_session(self, user_id: str) -> Optional[ActiveSession]:
        return self._sessions.get_active(user_id)

    def current_elapsed(self, user_id: str, *, now: datetime | None = None) -> int:
        active = self._sessions.get_active(user_id)
        if active is None:
            return 0
        return elapsed_minutes(active.start_time, now or now_utc())

    def recent_sessions(self, user_id: str, *, limit: int = DEFAULT_RECENT_LIMIT) -> Sequence[CompletedSession]:
        limit = require_int_range(limit, "Limit", 1, MAX_HISTORY_LIMIT)
        return self._sessions.list_completed(user_id, limit=limit)

    def history(
        self,
        user_id: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        project_id: Optional[str] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> Sequence[CompletedSession]:
        require_date_order(start_date, end_date)
        limit = require_int_range(limit, "Limit", 1, MAX_HISTORY_LIMIT)
        if int(offset) < 0:
            raise ValidationError("Offset must be a non-negative integer")

        start = day_bounds(start_date, self._tz)[0] if start_date else None
        end = day_bounds(end_date, self._tz)[1] if end_date else None
        return self._sessions.list_completed(
            user_id,
            start=start,
            end=end,
            project_id=project_id,
            limit=limit,
            offset=int(offset),
        )

    def get_session(self, user_id: str, session_id: str) -> WorkSession:
        session = self._sessions.get_by_id(user_id, session_id)
        if session is None:
            raise NotFoundError("Session not found")
        return session

    def update_notes(self, user_id: str, session_id: str, notes: Optional[str]) -> WorkSession:
        notes = optional_text(notes, "Notes", MAX_NOTES_LENGTH)
        session = self._sessions.update_notes(user_id, session_id, notes)
        if session is None:
            raise NotFoundError("Session not found")
        return session
