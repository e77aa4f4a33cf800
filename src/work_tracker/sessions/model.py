from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import ClassVar, Optional, Union

from ..core.enums import SessionStatus


@dataclass(frozen=True)
class ProjectSnapshot:
    """Project display fields copied onto a session at punch in.

    Sessions keep these even after the project is renamed, archived or deleted.
    """

    name: str
    color: str
    icon: str


@dataclass(frozen=True)
class ActiveSession:
    """In-progress session. Has no end time and no duration by construction."""

    status: ClassVar[SessionStatus] = SessionStatus.ACTIVE

    session_id: str
    user_id: str
    project_id: Optional[str]
    project: ProjectSnapshot
    start_time: datetime
    notes: Optional[str] = None


@dataclass(frozen=True)
class CompletedSession:
    status: ClassVar[SessionStatus] = SessionStatus.COMPLETED

    session_id: str
    user_id: str
    project_id: Optional[str]
    project: ProjectSnapshot
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    notes: Optional[str] = None


@dataclass(frozen=True)
class CancelledSession:
    status: ClassVar[SessionStatus] = SessionStatus.CANCELLED

    session_id: str
    user_id: str
    project_id: Optional[str]
    project: ProjectSnapshot
    start_time: datetime
    cancelled_at: Optional[datetime] = None
    notes: Optional[str] = None


WorkSession = Union[ActiveSession, CompletedSession, CancelledSession]


@dataclass(frozen=True)
class DailyStat:
    """Materialized per-user, per-local-day total. Always rebuildable from completed sessions."""

    user_id: str
    stat_date: date
    total_minutes: int
    session_count: int


@dataclass(frozen=True)
class SessionCompleted:
    """Punch out outcome: the session was recorded."""

    session: CompletedSession
    daily_stat: DailyStat

    discarded: ClassVar[bool] = False


@dataclass(frozen=True)
class SessionDiscarded:
    """Punch out outcome: the session was shorter than a minute and dropped.

    This is a policy result, not an error.
    """

    session: ActiveSession
    elapsed_seconds: int

    discarded: ClassVar[bool] = True


PunchOutResult = Union[SessionCompleted, SessionDiscarded]
