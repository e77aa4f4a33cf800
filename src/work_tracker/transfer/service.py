from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Optional

from ..common.datetime_utils import (
    elapsed_minutes,
    ensure_utc,
    format_iso_datetime,
    local_date,
    now_utc,
    parse_iso_datetime,
)
from ..common.validators import require_int_range
from ..core.constants import (
    DEFAULT_PROJECT_COLOR,
    DEFAULT_PROJECT_ICON,
    EXPORT_FORMAT_VERSION,
    FALLBACK_PROJECT_COLOR,
    FALLBACK_PROJECT_ICON,
    FALLBACK_PROJECT_NAME,
    MAX_WEEKLY_GOAL_HOURS,
    MIN_WEEKLY_GOAL_HOURS,
)
from ..core.enums import SessionStatus
from ..core.exceptions import ValidationError
from ..projects.model import Project
from ..projects.repository import ProjectRepository
from ..sessions.model import (
    ActiveSession,
    CancelledSession,
    CompletedSession,
    ProjectSnapshot,
    WorkSession,
)
from ..sessions.repository import SessionRepository
from ..stats.service import StatisticsService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportSummary:
    projects_imported: int
    sessions_imported: int
    skipped: int
    user_name: Optional[str]
    weekly_goal: Optional[int]


def _project_to_dict(p: Project) -> dict:
    return {
        "id": p.project_id,
        "name": p.name,
        "description": p.description,
        "color": p.color,
        "icon": p.icon,
        "createdAt": format_iso_datetime(p.created_at),
        "isActive": p.is_active,
    }


def _session_to_dict(s: WorkSession) -> dict:
    data = {
        "id": s.session_id,
        "projectId": s.project_id,
        "projectName": s.project.name,
        "projectColor": s.project.color,
        "projectIcon": s.project.icon,
        "startTime": format_iso_datetime(s.start_time),
        "notes": s.notes,
        "status": s.status.value,
    }
    if isinstance(s, CompletedSession):
        data["endTime"] = format_iso_datetime(s.end_time)
        data["durationMinutes"] = s.duration_minutes
    elif isinstance(s, CancelledSession):
        data["cancelledAt"] = format_iso_datetime(s.cancelled_at)
    return data


def _require(entry: dict, key: str, kind: str) -> Any:
    value = entry.get(key)
    if value is None or value == "":
        raise ValidationError(f"{kind} entry is missing '{key}'")
    return value


def _project_from_dict(user_id: str, entry: Any) -> Project:
    if not isinstance(entry, dict):
        raise ValidationError("Project entry must be an object")
    is_active = entry.get("isActive", True)
    if not isinstance(is_active, bool):
        raise ValidationError("Project isActive must be a boolean")
    return Project(
        project_id=str(_require(entry, "id", "Project")),
        user_id=user_id,
        name=str(_require(entry, "name", "Project")),
        description=entry.get("description"),
        color=entry.get("color") or DEFAULT_PROJECT_COLOR,
        icon=entry.get("icon") or DEFAULT_PROJECT_ICON,
        created_at=parse_iso_datetime(_require(entry, "createdAt", "Project")),
        is_active=is_active,
    )


def _session_from_dict(user_id: str, entry: Any) -> WorkSession:
    if not isinstance(entry, dict):
        raise ValidationError("Session entry must be an object")

    try:
        status = SessionStatus(entry.get("status", SessionStatus.COMPLETED.value))
    except ValueError:
        raise ValidationError(f"Unknown session status: {entry.get('status')!r}")

    common = dict(
        session_id=str(_require(entry, "id", "Session")),
        user_id=user_id,
        project_id=entry.get("projectId"),
        project=ProjectSnapshot(
            name=entry.get("projectName") or FALLBACK_PROJECT_NAME,
            color=entry.get("projectColor") or FALLBACK_PROJECT_COLOR,
            icon=entry.get("projectIcon") or FALLBACK_PROJECT_ICON,
        ),
        start_time=parse_iso_datetime(_require(entry, "startTime", "Session")),
        notes=entry.get("notes") or None,
    )

    if status == SessionStatus.ACTIVE:
        return ActiveSession(**common)
    if status == SessionStatus.CANCELLED:
        cancelled_at = entry.get("cancelledAt")
        return CancelledSession(
            cancelled_at=parse_iso_datetime(cancelled_at) if cancelled_at else None,
            **common,
        )

    end_time = parse_iso_datetime(_require(entry, "endTime", "Session"))
    duration = require_int_range(_require(entry, "durationMinutes", "Session"), "durationMinutes", 1, 10**7)
    if end_time < common["start_time"]:
        raise ValidationError("Session endTime is before startTime")
    if duration != elapsed_minutes(common["start_time"], end_time):
        raise ValidationError("Session durationMinutes does not match startTime and endTime")
    return CompletedSession(end_time=end_time, duration_minutes=duration, **common)


class TransferService:
    """Export a user's whole state as one JSON document and import it back."""

    def __init__(
        self,
        projects: ProjectRepository,
        sessions: SessionRepository,
        statistics: StatisticsService,
        *,
        tz: tzinfo = timezone.utc,
    ):
        self._projects = projects
        self._sessions = sessions
        self._statistics = statistics
        self._tz = tz

    def export_user(self, user_id: str, *, user_name: Optional[str] = None, now: datetime | None = None) -> dict:
        now = ensure_utc(now or now_utc())
        sessions = list(self._sessions.list_all(user_id))
        active = next((s for s in sessions if isinstance(s, ActiveSession)), None)
        goal = self._statistics.get_weekly_goal(user_id, now=now)

        return {
            "version": EXPORT_FORMAT_VERSION,
            "exportDate": format_iso_datetime(now),
            "userName": user_name,
            "weeklyGoal": goal.target_hours,
            "projects": [_project_to_dict(p) for p in self._projects.list_for_user(user_id, include_inactive=True)],
            # newest first, like the recent list
            "sessions": [_session_to_dict(s) for s in reversed(sessions) if not isinstance(s, ActiveSession)],
            "activeSession": _session_to_dict(active) if active else None,
        }

    def export_json(self, user_id: str, *, user_name: Optional[str] = None, now: datetime | None = None) -> str:
        return json.dumps(self.export_user(user_id, user_name=user_name, now=now), indent=2, ensure_ascii=False)

    def import_user(self, user_id: str, document: Any, *, now: datetime | None = None) -> ImportSummary:
        if isinstance(document, (str, bytes)):
            try:
                document = json.loads(document)
            except ValueError:
                raise ValidationError("Import file is not valid JSON")
        if not isinstance(document, dict):
            raise ValidationError("Import document must be an object")

        version = document.get("version", EXPORT_FORMAT_VERSION)
        if version != EXPORT_FORMAT_VERSION:
            raise ValidationError(f"Unsupported export version: {version!r}")

        raw_projects = document.get("projects") or []
        raw_sessions = document.get("sessions") or []
        if not isinstance(raw_projects, list) or not isinstance(raw_sessions, list):
            raise ValidationError("'projects' and 'sessions' must be lists")
        raw_sessions = list(raw_sessions)

        raw_active = document.get("activeSession")
        if raw_active:
            if not isinstance(raw_active, dict):
                raise ValidationError("'activeSession' must be an object")
            raw_sessions.append(dict(raw_active, status=SessionStatus.ACTIVE.value))

        # Parse everything first so a malformed document writes nothing
        projects = [_project_from_dict(user_id, p) for p in raw_projects]
        sessions = [_session_from_dict(user_id, s) for s in raw_sessions]

        weekly_goal = document.get("weeklyGoal")
        if weekly_goal is not None:
            weekly_goal = require_int_range(weekly_goal, "weeklyGoal", MIN_WEEKLY_GOAL_HOURS, MAX_WEEKLY_GOAL_HOURS)

        skipped = 0
        projects_imported = 0
        for p in projects:
            if self._projects.get_by_id(user_id, p.project_id):
                skipped += 1
                continue
            self._projects.add(p)
            projects_imported += 1

        sessions_imported = 0
        touched_days: set[date] = set()
        for s in sessions:
            if isinstance(s, ActiveSession) and self._sessions.get_active(user_id) is not None:
                skipped += 1
                continue
            if not self._sessions.add_imported(s):
                skipped += 1
                continue
            sessions_imported += 1
            if isinstance(s, CompletedSession):
                touched_days.add(local_date(s.start_time, self._tz))

        if touched_days:
            self._statistics.reconcile_daily_stats(user_id, start_date=min(touched_days), end_date=max(touched_days))

        if weekly_goal is not None:
            self._statistics.set_weekly_goal(user_id, weekly_goal, now=now)

        logger.info(
            "Import for user %s: %s project(s), %s session(s), %s skipped",
            user_id,
            projects_imported,
            sessions_imported,
            skipped,
        )
        return ImportSummary(
            projects_imported=projects_imported,
            sessions_imported=sessions_imported,
            skipped=skipped,
            user_name=document.get("userName"),
            weekly_goal=weekly_goal,
        )
