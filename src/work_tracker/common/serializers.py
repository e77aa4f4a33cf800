"""JSON shapes returned by the HTTP layer (snake_case, ISO 8601 UTC instants)."""

from __future__ import annotations

from typing import Optional

from ..projects.model import Project, ProjectTotals
from ..sessions.model import CancelledSession, CompletedSession, DailyStat, WorkSession
from ..stats.model import Dashboard, TodaySummary, WeeklyGoal, WeeklyProgress
from .datetime_utils import format_duration, format_iso_datetime


def project_json(p: Project) -> dict:
    return {
        "id": p.project_id,
        "name": p.name,
        "description": p.description,
        "color": p.color,
        "icon": p.icon,
        "created_at": format_iso_datetime(p.created_at),
        "is_active": p.is_active,
    }


def project_totals_json(t: ProjectTotals) -> dict:
    return dict(
        project_json(t.project),
        session_count=t.session_count,
        total_minutes=t.total_minutes,
        formatted=format_duration(t.total_minutes),
    )


def session_json(s: Optional[WorkSession]) -> Optional[dict]:
    if s is None:
        return None
    data = {
        "id": s.session_id,
        "project_id": s.project_id,
        "project_name": s.project.name,
        "project_color": s.project.color,
        "project_icon": s.project.icon,
        "start_time": format_iso_datetime(s.start_time),
        "end_time": None,
        "duration_minutes": None,
        "notes": s.notes,
        "status": s.status.value,
    }
    if isinstance(s, CompletedSession):
        data["end_time"] = format_iso_datetime(s.end_time)
        data["duration_minutes"] = s.duration_minutes
        data["formatted_duration"] = format_duration(s.duration_minutes)
    elif isinstance(s, CancelledSession):
        data["cancelled_at"] = format_iso_datetime(s.cancelled_at)
    return data


def daily_stat_json(s: DailyStat) -> dict:
    return {
        "date": s.stat_date.isoformat(),
        "total_minutes": s.total_minutes,
        "session_count": s.session_count,
    }


def today_json(t: TodaySummary) -> dict:
    return {
        "total_minutes": t.total_minutes,
        "hours": t.total_minutes // 60,
        "minutes": t.total_minutes % 60,
        "session_count": t.session_count,
        "has_active_session": t.has_active_session,
        "formatted": t.formatted,
    }


def weekly_json(w: WeeklyProgress) -> dict:
    return {
        "week_start": w.week_start.isoformat(),
        "week_end": w.week_end.isoformat(),
        "total_minutes": w.total_minutes,
        "total_hours": round(w.total_hours, 1),
        "display_hours": w.display_hours,
        "target_hours": w.target_hours,
        "percentage": w.percentage,
        "remaining_hours": round(w.remaining_hours, 1),
        "formatted": w.formatted,
    }


def streak_json(days: int) -> dict:
    return {"days": days, "formatted": f"{days} {'Day' if days == 1 else 'Days'}"}


def goal_json(g: WeeklyGoal) -> dict:
    return {
        "week_start_date": g.week_start_date.isoformat(),
        "target_hours": g.target_hours,
        "is_default": g.is_default,
    }


def dashboard_json(d: Dashboard) -> dict:
    active = session_json(d.active_session)
    if active is not None:
        active["current_duration_minutes"] = d.active_elapsed_minutes
        active["formatted_duration"] = format_duration(d.active_elapsed_minutes)
    return {
        "today": today_json(d.today),
        "weekly": weekly_json(d.weekly),
        "streak": streak_json(d.streak),
        "active_session": active,
        "recent_sessions": [session_json(s) for s in d.recent_sessions],
    }
