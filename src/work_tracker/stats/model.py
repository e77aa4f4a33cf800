from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from ..sessions.model import ActiveSession, CompletedSession


@dataclass(frozen=True)
class WeeklyGoal:
    user_id: str
    week_start_date: date
    target_hours: int
    is_default: bool = False


@dataclass(frozen=True)
class TodaySummary:
    total_minutes: int
    session_count: int
    has_active_session: bool
    formatted: str


@dataclass(frozen=True)
class WeeklyProgress:
    """Progress toward the weekly goal.

    total_hours keeps full precision and drives percentage and remaining_hours;
    display_hours is floored and only meant for rendering.
    """

    week_start: date
    week_end: date
    total_minutes: int
    total_hours: float
    display_hours: int
    target_hours: int
    percentage: int
    remaining_hours: float
    formatted: str


@dataclass(frozen=True)
class Dashboard:
    today: TodaySummary
    weekly: WeeklyProgress
    streak: int
    active_session: Optional[ActiveSession]
    active_elapsed_minutes: int
    recent_sessions: Sequence[CompletedSession] = field(default_factory=tuple)
