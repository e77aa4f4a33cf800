from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Project:
    """Domain entity: a user-defined category that sessions are tracked against."""

    project_id: str
    user_id: str
    name: str
    color: str
    icon: str
    created_at: datetime
    is_active: bool = True
    description: Optional[str] = None


@dataclass(frozen=True)
class ProjectTotals:
    """Read-model: a project with its completed-session totals."""

    project: Project
    session_count: int
    total_minutes: int
