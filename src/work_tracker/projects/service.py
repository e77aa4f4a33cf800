from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import ensure_utc, now_utc
from ..common.validators import optional_text, require_max_length, require_non_empty
from ..core.constants import (
    DEFAULT_PROJECT_COLOR,
    DEFAULT_PROJECT_ICON,
    DEFAULT_PROJECTS,
    MAX_PROJECT_NAME_LENGTH,
)
from ..core.exceptions import NotFoundError, ValidationError
from ..sessions.repository import SessionRepository
from .model import Project, ProjectTotals
from .repository import ProjectRepository

logger = logging.getLogger(__name__)


def _clean_tag(value: Optional[str], field_name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value.strip() or default


class ProjectService:
    """Use case: manage the user's projects (the categories sessions attach to)."""

    def __init__(self, projects: ProjectRepository, sessions: SessionRepository):
        self._projects = projects
        self._sessions = sessions

    def create_project(
        self,
        user_id: str,
        *,
        name: str,
        description: Optional[str] = None,
        color: Optional[str] = None,
        icon: Optional[str] = None,
        now: datetime | None = None,
    ) -> Project:
        name = require_non_empty(name, "Project name")
        require_max_length(name, "Project name", MAX_PROJECT_NAME_LENGTH)

        project = Project(
            project_id=str(uuid.uuid4()),
            user_id=user_id,
            name=name,
            description=optional_text(description, "Description", 2000),
            color=_clean_tag(color, "Color", DEFAULT_PROJECT_COLOR),
            icon=_clean_tag(icon, "Icon", DEFAULT_PROJECT_ICON),
            created_at=ensure_utc(now or now_utc()),
            is_active=True,
        )
        self._projects.add(project)
        logger.info("Project %s created for user %s", project.project_id, user_id)
        return project

    def list_projects(self, user_id: str, *, include_inactive: bool = False) -> Sequence[Project]:
        return self._projects.list_for_user(user_id, include_inactive=include_inactive)

    def get_project(self, user_id: str, project_id: str) -> Project:
        project = self._projects.get_by_id(user_id, project_id)
        if not project:
            raise NotFoundError("Project not found")
        return project

    def update_project(
        self,
        user_id: str,
        project_id: str,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
        icon: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Project:
        if all(v is None for v in (name, description, color, icon, is_active)):
            raise ValidationError("Nothing to update")

        project = self.get_project(user_id, project_id)
        changes: dict = {}
        if name is not None:
            changes["name"] = require_non_empty(name, "Project name")
            require_max_length(changes["name"], "Project name", MAX_PROJECT_NAME_LENGTH)
        if description is not None:
            changes["description"] = optional_text(description, "Description", 2000)
        if color is not None:
            changes["color"] = _clean_tag(color, "Color", project.color)
        if icon is not None:
            changes["icon"] = _clean_tag(icon, "Icon", project.icon)
        if is_active is not None:
            if not isinstance(is_active, bool):
                raise ValidationError("is_active must be a boolean")
            changes["is_active"] = is_active

        updated = replace(project, **changes)
        if not self._projects.update(updated):
            raise NotFoundError("Project not found")
        return updated

    def archive_project(self, user_id: str, project_id: str) -> Project:
        """Soft delete: the project disappears from pickers, history keeps pointing at it."""
        return self.update_project(user_id, project_id, is_active=False)

    def delete_project(self, user_id: str, project_id: str) -> None:
        """Hard delete. Sessions are left untouched and keep their display snapshot."""
        if not self._projects.delete(user_id, project_id):
            raise NotFoundError("Project not found")
        logger.info("Project %s deleted for user %s", project_id, user_id)

    def default_project(self, user_id: str) -> Optional[Project]:
        projects = self._projects.list_for_user(user_id)
        return projects[-1] if projects else None

    def project_totals(self, user_id: str) -> Sequence[ProjectTotals]:
        totals: dict[str, list[int]] = {}
        for s in self._sessions.list_completed(user_id):
            if s.project_id is None:
                continue
            bucket = totals.setdefault(s.project_id, [0, 0])
            bucket[0] += 1
            bucket[1] += s.duration_minutes

        return [
            ProjectTotals(
                project=p,
                session_count=totals.get(p.project_id, [0, 0])[0],
                total_minutes=totals.get(p.project_id, [0, 0])[1],
            )
            for p in self._projects.list_for_user(user_id)
        ]

    def seed_default_projects(self, user_id: str, *, now: datetime | None = None) -> Sequence[Project]:
        if self._projects.list_for_user(user_id, include_inactive=True):
            return []
        now = now or now_utc()
        return [
            self.create_project(user_id, name=name, color=color, icon=icon, now=now)
            for name, color, icon in DEFAULT_PROJECTS
        ]
