from __future__ import annotations

import threading
from typing import Optional, Sequence

from .model import Project
from .repository import ProjectRepository


class InMemoryProjectRepository(ProjectRepository):
    def __init__(self):
        self._lock = threading.Lock()
        self._projects: dict[tuple[str, str], Project] = {}

    def get_by_id(self, user_id: str, project_id: str) -> Optional[Project]:
        with self._lock:
            return self._projects.get((user_id, project_id))

    def list_for_user(self, user_id: str, *, include_inactive: bool = False) -> Sequence[Project]:
        with self._lock:
            items = [
                p
                for p in self._projects.values()
                if p.user_id == user_id and (include_inactive or p.is_active)
            ]
        # Stable for equal timestamps: later insertions count as newer
        indexed = list(enumerate(items))
        indexed.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
        return [p for _, p in indexed]

    def add(self, project: Project) -> None:
        with self._lock:
            self._projects[(project.user_id, project.project_id)] = project

    def update(self, project: Project) -> bool:
        with self._lock:
            key = (project.user_id, project.project_id)
            if key not in self._projects:
                return False
            self._projects[key] = project
            return True

    def delete(self, user_id: str, project_id: str) -> bool:
        with self._lock:
            return self._projects.pop((user_id, project_id), None) is not None
