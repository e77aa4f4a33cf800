from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Project


class ProjectRepository(Protocol):
    """Repository interface for Project.

    Services depend on this interface, not on a concrete storage.
    """

    def get_by_id(self, user_id: str, project_id: str) -> Optional[Project]:
        raise NotImplementedError

    def list_for_user(self, user_id: str, *, include_inactive: bool = False) -> Sequence[Project]:
        """Newest first."""

        raise NotImplementedError

    def add(self, project: Project) -> None:
        raise NotImplementedError

    def update(self, project: Project) -> bool:
        raise NotImplementedError

    def delete(self, user_id: str, project_id: str) -> bool:
        raise NotImplementedError
