from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import Project
from .repository import ProjectRepository

_COLUMNS = "project_id, user_id, name, description, color, icon, created_at, is_active"


def _row_to_project(r: dict) -> Project:
    return Project(
        project_id=str(r["project_id"]),
        user_id=str(r["user_id"]),
        name=r["name"],
        description=r.get("description"),
        color=r["color"],
        icon=r["icon"],
        created_at=from_db_datetime(r["created_at"]),
        is_active=bool(r["is_active"]),
    )


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str, project_id: str) -> Optional[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM projects WHERE project_id=%s AND user_id=%s",
                (project_id, user_id),
            )
            r = fetchone(cur)
            return _row_to_project(r) if r else None

    def list_for_user(self, user_id: str, *, include_inactive: bool = False) -> Sequence[Project]:
        where = "user_id=%s" if include_inactive else "user_id=%s AND is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM projects WHERE {where} ORDER BY created_at DESC",
                (user_id,),
            )
            return [_row_to_project(r) for r in fetchall(cur)]

    def add(self, project: Project) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO projects(project_id, user_id, name, description, color, icon, created_at, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    project.project_id,
                    project.user_id,
                    project.name,
                    project.description,
                    project.color,
                    project.icon,
                    to_db_datetime(project.created_at),
                    int(project.is_active),
                ),
            )

    def update(self, project: Project) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE projects
                SET name=%s, description=%s, color=%s, icon=%s, is_active=%s
                WHERE project_id=%s AND user_id=%s
                """,
                (
                    project.name,
                    project.description,
                    project.color,
                    project.icon,
                    int(project.is_active),
                    project.project_id,
                    project.user_id,
                ),
            )
            # MySQL reports 0 affected rows when values are unchanged
            if cur.rowcount > 0:
                return True
            cur.execute(
                "SELECT 1 AS found FROM projects WHERE project_id=%s AND user_id=%s",
                (project.project_id, project.user_id),
            )
            return fetchone(cur) is not None

    def delete(self, user_id: str, project_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM projects WHERE project_id=%s AND user_id=%s", (project_id, user_id))
            return cur.rowcount > 0
