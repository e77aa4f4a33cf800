from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .common.datetime_utils import load_timezone
from .core.constants import DEFAULT_DASHBOARD_RECENT_LIMIT, DEFAULT_WEEKLY_GOAL_HOURS
from .core.enums import StorageBackend
from .core.exceptions import ValidationError
from .projects.repository import ProjectRepository
from .projects.service import ProjectService
from .sessions.repository import SessionRepository
from .sessions.service import SessionService
from .stats.repository import StatRepository
from .stats.service import StatisticsService
from .transfer.service import TransferService


@dataclass(frozen=True)
class Container:
    backend: StorageBackend

    projects_repo: ProjectRepository
    sessions_repo: SessionRepository
    stats_repo: StatRepository

    project_service: ProjectService
    session_service: SessionService
    statistics_service: StatisticsService
    transfer_service: TransferService

    recent_sessions_limit: int = DEFAULT_DASHBOARD_RECENT_LIMIT
    seed_default_projects: bool = False


def _build_memory_repos():
    from .projects.memory_project_repository import InMemoryProjectRepository
    from .sessions.memory_session_repository import InMemorySessionRepository
    from .stats.memory_stat_repository import InMemoryStatRepository

    stats_repo = InMemoryStatRepository()
    return InMemoryProjectRepository(), InMemorySessionRepository(stats_repo), stats_repo


def _build_mysql_repos(db_config: dict):
    from .database.connection import DBConfig, DatabaseConnection
    from .projects.mysql_project_repository import MySQLProjectRepository
    from .sessions.mysql_session_repository import MySQLSessionRepository
    from .stats.mysql_stat_repository import MySQLStatRepository

    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return MySQLProjectRepository(conn), MySQLSessionRepository(conn), MySQLStatRepository(conn)


def build_container(
    *,
    backend: str | StorageBackend = StorageBackend.MYSQL,
    db_config: Optional[dict] = None,
    timezone_name: str = "UTC",
    default_goal_hours: int = DEFAULT_WEEKLY_GOAL_HOURS,
    recent_sessions_limit: int = DEFAULT_DASHBOARD_RECENT_LIMIT,
    seed_default_projects: bool = False,
) -> Container:
    try:
        backend = StorageBackend(backend)
    except ValueError:
        raise ValidationError(f"Unknown storage backend: {backend!r}")

    if backend == StorageBackend.MYSQL:
        if not db_config:
            raise ValidationError("DB_CONFIG is required for the mysql backend")
        projects_repo, sessions_repo, stats_repo = _build_mysql_repos(db_config)
    else:
        projects_repo, sessions_repo, stats_repo = _build_memory_repos()

    tz = load_timezone(timezone_name)

    project_service = ProjectService(projects_repo, sessions_repo)
    session_service = SessionService(sessions_repo, projects_repo, tz=tz)
    statistics_service = StatisticsService(
        sessions_repo,
        stats_repo,
        tz=tz,
        default_goal_hours=default_goal_hours,
    )
    transfer_service = TransferService(projects_repo, sessions_repo, statistics_service, tz=tz)

    return Container(
        backend=backend,
        projects_repo=projects_repo,
        sessions_repo=sessions_repo,
        stats_repo=stats_repo,
        project_service=project_service,
        session_service=session_service,
        statistics_service=statistics_service,
        transfer_service=transfer_service,
        recent_sessions_limit=int(recent_sessions_limit),
        seed_default_projects=bool(seed_default_projects),
    )
