from __future__ import annotations

from datetime import datetime, timezone

import pytest

from work_tracker.container import Container, build_container

# Wednesday; the week runs Mon 2026-03-02 .. Sun 2026-03-08
NOW = datetime(2026, 3, 4, 9, 0, 0, tzinfo=timezone.utc)
USER = "user-1"


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def user_id() -> str:
    return USER


@pytest.fixture
def container() -> Container:
    return build_container(backend="memory")


@pytest.fixture
def sessions(container):
    return container.session_service


@pytest.fixture
def projects(container):
    return container.project_service


@pytest.fixture
def statistics(container):
    return container.statistics_service


@pytest.fixture
def transfer(container):
    return container.transfer_service
