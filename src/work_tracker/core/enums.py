from __future__ import annotations

from enum import Enum


class SessionStatus(str, Enum):
    """Lifecycle state of a work session as stored in the database."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StorageBackend(str, Enum):
    MYSQL = "mysql"
    MEMORY = "memory"
