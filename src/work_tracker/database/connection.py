from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict

import mysql.connector

# Stored DATETIME values are naive UTC
SESSION_TIME_ZONE = "+00:00"


@dataclass(frozen=True)
class DBConfig:
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "work_tracker"

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        defaults = cls()
        return cls(
            host=str(db_config.get("host") or defaults.host),
            port=int(db_config.get("port") or defaults.port),
            user=str(db_config.get("user") or defaults.user),
            password=str(db_config.get("password") or ""),
            database=str(db_config.get("database") or defaults.database),
        )

    def connect_kwargs(self, *, with_database: bool = True) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
        }
        if with_database:
            kwargs["database"] = self.database
        return kwargs


class DatabaseConnection:
    """Opens one MySQL connection per unit of work.

    Repositories share a factory per distinct `DBConfig`; `db_cursor` closes
    every connection it receives, so no pool is kept here.
    """

    _factories: ClassVar[Dict[DBConfig, "DatabaseConnection"]] = {}

    def __init__(self, config: DBConfig):
        self.config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        factory = cls._factories.get(config)
        if factory is None:
            factory = cls._factories[config] = cls(config)
        return factory

    def connect(self):
        return mysql.connector.connect(time_zone=SESSION_TIME_ZONE, **self.config.connect_kwargs())
