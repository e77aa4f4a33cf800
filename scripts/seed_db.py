"""Seed the default projects for one user.

Usage: python scripts/seed_db.py <user_id>   (or set SEED_USER_ID)
"""

from __future__ import annotations

import importlib
import os
import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from work_tracker.config import get_settings_module
from work_tracker.container import build_container


def main() -> None:
    user_id = sys.argv[1] if len(sys.argv) > 1 else os.getenv("SEED_USER_ID", "")
    if not user_id:
        raise SystemExit("Usage: seed_db.py <user_id> (or set SEED_USER_ID)")

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    container = build_container(
        backend=getattr(settings, "STORAGE_BACKEND", "mysql"),
        db_config=db_config,
        timezone_name=getattr(settings, "TIMEZONE", "UTC"),
    )

    created = container.project_service.seed_default_projects(user_id)
    if not created:
        print(f"SKIP: user {user_id} already has projects")
        return

    print(
        f"OK: Seeded {len(created)} project(s) for user {user_id} -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
