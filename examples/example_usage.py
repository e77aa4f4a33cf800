"""Example: drive the service layer directly, without Flask.

Controllers are a thin layer; the tracking rules live in the services.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from work_tracker.container import build_container


def main():
    container = build_container(backend="memory")
    user_id = "demo-user"
    container.project_service.seed_default_projects(user_id)

    start = datetime.now(timezone.utc)
    session = container.session_service.punch_in(user_id, notes="Morning block", now=start)
    print("Punched in:", session.project.name, session.start_time.isoformat())

    result = container.session_service.punch_out(user_id, now=start + timedelta(minutes=95))
    print("Punched out:", result.session.duration_minutes, "min, today so far:", result.daily_stat.total_minutes)

    weekly = container.statistics_service.weekly_progress(user_id, now=start + timedelta(minutes=96))
    print("This week:", weekly.formatted, f"({weekly.percentage}%)")

    print(container.transfer_service.export_json(user_id, user_name="Demo"))


if __name__ == "__main__":
    main()
