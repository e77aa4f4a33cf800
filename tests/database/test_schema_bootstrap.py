from __future__ import annotations

from datetime import datetime, timedelta, timezone

from work_tracker.database.bootstrap import SCHEMA_PATH, split_schema
from work_tracker.database.mysql_base import from_db_datetime, to_db_datetime


def test_shipped_schema_splits_into_tables():
    statements = split_schema(SCHEMA_PATH.read_text(encoding="utf-8"))

    assert len(statements) == 4
    assert all(s.upper().startswith("CREATE TABLE IF NOT EXISTS") for s in statements)
    assert "uq_work_sessions_one_active" in statements[1]


def test_split_keeps_semicolons_inside_quotes():
    sql = "-- seed\nINSERT INTO t VALUES ('a;b');\nINSERT INTO t VALUES (\"c;d\")"

    assert split_schema(sql) == ["INSERT INTO t VALUES ('a;b')", 'INSERT INTO t VALUES ("c;d")']


def test_datetime_columns_hold_naive_utc():
    aware = datetime(2026, 3, 4, 10, 0, tzinfo=timezone(timedelta(hours=1)))

    stored = to_db_datetime(aware)
    assert stored == datetime(2026, 3, 4, 9, 0)
    assert stored.tzinfo is None

    assert from_db_datetime(stored) == datetime(2026, 3, 4, 9, 0, tzinfo=timezone.utc)
    assert from_db_datetime(None) is None
    assert to_db_datetime(None) is None
