import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "work_tracker_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory")
TIMEZONE = os.getenv("TIMEZONE", "UTC")

DEFAULT_WEEKLY_GOAL_HOURS = 40
RECENT_SESSIONS_LIMIT = 3

AUTO_INIT_DB = False
AUTO_SEED_DB = False
