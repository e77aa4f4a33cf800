import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "work_tracker"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# 'mysql' or 'memory'
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "mysql")

# Calendar days and weeks are cut at midnight in this zone
TIMEZONE = os.getenv("TIMEZONE", "UTC")

DEFAULT_WEEKLY_GOAL_HOURS = int(os.getenv("DEFAULT_WEEKLY_GOAL_HOURS", "40"))
RECENT_SESSIONS_LIMIT = int(os.getenv("RECENT_SESSIONS_LIMIT", "3"))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
