"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_WEEKLY_GOAL_HOURS = 40
MIN_WEEKLY_GOAL_HOURS = 1
MAX_WEEKLY_GOAL_HOURS = 168

# Sessions shorter than this are discarded at punch out
MIN_SESSION_MINUTES = 1

DEFAULT_RECENT_LIMIT = 10
DEFAULT_DASHBOARD_RECENT_LIMIT = 3
DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 100

MAX_NOTES_LENGTH = 1000
MAX_PROJECT_NAME_LENGTH = 255

DEFAULT_PROJECT_COLOR = "blue"
DEFAULT_PROJECT_ICON = "folder"

# Snapshot used when a user punches in without any project
FALLBACK_PROJECT_NAME = "General Work"
FALLBACK_PROJECT_COLOR = "blue"
FALLBACK_PROJECT_ICON = "work"

DEFAULT_PROJECTS = (
    ("Brand Identity Design", "blue", "palette"),
    ("Frontend Development", "amber", "code"),
    ("Documentation", "purple", "description"),
)

EXPORT_FORMAT_VERSION = 1
