import os

def get_settings_module() -> str:
    # APP_ENV selects the settings module, 'development' by default
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "work_tracker.config.production"

    if env in {"test", "testing"}:
        return "work_tracker.config.testing"

    return "work_tracker.config.development"
