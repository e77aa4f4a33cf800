from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import get_settings_module
from .container import build_container
from .core.enums import StorageBackend
from .core.exceptions import DomainError
from .database.bootstrap import apply_schema, list_tables
from .projects.controller import register as register_projects
from .sessions.controller import register as register_sessions
from .stats.controller import register as register_statistics
from .transfer.controller import register as register_transfer

logger = logging.getLogger(__name__)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return jsonify({"success": False, "error": str(e)}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"success": False, "error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error")
        message = str(e) if app.config["DEBUG"] else "Internal server error"
        return jsonify({"success": False, "error": message}), 500


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    backend = StorageBackend(getattr(settings, "STORAGE_BACKEND", StorageBackend.MYSQL.value))
    db_config = getattr(settings, "DB_CONFIG", None)
    logger.info("settings=%s backend=%s", settings_module, backend.value)

    if backend == StorageBackend.MYSQL and getattr(settings, "AUTO_INIT_DB", False):
        apply_schema(db_config)
        logger.info(
            "Schema ready on %s@%s:%s/%s (tables=%s)",
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
            len(list_tables(db_config)),
        )

    container = build_container(
        backend=backend,
        db_config=db_config,
        timezone_name=getattr(settings, "TIMEZONE", "UTC"),
        default_goal_hours=getattr(settings, "DEFAULT_WEEKLY_GOAL_HOURS", 40),
        recent_sessions_limit=getattr(settings, "RECENT_SESSIONS_LIMIT", 3),
        seed_default_projects=getattr(settings, "AUTO_SEED_DB", False),
    )
    app.extensions["work_tracker"] = container

    register_sessions(app, container)
    register_projects(app, container)
    register_statistics(app, container)
    register_transfer(app, container)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"success": True, "status": "ok", "backend": backend.value})

    _register_error_handlers(app)
    return app
