from __future__ import annotations

from datetime import datetime

from flask import Flask, g, request

from ..common.http import login_required, ok
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    transfer = container.transfer_service

    @app.route("/api/export", methods=["GET"], endpoint="export_data")
    @login_required
    def export_data():
        user_name = request.args.get("userName") or request.headers.get("X-User-Name")
        payload = transfer.export_json(g.user_id, user_name=user_name)
        filename = f"work-tracker-{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
        return app.response_class(
            payload.encode("utf-8"),
            mimetype="application/json",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/import", methods=["POST"], endpoint="import_data")
    @login_required
    def import_data():
        upload = request.files.get("file")
        if upload is not None:
            document = upload.read()
        else:
            document = request.get_json(silent=True)
        if not document:
            raise ValidationError("No import document provided")

        summary = transfer.import_user(g.user_id, document)
        return ok(
            {
                "projects_imported": summary.projects_imported,
                "sessions_imported": summary.sessions_imported,
                "skipped": summary.skipped,
                "user_name": summary.user_name,
                "weekly_goal": summary.weekly_goal,
            },
            message="Data imported successfully",
        )
