from __future__ import annotations

from flask import Flask, g

from ..common.datetime_utils import elapsed_seconds, format_duration, format_hms, now_utc
from ..common.http import json_body, login_required, ok, query_date, query_int, query_str
from ..common.serializers import daily_stat_json, session_json
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_RECENT_LIMIT
from ..sessions.model import SessionCompleted


def register(app: Flask, container: Container) -> None:
    sessions = container.session_service

    @app.route("/api/sessions/punch-in", methods=["POST"], endpoint="punch_in")
    @login_required
    def punch_in():
        body = json_body()
        session = sessions.punch_in(
            g.user_id,
            project_id=body.get("projectId") or body.get("project_id"),
            notes=body.get("notes"),
        )
        return ok({"session": session_json(session)}, message="Successfully punched in", status=201)

    @app.route("/api/sessions/punch-out", methods=["POST"], endpoint="punch_out")
    @login_required
    def punch_out():
        result = sessions.punch_out(g.user_id)
        if isinstance(result, SessionCompleted):
            return ok(
                {
                    "discarded": False,
                    "session": session_json(result.session),
                    "daily_stat": daily_stat_json(result.daily_stat),
                },
                message=f"Session completed! {format_duration(result.session.duration_minutes)} tracked",
            )
        return ok(
            {
                "discarded": True,
                "session": None,
                "elapsed_seconds": result.elapsed_seconds,
            },
            message="Session too short (< 1 minute), not recorded",
        )

    @app.route("/api/sessions/cancel", methods=["POST"], endpoint="cancel_session")
    @login_required
    def cancel_session():
        cancelled = sessions.cancel_session(g.user_id)
        message = "Session cancelled" if cancelled else "No active session"
        return ok({"session": session_json(cancelled)}, message=message)

    @app.route("/api/sessions/current", methods=["GET"], endpoint="current_session")
    @login_required
    def current_session():
        active = sessions.get_active_session(g.user_id)
        if active is None:
            return ok({"session": None, "is_active": False})

        now = now_utc()
        data = session_json(active)
        data["current_duration_minutes"] = sessions.current_elapsed(g.user_id, now=now)
        data["elapsed_display"] = format_hms(elapsed_seconds(active.start_time, now) / 60)
        return ok({"session": data, "is_active": True})

    @app.route("/api/sessions/recent", methods=["GET"], endpoint="recent_sessions")
    @login_required
    def recent_sessions():
        rows = sessions.recent_sessions(g.user_id, limit=query_int("limit", DEFAULT_RECENT_LIMIT))
        return ok({"sessions": [session_json(s) for s in rows], "count": len(rows)})

    @app.route("/api/sessions/history", methods=["GET"], endpoint="session_history")
    @login_required
    def session_history():
        start_date = query_date("startDate")
        end_date = query_date("endDate")
        project_id = query_str("projectId")
        rows = sessions.history(
            g.user_id,
            start_date=start_date,
            end_date=end_date,
            project_id=project_id,
            limit=query_int("limit", DEFAULT_HISTORY_LIMIT),
            offset=query_int("offset", 0),
        )
        return ok(
            {
                "sessions": [session_json(s) for s in rows],
                "count": len(rows),
                "filters": {
                    "start_date": start_date.isoformat() if start_date else None,
                    "end_date": end_date.isoformat() if end_date else None,
                    "project_id": project_id,
                },
            }
        )

    @app.route("/api/sessions/<session_id>", methods=["GET"], endpoint="get_session")
    @login_required
    def get_session(session_id: str):
        return ok({"session": session_json(sessions.get_session(g.user_id, session_id))})

    @app.route("/api/sessions/<session_id>/notes", methods=["PATCH", "PUT"], endpoint="update_session_notes")
    @login_required
    def update_session_notes(session_id: str):
        session = sessions.update_notes(g.user_id, session_id, json_body().get("notes"))
        return ok({"session": session_json(session)}, message="Notes updated successfully")
