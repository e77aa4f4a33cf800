from __future__ import annotations

from flask import Flask, g, request

from ..common.datetime_utils import last_n_days, parse_iso_date
from ..common.http import json_body, login_required, ok, query_date, query_int
from ..common.serializers import (
    daily_stat_json,
    dashboard_json,
    goal_json,
    streak_json,
    today_json,
    weekly_json,
)
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    statistics = container.statistics_service

    @app.route("/api/statistics/dashboard", methods=["GET"], endpoint="dashboard")
    @login_required
    def dashboard():
        data = statistics.dashboard(g.user_id, recent_limit=container.recent_sessions_limit)
        return ok(dashboard_json(data))

    @app.route("/api/statistics/today", methods=["GET"], endpoint="today_total")
    @login_required
    def today_total():
        return ok(today_json(statistics.today_total(g.user_id)))

    @app.route("/api/statistics/weekly", methods=["GET"], endpoint="weekly_progress")
    @login_required
    def weekly_progress():
        return ok(weekly_json(statistics.weekly_progress(g.user_id)))

    @app.route("/api/statistics/streak", methods=["GET"], endpoint="streak")
    @login_required
    def streak():
        return ok(streak_json(statistics.streak(g.user_id)))

    @app.route("/api/statistics/range", methods=["GET"], endpoint="date_range_stats")
    @login_required
    def date_range_stats():
        start_date = query_date("startDate")
        end_date = query_date("endDate")
        if not start_date and not end_date and request.args.get("days"):
            start_date, end_date = last_n_days(query_int("days", 7), statistics.local_today())
        if not start_date or not end_date:
            raise ValidationError("startDate and endDate (or days) are required")

        rows = statistics.daily_stats(g.user_id, start_date=start_date, end_date=end_date)
        return ok(
            {
                "stats": [daily_stat_json(s) for s in rows],
                "count": len(rows),
                "date_range": {"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            }
        )

    @app.route("/api/statistics/weekly-goal", methods=["GET"], endpoint="get_weekly_goal")
    @login_required
    def get_weekly_goal():
        return ok({"goal": goal_json(statistics.get_weekly_goal(g.user_id, week_start_date=query_date("weekStartDate")))})

    @app.route("/api/statistics/weekly-goal", methods=["PUT", "POST"], endpoint="set_weekly_goal")
    @login_required
    def set_weekly_goal():
        body = json_body()
        if "targetHours" not in body:
            raise ValidationError("targetHours is required")
        week = body.get("weekStartDate")
        goal = statistics.set_weekly_goal(
            g.user_id,
            body["targetHours"],
            week_start_date=parse_iso_date(week) if week else None,
        )
        return ok({"goal": goal_json(goal)}, message="Weekly goal updated successfully")
