from __future__ import annotations

from flask import Flask, g

from ..common.http import json_body, login_required, ok, query_flag
from ..common.serializers import project_json, project_totals_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    projects = container.project_service

    @app.route("/api/projects", methods=["GET"], endpoint="list_projects")
    @login_required
    def list_projects():
        if container.seed_default_projects:
            projects.seed_default_projects(g.user_id)
        rows = projects.list_projects(g.user_id, include_inactive=query_flag("includeInactive"))
        return ok({"projects": [project_json(p) for p in rows], "count": len(rows)})

    @app.route("/api/projects", methods=["POST"], endpoint="create_project")
    @login_required
    def create_project():
        body = json_body()
        project = projects.create_project(
            g.user_id,
            name=body.get("name", ""),
            description=body.get("description"),
            color=body.get("color"),
            icon=body.get("icon"),
        )
        return ok({"project": project_json(project)}, message="Project created", status=201)

    @app.route("/api/projects/stats", methods=["GET"], endpoint="project_stats")
    @login_required
    def project_stats():
        rows = projects.project_totals(g.user_id)
        return ok({"projects": [project_totals_json(t) for t in rows]})

    @app.route("/api/projects/<project_id>", methods=["GET"], endpoint="get_project")
    @login_required
    def get_project(project_id: str):
        return ok({"project": project_json(projects.get_project(g.user_id, project_id))})

    @app.route("/api/projects/<project_id>", methods=["PATCH", "PUT"], endpoint="update_project")
    @login_required
    def update_project(project_id: str):
        body = json_body()
        is_active = body.get("is_active", body.get("isActive"))
        project = projects.update_project(
            g.user_id,
            project_id,
            name=body.get("name"),
            description=body.get("description"),
            color=body.get("color"),
            icon=body.get("icon"),
            is_active=is_active,
        )
        return ok({"project": project_json(project)}, message="Project updated")

    @app.route("/api/projects/<project_id>", methods=["DELETE"], endpoint="delete_project")
    @login_required
    def delete_project(project_id: str):
        if query_flag("hard"):
            projects.delete_project(g.user_id, project_id)
            return ok(None, message="Project deleted")

        project = projects.archive_project(g.user_id, project_id)
        return ok({"project": project_json(project)}, message="Project archived")
