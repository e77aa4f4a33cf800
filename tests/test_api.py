from __future__ import annotations

import json

import pytest

from work_tracker.main import create_app

HEADERS = {"X-User-Id": "api-user"}


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("TIMEZONE", "UTC")
    return create_app()


@pytest.fixture
def client(app):
    return app.test_client()


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.get_json()["backend"] == "memory"


def test_requires_user(client):
    res = client.get("/api/sessions/current")
    assert res.status_code == 401
    assert res.get_json() == {"success": False, "error": "Authentication required"}


def test_session_cookie_identifies_user(client):
    with client.session_transaction() as sess:
        sess["user_id"] = "cookie-user"

    res = client.post("/api/sessions/punch-in", json={})
    assert res.status_code == 201
    assert res.get_json()["data"]["session"]["status"] == "active"


def test_punch_in_conflict_and_quick_punch_out(client):
    res = client.post("/api/sessions/punch-in", json={"notes": "focus"}, headers=HEADERS)
    assert res.status_code == 201
    session = res.get_json()["data"]["session"]
    assert session["project_name"] == "General Work"
    assert session["end_time"] is None

    current = client.get("/api/sessions/current", headers=HEADERS).get_json()["data"]
    assert current["is_active"] is True
    assert current["session"]["id"] == session["id"]
    assert current["session"]["elapsed_display"].startswith("00:00:")

    again = client.post("/api/sessions/punch-in", json={}, headers=HEADERS)
    assert again.status_code == 409
    assert again.get_json()["success"] is False

    # within the same test the session is seconds old, so it is discarded
    out = client.post("/api/sessions/punch-out", headers=HEADERS).get_json()
    assert out["data"]["discarded"] is True
    assert out["data"]["session"] is None

    missing = client.post("/api/sessions/punch-out", headers=HEADERS)
    assert missing.status_code == 404


def test_cancel_twice_is_harmless(client):
    client.post("/api/sessions/punch-in", json={}, headers=HEADERS)

    first = client.post("/api/sessions/cancel", headers=HEADERS).get_json()
    second = client.post("/api/sessions/cancel", headers=HEADERS).get_json()

    assert first["data"]["session"]["status"] == "cancelled"
    assert second["data"]["session"] is None
    assert second["message"] == "No active session"


def test_history_validation(client):
    res = client.get("/api/sessions/history?startDate=2026-03-05&endDate=2026-03-01", headers=HEADERS)
    assert res.status_code == 400

    res = client.get("/api/sessions/history?limit=abc", headers=HEADERS)
    assert res.status_code == 400

    res = client.get("/api/sessions/history?startDate=2026-03-01", headers=HEADERS)
    assert res.status_code == 200
    assert res.get_json()["data"]["filters"]["start_date"] == "2026-03-01"


def test_project_crud(client):
    created = client.post("/api/projects", json={"name": "Website", "color": "amber"}, headers=HEADERS)
    assert created.status_code == 201
    project_id = created.get_json()["data"]["project"]["id"]

    listed = client.get("/api/projects", headers=HEADERS).get_json()["data"]
    assert [p["name"] for p in listed["projects"]] == ["Website"]

    patched = client.patch(f"/api/projects/{project_id}", json={"name": "Site"}, headers=HEADERS)
    assert patched.get_json()["data"]["project"]["name"] == "Site"

    stats = client.get("/api/projects/stats", headers=HEADERS).get_json()["data"]["projects"]
    assert stats[0]["total_minutes"] == 0

    archived = client.delete(f"/api/projects/{project_id}", headers=HEADERS).get_json()
    assert archived["data"]["project"]["is_active"] is False
    assert client.get("/api/projects", headers=HEADERS).get_json()["data"]["count"] == 0
    assert client.get("/api/projects?includeInactive=1", headers=HEADERS).get_json()["data"]["count"] == 1

    assert client.delete(f"/api/projects/{project_id}?hard=1", headers=HEADERS).status_code == 200
    assert client.get(f"/api/projects/{project_id}", headers=HEADERS).status_code == 404


def test_create_project_requires_name(client):
    res = client.post("/api/projects", json={"name": "  "}, headers=HEADERS)
    assert res.status_code == 400
    assert "required" in res.get_json()["error"]


def test_non_string_project_name_is_rejected(client):
    res = client.post("/api/projects", json={"name": 5}, headers=HEADERS)
    assert res.status_code == 400
    assert "must be a string" in res.get_json()["error"]

    project_id = client.post("/api/projects", json={"name": "Real"}, headers=HEADERS).get_json()["data"]["project"]["id"]
    patched = client.patch(f"/api/projects/{project_id}", json={"name": 5}, headers=HEADERS)
    assert patched.status_code == 400
    assert client.get(f"/api/projects/{project_id}", headers=HEADERS).get_json()["data"]["project"]["name"] == "Real"


@pytest.mark.parametrize("method", ["patch", "put"])
def test_session_notes_update_accepts_patch_and_put(client, method):
    session_id = client.post("/api/sessions/punch-in", json={}, headers=HEADERS).get_json()["data"]["session"]["id"]

    res = getattr(client, method)(f"/api/sessions/{session_id}/notes", json={"notes": "reviewed"}, headers=HEADERS)

    assert res.status_code == 200
    assert res.get_json()["data"]["session"]["notes"] == "reviewed"


def test_weekly_goal_endpoints(client):
    res = client.put("/api/statistics/weekly-goal", json={"targetHours": 30}, headers=HEADERS)
    assert res.status_code == 200
    assert res.get_json()["data"]["goal"]["target_hours"] == 30

    weekly = client.get("/api/statistics/weekly", headers=HEADERS).get_json()["data"]
    assert weekly["target_hours"] == 30
    assert weekly["percentage"] == 0

    assert client.put("/api/statistics/weekly-goal", json={"targetHours": 200}, headers=HEADERS).status_code == 400
    assert client.put("/api/statistics/weekly-goal", json={}, headers=HEADERS).status_code == 400


def test_dashboard_and_range(client):
    board = client.get("/api/statistics/dashboard", headers=HEADERS).get_json()["data"]
    assert board["today"]["total_minutes"] == 0
    assert board["streak"] == {"days": 0, "formatted": "0 Days"}
    assert board["active_session"] is None

    assert client.get("/api/statistics/range", headers=HEADERS).status_code == 400
    res = client.get("/api/statistics/range?days=7", headers=HEADERS)
    assert res.status_code == 200
    assert res.get_json()["data"]["count"] == 0


def test_export_then_import_for_another_user(client):
    client.post("/api/projects", json={"name": "Portable"}, headers=HEADERS)

    exported = client.get("/api/export?userName=Ada", headers=HEADERS)
    assert exported.status_code == 200
    assert exported.headers["Content-Disposition"].startswith("attachment; filename=work-tracker-")
    document = json.loads(exported.data)
    assert document["userName"] == "Ada"

    res = client.post("/api/import", json=document, headers={"X-User-Id": "other-user"})
    assert res.status_code == 200
    assert res.get_json()["data"]["projects_imported"] == 1

    bad = client.post("/api/import", json={"version": 9}, headers=HEADERS)
    assert bad.status_code == 400


def test_unknown_route_is_json(client):
    res = client.get("/api/nope", headers=HEADERS)
    assert res.status_code == 404
    assert res.get_json()["success"] is False
