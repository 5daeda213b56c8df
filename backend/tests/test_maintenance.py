from __future__ import annotations

from app.core.config import settings
from app.modules.maintenance.middleware import _is_exempt
from app.modules.maintenance.schemas import DEFAULT_MESSAGE


def test_status_defaults_to_disabled(client):
    assert client.get("/maintenance/status").json() == {
        "enabled": False,
        "message": None,
        "estimated_end_time": None,
    }


def test_exempt_paths():
    assert _is_exempt("/health")
    assert _is_exempt("/auth/login")
    assert _is_exempt("/maintenance/status")
    assert _is_exempt("/openapi.json")
    assert not _is_exempt("/authors")
    assert not _is_exempt("/links/me")


def test_toggle_blocks_regular_traffic(client, make_user):
    _, owner_headers = make_user("siteowner", role="owner")
    _, user_headers = make_user("visitor")

    r = client.post("/maintenance/toggle", headers=owner_headers)
    assert r.json() == {"success": True, "enabled": True, "message": "Maintenance mode enabled"}

    blocked = client.get("/links/me", headers=user_headers)
    assert blocked.status_code == 503
    assert blocked.json() == {"detail": DEFAULT_MESSAGE, "code": "MAINTENANCE"}
    assert blocked.headers["retry-after"] == "300"
    assert client.get("/profiles/visitor").status_code == 503

    assert client.get("/health").status_code == 200
    assert client.get("/maintenance/status").json()["enabled"] is True
    assert client.options("/links/me").status_code != 503
    assert client.get("/links/me", headers=owner_headers).status_code == 200
    assert client.get("/maintenance/bypass", headers=owner_headers).json() == {"can_bypass": True}
    assert client.get("/maintenance/bypass", headers=user_headers).json() == {"can_bypass": False}

    assert client.post("/maintenance/toggle", headers=owner_headers).json()["enabled"] is False
    assert client.get("/links/me", headers=user_headers).status_code == 200


def test_allowed_emails_and_owner_email_bypass(client, make_user, monkeypatch):
    _, owner_headers = make_user("siteowner2", role="owner")
    _, tester_headers = make_user("tester")
    _, boss_headers = make_user("configured")
    _, other_headers = make_user("someone")

    r = client.put(
        "/maintenance/settings",
        json={"enabled": True, "message": "Back at noon", "allowed_emails": ["Tester@example.com"]},
        headers=owner_headers,
    )
    assert r.status_code == 200
    assert r.json()["settings"]["allowed_emails"] == ["tester@example.com"]

    assert client.get("/links/me", headers=tester_headers).status_code == 200
    blocked = client.get("/links/me", headers=other_headers)
    assert blocked.status_code == 503
    assert blocked.json()["detail"] == "Back at noon"

    monkeypatch.setattr(settings, "OWNER_EMAIL", "Configured@example.com")
    assert client.get("/links/me", headers=boss_headers).status_code == 200


def test_update_settings_keeps_original_window(client, make_user):
    owner, owner_headers = make_user("siteowner3", role="owner")

    first = client.put("/maintenance/settings", json={"enabled": True}, headers=owner_headers).json()
    started = first["settings"]["enabled_at"]
    assert started is not None
    assert first["settings"]["enabled_by"] == owner["id"]
    assert first["settings"]["message"] == DEFAULT_MESSAGE

    second = client.put(
        "/maintenance/settings",
        json={"enabled": True, "estimated_end_time": "2030-01-01T12:00:00Z"},
        headers=owner_headers,
    ).json()
    assert second["settings"]["enabled_at"] == started

    stored = client.get("/maintenance/settings", headers=owner_headers).json()
    assert stored["estimated_end_time"] == "2030-01-01T12:00:00Z"

    off = client.put("/maintenance/settings", json={"enabled": False}, headers=owner_headers).json()
    assert off["message"] == "Maintenance mode disabled"
    assert off["settings"]["enabled_at"] is None


def test_settings_are_owner_only(client, make_user):
    _, admin_headers = make_user("deputy", role="admin")
    assert client.get("/maintenance/settings", headers=admin_headers).status_code == 403
    assert client.post("/maintenance/toggle", headers=admin_headers).status_code == 403
    assert client.put("/maintenance/settings", json={"enabled": True}).status_code == 401


def test_sync_tables_reports_known_tables(client, make_user):
    _, admin_headers = make_user("dba", role="admin")
    _, user_headers = make_user("pleb")

    body = client.get("/maintenance/sync-tables", headers=admin_headers).json()
    assert body["status"] == "ok"
    assert body["created_tables"] == []
    assert {"users", "profiles", "user_links", "short_links", "follows", "site_settings"} <= set(
        body["total_known_tables"]
    )
    assert client.get("/maintenance/sync-tables", headers=user_headers).status_code == 403
