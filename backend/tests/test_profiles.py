from __future__ import annotations

from app.core.rate_limit import limiter


def test_public_profile_includes_only_active_links_in_order(client, make_user):
    _, headers = make_user("maker")
    first = client.post("/links", json={"title": "One", "url": "https://one.example.com"}, headers=headers).json()
    second = client.post("/links", json={"title": "Two", "url": "https://two.example.com"}, headers=headers).json()
    client.patch(f"/links/{first['id']}", json={"is_active": False}, headers=headers)

    body = client.get("/profiles/maker").json()
    assert [link["id"] for link in body["links"]] == [second["id"]]
    assert body["user"]["username"] == "maker"


def test_unknown_profile_is_404(client):
    assert client.get("/profiles/nobody").status_code == 404


def test_private_profile_hides_details_from_strangers(client, make_user):
    _, owner_headers = make_user("hidden")
    _, other_headers = make_user("stranger")
    _, admin_headers = make_user("staffer", role="admin")
    client.patch("/profiles/me", json={"is_public": False, "bio": "secret"}, headers=owner_headers)

    anonymous = client.get("/profiles/hidden").json()
    assert anonymous["profile"] == {"is_public": False}
    assert anonymous["stats"] is None
    assert anonymous["links"] == []

    assert client.get("/profiles/hidden", headers=other_headers).json()["stats"] is None
    assert client.get("/profiles/hidden", headers=owner_headers).json()["profile"]["bio"] == "secret"
    assert client.get("/profiles/hidden", headers=admin_headers).json()["profile"]["bio"] == "secret"


def test_update_profile_validates_fields(client, make_user):
    _, headers = make_user("editor")
    r = client.patch(
        "/profiles/me",
        json={
            "bio": "Hello there",
            "website": "https://editor.example.com",
            "accent_color": "#12AB34",
            "socials": {"GitHub": "https://github.com/editor"},
        },
        headers=headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["accent_color"] == "#12AB34"
    assert body["socials"] == {"github": "https://github.com/editor"}

    assert client.patch("/profiles/me", json={"website": "javascript:alert(1)"}, headers=headers).status_code == 422
    assert client.patch("/profiles/me", json={"accent_color": "red"}, headers=headers).status_code == 422
    assert client.patch("/profiles/me", json={"bio": "x" * 501}, headers=headers).status_code == 422


def test_theme_features_require_premium_tier(client, make_user):
    _, free_headers = make_user("freebie")
    settings = client.get("/profiles/me/settings", headers=free_headers).json()
    assert settings["tier"] == "free"
    assert settings["can_custom_css"] is False

    r = client.put("/profiles/me/theme", json={"custom_css": "color: red"}, headers=free_headers)
    assert r.status_code == 403
    r = client.put("/profiles/me/theme", json={"theme_id": "aurora"}, headers=free_headers)
    assert r.status_code == 403

    r = client.put("/profiles/me/theme", json={"theme_id": "classic", "accent_color": "#000000"}, headers=free_headers)
    assert r.status_code == 200
    assert r.json()["theme_id"] == "classic"


def test_theme_null_accent_color_clears_it(client, make_user):
    _, headers = make_user("painter")
    r = client.put("/profiles/me/theme", json={"accent_color": "#ABCDEF"}, headers=headers)
    assert r.json()["accent_color"] == "#ABCDEF"

    r = client.put("/profiles/me/theme", json={"theme_id": "classic"}, headers=headers)
    assert r.json()["accent_color"] == "#ABCDEF"

    r = client.put("/profiles/me/theme", json={"accent_color": None}, headers=headers)
    assert r.status_code == 200
    assert r.json()["accent_color"] is None


def test_premium_theme_update_sanitizes_css_and_merges_layout(client, make_user):
    _, headers = make_user("stylish", tier="pro")
    r = client.put(
        "/profiles/me/theme",
        json={
            "custom_css": "color: red; behavior: url(x.htc); --brand: #fff; position: fixed",
            "layout_settings": {"card_spacing": 20},
            "custom_background": {"type": "solid", "value": "#101010"},
        },
        headers=headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["custom_css"] == "color: red;\n--brand: #fff;\nposition: fixed"
    assert body["layout_settings"]["card_spacing"] == 20
    assert body["layout_settings"]["card_border_radius"] == 16
    assert body["custom_background"] == {"type": "solid", "value": "#101010"}

    # Omitted fields are left alone; explicit null clears
    r = client.put("/profiles/me/theme", json={"custom_background": None}, headers=headers)
    body = r.json()
    assert body["custom_background"] is None
    assert body["custom_css"].startswith("color: red")


def test_track_view_counts_and_rate_limits(client, make_user, monkeypatch):
    make_user("viewed")
    assert client.post("/profiles/viewed/view").json() == {"success": True}
    stats = client.get("/profiles/viewed").json()["stats"]
    assert stats["profile_views"] == 1
    assert stats["score"] == 1

    monkeypatch.setattr("app.modules.profiles.service.PROFILE_VIEWS_PER_MINUTE", 1)
    limiter.reset()
    assert client.post("/profiles/viewed/view").json() == {"success": True}
    assert client.post("/profiles/viewed/view").json() == {"success": False}
    assert client.get("/profiles/viewed").json()["stats"]["profile_views"] == 2
