from __future__ import annotations

from app.modules.badges.definitions import BADGES, badges_for


def test_catalog_lists_every_badge(client):
    body = client.get("/badges").json()
    assert {b["id"] for b in body} == set(BADGES)
    owner = next(b for b in body if b["id"] == "owner")
    assert owner["rarity"] == "legendary"
    assert owner["admin_only"] is True


def test_badges_for_sorts_rarest_first_and_skips_unknown():
    ids = [b.id for b in badges_for(["gamer", "unknown", "verified", "owner", "early_adopter"])]
    assert ids == ["owner", "early_adopter", "verified", "gamer"]


def test_assign_and_remove_are_idempotent(client, make_user):
    user, _ = make_user("decorated")
    _, admin_headers = make_user("curator", role="admin")
    payload = {"user_id": user["id"], "badge_id": "verified"}

    r = client.post("/badges/assign", json=payload, headers=admin_headers).json()
    assert r == {"success": True, "message": 'Badge "Verified" assigned', "badges": ["verified"]}
    again = client.post("/badges/assign", json=payload, headers=admin_headers).json()
    assert again["message"] == "User already has this badge"
    assert again["badges"] == ["verified"]

    details = client.get(f"/badges/users/{user['id']}").json()
    assert details["badges"] == ["verified"]
    assert details["details"][0]["name"] == "Verified"

    removed = client.post("/badges/remove", json=payload, headers=admin_headers).json()
    assert removed["badges"] == []
    missing = client.post("/badges/remove", json=payload, headers=admin_headers).json()
    assert missing["message"] == "User does not have this badge"


def test_assign_validates_badge_and_user(client, make_user):
    user, _ = make_user("plain")
    _, admin_headers = make_user("curator2", role="admin")
    r = client.post("/badges/assign", json={"user_id": user["id"], "badge_id": "wizard"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid badge ID"
    r = client.post("/badges/assign", json={"user_id": "ghost", "badge_id": "verified"}, headers=admin_headers)
    assert r.status_code == 404


def test_badge_management_is_admin_only(client, make_user):
    user, headers = make_user("sneaky")
    assert client.post("/badges/assign", json={"user_id": user["id"], "badge_id": "verified"}, headers=headers).status_code == 403
    assert client.get("/badges/users", headers=headers).status_code == 403


def test_bulk_award_skips_holders_and_unknown_users(client, make_user):
    first, _ = make_user("bulk1")
    second, _ = make_user("bulk2")
    _, admin_headers = make_user("curator3", role="admin")
    client.post("/badges/assign", json={"user_id": first["id"], "badge_id": "partner"}, headers=admin_headers)

    r = client.post(
        "/badges/bulk-award",
        json={"user_ids": [first["id"], second["id"], second["id"], "ghost"], "badge_id": "partner"},
        headers=admin_headers,
    ).json()
    assert r["awarded"] == 1
    assert r["message"] == "Badge awarded to 1 user(s)"
    assert client.get(f"/badges/users/{second['id']}").json()["badges"] == ["partner"]


def test_list_users_with_badges(client, make_user):
    user, _ = make_user("shown")
    _, admin_headers = make_user("curator4", role="admin")
    client.post("/badges/assign", json={"user_id": user["id"], "badge_id": "gamer"}, headers=admin_headers)

    page = client.get("/badges/users", headers=admin_headers).json()
    assert page["total"] == 2
    by_name = {u["username"]: u for u in page["users"]}
    assert by_name["shown"]["badges"] == ["gamer"]
    assert by_name["curator4"]["role"] == "admin"


def test_check_awards_tier_and_early_adopter(client, make_user):
    _, headers = make_user("supporter", tier="creator")
    r = client.post("/badges/check", headers=headers).json()
    assert set(r["awarded"]) == {"creator_subscriber", "early_adopter"}
    assert r["message"] == "Awarded 2 badge(s)"

    again = client.post("/badges/check", headers=headers).json()
    assert again["awarded"] == []
    assert again["message"] == "No new badges to award"


def test_check_awards_role_and_referral_badges(client, make_user, db):
    from app.modules.profiles.models import UserStats

    owner, owner_headers = make_user("boss", role="owner")
    r = client.post("/badges/check", headers=owner_headers).json()
    assert {"owner", "premium"} <= set(r["awarded"])

    referrer, headers = make_user("recruiter")
    stats = db.query(UserStats).filter_by(user_id=referrer["id"]).one()
    stats.referral_count = 10
    db.commit()
    assert "referral_master" in client.post("/badges/check", headers=headers).json()["awarded"]
    assert owner["id"] != referrer["id"]


def test_check_for_other_users_requires_admin(client, make_user):
    target, _ = make_user("target")
    _, headers = make_user("curious")
    _, admin_headers = make_user("curator5", role="admin")
    assert client.post("/badges/check", params={"user_id": target["id"]}, headers=headers).status_code == 403
    r = client.post("/badges/check", params={"user_id": target["id"]}, headers=admin_headers)
    assert r.status_code == 200
    assert "early_adopter" in r.json()["awarded"]
    assert client.post("/badges/check", params={"user_id": "ghost"}, headers=admin_headers).status_code == 404
