from __future__ import annotations

import pytest

from conftest import PASSWORD


def test_register_creates_active_user_with_profile(client, register):
    user = register("Alice_01", name="Alice")
    assert user["username"] == "alice_01"
    assert user["role"] == "user"
    assert user["tier"] == "free"
    assert user["is_active"] is True

    r = client.get("/profiles/alice_01")
    assert r.status_code == 200
    body = r.json()
    assert body["profile"]["is_public"] is True
    assert body["stats"]["profile_views"] == 0


@pytest.mark.parametrize(
    "username, password, detail",
    [
        ("admin", PASSWORD, "Username is reserved"),
        ("bad name!", PASSWORD, "Invalid username format"),
        ("carol", "alllowercase1", "Password must contain at least one uppercase letter"),
        ("carol", "NoDigitsHere", "Password must contain at least one number"),
    ],
)
def test_register_rejects_invalid_input(client, username, password, detail):
    r = client.post(
        "/users/register",
        json={"email": "carol@example.com", "username": username, "password": password},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == detail


def test_register_rejects_duplicates(client, register):
    register("dave")
    r = client.post(
        "/users/register",
        json={"email": "DAVE@example.com", "username": "other", "password": PASSWORD},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Email already registered"

    r = client.post(
        "/users/register",
        json={"email": "new@example.com", "username": "Dave", "password": PASSWORD},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Username already taken"


def test_check_username(client, register):
    register("erin")
    assert client.get("/users/check-username", params={"username": "erin"}).json() == {
        "available": False,
        "username": "erin",
        "error": None,
    }
    assert client.get("/users/check-username", params={"username": "Fresh"}).json()["available"] is True
    reserved = client.get("/users/check-username", params={"username": "support"}).json()
    assert reserved["available"] is False
    assert reserved["error"] == "Username is reserved"


def test_login_with_email_or_username(client, register):
    register("frank")
    for identifier in ("frank@example.com", "frank"):
        r = client.post("/auth/login", json={"identifier": identifier, "password": PASSWORD})
        assert r.status_code == 200
        token = r.json()["access_token"]
        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["username"] == "frank"


def test_login_failures_are_rate_limited(client, register):
    register("grace")
    for _ in range(5):
        r = client.post("/auth/login", json={"identifier": "grace", "password": "Wrong1234"})
        assert r.status_code == 401
    r = client.post("/auth/login", json={"identifier": "grace", "password": "Wrong1234"})
    assert r.status_code == 429


def test_inactive_user_cannot_log_in(client, make_user, db):
    from app.modules.users.models import User

    data, _ = make_user("henry")
    user = db.get(User, data["id"])
    user.is_active = False
    db.commit()

    r = client.post("/auth/login", json={"identifier": "henry", "password": PASSWORD})
    assert r.status_code == 401


def test_me_requires_token(client):
    assert client.get("/users/me").status_code == 401
    bad = client.get("/users/me", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401


def test_search_escapes_wildcards(client, register):
    register("ivy_one", name="Ivy")
    register("ivyxone")
    r = client.get("/users/search", params={"query": "ivy_"})
    assert [u["username"] for u in r.json()] == ["ivy_one"]

    r = client.get("/users/search", params={"query": "%"})
    assert r.json() == []


def test_leaderboard_ranks_by_requested_column(client, make_user, db):
    from app.modules.profiles.models import UserStats
    from sqlalchemy import select

    low, _ = make_user("lowscore")
    high, _ = make_user("highscore")
    db.scalar(select(UserStats).where(UserStats.user_id == high["id"])).score = 50
    db.scalar(select(UserStats).where(UserStats.user_id == low["id"])).score = 5
    db.commit()

    r = client.get("/users/leaderboard", params={"sort_by": "score", "limit": 1, "offset": 1})
    body = r.json()
    assert body["total"] == 2
    assert body["users"][0]["rank"] == 2
    assert body["users"][0]["user"]["username"] == "lowscore"


def test_leaderboard_total_skips_inactive_users(client, make_user, db):
    from app.modules.users.models import User

    make_user("activeone")
    banned, _ = make_user("banned")
    db.get(User, banned["id"]).is_active = False
    db.commit()

    body = client.get("/users/leaderboard").json()
    assert [entry["user"]["username"] for entry in body["users"]] == ["activeone"]
    assert body["total"] == 1


def test_admin_user_management(client, make_user):
    target, _ = make_user("target")
    _, admin_headers = make_user("overseer", role="admin")
    _, owner_headers = make_user("boss", role="owner")
    _, user_headers = make_user("plain")

    assert client.get("/users", headers=user_headers).status_code == 403

    listing = client.get("/users", params={"role": "admin"}, headers=admin_headers).json()
    assert [u["username"] for u in listing["users"]] == ["overseer"]

    r = client.patch(f"/users/{target['id']}", json={"tier": "pro"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["tier"] == "pro"

    r = client.patch(f"/users/{target['id']}", json={"role": "admin"}, headers=admin_headers)
    assert r.status_code == 403

    r = client.patch(f"/users/{target['id']}", json={"role": "admin"}, headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["role"] == "admin"


def test_owner_cannot_be_demoted_or_deactivated(client, make_user):
    owner, owner_headers = make_user("theowner", role="owner")
    r = client.patch(f"/users/{owner['id']}", json={"role": "user"}, headers=owner_headers)
    assert r.status_code == 403
    r = client.patch(f"/users/{owner['id']}", json={"is_active": False}, headers=owner_headers)
    assert r.status_code == 403
