from __future__ import annotations


def test_follow_and_unfollow_update_counters(client, make_user):
    _, alice_headers = make_user("alice")
    make_user("bob")

    assert client.post("/follows/bob", headers=alice_headers).json() == {"success": True, "error": None}
    assert client.get("/follows/bob/status", headers=alice_headers).json() == {"is_following": True}
    assert client.get("/follows/bob/stats").json() == {"followers": 1, "following": 0}
    assert client.get("/follows/alice/stats").json() == {"followers": 0, "following": 1}

    again = client.post("/follows/bob", headers=alice_headers).json()
    assert again == {"success": False, "error": "Already following"}
    assert client.get("/follows/bob/stats").json()["followers"] == 1

    assert client.delete("/follows/bob", headers=alice_headers).json()["success"] is True
    assert client.get("/follows/bob/stats").json() == {"followers": 0, "following": 0}
    assert client.delete("/follows/bob", headers=alice_headers).json() == {"success": False, "error": "Not following"}


def test_cannot_follow_self_or_missing_users(client, make_user):
    _, headers = make_user("loner")
    r = client.post("/follows/loner", headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "You cannot follow yourself"
    assert client.post("/follows/nobody", headers=headers).status_code == 404
    assert client.post("/follows/loner").status_code == 401


def test_counters_never_go_negative(client, make_user, db):
    from app.modules.profiles.models import UserStats

    _, headers = make_user("fan")
    star, _ = make_user("star")
    client.post("/follows/star", headers=headers)

    stats = db.query(UserStats).filter_by(user_id=star["id"]).one()
    stats.followers = 0
    db.commit()

    client.delete("/follows/star", headers=headers)
    assert client.get("/follows/star/stats").json()["followers"] == 0


def test_follower_and_following_pages(client, make_user):
    _, carol_headers = make_user("carol")
    _, dave_headers = make_user("dave")
    make_user("erin")
    client.post("/follows/erin", headers=carol_headers)
    client.post("/follows/erin", headers=dave_headers)
    client.post("/follows/dave", headers=carol_headers)

    page = client.get("/follows/erin/followers", params={"limit": 1}).json()
    assert page["total"] == 2
    assert page["has_more"] is True
    assert len(page["users"]) == 1

    viewed = client.get("/follows/erin/followers", headers=carol_headers).json()
    entries = {entry["user"]["username"]: entry for entry in viewed["users"]}
    assert set(entries) == {"carol", "dave"}
    assert entries["carol"]["is_self"] is True
    assert entries["dave"]["is_following"] is True
    assert viewed["has_more"] is False

    following = client.get("/follows/carol/following").json()
    assert {entry["user"]["username"] for entry in following["users"]} == {"dave", "erin"}
    assert all(entry["is_following"] is False for entry in following["users"])


def test_concurrent_duplicate_follow_reports_already_following(client, make_user, monkeypatch):
    from app.modules.follows.repository import FollowsRepository

    _, headers = make_user("racer")
    make_user("finish")
    assert client.post("/follows/finish", headers=headers).json()["success"] is True

    # Pretend the duplicate check ran before the other request committed
    monkeypatch.setattr(FollowsRepository, "get", lambda self, follower_id, following_id: None)
    r = client.post("/follows/finish", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"success": False, "error": "Already following"}
    assert client.get("/follows/finish/stats").json() == {"followers": 1, "following": 0}
