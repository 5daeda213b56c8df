from __future__ import annotations

import pytest

from app.modules.notifications.service import crossed_milestone


@pytest.mark.parametrize(
    "current, previous, expected",
    [
        (10, 9, 10),
        (9, 8, None),
        (11, 10, None),
        (300, 40, 50),
        (100000, 99999, 100000),
    ],
)
def test_crossed_milestone(current, previous, expected):
    assert crossed_milestone(current, previous) == expected


def test_follow_notifies_the_followed_user(client, make_user):
    _, alice_headers = make_user("alice")
    _, bob_headers = make_user("bob")
    client.post("/follows/bob", headers=alice_headers)

    inbox = client.get("/notifications", headers=bob_headers).json()
    assert len(inbox) == 1
    note = inbox[0]
    assert note["type"] == "new_follower"
    assert note["message"] == "alice started following you"
    assert note["action_url"] == "/alice"
    assert note["data"]["follower_username"] == "alice"
    assert note["is_read"] is False

    assert client.get("/notifications/unread-count", headers=bob_headers).json() == {"count": 1}
    assert client.get("/notifications/unread-count").json() == {"count": 0}
    assert client.get("/notifications", headers=alice_headers).json() == []

    assert client.post(f"/notifications/{note['id']}/read", headers=alice_headers).status_code == 404
    assert client.post(f"/notifications/{note['id']}/read", headers=bob_headers).json() == {"success": True}
    assert client.get("/notifications/unread-count", headers=bob_headers).json() == {"count": 0}
    assert client.get("/notifications", params={"unread_only": True}, headers=bob_headers).json() == []


def test_follower_notifications_can_be_turned_off(client, make_user):
    _, quiet_headers = make_user("quiet")
    _, fan_headers = make_user("fan")

    assert client.get("/notifications/settings", headers=quiet_headers).json() == {
        "notify_new_follower": True,
        "notify_milestones": True,
        "notify_system_updates": True,
    }
    r = client.put("/notifications/settings", json={"notify_new_follower": False}, headers=quiet_headers)
    assert r.json()["notify_new_follower"] is False
    assert r.json()["notify_milestones"] is True

    client.post("/follows/quiet", headers=fan_headers)
    assert client.get("/notifications", headers=quiet_headers).json() == []


def test_profile_view_milestone(client, make_user):
    _, headers = make_user("popular")
    for _ in range(10):
        client.post("/profiles/popular/view")

    inbox = client.get("/notifications", headers=headers).json()
    assert [n["type"] for n in inbox] == ["profile_milestone"]
    assert inbox[0]["data"]["milestone"] == 10
    assert inbox[0]["message"] == "Your profile reached 10 views!"


def test_link_click_milestone_respects_preferences(client, make_user):
    _, headers = make_user("clicky")
    link = client.post("/links", json={"title": "Shop", "url": "https://shop.example.com"}, headers=headers).json()
    for _ in range(10):
        client.post(f"/links/{link['id']}/click", json={})

    inbox = client.get("/notifications", headers=headers).json()
    assert inbox[0]["type"] == "link_milestone"
    assert inbox[0]["message"] == 'Your link "Shop" reached 10 clicks!'

    client.put("/notifications/settings", json={"notify_milestones": False}, headers=headers)
    for _ in range(40):
        client.post(f"/links/{link['id']}/click", json={})
    assert len(client.get("/notifications", headers=headers).json()) == 1


def test_awarded_badges_are_announced(client, make_user):
    _, headers = make_user("backer", tier="creator")
    client.post("/badges/check", headers=headers)

    inbox = client.get("/notifications", headers=headers).json()
    assert {n["data"]["badge_id"] for n in inbox} == {"creator_subscriber", "early_adopter"}
    assert all(n["type"] == "badge_earned" for n in inbox)


def test_read_all_delete_and_clear(client, make_user):
    _, star_headers = make_user("celebrity")
    for name in ("fan1", "fan2", "fan3"):
        _, headers = make_user(name)
        client.post("/follows/celebrity", headers=headers)

    inbox = client.get("/notifications", headers=star_headers).json()
    assert len(inbox) == 3
    assert client.post("/notifications/read-all", headers=star_headers).json() == {"success": True, "updated": 3}
    assert client.get("/notifications/unread-count", headers=star_headers).json()["count"] == 0

    assert client.delete(f"/notifications/{inbox[0]['id']}", headers=star_headers).json() == {"success": True}
    assert client.delete(f"/notifications/{inbox[0]['id']}", headers=star_headers).status_code == 404
    assert client.delete("/notifications", headers=star_headers).json() == {"success": True, "removed": 2}
    assert client.get("/notifications", headers=star_headers).json() == []
    assert client.get("/notifications").status_code == 401
