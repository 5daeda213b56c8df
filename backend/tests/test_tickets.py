from __future__ import annotations

from app.core.config import settings


DESCRIPTION = "Something is not working the way I expect it to."


def _ticket(category="technical", subject="Broken thing", **extra):
    return {"category": category, "subject": subject, "description": DESCRIPTION, **extra}


def _open(client, headers=None, **payload):
    r = client.post("/tickets", json=_ticket(**payload), headers=headers or {})
    assert r.status_code == 201, r.text
    return r.json()


def test_user_ticket_creation_records_metadata(client, make_user):
    _, headers = make_user("reporter", tier="pro")
    created = _open(client, headers, category="billing", metadata={"page": "/pricing"})
    assert created["success"] is True
    assert created["ticket_number"].startswith("TKT-")
    assert created["message"] == f"Ticket {created['ticket_number']} created successfully"

    detail = client.get(f"/tickets/{created['ticket_id']}", headers=headers).json()
    ticket = detail["ticket"]
    assert ticket["priority"] == "high"
    assert ticket["status"] == "open"
    assert ticket["metadata"]["page"] == "/pricing"
    assert ticket["metadata"]["user_tier"] == "pro"
    assert ticket["metadata"]["ip_address"] == "testclient"
    assert [m["message"] for m in detail["messages"]] == [DESCRIPTION]


def test_guest_tickets_need_contact_details(client):
    r = client.post("/tickets", json=_ticket())
    assert r.status_code == 400
    assert r.json()["detail"] == "Email and name required for guest tickets"

    created = _open(client, guest_email="Guest@Example.com", guest_name="Guest")
    page = client.get("/tickets/guest", params={"email": "guest@example.com"}).json()
    assert page["total"] == 1
    assert page["tickets"][0]["id"] == created["ticket_id"]
    assert page["tickets"][0]["guest_email"] == "guest@example.com"


def test_guest_may_only_hold_one_open_ticket(client):
    _open(client, guest_email="solo@example.com", guest_name="Solo")
    r = client.post(
        "/tickets",
        json=_ticket(subject="Another thing", guest_email="SOLO@example.com", guest_name="Solo"),
    )
    assert r.status_code == 429


def test_open_ticket_limit_and_duplicates(client, make_user, monkeypatch):
    _, headers = make_user("busy")
    _open(client, headers, subject="First issue")

    dup = client.post("/tickets", json=_ticket(subject="First issue"), headers=headers)
    assert dup.status_code == 429
    assert "similar ticket" in dup.json()["detail"]

    monkeypatch.setattr(settings, "TICKET_MAX_OPEN_PER_USER", 2)
    _open(client, headers, subject="Second issue")
    over = client.post("/tickets", json=_ticket(subject="Third issue"), headers=headers)
    assert over.status_code == 429
    assert "maximum number of open tickets" in over.json()["detail"]


def test_ticket_visibility(client, make_user):
    _, owner_headers = make_user("asker")
    _, other_headers = make_user("nosy")
    _, admin_headers = make_user("helper", role="admin")
    created = _open(client, owner_headers)
    guest = _open(client, guest_email="visitor@example.com", guest_name="Visitor")

    assert client.get(f"/tickets/{created['ticket_id']}", headers=other_headers).status_code == 403
    assert client.get(f"/tickets/{created['ticket_id']}").status_code == 403
    assert client.get(f"/tickets/{created['ticket_id']}", headers=admin_headers).status_code == 200
    assert client.get("/tickets/missing", headers=admin_headers).status_code == 404

    url = f"/tickets/{guest['ticket_id']}"
    assert client.get(url, params={"guest_email": "VISITOR@example.com"}).status_code == 200
    assert client.get(url, params={"guest_email": "other@example.com"}).status_code == 403


def test_reply_flow_moves_status(client, make_user):
    _, user_headers = make_user("customer")
    _, admin_headers = make_user("agent", role="admin")
    ticket_id = _open(client, user_headers)["ticket_id"]

    def status():
        return client.get(f"/tickets/{ticket_id}", headers=admin_headers).json()["ticket"]["status"]

    assert client.post(f"/tickets/{ticket_id}/reply", json={"message": "Looking into it"}, headers=admin_headers).status_code == 200
    assert status() == "waiting_user"
    client.post(f"/tickets/{ticket_id}/reply", json={"message": "Thanks"}, headers=user_headers)
    assert status() == "waiting_admin"

    client.post(f"/tickets/{ticket_id}/status", json={"status": "resolved", "resolution": "Fixed"}, headers=admin_headers)
    client.post(f"/tickets/{ticket_id}/reply", json={"message": "It broke again"}, headers=user_headers)
    assert status() == "in_progress"

    r = client.post(f"/tickets/{ticket_id}/close", json={"satisfaction_rating": 4}, headers=user_headers)
    assert r.json() == {"success": True}
    detail = client.get(f"/tickets/{ticket_id}", headers=user_headers).json()
    assert detail["ticket"]["status"] == "closed"
    assert detail["ticket"]["satisfaction_rating"] == 4
    assert detail["messages"][-1]["sender_type"] == "system"
    assert detail["messages"][-1]["message"] == "Ticket closed by user with rating 4/5"

    closed = client.post(f"/tickets/{ticket_id}/reply", json={"message": "Hello?"}, headers=user_headers)
    assert closed.status_code == 400


def test_internal_notes_are_hidden_from_submitters(client, make_user):
    _, user_headers = make_user("submitter")
    _, admin_headers = make_user("moderator1", role="admin")
    ticket_id = _open(client, user_headers)["ticket_id"]

    client.post(f"/tickets/{ticket_id}/notes", json={"note": "Probably a caching issue"}, headers=admin_headers)

    admin_view = client.get(f"/tickets/{ticket_id}", headers=admin_headers).json()
    user_view = client.get(f"/tickets/{ticket_id}", headers=user_headers).json()
    assert any(m["is_internal"] for m in admin_view["messages"])
    assert not any(m["is_internal"] for m in user_view["messages"])


def test_admin_listing_orders_by_priority(client, make_user):
    _, user_headers = make_user("client1")
    _, admin_headers = make_user("lead", role="admin")
    normal = _open(client, user_headers, category="general", subject="General question")
    high = _open(client, user_headers, category="account", subject="Account locked")
    guest = _open(client, guest_email="g@example.com", guest_name="Gina", category="abuse", subject="Spam profile")
    client.post(f"/tickets/{guest['ticket_id']}/priority", json={"priority": "urgent"}, headers=admin_headers)

    page = client.get("/tickets/admin", headers=admin_headers).json()
    assert page["total"] == 3
    assert [t["id"] for t in page["tickets"]] == [guest["ticket_id"], high["ticket_id"], normal["ticket_id"]]
    assert page["tickets"][0]["user"] is None
    assert page["tickets"][1]["user"]["username"] == "client1"

    found = client.get("/tickets/admin", params={"search": "locked"}, headers=admin_headers).json()
    assert [t["id"] for t in found["tickets"]] == [high["ticket_id"]]
    assert client.get("/tickets/admin", headers=user_headers).status_code == 403

    stats = client.get("/tickets/admin/stats", headers=admin_headers).json()
    assert stats == {"open": 3, "in_progress": 0, "waiting_admin": 0, "urgent": 1, "today": 3}


def test_assignment_requires_admin_assignee(client, make_user):
    user, user_headers = make_user("needy")
    admin, admin_headers = make_user("fixer", role="admin")
    ticket_id = _open(client, user_headers)["ticket_id"]

    r = client.post(f"/tickets/{ticket_id}/assign", json={"assignee_id": user["id"]}, headers=admin_headers)
    assert r.status_code == 400

    client.post(f"/tickets/{ticket_id}/assign", json={"assignee_id": admin["id"]}, headers=admin_headers)
    detail = client.get(f"/tickets/{ticket_id}", headers=admin_headers).json()
    assert detail["ticket"]["status"] == "in_progress"
    assert detail["assignee"] == {"id": admin["id"], "username": "fixer", "email": None, "tier": None}

    client.post(f"/tickets/{ticket_id}/assign", json={"assignee_id": None}, headers=admin_headers)
    assert client.get(f"/tickets/{ticket_id}", headers=admin_headers).json()["ticket"]["status"] == "open"


def test_my_tickets_lists_own_tickets_only(client, make_user):
    _, headers = make_user("mine1")
    _, other_headers = make_user("mine2")
    _open(client, headers, subject="Mine first")
    _open(client, other_headers, subject="Not mine")

    page = client.get("/tickets/mine", headers=headers).json()
    assert page["total"] == 1
    assert page["tickets"][0]["subject"] == "Mine first"
    assert client.get("/tickets/mine", params={"status": "closed"}, headers=headers).json()["total"] == 0
