from __future__ import annotations

from app.modules.referrals.service import REFERRAL_ALPHABET, generate_referral_code


def test_generated_codes_use_username_prefix():
    code = generate_referral_code("ab_cd")
    assert code[:3] == "ABX"
    assert len(code) == 7
    assert all(ch in REFERRAL_ALPHABET for ch in code[3:])


def test_code_is_issued_once_and_validates(client, make_user):
    _, headers = make_user("inviter")
    first = client.get("/referrals/code", headers=headers).json()
    assert first["code"].startswith("INV")
    assert first["link"].endswith(f"/join/{first['code']}")
    assert first["is_owner"] is False
    assert client.get("/referrals/code", headers=headers).json()["code"] == first["code"]

    valid = client.get(f"/referrals/validate/{first['code'].lower()}").json()
    assert valid["valid"] is True
    assert valid["referrer"]["username"] == "inviter"
    assert client.get("/referrals/validate/NOPE123").json() == {"valid": False, "referrer": None}
    assert client.get("/referrals/code").status_code == 401


def test_registration_with_code_credits_referrer(client, make_user, register, db):
    from app.modules.profiles.models import UserStats

    inviter, headers = make_user("sponsor")
    code = client.get("/referrals/code", headers=headers).json()["code"]

    newbie = register("newbie", referral_code=f" {code.lower()} ")

    stats = client.get("/referrals/stats", headers=headers).json()
    assert stats["referral_count"] == 1
    assert [u["username"] for u in stats["referred_users"]] == ["newbie"]
    assert stats["referred_by"] is None
    score = db.query(UserStats).filter_by(user_id=inviter["id"]).one().score
    assert score == 5

    _, newbie_headers = make_user("newbie2", referral_code=code)
    mine = client.get("/referrals/stats", headers=newbie_headers).json()
    assert mine["referred_by"]["username"] == "sponsor"

    board = client.get("/referrals/leaderboard").json()
    assert [(e["rank"], e["username"], e["referral_count"]) for e in board] == [(1, "sponsor", 2)]
    assert newbie["username"] == "newbie"


def test_unknown_code_does_not_block_registration(client, register):
    register("solo", referral_code="ZZZZZZZ")
    assert client.get("/referrals/leaderboard").json() == []


def test_regenerate_requires_premium(client, make_user):
    _, free_headers = make_user("freeloader")
    r = client.post("/referrals/code/regenerate", headers=free_headers)
    assert r.status_code == 403
    assert r.json()["code"] == "TIER_REQUIRED"

    _, pro_headers = make_user("propal", tier="pro")
    old = client.get("/referrals/code", headers=pro_headers).json()["code"]
    new = client.post("/referrals/code/regenerate", headers=pro_headers).json()["code"]
    assert new != old
    assert client.get(f"/referrals/validate/{old}").json()["valid"] is False
    assert client.get(f"/referrals/validate/{new}").json()["valid"] is True


def test_owner_gets_the_house_code(client, make_user):
    _, headers = make_user("houseboss", role="owner")
    code = client.get("/referrals/code", headers=headers).json()
    assert code["code"] == "EZIOX"
    assert code["is_owner"] is True
    assert client.post("/referrals/code/regenerate", headers=headers).json()["code"] == "EZIOX"


def test_ten_referrals_earn_referral_master(client, make_user, register):
    _, headers = make_user("recruiter")
    code = client.get("/referrals/code", headers=headers).json()["code"]
    for i in range(10):
        register(f"recruit{i}", referral_code=code)

    assert client.get("/referrals/stats", headers=headers).json()["referral_count"] == 10
    assert "referral_master" in client.post("/badges/check", headers=headers).json()["awarded"]
