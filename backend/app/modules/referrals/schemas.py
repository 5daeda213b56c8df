from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ReferralCode(BaseModel):
    code: str
    link: str
    is_owner: bool = False


class ReferrerInfo(BaseModel):
    id: str
    username: str
    name: str | None
    avatar: str | None = None
    is_owner: bool = False


class ReferralValidation(BaseModel):
    valid: bool
    referrer: ReferrerInfo | None = None


class ReferralResult(BaseModel):
    success: bool
    error: str | None = None
    referrer_id: str | None = None


class ReferredUser(BaseModel):
    id: str
    username: str
    name: str | None
    avatar: str | None = None
    joined_at: datetime


class ReferralStats(BaseModel):
    referral_count: int
    referred_users: list[ReferredUser]
    referred_by: ReferrerInfo | None = None


class ReferralLeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    username: str
    name: str | None
    avatar: str | None = None
    referral_count: int
    is_owner: bool = False
