from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class FollowResult(BaseModel):
    success: bool
    error: str | None = None


class FollowStatus(BaseModel):
    is_following: bool


class FollowStats(BaseModel):
    followers: int
    following: int


class FollowUser(BaseModel):
    id: str
    username: str
    name: str | None
    role: str
    avatar: str | None = None
    bio: str | None = None


class FollowEntry(BaseModel):
    user: FollowUser
    followed_at: datetime
    is_following: bool = False
    is_self: bool = False


class FollowPage(BaseModel):
    users: list[FollowEntry]
    total: int
    has_more: bool
