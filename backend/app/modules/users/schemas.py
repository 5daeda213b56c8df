from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field


RoleName = Literal["user", "admin", "owner"]
TierName = Literal["free", "pro", "creator", "lifetime"]
LeaderboardSort = Literal["score", "profile_views", "total_link_clicks", "followers"]


class UserBase(BaseModel):
    email: EmailStr
    name: str | None = Field(default=None, min_length=2, max_length=100)


class UserCreate(UserBase):
    username: str = Field(min_length=3, max_length=30)
    password: str = Field(min_length=8, max_length=128)
    referral_code: str | None = Field(default=None, max_length=20)


class UserAdminUpdate(BaseModel):
    role: RoleName | None = None
    tier: TierName | None = None
    is_active: bool | None = None
    email_verified: bool | None = None


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: EmailStr
    username: str
    name: str | None
    role: str
    tier: str
    is_active: bool
    email_verified: bool
    created_at: datetime


class PublicUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    name: str | None
    role: str
    tier: str
    created_at: datetime


class UsernameCheck(BaseModel):
    available: bool
    username: str | None = None
    error: str | None = None


class UserSearchResult(BaseModel):
    id: str
    username: str
    name: str | None
    role: str
    avatar: str | None = None
    badges: list[str] = []


class LeaderboardStats(BaseModel):
    score: int
    profile_views: int
    total_link_clicks: int
    followers: int


class LeaderboardEntry(BaseModel):
    rank: int
    user: UserSearchResult
    accent_color: str | None = None
    bio: str | None = None
    stats: LeaderboardStats


class LeaderboardPage(BaseModel):
    users: list[LeaderboardEntry]
    total: int
    limit: int
    offset: int


class UserPage(BaseModel):
    users: list[UserRead]
    total: int
    limit: int
    offset: int
