from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


Rarity = Literal["common", "rare", "epic", "legendary"]


class BadgeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    icon: str
    color: str
    rarity: Rarity
    auto_awarded: bool
    admin_only: bool


class BadgeAssignment(BaseModel):
    user_id: str
    badge_id: str = Field(min_length=1, max_length=50)


class BulkAward(BaseModel):
    user_ids: list[str] = Field(min_length=1, max_length=100)
    badge_id: str = Field(min_length=1, max_length=50)


class BadgeChangeResult(BaseModel):
    success: bool = True
    message: str
    badges: list[str]


class BulkAwardResult(BaseModel):
    success: bool = True
    message: str
    awarded: int


class AwardCheckResult(BaseModel):
    success: bool = True
    badges: list[str]
    awarded: list[str]
    message: str


class UserBadges(BaseModel):
    user_id: str
    badges: list[str]
    details: list[BadgeRead]


class UserWithBadges(BaseModel):
    id: str
    username: str
    name: str | None
    role: str
    avatar: str | None = None
    badges: list[str] = []


class UsersWithBadgesPage(BaseModel):
    users: list[UserWithBadges]
    total: int
    limit: int
    offset: int
