from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.sanitize import sanitize_url


ShortLinkFilter = Literal["all", "active", "inactive"]
ShortLinkSort = Literal["newest", "oldest", "most_clicks", "least_clicks"]


def _checked_target(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = sanitize_url(value)
    if not cleaned or len(cleaned) > 2048:
        raise ValueError("Invalid target URL")
    return cleaned


class ShortLinkCreate(BaseModel):
    target_url: str
    title: str | None = Field(default=None, max_length=100)
    custom_code: str | None = Field(default=None, max_length=20)
    expires_at: datetime | None = None

    @field_validator("target_url")
    @classmethod
    def _validate_target(cls, value: str) -> str | None:
        return _checked_target(value)


class ShortLinkUpdate(BaseModel):
    target_url: str | None = None
    title: str | None = Field(default=None, max_length=100)
    is_active: bool | None = None
    expires_at: datetime | None = None

    @field_validator("target_url")
    @classmethod
    def _validate_target(cls, value: str | None) -> str | None:
        return _checked_target(value)


class ShortLinkRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    short_url: str
    target_url: str
    title: str | None
    clicks: int
    is_active: bool
    expires_at: datetime | None
    created_at: datetime
    updated_at: datetime | None


class ShortLinkStats(BaseModel):
    total_links: int
    active_links: int
    total_clicks: int
    avg_clicks: int


class ShortLinkList(BaseModel):
    links: list[ShortLinkRead]
    stats: ShortLinkStats
