from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.sanitize import sanitize_url


HEX6 = r"^#[0-9A-Fa-f]{6}$"
MAX_URL_LENGTH = 2048


def _checked_url(value: str | None) -> str | None:
    if value is None:
        return None
    if len(value) > MAX_URL_LENGTH:
        raise ValueError(f"URL is too long (max {MAX_URL_LENGTH} characters)")
    cleaned = sanitize_url(value)
    if not cleaned:
        raise ValueError("Invalid URL")
    return cleaned


class LinkCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    url: str
    icon: str | None = Field(default=None, max_length=50)
    description: str | None = Field(default=None, max_length=255)
    background_color: str | None = Field(default=None, pattern=HEX6)
    text_color: str | None = Field(default=None, pattern=HEX6)

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str | None) -> str | None:
        return _checked_url(value)


class LinkUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    url: str | None = None
    icon: str | None = Field(default=None, max_length=50)
    description: str | None = Field(default=None, max_length=255)
    background_color: str | None = Field(default=None, pattern=HEX6)
    text_color: str | None = Field(default=None, pattern=HEX6)
    is_active: bool | None = None
    order: int | None = Field(default=None, ge=0)

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str | None) -> str | None:
        return _checked_url(value)


class LinkRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    url: str
    icon: str | None
    thumbnail: str | None
    description: str | None
    background_color: str | None
    text_color: str | None
    is_active: bool
    clicks: int
    order: int
    created_at: datetime
    updated_at: datetime | None


class ReorderItem(BaseModel):
    id: str
    order: int = Field(ge=0)


class ReorderRequest(BaseModel):
    links: list[ReorderItem] = Field(min_length=1, max_length=500)


class ReorderResponse(BaseModel):
    success: bool = True
    updated: int


class ClickRequest(BaseModel):
    user_agent: str | None = Field(default=None, max_length=1024)
    referrer: str | None = Field(default=None, max_length=2048)


class ClickResponse(BaseModel):
    success: bool
    clicks: int | None = None
    error: str | None = None


class AnalyticsPeriod(BaseModel):
    start: datetime
    end: datetime
    days: int


class LinkAnalytics(BaseModel):
    link: LinkRead
    period: AnalyticsPeriod
    total_clicks: int
    period_clicks: int
    devices: dict[str, int]
    browsers: dict[str, int]
    operating_systems: dict[str, int]
    referrers: dict[str, int]
    daily: dict[str, int]


class LinkPeriodStats(BaseModel):
    id: str
    title: str
    url: str
    total_clicks: int
    period_clicks: int
    devices: dict[str, int]


class OverviewAnalytics(BaseModel):
    period: AnalyticsPeriod
    total_clicks: int
    link_stats: list[LinkPeriodStats]
    device_stats: dict[str, int]
    browser_stats: dict[str, int]
