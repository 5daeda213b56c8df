from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.sanitize import is_valid_color, sanitize_url
from app.modules.links.schemas import LinkRead
from app.modules.users.schemas import PublicUser


HEX6 = r"^#[0-9A-Fa-f]{6}$"
MAX_SOCIALS = 30


class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    is_public: bool = True
    bio: str | None = None
    avatar: str | None = None
    banner: str | None = None
    location: str | None = None
    website: str | None = None
    pronouns: str | None = None
    accent_color: str | None = None
    badges: list[str] = []
    socials: dict[str, str] = {}
    show_activity: bool = True
    creator_type: str | None = None
    theme_id: str | None = None
    custom_background: dict | None = None
    layout_settings: dict | None = None
    custom_css: str | None = None


class PrivateProfile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_public: bool = False


class StatsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    profile_views: int = 0
    total_link_clicks: int = 0
    followers: int = 0
    following: int = 0
    referral_count: int = 0
    score: int = 0
    last_active: datetime | None = None


class PublicProfileResponse(BaseModel):
    user: PublicUser
    profile: PrivateProfile | ProfileRead
    stats: StatsRead | None = None
    links: list[LinkRead] = []


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=100)
    website: str | None = Field(default=None, max_length=255)
    pronouns: str | None = Field(default=None, max_length=50)
    accent_color: str | None = Field(default=None, pattern=HEX6)
    socials: dict[str, str] | None = None
    is_public: bool | None = None
    show_activity: bool | None = None
    creator_type: str | None = Field(default=None, max_length=50)

    @field_validator("website")
    @classmethod
    def _validate_website(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return value
        cleaned = sanitize_url(value)
        if not cleaned:
            raise ValueError("Website must be an http(s) URL")
        return cleaned

    @field_validator("socials")
    @classmethod
    def _validate_socials(cls, value: dict[str, str] | None) -> dict[str, str] | None:
        if value is None:
            return None
        if len(value) > MAX_SOCIALS:
            raise ValueError(f"At most {MAX_SOCIALS} social links are allowed")
        cleaned: dict[str, str] = {}
        for platform, url in value.items():
            key = platform.strip().lower()[:50]
            if not key or not url:
                continue
            safe = sanitize_url(url)
            if not safe:
                raise ValueError(f"Invalid URL for {platform}")
            cleaned[key] = safe
        return cleaned


class CustomBackground(BaseModel):
    type: Literal["solid", "gradient", "image", "video", "animated"]
    value: str = Field(max_length=2048)
    gradient_angle: float | None = Field(default=None, ge=0, le=360)
    gradient_colors: list[str] | None = Field(default=None, max_length=10)
    image_url: str | None = None
    image_opacity: float | None = Field(default=None, ge=0, le=1)
    image_blur: float | None = Field(default=None, ge=0, le=20)
    video_url: str | None = None
    video_loop: bool | None = None
    video_muted: bool | None = None
    animated_preset: str | None = Field(default=None, max_length=50)
    animated_speed: Literal["slow", "normal", "fast"] | None = None
    animated_intensity: Literal["subtle", "normal", "intense"] | None = None
    animated_colors: list[str] | None = Field(default=None, max_length=10)

    @field_validator("image_url", "video_url")
    @classmethod
    def _validate_media_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = sanitize_url(value)
        if not cleaned:
            raise ValueError("Media URL must be an http(s) URL")
        return cleaned

    @field_validator("gradient_colors", "animated_colors")
    @classmethod
    def _validate_colors(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        for color in value:
            if not is_valid_color(color):
                raise ValueError(f"Invalid colour: {color}")
        return value


class LayoutSettings(BaseModel):
    card_spacing: int | None = Field(default=None, ge=0, le=32)
    card_border_radius: int | None = Field(default=None, ge=0, le=32)
    card_shadow: Literal["none", "sm", "md", "lg", "xl"] | None = None
    card_padding: int | None = Field(default=None, ge=8, le=32)
    profile_layout: Literal["default", "compact", "expanded"] | None = None
    link_style: Literal["default", "minimal", "bold", "glass"] | None = None


class ThemeUpdate(BaseModel):
    # Only fields present in the request body are applied; null clears a value
    theme_id: str | None = Field(default=None, max_length=50)
    accent_color: str | None = Field(default=None, pattern=HEX6)
    custom_background: CustomBackground | None = None
    layout_settings: LayoutSettings | None = None
    custom_css: str | None = None


class ProfileSettings(BaseModel):
    tier: str
    can_customize: bool
    can_layout_customize: bool
    can_custom_css: bool
    can_extended_themes: bool
    theme_id: str | None = None
    accent_color: str | None = None
    custom_background: dict | None = None
    layout_settings: dict | None = None
    custom_css: str | None = None


class ViewResponse(BaseModel):
    success: bool
