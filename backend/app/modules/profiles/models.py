from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, JSONType, utcnow
from app.modules.users.models import User


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True
    )
    bio: Mapped[str | None] = mapped_column(Text, default=None)
    avatar: Mapped[str | None] = mapped_column(Text, default=None)
    banner: Mapped[str | None] = mapped_column(Text, default=None)
    location: Mapped[str | None] = mapped_column(String(100), default=None)
    website: Mapped[str | None] = mapped_column(String(255), default=None)
    pronouns: Mapped[str | None] = mapped_column(String(50), default=None)
    accent_color: Mapped[str | None] = mapped_column(String(7), default=None)
    badges: Mapped[list] = mapped_column(JSONType, default=list)
    socials: Mapped[dict] = mapped_column(JSONType, default=dict)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True)
    show_activity: Mapped[bool] = mapped_column(Boolean, default=True)
    creator_type: Mapped[str | None] = mapped_column(String(50), default=None)

    # Referrals
    referral_code: Mapped[str | None] = mapped_column(String(20), unique=True, index=True, default=None)
    referred_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), default=None
    )

    # Notification preferences
    notify_new_follower: Mapped[bool] = mapped_column(Boolean, default=True)
    notify_milestones: Mapped[bool] = mapped_column(Boolean, default=True)
    notify_system_updates: Mapped[bool] = mapped_column(Boolean, default=True)

    # Theming
    theme_id: Mapped[str | None] = mapped_column(String(50), default=None)
    custom_background: Mapped[dict | None] = mapped_column(JSONType, default=None)
    layout_settings: Mapped[dict | None] = mapped_column(JSONType, default=None)
    custom_css: Mapped[str | None] = mapped_column(Text, default=None)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    user: Mapped[User] = relationship(User, lazy="joined", foreign_keys=[user_id])


class UserStats(Base):
    __tablename__ = "user_stats"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True
    )
    profile_views: Mapped[int] = mapped_column(Integer, default=0)
    total_link_clicks: Mapped[int] = mapped_column(Integer, default=0)
    followers: Mapped[int] = mapped_column(Integer, default=0)
    following: Mapped[int] = mapped_column(Integer, default=0)
    referral_count: Mapped[int] = mapped_column(Integer, default=0)
    score: Mapped[int] = mapped_column(Integer, default=0)
    last_active: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
