from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, utcnow


class UserLink(Base):
    __tablename__ = "user_links"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String(100))
    url: Mapped[str] = mapped_column(Text)
    icon: Mapped[str | None] = mapped_column(String(50), default=None)
    thumbnail: Mapped[str | None] = mapped_column(Text, default=None)
    description: Mapped[str | None] = mapped_column(String(255), default=None)
    background_color: Mapped[str | None] = mapped_column(String(7), default=None)
    text_color: Mapped[str | None] = mapped_column(String(7), default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    clicks: Mapped[int] = mapped_column(Integer, default=0)
    order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class LinkClick(Base):
    __tablename__ = "link_clicks"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    link_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("user_links.id", ondelete="CASCADE"), index=True
    )
    # Owner of the link, denormalised for per-user analytics
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    device: Mapped[str | None] = mapped_column(String(20), default=None)
    browser: Mapped[str | None] = mapped_column(String(20), default=None)
    os: Mapped[str | None] = mapped_column(String(20), default=None)
    referrer: Mapped[str | None] = mapped_column(Text, default=None)
    user_agent: Mapped[str | None] = mapped_column(Text, default=None)
    clicked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
