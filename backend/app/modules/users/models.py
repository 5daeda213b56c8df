from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, utcnow


ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_OWNER = "owner"
ROLES = (ROLE_USER, ROLE_ADMIN, ROLE_OWNER)

TIERS = ("free", "pro", "creator", "lifetime")
PREMIUM_TIERS = ("pro", "creator", "lifetime")


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(Text)
    name: Mapped[str | None] = mapped_column(String(100), default=None)
    role: Mapped[str] = mapped_column(String(20), default=ROLE_USER)
    tier: Mapped[str] = mapped_column(String(20), default="free")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    @property
    def is_admin(self) -> bool:
        return self.role in (ROLE_ADMIN, ROLE_OWNER)

    @property
    def is_owner(self) -> bool:
        return self.role == ROLE_OWNER

    @property
    def effective_tier(self) -> str:
        # Legacy "standard" accounts are treated as free
        return self.tier if self.tier in TIERS else "free"
