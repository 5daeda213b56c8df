from __future__ import annotations

import logging
import re

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import as_utc, utcnow
from app.core.errors import ConflictError, NotFoundError, PermissionDeniedError, ServiceError
from app.core.security import generate_code
from app.modules.users.models import User
from app.modules.users.service import RESERVED_USERNAMES
from .models import ShortLink
from .repository import ShortLinksRepository
from .schemas import ShortLinkCreate, ShortLinkList, ShortLinkRead, ShortLinkStats, ShortLinkUpdate


logger = logging.getLogger(__name__)

CUSTOM_CODE_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{3,20}$")
RESERVED_CODES = RESERVED_USERNAMES | {"new", "edit", "delete", "stats", "health", "docs"}
MAX_CODE_ATTEMPTS = 10


class ShortenerService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ShortLinksRepository(db)

    def list_my_short_links(
        self, user: User, *, status: str = "all", search: str | None = None, sort: str = "newest"
    ) -> ShortLinkList:
        links = self.repo.list_for_user(user.id, status=status, search=search, sort=sort)
        return ShortLinkList(links=[self.to_read(link) for link in links], stats=self.stats(user))

    def stats(self, user: User) -> ShortLinkStats:
        total, active, clicks = self.repo.stats_for_user(user.id)
        return ShortLinkStats(
            total_links=total,
            active_links=active,
            total_clicks=clicks,
            avg_clicks=(clicks * 2 + total) // (2 * total) if total else 0,
        )

    def create_short_link(self, user: User, data: ShortLinkCreate) -> ShortLinkRead:
        if user.effective_tier == "free" and self.repo.count_for_user(user.id) >= settings.SHORT_LINK_LIMIT_FREE:
            raise PermissionDeniedError(
                f"Free accounts can create up to {settings.SHORT_LINK_LIMIT_FREE} short links. "
                "Upgrade to create more.",
                code="SHORT_LINK_LIMIT",
            )
        expires_at = self._future_or_none(data.expires_at)

        if data.custom_code:
            code = data.custom_code.strip()
            if not CUSTOM_CODE_PATTERN.match(code):
                raise ServiceError(
                    "Custom code must be 3-20 characters: letters, numbers, hyphens or underscores"
                )
            if code.lower() in RESERVED_CODES:
                raise ServiceError("This code is reserved")
            if self.repo.code_exists(code):
                raise ConflictError("This code is already taken")
        else:
            code = self._unique_code()

        link = ShortLink(
            user_id=user.id,
            code=code,
            target_url=data.target_url,
            title=data.title.strip() if data.title else None,
            expires_at=expires_at,
        )
        link = self.repo.add(link)
        logger.info("Short link %s created by %s", link.code, user.id)
        return self.to_read(link)

    def update_short_link(self, user: User, link_id: str, data: ShortLinkUpdate) -> ShortLinkRead:
        link = self._owned(user, link_id)
        changes = data.model_dump(exclude_unset=True)
        if "expires_at" in changes:
            link.expires_at = self._future_or_none(data.expires_at)
        if changes.get("is_active") is not None:
            link.is_active = data.is_active
        if "title" in changes:
            link.title = data.title.strip() if data.title else None
        if changes.get("target_url"):
            link.target_url = data.target_url
        return self.to_read(self.repo.save(link))

    def delete_short_link(self, user: User, link_id: str) -> None:
        link = self._owned(user, link_id)
        self.repo.delete(link)
        logger.info("Short link %s deleted by %s", link.code, user.id)

    def resolve(self, code: str) -> str | None:
        """Return the target URL for an active, unexpired code and count the click."""
        link = self.repo.get_by_code(code)
        if not link or not link.is_active:
            return None
        expires_at = as_utc(link.expires_at)
        if expires_at is not None and expires_at <= utcnow():
            return None
        self.repo.increment_clicks(link.id)
        return link.target_url

    @staticmethod
    def to_read(link: ShortLink) -> ShortLinkRead:
        return ShortLinkRead(
            id=link.id,
            code=link.code,
            short_url=f"{settings.short_link_base}{link.code}",
            target_url=link.target_url,
            title=link.title,
            clicks=link.clicks or 0,
            is_active=link.is_active,
            expires_at=as_utc(link.expires_at),
            created_at=as_utc(link.created_at),
            updated_at=as_utc(link.updated_at),
        )

    def _owned(self, user: User, link_id: str) -> ShortLink:
        link = self.repo.get(link_id)
        if not link:
            raise NotFoundError("Short link not found")
        if link.user_id != user.id:
            raise PermissionDeniedError("Not authorized")
        return link

    def _unique_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_code(settings.SHORT_CODE_LENGTH)
            if code.lower() not in RESERVED_CODES and not self.repo.code_exists(code):
                return code
        logger.error("Could not generate a unique short code after %d attempts", MAX_CODE_ATTEMPTS)
        raise ConflictError("Could not generate a unique code, please try again")

    @staticmethod
    def _future_or_none(value):
        if value is None:
            return None
        expires_at = as_utc(value)
        if expires_at <= utcnow():
            raise ServiceError("Expiration date must be in the future")
        return expires_at
