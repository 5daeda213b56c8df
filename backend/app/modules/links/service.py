from __future__ import annotations

import logging
import re
from collections import Counter
from datetime import timedelta
from urllib.parse import urlsplit

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import as_utc, utcnow
from app.core.errors import NotFoundError, PermissionDeniedError, RateLimitedError, ServiceError
from app.core.rate_limit import limiter
from app.modules.notifications.service import NotificationsService
from app.modules.profiles.repository import ProfilesRepository
from app.modules.users.models import User
from .models import LinkClick, UserLink
from .repository import LinksRepository
from .schemas import (
    AnalyticsPeriod,
    ClickRequest,
    ClickResponse,
    LinkAnalytics,
    LinkCreate,
    LinkPeriodStats,
    LinkRead,
    LinkUpdate,
    OverviewAnalytics,
    ReorderRequest,
    ReorderResponse,
)


logger = logging.getLogger(__name__)

# Fair use: soft limit per tier, hard cap for everyone
LINK_SOFT_LIMITS = {"free": 500, "pro": 500, "creator": 1000, "lifetime": 1000}
LINK_HARD_CAP = 2000

_MOBILE = re.compile(r"Mobile|Android|iPhone|iPad", re.IGNORECASE)
_TABLET = re.compile(r"Tablet", re.IGNORECASE)

BROWSER_PATTERNS = (
    ("Edge", re.compile(r"Edg(e|A|iOS)?/", re.IGNORECASE)),
    ("Chrome", re.compile(r"Chrome|CriOS", re.IGNORECASE)),
    ("Firefox", re.compile(r"Firefox|FxiOS", re.IGNORECASE)),
    ("Safari", re.compile(r"Safari", re.IGNORECASE)),
)

OS_PATTERNS = (
    ("Windows", re.compile(r"Windows", re.IGNORECASE)),
    ("Android", re.compile(r"Android", re.IGNORECASE)),
    ("iOS", re.compile(r"iOS|iPhone|iPad", re.IGNORECASE)),
    ("macOS", re.compile(r"Mac", re.IGNORECASE)),
    ("Linux", re.compile(r"Linux", re.IGNORECASE)),
)


def classify_user_agent(user_agent: str | None) -> tuple[str, str, str]:
    """Return (device, browser, os) buckets for a raw User-Agent header."""
    ua = user_agent or ""
    if _MOBILE.search(ua):
        device = "mobile"
    elif _TABLET.search(ua):
        device = "tablet"
    else:
        device = "desktop"
    browser = next((name for name, pattern in BROWSER_PATTERNS if pattern.search(ua)), "Other")
    os_name = next((name for name, pattern in OS_PATTERNS if pattern.search(ua)), "Other")
    return device, browser, os_name


def referrer_host(referrer: str | None) -> str:
    if not referrer:
        return "direct"
    try:
        host = urlsplit(referrer).hostname
    except ValueError:
        host = None
    return host or "unknown"


class LinksService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = LinksRepository(db)
        self.profiles = ProfilesRepository(db)

    def list_my_links(self, user: User) -> list[UserLink]:
        return self.repo.list_for_user(user.id)

    def list_user_links(self, user_id: str, viewer: User | None = None) -> list[UserLink]:
        """Links of `user_id` as `viewer` may see them.

        Owners and admins get every link; everyone else only sees active links,
        and nothing at all when the profile is private.
        """
        if viewer is not None and (viewer.id == user_id or viewer.is_admin):
            return self.repo.list_for_user(user_id)
        profile = self.profiles.get_by_user_id(user_id)
        if profile is not None and not profile.is_public:
            return []
        return self.repo.list_for_user(user_id, active_only=True)

    def create_link(self, user: User, data: LinkCreate) -> UserLink:
        attempt = limiter.hit(f"link-create:{user.id}", settings.LINK_CREATE_PER_MINUTE, 60)
        if not attempt.allowed:
            raise RateLimitedError(
                "Too many requests. Please wait before creating more links.", code="RATE_LIMITED"
            )

        self._check_link_limit(user)

        since = utcnow() - timedelta(minutes=settings.LINK_RAPID_WINDOW_MINUTES)
        if self.repo.count_created_since(user.id, since) >= settings.LINK_RAPID_THRESHOLD:
            logger.warning("Rapid link creation detected for user %s", user.id)
            raise RateLimitedError(
                "Too many links created in a short time. Please slow down.",
                code="RAPID_CREATION_DETECTED",
            )

        link = UserLink(
            user_id=user.id,
            title=data.title.strip(),
            url=data.url,
            icon=data.icon,
            description=data.description,
            background_color=data.background_color,
            text_color=data.text_color,
            order=self.repo.max_order(user.id) + 1,
        )
        return self.repo.add(link)

    def update_link(self, user: User, link_id: str, data: LinkUpdate) -> UserLink:
        link = self._owned_link(user, link_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if field in ("title", "url", "is_active", "order") and value is None:
                continue
            setattr(link, field, value)
        return self.repo.save(link)

    def delete_link(self, user: User, link_id: str) -> None:
        link = self._owned_link(user, link_id)
        self.repo.delete(link)
        logger.info("Link %s deleted by %s", link_id, user.id)

    def reorder_links(self, user: User, data: ReorderRequest) -> ReorderResponse:
        orders = {item.id: item.order for item in data.links}
        owned = self.repo.list_by_ids(user.id, list(orders))
        now = utcnow()
        for link in owned:
            link.order = orders[link.id]
            link.updated_at = now
        self.db.commit()
        return ReorderResponse(updated=len(owned))

    def track_click(self, link_id: str, data: ClickRequest) -> ClickResponse:
        link = self.repo.get(link_id)
        if not link:
            return ClickResponse(success=False, error="Link not found")

        device, browser, os_name = classify_user_agent(data.user_agent)
        self.repo.add_click(
            LinkClick(
                link_id=link.id,
                user_id=link.user_id,
                device=device,
                browser=browser,
                os=os_name,
                referrer=data.referrer or None,
                user_agent=data.user_agent or None,
            )
        )
        previous = link.clicks or 0
        self.repo.increment_clicks(link.id)
        self.profiles.increment_stats(link.user_id, total_link_clicks=1, score=1)
        NotificationsService(self.db).notify_milestone(
            link.user_id, previous + 1, previous, link_title=link.title
        )
        self.db.commit()
        self.db.refresh(link)
        return ClickResponse(success=True, clicks=link.clicks)

    # ---- Analytics ----
    def link_analytics(self, user: User, link_id: str, days: int) -> LinkAnalytics:
        link = self.repo.get(link_id)
        if not link or link.user_id != user.id:
            raise NotFoundError("Link not found")

        period = self._period(days)
        clicks = self.repo.clicks_for_link(link.id, period.start)
        return LinkAnalytics(
            link=LinkRead.model_validate(link),
            period=period,
            total_clicks=link.clicks or 0,
            period_clicks=len(clicks),
            devices=dict(Counter(c.device or "unknown" for c in clicks)),
            browsers=dict(Counter(c.browser or "unknown" for c in clicks)),
            operating_systems=dict(Counter(c.os or "unknown" for c in clicks)),
            referrers=dict(Counter(referrer_host(c.referrer) for c in clicks)),
            daily=self._daily(clicks),
        )

    def overview_analytics(self, user: User, days: int) -> OverviewAnalytics:
        period = self._period(days)
        links = self.repo.list_for_user(user.id)
        clicks = self.repo.clicks_for_user(user.id, period.start)

        per_link: dict[str, list[LinkClick]] = {}
        for click in clicks:
            per_link.setdefault(click.link_id, []).append(click)

        link_stats = [
            LinkPeriodStats(
                id=link.id,
                title=link.title,
                url=link.url,
                total_clicks=link.clicks or 0,
                period_clicks=len(per_link.get(link.id, [])),
                devices=dict(Counter(c.device or "unknown" for c in per_link.get(link.id, []))),
            )
            for link in links
        ]
        return OverviewAnalytics(
            period=period,
            total_clicks=len(clicks),
            link_stats=link_stats,
            device_stats=dict(Counter(c.device or "unknown" for c in clicks)),
            browser_stats=dict(Counter(c.browser or "unknown" for c in clicks)),
        )

    # ---- Helpers ----
    def _owned_link(self, user: User, link_id: str) -> UserLink:
        link = self.repo.get(link_id)
        if not link:
            raise NotFoundError("Link not found")
        if link.user_id != user.id:
            raise PermissionDeniedError("Not authorized")
        return link

    def _check_link_limit(self, user: User) -> None:
        count = self.repo.count_for_user(user.id)
        if count >= LINK_HARD_CAP:
            raise ServiceError(
                f"Maximum link limit ({LINK_HARD_CAP}) reached. Please contact support.",
                code="LINK_LIMIT_REACHED",
            )
        soft_limit = LINK_SOFT_LIMITS.get(user.effective_tier, LINK_SOFT_LIMITS["free"])
        if count >= soft_limit:
            raise ServiceError(
                f"You have reached the {soft_limit} link limit for your plan. "
                "Please contact support if you need more.",
                code="LINK_LIMIT_REACHED",
            )

    @staticmethod
    def _period(days: int) -> AnalyticsPeriod:
        end = utcnow()
        return AnalyticsPeriod(start=end - timedelta(days=days), end=end, days=days)

    @staticmethod
    def _daily(clicks: list[LinkClick]) -> dict[str, int]:
        counts = Counter(as_utc(c.clicked_at).date().isoformat() for c in clicks)
        return dict(sorted(counts.items()))
