from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, PermissionDeniedError
from app.core.rate_limit import limiter
from app.core.sanitize import sanitize_css
from app.modules.links.repository import LinksRepository
from app.modules.links.schemas import LinkRead
from app.modules.notifications.service import NotificationsService
from app.modules.users.models import PREMIUM_TIERS, User
from app.modules.users.repository import UsersRepository
from app.modules.users.schemas import PublicUser
from .models import Profile
from .repository import ProfilesRepository
from .schemas import (
    PrivateProfile,
    ProfileRead,
    ProfileSettings,
    ProfileUpdate,
    PublicProfileResponse,
    StatsRead,
    ThemeUpdate,
)


logger = logging.getLogger(__name__)

PROFILE_VIEWS_PER_MINUTE = 1000

PREMIUM_THEMES = frozenset(
    {"aurora", "sunset", "ocean", "forest", "neon", "pastel", "monochrome", "cyberpunk"}
)

DEFAULT_LAYOUT = {
    "card_spacing": 12,
    "card_border_radius": 16,
    "card_shadow": "md",
    "card_padding": 16,
    "profile_layout": "default",
    "link_style": "default",
}


def has_premium(user: User) -> bool:
    return user.effective_tier in PREMIUM_TIERS


class ProfilesService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ProfilesRepository(db)
        self.users = UsersRepository(db)

    def get_public_profile(self, username: str, viewer: User | None = None) -> PublicProfileResponse:
        user = self.users.get_by_username(username)
        if not user or not user.is_active:
            raise NotFoundError("User not found")

        profile = self.repo.get_by_user_id(user.id)
        can_see_private = viewer is not None and (viewer.id == user.id or viewer.is_admin)
        if profile is not None and not profile.is_public and not can_see_private:
            return PublicProfileResponse(
                user=PublicUser.model_validate(user),
                profile=PrivateProfile(),
                stats=None,
                links=[],
            )

        stats = self.repo.get_stats(user.id)
        links = LinksRepository(self.db).list_for_user(user.id, active_only=True)
        return PublicProfileResponse(
            user=PublicUser.model_validate(user),
            profile=ProfileRead.model_validate(profile) if profile else ProfileRead(),
            stats=StatsRead.model_validate(stats) if stats else StatsRead(),
            links=[LinkRead.model_validate(link) for link in links],
        )

    def get_my_profile(self, user: User) -> Profile:
        profile = self.repo.get_or_create_profile(user.id)
        self.db.commit()
        return profile

    def update_my_profile(self, user: User, data: ProfileUpdate) -> Profile:
        profile = self.repo.get_or_create_profile(user.id)
        changes = data.model_dump(exclude_unset=True)

        name = changes.pop("name", None)
        if name:
            user.name = name.strip()
            self.db.add(user)

        for field, value in changes.items():
            if field in ("is_public", "show_activity", "socials") and value is None:
                continue
            if isinstance(value, str):
                value = value.strip() or None
            setattr(profile, field, value)
        logger.info("Profile updated for %s", user.id)
        return self.repo.save(profile)

    def get_settings(self, user: User) -> ProfileSettings:
        profile = self.repo.get_or_create_profile(user.id)
        self.db.commit()
        premium = has_premium(user)
        return ProfileSettings(
            tier=user.effective_tier,
            can_customize=premium,
            can_layout_customize=premium,
            can_custom_css=premium,
            can_extended_themes=premium,
            theme_id=profile.theme_id,
            accent_color=profile.accent_color,
            custom_background=profile.custom_background,
            layout_settings=profile.layout_settings,
            custom_css=profile.custom_css,
        )

    def update_theme(self, user: User, data: ThemeUpdate) -> ProfileSettings:
        provided = data.model_fields_set
        premium = has_premium(user)

        if "custom_background" in provided and data.custom_background is not None and not premium:
            raise PermissionDeniedError("Custom backgrounds require Pro tier or higher", code="TIER_REQUIRED")
        if "layout_settings" in provided and data.layout_settings is not None and not premium:
            raise PermissionDeniedError("Layout customization requires Pro tier or higher", code="TIER_REQUIRED")
        if "custom_css" in provided and data.custom_css and not premium:
            raise PermissionDeniedError("Custom CSS requires Pro tier or higher", code="TIER_REQUIRED")
        if data.theme_id in PREMIUM_THEMES and not premium:
            raise PermissionDeniedError("Extended themes require Pro tier or higher", code="TIER_REQUIRED")

        profile = self.repo.get_or_create_profile(user.id)
        if "theme_id" in provided:
            profile.theme_id = data.theme_id
        if "accent_color" in provided:
            profile.accent_color = data.accent_color
        if "custom_background" in provided:
            profile.custom_background = (
                data.custom_background.model_dump(exclude_none=True)
                if data.custom_background
                else None
            )
        if "layout_settings" in provided:
            if data.layout_settings is None:
                profile.layout_settings = None
            else:
                # Partial updates merge onto the stored (or default) layout
                merged = dict(profile.layout_settings or DEFAULT_LAYOUT)
                merged.update(data.layout_settings.model_dump(exclude_none=True))
                profile.layout_settings = merged
        if "custom_css" in provided:
            profile.custom_css = sanitize_css(data.custom_css) or None

        self.repo.save(profile)
        logger.info("Theme updated for %s", user.id)
        return self.get_settings(user)

    def track_view(self, username: str, ip: str) -> bool:
        user = self.users.get_by_username(username)
        if not user:
            return False
        attempt = limiter.hit(f"profile-view:{user.id}:{ip}", PROFILE_VIEWS_PER_MINUTE, 60)
        if not attempt.allowed:
            return False
        previous = self.repo.get_or_create_stats(user.id).profile_views or 0
        self.repo.increment_stats(user.id, profile_views=1, score=1)
        NotificationsService(self.db).notify_milestone(user.id, previous + 1, previous)
        self.db.commit()
        return True
