from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, PermissionDeniedError, ServiceError
from app.modules.notifications.service import NotificationsService
from app.modules.profiles.repository import ProfilesRepository
from app.modules.users.models import ROLE_ADMIN, ROLE_OWNER, User
from app.modules.users.repository import UsersRepository
from .definitions import (
    BADGES,
    EARLY_ADOPTER_LIMIT,
    REFERRAL_MASTER_THRESHOLD,
    TIER_BADGES,
    badges_for,
    get_badge,
)
from .schemas import (
    AwardCheckResult,
    BadgeChangeResult,
    BadgeRead,
    BulkAwardResult,
    UserBadges,
    UsersWithBadgesPage,
    UserWithBadges,
)


logger = logging.getLogger(__name__)


class BadgesService:
    def __init__(self, db: Session):
        self.db = db
        self.profiles = ProfilesRepository(db)
        self.users = UsersRepository(db)

    def catalog(self) -> list[BadgeRead]:
        return [BadgeRead.model_validate(badge) for badge in BADGES.values()]

    def assign(self, admin: User, user_id: str, badge_id: str) -> BadgeChangeResult:
        badge = self._require_badge(badge_id)
        profile = self._require_profile(user_id)
        current = list(profile.badges or [])
        if badge_id in current:
            return BadgeChangeResult(message="User already has this badge", badges=current)
        # Reassign rather than mutate so the JSON column is flagged dirty
        profile.badges = current + [badge_id]
        self.profiles.save(profile)
        logger.info("Badge %s assigned to %s by %s", badge_id, user_id, admin.id)
        return BadgeChangeResult(message=f'Badge "{badge.name}" assigned', badges=profile.badges)

    def remove(self, admin: User, user_id: str, badge_id: str) -> BadgeChangeResult:
        self._require_badge(badge_id)
        profile = self._require_profile(user_id)
        current = list(profile.badges or [])
        if badge_id not in current:
            return BadgeChangeResult(message="User does not have this badge", badges=current)
        profile.badges = [b for b in current if b != badge_id]
        self.profiles.save(profile)
        logger.info("Badge %s removed from %s by %s", badge_id, user_id, admin.id)
        return BadgeChangeResult(message="Badge removed", badges=profile.badges)

    def bulk_award(self, admin: User, user_ids: list[str], badge_id: str) -> BulkAwardResult:
        self._require_badge(badge_id)
        awarded = 0
        for user_id in dict.fromkeys(user_ids):
            profile = self.profiles.get_by_user_id(user_id)
            if profile is None:
                continue
            current = list(profile.badges or [])
            if badge_id in current:
                continue
            profile.badges = current + [badge_id]
            awarded += 1
        self.db.commit()
        logger.info("Badge %s bulk-awarded to %d user(s) by %s", badge_id, awarded, admin.id)
        return BulkAwardResult(message=f"Badge awarded to {awarded} user(s)", awarded=awarded)

    def list_users_with_badges(self, limit: int = 50, offset: int = 0) -> UsersWithBadgesPage:
        rows = self.users.list_with_profiles(limit=limit, offset=offset)
        return UsersWithBadgesPage(
            users=[
                UserWithBadges(
                    id=user.id,
                    username=user.username,
                    name=user.name,
                    role=user.role,
                    avatar=profile.avatar if profile else None,
                    badges=list(profile.badges or []) if profile else [],
                )
                for user, profile in rows
            ],
            total=self.users.count(),
            limit=limit,
            offset=offset,
        )

    def get_user_badges(self, user_id: str) -> UserBadges:
        profile = self.profiles.get_by_user_id(user_id)
        ids = list(profile.badges or []) if profile else []
        return UserBadges(
            user_id=user_id,
            badges=ids,
            details=[BadgeRead.model_validate(b) for b in badges_for(ids)],
        )

    def check_and_award(self, actor: User, user_id: str | None = None) -> AwardCheckResult:
        target_id = user_id or actor.id
        if target_id != actor.id and not actor.is_admin:
            raise PermissionDeniedError("Cannot check badges for other users")

        user = self.users.get_by_id(target_id)
        if not user:
            raise NotFoundError("User not found")

        profile = self.profiles.get_or_create_profile(user.id)
        stats = self.profiles.get_stats(user.id)
        current = list(profile.badges or [])
        awarded: list[str] = []

        def award(badge_id: str) -> None:
            if badge_id not in current and badge_id not in awarded:
                awarded.append(badge_id)

        if user.role == ROLE_OWNER:
            award("owner")
            award("premium")
        elif user.role == ROLE_ADMIN:
            award("admin")

        tier_badge = TIER_BADGES.get(user.effective_tier)
        if tier_badge:
            award(tier_badge)

        if self.users.count_registered_before(user) <= EARLY_ADOPTER_LIMIT:
            award("early_adopter")

        if stats is not None and (stats.referral_count or 0) >= REFERRAL_MASTER_THRESHOLD:
            award("referral_master")

        if awarded:
            profile.badges = current + awarded
            notifications = NotificationsService(self.db)
            for badge_id in awarded:
                notifications.notify_badge(user.id, badge_id)
            self.profiles.save(profile)
            logger.info("Awarded %s to %s", ", ".join(awarded), user.id)
        else:
            self.db.commit()

        return AwardCheckResult(
            badges=current + awarded,
            awarded=awarded,
            message=f"Awarded {len(awarded)} badge(s)" if awarded else "No new badges to award",
        )

    @staticmethod
    def _require_badge(badge_id: str):
        badge = get_badge(badge_id)
        if badge is None:
            raise ServiceError("Invalid badge ID")
        return badge

    def _require_profile(self, user_id: str):
        profile = self.profiles.get_by_user_id(user_id)
        if profile is None:
            raise NotFoundError("User profile not found")
        return profile
