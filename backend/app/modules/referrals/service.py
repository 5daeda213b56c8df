from __future__ import annotations

import logging
import re
import secrets

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, PermissionDeniedError
from app.modules.profiles.models import Profile
from app.modules.profiles.repository import ProfilesRepository
from app.modules.profiles.service import has_premium
from app.modules.users.models import ROLE_OWNER, User
from .models import Referral
from .repository import ReferralsRepository
from .schemas import (
    ReferralCode,
    ReferralLeaderboardEntry,
    ReferralResult,
    ReferralStats,
    ReferralValidation,
    ReferredUser,
    ReferrerInfo,
)


logger = logging.getLogger(__name__)

# No 0/O or 1/I so codes survive being read aloud
REFERRAL_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
MAX_CODE_ATTEMPTS = 5
REFERRED_USERS_LIMIT = 50


def generate_referral_code(username: str) -> str:
    """Three letters taken from the username followed by four random characters."""
    prefix = re.sub(r"[^A-Z]", "X", username[:3].upper())
    return prefix + "".join(secrets.choice(REFERRAL_ALPHABET) for _ in range(4))


def normalize_code(code: str) -> str:
    return code.strip().upper()


class ReferralsService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ReferralsRepository(db)
        self.profiles = ProfilesRepository(db)

    def get_code(self, user: User) -> ReferralCode:
        profile = self.profiles.get_or_create_profile(user.id)
        if not profile.referral_code:
            profile.referral_code = self._new_code(user)
            self.profiles.save(profile)
            logger.info("Referral code issued for %s", user.id)
        else:
            self.db.commit()
        return self._to_code(profile.referral_code, user)

    def regenerate_code(self, user: User) -> ReferralCode:
        if not (has_premium(user) or user.is_admin):
            raise PermissionDeniedError("Premium feature only", code="TIER_REQUIRED")
        profile = self.profiles.get_or_create_profile(user.id)
        if user.role == ROLE_OWNER and profile.referral_code == settings.OWNER_REFERRAL_CODE:
            # The owner keeps the house code
            self.db.commit()
            return self._to_code(profile.referral_code, user)
        profile.referral_code = self._new_code(user, previous=profile.referral_code)
        self.profiles.save(profile)
        logger.info("Referral code regenerated for %s", user.id)
        return self._to_code(profile.referral_code, user)

    def validate_code(self, code: str) -> ReferralValidation:
        found = self.repo.owner_of_code(normalize_code(code))
        if not found:
            return ReferralValidation(valid=False)
        user, profile = found
        return ReferralValidation(valid=True, referrer=self._referrer_info(user, profile))

    def process(self, referred_id: str, code: str) -> ReferralResult:
        """Credit the owner of `code` with bringing in `referred_id`.

        Joins the caller's unit of work: nothing is committed here.
        """
        code = normalize_code(code)
        found = self.repo.owner_of_code(code)
        if not found:
            return ReferralResult(success=False, error="Invalid referral code")
        referrer, _ = found
        if referrer.id == referred_id:
            return ReferralResult(success=False, error="You cannot refer yourself")
        if self.repo.get_by_referred(referred_id):
            return ReferralResult(success=False, error="User already has a referrer")

        self.repo.add(Referral(referrer_id=referrer.id, referred_id=referred_id, code=code))
        self.profiles.get_or_create_profile(referred_id).referred_by = referrer.id
        self.profiles.get_or_create_stats(referrer.id)
        self.profiles.increment_stats(
            referrer.id, referral_count=1, score=settings.REFERRAL_SCORE_BONUS
        )
        logger.info("%s referred %s with code %s", referrer.id, referred_id, code)
        return ReferralResult(success=True, referrer_id=referrer.id)

    def stats(self, user: User) -> ReferralStats:
        stats = self.profiles.get_stats(user.id)
        referred = [
            ReferredUser(
                id=other.id,
                username=other.username,
                name=other.name,
                avatar=profile.avatar if profile else None,
                joined_at=referral.created_at,
            )
            for other, profile, referral in self.repo.referred_users(user.id, REFERRED_USERS_LIMIT)
        ]
        referred_by = None
        profile = self.profiles.get_by_user_id(user.id)
        if profile is not None and profile.referred_by:
            referrer = self.db.get(User, profile.referred_by)
            if referrer is not None:
                referred_by = self._referrer_info(referrer, self.profiles.get_by_user_id(referrer.id))
        return ReferralStats(
            referral_count=(stats.referral_count or 0) if stats else 0,
            referred_users=referred,
            referred_by=referred_by,
        )

    def leaderboard(self, limit: int = 10) -> list[ReferralLeaderboardEntry]:
        return [
            ReferralLeaderboardEntry(
                rank=index + 1,
                user_id=user.id,
                username=user.username,
                name=user.name,
                avatar=profile.avatar if profile else None,
                referral_count=stats.referral_count or 0,
                is_owner=user.role == ROLE_OWNER,
            )
            for index, (user, profile, stats) in enumerate(self.repo.leaderboard(limit))
        ]

    def _new_code(self, user: User, previous: str | None = None) -> str:
        candidates = []
        if user.role == ROLE_OWNER:
            candidates.append(settings.OWNER_REFERRAL_CODE)
        candidates.extend(generate_referral_code(user.username) for _ in range(MAX_CODE_ATTEMPTS))
        for code in candidates:
            if code != previous and not self.repo.code_taken(code):
                return code
        logger.error("Could not generate a unique referral code for %s", user.id)
        raise ConflictError("Could not generate a unique code, please try again")

    @staticmethod
    def _to_code(code: str, user: User) -> ReferralCode:
        return ReferralCode(
            code=code,
            link=f"{settings.referral_link_base}{code}",
            is_owner=user.role == ROLE_OWNER,
        )

    @staticmethod
    def _referrer_info(user: User, profile: Profile | None) -> ReferrerInfo:
        return ReferrerInfo(
            id=user.id,
            username=user.username,
            name=user.name,
            avatar=profile.avatar if profile else None,
            is_owner=user.role == ROLE_OWNER,
        )
