from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.modules.profiles.models import Profile, UserStats
from app.modules.users.models import User
from .models import Referral


class ReferralsRepository:
    def __init__(self, db: Session):
        self.db = db

    def owner_of_code(self, code: str) -> Optional[tuple[User, Profile]]:
        stmt = (
            select(User, Profile)
            .join(Profile, Profile.user_id == User.id)
            .where(Profile.referral_code == code, User.is_active.is_(True))
        )
        row = self.db.execute(stmt).first()
        return (row[0], row[1]) if row else None

    def code_taken(self, code: str) -> bool:
        stmt = select(Profile.id).where(Profile.referral_code == code)
        return self.db.scalar(stmt) is not None

    def get_by_referred(self, user_id: str) -> Optional[Referral]:
        return self.db.scalar(select(Referral).where(Referral.referred_id == user_id))

    def add(self, referral: Referral) -> None:
        self.db.add(referral)

    def referred_users(
        self, referrer_id: str, limit: int = 50
    ) -> list[tuple[User, Profile | None, Referral]]:
        stmt = (
            select(User, Profile, Referral)
            .join(Referral, Referral.referred_id == User.id)
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(Referral.referrer_id == referrer_id)
            .order_by(Referral.created_at.desc())
            .limit(limit)
        )
        return [(row[0], row[1], row[2]) for row in self.db.execute(stmt)]

    def leaderboard(self, limit: int) -> list[tuple[User, Profile | None, UserStats]]:
        count = func.coalesce(UserStats.referral_count, 0)
        stmt = (
            select(User, Profile, UserStats)
            .join(UserStats, UserStats.user_id == User.id)
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(User.is_active.is_(True), count > 0)
            .order_by(count.desc(), User.created_at)
            .limit(limit)
        )
        return [(row[0], row[1], row[2]) for row in self.db.execute(stmt)]
