from __future__ import annotations

from typing import Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from app.core.database import utcnow
from .models import Profile, UserStats


STAT_COLUMNS = {
    "profile_views": UserStats.profile_views,
    "total_link_clicks": UserStats.total_link_clicks,
    "followers": UserStats.followers,
    "following": UserStats.following,
    "referral_count": UserStats.referral_count,
    "score": UserStats.score,
}


class ProfilesRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_user_id(self, user_id: str) -> Optional[Profile]:
        return self.db.scalar(select(Profile).where(Profile.user_id == user_id))

    def get_stats(self, user_id: str) -> Optional[UserStats]:
        return self.db.scalar(select(UserStats).where(UserStats.user_id == user_id))

    def get_or_create_profile(self, user_id: str) -> Profile:
        profile = self.get_by_user_id(user_id)
        if profile is None:
            profile = Profile(user_id=user_id, badges=[], socials={})
            self.db.add(profile)
            self.db.flush()
        return profile

    def get_or_create_stats(self, user_id: str) -> UserStats:
        stats = self.get_stats(user_id)
        if stats is None:
            stats = UserStats(user_id=user_id)
            self.db.add(stats)
            self.db.flush()
        return stats

    def save(self, profile: Profile) -> Profile:
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def increment_stats(self, user_id: str, **deltas: int) -> None:
        """Apply `column = coalesce(column, 0) + delta` for each named counter.

        Does not commit; callers commit with the rest of their unit of work.
        """
        values = {}
        for name, delta in deltas.items():
            if not delta:
                continue
            expr = func.coalesce(STAT_COLUMNS[name], 0) + delta
            # Counters never drop below zero
            values[name] = case((expr < 0, 0), else_=expr) if delta < 0 else expr
        if not values:
            return
        values["updated_at"] = utcnow()
        self.db.execute(update(UserStats).where(UserStats.user_id == user_id).values(**values))
