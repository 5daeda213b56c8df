from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.modules.profiles.models import Profile
from app.modules.users.models import User
from .models import Follow


class FollowsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, follower_id: str, following_id: str) -> Optional[Follow]:
        stmt = select(Follow).where(
            Follow.follower_id == follower_id, Follow.following_id == following_id
        )
        return self.db.scalar(stmt)

    def following_ids(self, follower_id: str, candidate_ids: list[str]) -> set[str]:
        if not candidate_ids:
            return set()
        stmt = select(Follow.following_id).where(
            Follow.follower_id == follower_id, Follow.following_id.in_(candidate_ids)
        )
        return set(self.db.scalars(stmt))

    def add(self, follow: Follow) -> None:
        self.db.add(follow)

    def delete(self, follow: Follow) -> None:
        self.db.delete(follow)

    def page(
        self, user_id: str, *, direction: str, limit: int, offset: int
    ) -> tuple[list[tuple[User, Profile | None, Follow]], int]:
        """Followers of `user_id` (direction="followers") or the users it follows."""
        if direction == "followers":
            match, other = Follow.following_id, Follow.follower_id
        else:
            match, other = Follow.follower_id, Follow.following_id
        stmt = (
            select(User, Profile, Follow)
            .join(Follow, other == User.id)
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(match == user_id)
            .order_by(Follow.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        count_stmt = select(func.count(Follow.id)).where(match == user_id)
        rows = [(row[0], row[1], row[2]) for row in self.db.execute(stmt)]
        return rows, self.db.scalar(count_stmt) or 0
