from __future__ import annotations

from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.modules.profiles.models import Profile, UserStats
from .models import User


LEADERBOARD_COLUMNS = {
    "score": UserStats.score,
    "profile_views": UserStats.profile_views,
    "total_link_clicks": UserStats.total_link_clicks,
    "followers": UserStats.followers,
}


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class UsersRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        return self.db.scalar(stmt)

    def get_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username.strip().lower())
        return self.db.scalar(stmt)

    def list(
        self,
        *,
        search: str | None = None,
        role: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[User], int]:
        stmt = select(User)
        count_stmt = select(func.count(User.id))
        conditions = []
        if search:
            pattern = f"%{escape_like(search.lower())}%"
            conditions.append(
                or_(
                    func.lower(User.username).like(pattern, escape="\\"),
                    func.lower(User.email).like(pattern, escape="\\"),
                    func.lower(User.name).like(pattern, escape="\\"),
                )
            )
        if role:
            conditions.append(User.role == role)
        if conditions:
            stmt = stmt.where(*conditions)
            count_stmt = count_stmt.where(*conditions)
        stmt = stmt.order_by(User.created_at).limit(limit).offset(offset)
        return list(self.db.scalars(stmt)), self.db.scalar(count_stmt) or 0

    def count(self) -> int:
        return self.db.scalar(select(func.count(User.id))) or 0

    def count_active(self) -> int:
        stmt = select(func.count(User.id)).where(User.is_active.is_(True))
        return self.db.scalar(stmt) or 0

    def count_registered_before(self, user: User) -> int:
        stmt = select(func.count(User.id)).where(User.created_at <= user.created_at)
        return self.db.scalar(stmt) or 0

    def search(self, query: str, limit: int = 10) -> list[tuple[User, Profile | None]]:
        pattern = f"%{escape_like(query.lower())}%"
        stmt = (
            select(User, Profile)
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(
                User.is_active.is_(True),
                or_(
                    func.lower(User.username).like(pattern, escape="\\"),
                    func.lower(User.name).like(pattern, escape="\\"),
                ),
            )
            .order_by(User.username)
            .limit(limit)
        )
        return [(row[0], row[1]) for row in self.db.execute(stmt)]

    def list_with_profiles(self, limit: int, offset: int) -> list[tuple[User, Profile | None]]:
        stmt = (
            select(User, Profile)
            .outerjoin(Profile, Profile.user_id == User.id)
            .order_by(User.created_at)
            .limit(limit)
            .offset(offset)
        )
        return [(row[0], row[1]) for row in self.db.execute(stmt)]

    def leaderboard(
        self, sort_by: str, limit: int, offset: int
    ) -> list[tuple[User, Profile | None, UserStats | None]]:
        column = LEADERBOARD_COLUMNS[sort_by]
        stmt = (
            select(User, Profile, UserStats)
            .outerjoin(Profile, Profile.user_id == User.id)
            .outerjoin(UserStats, UserStats.user_id == User.id)
            .where(User.is_active.is_(True))
            .order_by(func.coalesce(column, 0).desc(), User.created_at)
            .limit(limit)
            .offset(offset)
        )
        return [(row[0], row[1], row[2]) for row in self.db.execute(stmt)]

    def create(self, user: User) -> User:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def save(self, user: User) -> User:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, user: User) -> None:
        self.db.delete(user)
        self.db.commit()
