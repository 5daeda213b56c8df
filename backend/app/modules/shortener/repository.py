from __future__ import annotations

from typing import Optional

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.modules.users.repository import escape_like
from .models import ShortLink


SORT_ORDER = {
    "newest": ShortLink.created_at.desc(),
    "oldest": ShortLink.created_at.asc(),
    "most_clicks": func.coalesce(ShortLink.clicks, 0).desc(),
    "least_clicks": func.coalesce(ShortLink.clicks, 0).asc(),
}


class ShortLinksRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, link_id: str) -> Optional[ShortLink]:
        return self.db.get(ShortLink, link_id)

    def get_by_code(self, code: str) -> Optional[ShortLink]:
        return self.db.scalar(select(ShortLink).where(ShortLink.code == code))

    def code_exists(self, code: str) -> bool:
        stmt = select(func.count(ShortLink.id)).where(func.lower(ShortLink.code) == code.lower())
        return bool(self.db.scalar(stmt))

    def list_for_user(
        self,
        user_id: str,
        *,
        status: str = "all",
        search: str | None = None,
        sort: str = "newest",
    ) -> list[ShortLink]:
        stmt = select(ShortLink).where(ShortLink.user_id == user_id)
        if status == "active":
            stmt = stmt.where(ShortLink.is_active.is_(True))
        elif status == "inactive":
            stmt = stmt.where(ShortLink.is_active.is_(False))
        if search:
            pattern = f"%{escape_like(search.lower())}%"
            stmt = stmt.where(
                or_(
                    func.lower(ShortLink.code).like(pattern, escape="\\"),
                    func.lower(ShortLink.target_url).like(pattern, escape="\\"),
                    func.lower(ShortLink.title).like(pattern, escape="\\"),
                )
            )
        stmt = stmt.order_by(SORT_ORDER[sort], ShortLink.id)
        return list(self.db.scalars(stmt))

    def stats_for_user(self, user_id: str) -> tuple[int, int, int]:
        """Return (total, active, clicks) for a user's short links."""
        stmt = select(
            func.count(ShortLink.id),
            func.coalesce(func.sum(case((ShortLink.is_active.is_(True), 1), else_=0)), 0),
            func.coalesce(func.sum(ShortLink.clicks), 0),
        ).where(ShortLink.user_id == user_id)
        total, active, clicks = self.db.execute(stmt).one()
        return total or 0, active or 0, int(clicks or 0)

    def count_for_user(self, user_id: str) -> int:
        stmt = select(func.count(ShortLink.id)).where(ShortLink.user_id == user_id)
        return self.db.scalar(stmt) or 0

    def add(self, link: ShortLink) -> ShortLink:
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        return link

    def save(self, link: ShortLink) -> ShortLink:
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        return link

    def delete(self, link: ShortLink) -> None:
        self.db.delete(link)
        self.db.commit()

    def increment_clicks(self, link_id: str) -> None:
        self.db.execute(
            update(ShortLink)
            .where(ShortLink.id == link_id)
            .values(clicks=func.coalesce(ShortLink.clicks, 0) + 1, updated_at=utcnow())
        )
        self.db.commit()
