from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.core.database import utcnow
from .models import LinkClick, UserLink


class LinksRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, link_id: str) -> Optional[UserLink]:
        return self.db.get(UserLink, link_id)

    def list_for_user(self, user_id: str, *, active_only: bool = False) -> list[UserLink]:
        stmt = select(UserLink).where(UserLink.user_id == user_id)
        if active_only:
            stmt = stmt.where(UserLink.is_active.is_(True))
        stmt = stmt.order_by(UserLink.order, UserLink.created_at)
        return list(self.db.scalars(stmt))

    def list_by_ids(self, user_id: str, link_ids: list[str]) -> list[UserLink]:
        if not link_ids:
            return []
        stmt = select(UserLink).where(UserLink.user_id == user_id, UserLink.id.in_(link_ids))
        return list(self.db.scalars(stmt))

    def max_order(self, user_id: str) -> int:
        stmt = select(func.coalesce(func.max(UserLink.order), -1)).where(
            UserLink.user_id == user_id
        )
        return self.db.scalar(stmt)

    def count_for_user(self, user_id: str) -> int:
        stmt = select(func.count(UserLink.id)).where(UserLink.user_id == user_id)
        return self.db.scalar(stmt) or 0

    def count_created_since(self, user_id: str, since: datetime) -> int:
        stmt = select(func.count(UserLink.id)).where(
            UserLink.user_id == user_id, UserLink.created_at >= since
        )
        return self.db.scalar(stmt) or 0

    def add(self, link: UserLink) -> UserLink:
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        return link

    def save(self, link: UserLink) -> UserLink:
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        return link

    def delete(self, link: UserLink) -> None:
        self.db.delete(link)
        self.db.commit()

    # ---- Clicks ----
    def add_click(self, click: LinkClick) -> None:
        self.db.add(click)

    def increment_clicks(self, link_id: str) -> None:
        self.db.execute(
            update(UserLink)
            .where(UserLink.id == link_id)
            .values(clicks=func.coalesce(UserLink.clicks, 0) + 1, updated_at=utcnow())
        )

    def clicks_for_link(self, link_id: str, since: datetime) -> list[LinkClick]:
        stmt = (
            select(LinkClick)
            .where(LinkClick.link_id == link_id, LinkClick.clicked_at >= since)
            .order_by(LinkClick.clicked_at.desc())
        )
        return list(self.db.scalars(stmt))

    def clicks_for_user(self, user_id: str, since: datetime) -> list[LinkClick]:
        stmt = (
            select(LinkClick)
            .where(LinkClick.user_id == user_id, LinkClick.clicked_at >= since)
            .order_by(LinkClick.clicked_at.desc())
        )
        return list(self.db.scalars(stmt))
