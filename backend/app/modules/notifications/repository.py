from __future__ import annotations

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from .models import Notification


class NotificationsRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, notification: Notification) -> None:
        self.db.add(notification)

    def list_for_user(
        self, user_id: str, *, limit: int, offset: int, unread_only: bool = False
    ) -> list[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc()).limit(limit).offset(offset)
        return list(self.db.scalars(stmt))

    def unread_count(self, user_id: str) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.user_id == user_id, Notification.is_read.is_(False)
        )
        return self.db.scalar(stmt) or 0

    def mark_read(self, user_id: str, notification_id: str | None = None) -> int:
        """Mark one notification (or all of them) read; returns the affected row count."""
        stmt = update(Notification).where(Notification.user_id == user_id)
        if notification_id is not None:
            stmt = stmt.where(Notification.id == notification_id)
        else:
            stmt = stmt.where(Notification.is_read.is_(False))
        result = self.db.execute(stmt.values(is_read=True).execution_options(synchronize_session=False))
        return result.rowcount or 0

    def delete(self, user_id: str, notification_id: str | None = None) -> int:
        stmt = delete(Notification).where(Notification.user_id == user_id)
        if notification_id is not None:
            stmt = stmt.where(Notification.id == notification_id)
        result = self.db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount or 0
