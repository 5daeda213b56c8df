from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.modules.badges.definitions import get_badge
from app.modules.profiles.repository import ProfilesRepository
from app.modules.users.models import User
from .models import Notification
from .repository import NotificationsRepository
from .schemas import NotificationRead, NotificationSettings, NotificationSettingsUpdate, UnreadCount


logger = logging.getLogger(__name__)

MILESTONES = (10, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 25000, 50000, 100000)


def crossed_milestone(current: int, previous: int) -> int | None:
    """The lowest milestone passed when a counter moves from `previous` to `current`."""
    for milestone in MILESTONES:
        if previous < milestone <= current:
            return milestone
    return None


class NotificationsService:
    """Reads and writes a user's notifications.

    The `notify_*` helpers only stage rows; the caller commits them with its
    own unit of work.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationsRepository(db)
        self.profiles = ProfilesRepository(db)

    # ---- Inbox ----
    def list_notifications(
        self, user: User, *, limit: int = 20, offset: int = 0, unread_only: bool = False
    ) -> list[NotificationRead]:
        rows = self.repo.list_for_user(user.id, limit=limit, offset=offset, unread_only=unread_only)
        return [NotificationRead.model_validate(row) for row in rows]

    def unread_count(self, user: User | None) -> UnreadCount:
        if user is None:
            return UnreadCount(count=0)
        return UnreadCount(count=self.repo.unread_count(user.id))

    def mark_read(self, user: User, notification_id: str) -> None:
        if not self.repo.mark_read(user.id, notification_id):
            raise NotFoundError("Notification not found")
        self.db.commit()

    def mark_all_read(self, user: User) -> int:
        updated = self.repo.mark_read(user.id)
        self.db.commit()
        return updated

    def delete(self, user: User, notification_id: str) -> None:
        if not self.repo.delete(user.id, notification_id):
            raise NotFoundError("Notification not found")
        self.db.commit()

    def clear_all(self, user: User) -> int:
        removed = self.repo.delete(user.id)
        self.db.commit()
        logger.info("Cleared %d notification(s) for %s", removed, user.id)
        return removed

    # ---- Preferences ----
    def get_settings(self, user: User) -> NotificationSettings:
        profile = self.profiles.get_or_create_profile(user.id)
        self.db.commit()
        return self._settings(profile)

    def update_settings(self, user: User, data: NotificationSettingsUpdate) -> NotificationSettings:
        profile = self.profiles.get_or_create_profile(user.id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(profile, field, value)
        return self._settings(self.profiles.save(profile))

    # ---- Producers ----
    def notify_new_follower(self, follower: User, target_id: str) -> None:
        target_profile = self.profiles.get_by_user_id(target_id)
        if target_profile is not None and target_profile.notify_new_follower is False:
            return
        follower_profile = self.profiles.get_by_user_id(follower.id)
        self.repo.add(
            Notification(
                user_id=target_id,
                type="new_follower",
                title="New Follower",
                message=f"{follower.name or follower.username} started following you",
                data={
                    "follower_id": follower.id,
                    "follower_username": follower.username,
                    "follower_name": follower.name,
                    "follower_avatar": follower_profile.avatar if follower_profile else None,
                },
                action_url=f"/{follower.username}",
            )
        )

    def notify_milestone(
        self, user_id: str, current: int, previous: int, *, link_title: str | None = None
    ) -> int | None:
        """Stage a profile (or, with `link_title`, link) milestone notification if one was crossed."""
        milestone = crossed_milestone(current, previous)
        if milestone is None:
            return None
        profile = self.profiles.get_by_user_id(user_id)
        if profile is not None and profile.notify_milestones is False:
            return None
        if link_title is None:
            kind, title = "profile_milestone", "Profile Milestone!"
            message = f"Your profile reached {milestone:,} views!"
            action_url = "/analytics"
        else:
            kind, title = "link_milestone", "Link Milestone!"
            message = f'Your link "{link_title}" reached {milestone:,} clicks!'
            action_url = "/links"
        self.repo.add(
            Notification(
                user_id=user_id,
                type=kind,
                title=title,
                message=message,
                data={"milestone": milestone, "link_title": link_title},
                action_url=action_url,
            )
        )
        return milestone

    def notify_badge(self, user_id: str, badge_id: str) -> None:
        badge = get_badge(badge_id)
        if badge is None:
            return
        self.repo.add(
            Notification(
                user_id=user_id,
                type="badge_earned",
                title="Badge Earned!",
                message=f'You earned the "{badge.name}" badge',
                data={"badge_id": badge.id, "badge_name": badge.name, "badge_icon": badge.icon},
                action_url="/profile?tab=badges",
            )
        )

    @staticmethod
    def _settings(profile) -> NotificationSettings:
        return NotificationSettings(
            notify_new_follower=profile.notify_new_follower is not False,
            notify_milestones=profile.notify_milestones is not False,
            notify_system_updates=profile.notify_system_updates is not False,
        )
