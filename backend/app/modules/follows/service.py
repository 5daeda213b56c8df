from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ServiceError
from app.modules.notifications.service import NotificationsService
from app.modules.profiles.repository import ProfilesRepository
from app.modules.users.models import User
from app.modules.users.repository import UsersRepository
from .models import Follow
from .repository import FollowsRepository
from .schemas import FollowEntry, FollowPage, FollowResult, FollowStats, FollowStatus, FollowUser


logger = logging.getLogger(__name__)


class FollowsService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = FollowsRepository(db)
        self.users = UsersRepository(db)
        self.profiles = ProfilesRepository(db)

    def follow(self, current: User, username: str) -> FollowResult:
        target = self._target(username)
        if target.id == current.id:
            raise ServiceError("You cannot follow yourself")
        if self.repo.get(current.id, target.id):
            return FollowResult(success=False, error="Already following")

        follower_id, following_id = current.id, target.id
        try:
            # Stats helpers flush, which also inserts the pending follow
            self.repo.add(Follow(follower_id=follower_id, following_id=following_id))
            self.profiles.get_or_create_stats(follower_id)
            self.profiles.get_or_create_stats(following_id)
            self.profiles.increment_stats(follower_id, following=1)
            self.profiles.increment_stats(following_id, followers=1)
            NotificationsService(self.db).notify_new_follower(current, following_id)
            self.db.commit()
        except IntegrityError:
            # Lost a race with an identical follow
            self.db.rollback()
            return FollowResult(success=False, error="Already following")
        logger.info("%s followed %s", follower_id, following_id)
        return FollowResult(success=True)

    def unfollow(self, current: User, username: str) -> FollowResult:
        target = self._target(username)
        if target.id == current.id:
            raise ServiceError("You cannot unfollow yourself")
        existing = self.repo.get(current.id, target.id)
        if not existing:
            return FollowResult(success=False, error="Not following")

        self.repo.delete(existing)
        self.profiles.increment_stats(current.id, following=-1)
        self.profiles.increment_stats(target.id, followers=-1)
        self.db.commit()
        logger.info("%s unfollowed %s", current.id, target.id)
        return FollowResult(success=True)

    def is_following(self, current: User, username: str) -> FollowStatus:
        target = self._target(username)
        return FollowStatus(is_following=self.repo.get(current.id, target.id) is not None)

    def followers(self, username: str, viewer: User | None, limit: int, offset: int) -> FollowPage:
        return self._page(username, "followers", viewer, limit, offset)

    def following(self, username: str, viewer: User | None, limit: int, offset: int) -> FollowPage:
        return self._page(username, "following", viewer, limit, offset)

    def follow_stats(self, username: str) -> FollowStats:
        target = self._target(username)
        stats = self.profiles.get_stats(target.id)
        return FollowStats(
            followers=(stats.followers or 0) if stats else 0,
            following=(stats.following or 0) if stats else 0,
        )

    def _page(
        self, username: str, direction: str, viewer: User | None, limit: int, offset: int
    ) -> FollowPage:
        target = self._target(username)
        rows, total = self.repo.page(target.id, direction=direction, limit=limit, offset=offset)
        followed = set()
        if viewer is not None:
            followed = self.repo.following_ids(viewer.id, [user.id for user, _, _ in rows])
        entries = [
            FollowEntry(
                user=FollowUser(
                    id=user.id,
                    username=user.username,
                    name=user.name,
                    role=user.role,
                    avatar=profile.avatar if profile else None,
                    bio=profile.bio if profile else None,
                ),
                followed_at=follow.created_at,
                is_following=user.id in followed,
                is_self=viewer is not None and viewer.id == user.id,
            )
            for user, profile, follow in rows
        ]
        return FollowPage(users=entries, total=total, has_more=offset + limit < total)

    def _target(self, username: str) -> User:
        user = self.users.get_by_username(username)
        if not user or not user.is_active:
            raise NotFoundError("User not found")
        return user
