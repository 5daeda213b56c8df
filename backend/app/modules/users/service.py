from __future__ import annotations

import logging
import re

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, PermissionDeniedError, ServiceError
from app.core.security import get_password_hash, password_problem, verify_password
from app.modules.profiles.models import Profile, UserStats
from app.modules.referrals.service import ReferralsService
from .models import ROLE_OWNER, ROLE_USER, User
from .repository import UsersRepository
from .schemas import (
    LeaderboardEntry,
    LeaderboardPage,
    LeaderboardStats,
    UserAdminUpdate,
    UserCreate,
    UsernameCheck,
    UserPage,
    UserRead,
    UserSearchResult,
)


logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{3,30}$")

RESERVED_USERNAMES = frozenset(
    {
        "admin", "administrator", "root", "system", "support", "help", "api",
        "www", "mail", "email", "ftp", "ssh", "login", "signup", "sign-up",
        "signin", "sign-in", "register", "auth", "oauth", "profile", "settings",
        "dashboard", "account", "user", "users", "eziox", "official", "staff",
        "team", "mod", "moderator", "about", "contact", "privacy", "terms",
        "tos", "legal", "docs", "documentation", "blog", "news", "pricing",
        "plans", "creators", "leaderboard", "explore", "discover", "search",
        "home", "index", "null", "undefined", "test", "demo", "maintenance",
        "s", "shortener", "tickets",
    }
)


def username_problem(username: str) -> str | None:
    if not USERNAME_PATTERN.match(username):
        return "Invalid username format"
    if username.lower() in RESERVED_USERNAMES:
        return "Username is reserved"
    return None


class UsersService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UsersRepository(db)

    def register_user(
        self,
        data: UserCreate,
        *,
        role: str = ROLE_USER,
        allow_reserved: bool = False,
    ) -> User:
        username = data.username.strip().lower()
        problem = username_problem(username)
        if problem and not (allow_reserved and problem == "Username is reserved"):
            raise ServiceError(problem)
        problem = password_problem(data.password)
        if problem:
            raise ServiceError(problem)
        if self.repo.get_by_email(data.email):
            raise ServiceError("Email already registered")
        if self.repo.get_by_username(username):
            raise ServiceError("Username already taken")

        user = User(
            email=data.email.strip().lower(),
            username=username,
            name=data.name or username,
            hashed_password=get_password_hash(data.password),
            role=role,
            is_active=True,
        )
        self.db.add(user)
        self.db.flush()
        self.db.add(Profile(user_id=user.id, badges=[], socials={}))
        self.db.add(UserStats(user_id=user.id))
        if data.referral_code:
            # An unusable code never blocks signing up
            result = ReferralsService(self.db).process(user.id, data.referral_code)
            if not result.success:
                logger.info("Ignored referral code for %s: %s", user.id, result.error)
        self.db.commit()
        self.db.refresh(user)
        logger.info("Registered user %s (%s)", user.username, user.id)
        return user

    def authenticate(self, identifier: str, password: str) -> User | None:
        if "@" in identifier:
            user = self.repo.get_by_email(identifier)
        else:
            user = self.repo.get_by_username(identifier)
        if not user:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def check_username(self, username: str) -> UsernameCheck:
        problem = username_problem(username)
        if problem:
            return UsernameCheck(available=False, error=problem)
        normalized = username.lower()
        return UsernameCheck(
            available=self.repo.get_by_username(normalized) is None,
            username=normalized,
        )

    def search(self, query: str, limit: int = 10) -> list[UserSearchResult]:
        return [
            self._to_search_result(user, profile)
            for user, profile in self.repo.search(query, limit=limit)
        ]

    def leaderboard(self, sort_by: str, limit: int = 20, offset: int = 0) -> LeaderboardPage:
        rows = self.repo.leaderboard(sort_by, limit=limit, offset=offset)
        entries = []
        for index, (user, profile, stats) in enumerate(rows):
            entries.append(
                LeaderboardEntry(
                    rank=offset + index + 1,
                    user=self._to_search_result(user, profile),
                    accent_color=profile.accent_color if profile else None,
                    bio=profile.bio if profile else None,
                    stats=LeaderboardStats(
                        score=(stats.score or 0) if stats else 0,
                        profile_views=(stats.profile_views or 0) if stats else 0,
                        total_link_clicks=(stats.total_link_clicks or 0) if stats else 0,
                        followers=(stats.followers or 0) if stats else 0,
                    ),
                )
            )
        return LeaderboardPage(
            users=entries, total=self.repo.count_active(), limit=limit, offset=offset
        )

    # ---- Admin ----
    def list_users(
        self, *, search: str | None, role: str | None, limit: int, offset: int
    ) -> UserPage:
        users, total = self.repo.list(search=search, role=role, limit=limit, offset=offset)
        return UserPage(
            users=[UserRead.model_validate(u) for u in users],
            total=total,
            limit=limit,
            offset=offset,
        )

    def update_user(self, actor: User, user_id: str, data: UserAdminUpdate) -> User:
        user = self.repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if data.role is not None and data.role != user.role:
            if not actor.is_owner:
                raise PermissionDeniedError("Owner access required to change roles")
            if user.role == ROLE_OWNER or data.role == ROLE_OWNER:
                raise PermissionDeniedError("The owner role cannot be reassigned")
            user.role = data.role
        if data.is_active is not None:
            if user.role == ROLE_OWNER and not data.is_active:
                raise PermissionDeniedError("The owner account cannot be deactivated")
            user.is_active = data.is_active
        if data.tier is not None:
            user.tier = data.tier
        if data.email_verified is not None:
            user.email_verified = data.email_verified
        updated = self.repo.save(user)
        logger.info("User %s updated by %s", user.id, actor.id)
        return updated

    @staticmethod
    def _to_search_result(user: User, profile: Profile | None) -> UserSearchResult:
        return UserSearchResult(
            id=user.id,
            username=user.username,
            name=user.name,
            role=user.role,
            avatar=profile.avatar if profile else None,
            badges=list(profile.badges or []) if profile else [],
        )
