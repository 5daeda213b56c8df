from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import RateLimitedError
from app.core.rate_limit import limiter
from app.core.security import create_access_token
from app.modules.users.service import UsersService


logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.users = UsersService(db)

    def login(self, identifier: str, password: str) -> str | None:
        key = f"auth-login:{identifier.strip().lower()}"
        user = self.users.authenticate(identifier.strip(), password)
        if not user or not user.is_active:
            attempt = limiter.hit(key, settings.LOGIN_MAX_ATTEMPTS, settings.LOGIN_WINDOW_SECONDS)
            if not attempt.allowed:
                logger.warning("Login locked out for %s", identifier)
                raise RateLimitedError("Too many attempts. Please try again later")
            logger.info("Failed login for %s", identifier)
            return None
        limiter.reset(key)
        return create_access_token(subject=user.id)
