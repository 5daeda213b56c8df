from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import get_password_hash
from .models import ROLE_OWNER
from .repository import UsersRepository
from .schemas import UserCreate
from .service import UsersService


logger = logging.getLogger(__name__)


def ensure_default_owner(db: Session) -> None:
    logger.info("[bootstrap] ensure_default_owner: starting")

    bind = db.get_bind()
    if not inspect(bind).has_table("users"):
        logger.info("[bootstrap] users table not ready yet")
        return

    email = settings.ADMIN_EMAIL
    password = settings.ADMIN_PASSWORD
    if not email or not password:
        logger.info("[bootstrap] ADMIN_EMAIL or ADMIN_PASSWORD not set; skipping owner bootstrap")
        return

    repo = UsersRepository(db)
    existing = repo.get_by_email(email)
    if existing:
        logger.info("[bootstrap] Found existing owner email %s; ensuring role and activation", email)
        existing.role = ROLE_OWNER
        existing.is_active = True
        existing.email_verified = True
        existing.hashed_password = get_password_hash(password)
        repo.save(existing)
        return

    username = (settings.ADMIN_USERNAME or email.split("@")[0]).lower()
    try:
        user = UsersService(db).register_user(
            UserCreate(
                email=email,
                username=username,
                password=password,
                name=settings.ADMIN_FULL_NAME,
            ),
            role=ROLE_OWNER,
            allow_reserved=True,
        )
    except (IntegrityError, ValueError) as exc:
        db.rollback()
        logger.warning("[bootstrap] Failed to create default owner: %s", exc)
        return
    user.email_verified = True
    repo.save(user)
    logger.info("[bootstrap] Default owner '%s' created", user.username)
