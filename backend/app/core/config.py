from __future__ import annotations

from typing import List

from pydantic import AnyUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Core
    DATABASE_URL: str
    ALLOWED_ORIGINS: str | None = "*"
    PUBLIC_BASE_URL: AnyUrl | str = "https://eziox.link"
    LOG_LEVEL: str = "INFO"

    # Auth
    AUTH_TOKEN_SECRET: str
    AUTH_TOKEN_TTL_SECONDS: int = 86400
    LOGIN_MAX_ATTEMPTS: int = 5
    LOGIN_WINDOW_SECONDS: int = 15 * 60

    # Links
    LINK_CREATE_PER_MINUTE: int = 30
    LINK_RAPID_WINDOW_MINUTES: int = 5
    LINK_RAPID_THRESHOLD: int = 20

    # URL shortener
    SHORT_CODE_LENGTH: int = 6
    SHORT_LINK_LIMIT_FREE: int = 50

    # Support tickets
    TICKET_MAX_OPEN_PER_USER: int = 3
    TICKET_MAX_OPEN_PER_GUEST: int = 1

    # Referrals
    REFERRAL_SCORE_BONUS: int = 5
    OWNER_REFERRAL_CODE: str = "EZIOX"

    # Maintenance
    MAINTENANCE_ENFORCE: bool = True
    OWNER_EMAIL: str | None = None

    # Misc
    DEBUGPY: int | None = None

    # Default owner bootstrap
    ADMIN_EMAIL: str | None = None
    ADMIN_PASSWORD: str | None = None
    ADMIN_USERNAME: str | None = None
    ADMIN_FULL_NAME: str | None = None

    @property
    def cors_origins(self) -> List[str]:
        if not self.ALLOWED_ORIGINS:
            return []
        raw = self.ALLOWED_ORIGINS
        if isinstance(raw, str):
            return [o.strip() for o in raw.split(",") if o.strip()]
        return list(raw)

    @property
    def is_dev(self) -> bool:
        try:
            return bool(int(self.DEBUGPY or 0))
        except (TypeError, ValueError):
            return False

    @property
    def short_link_base(self) -> str:
        return f"{str(self.PUBLIC_BASE_URL).rstrip('/')}/s/"

    @property
    def referral_link_base(self) -> str:
        return f"{str(self.PUBLIC_BASE_URL).rstrip('/')}/join/"


settings = Settings()  # type: ignore[call-arg]
