from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import SiteSetting


class SiteSettingsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[SiteSetting]:
        return self.db.scalar(select(SiteSetting).where(SiteSetting.key == key))

    def upsert(
        self, key: str, value: dict, *, updated_by: str | None, description: str | None = None
    ) -> SiteSetting:
        setting = self.get(key)
        if setting is None:
            setting = SiteSetting(key=key, description=description)
        setting.value = value
        setting.updated_by = updated_by
        self.db.add(setting)
        self.db.commit()
        self.db.refresh(setting)
        return setting
