from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import Base, utcnow
from app.core.module_loader import import_all_models
from app.modules.users.bootstrap import ensure_default_owner
from app.modules.users.models import User
from .repository import SiteSettingsRepository
from .schemas import (
    DEFAULT_MESSAGE,
    MaintenanceSettings,
    MaintenanceStatus,
    MaintenanceUpdate,
    MaintenanceUpdateResult,
    SyncTablesResult,
    ToggleResult,
)


logger = logging.getLogger(__name__)

MAINTENANCE_KEY = "maintenance_mode"


class MaintenanceService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SiteSettingsRepository(db)

    def _load(self) -> MaintenanceSettings | None:
        setting = self.repo.get(MAINTENANCE_KEY)
        if setting is None:
            return None
        return MaintenanceSettings.model_validate(setting.value or {})

    def _store(self, value: MaintenanceSettings, actor: User) -> None:
        self.repo.upsert(
            MAINTENANCE_KEY,
            value.model_dump(),
            updated_by=actor.id,
            description="Maintenance mode settings",
        )

    def status(self) -> MaintenanceStatus:
        current = self._load()
        if current is None:
            return MaintenanceStatus(enabled=False)
        return MaintenanceStatus(
            enabled=current.enabled,
            message=current.message or DEFAULT_MESSAGE,
            estimated_end_time=current.estimated_end_time,
        )

    def can_bypass(self, user: User | None) -> bool:
        if user is None:
            return False
        if user.is_owner:
            return True
        email = user.email.lower()
        if settings.OWNER_EMAIL and email == settings.OWNER_EMAIL.strip().lower():
            return True
        current = self._load()
        if current is None:
            return False
        return email in {e.lower() for e in current.allowed_emails}

    def get_settings(self) -> MaintenanceSettings:
        return self._load() or MaintenanceSettings()

    def update_settings(self, owner: User, data: MaintenanceUpdate) -> MaintenanceUpdateResult:
        previous = self._load()
        value = MaintenanceSettings(
            enabled=data.enabled,
            message=data.message or DEFAULT_MESSAGE,
            allowed_emails=[str(e).lower() for e in data.allowed_emails or []],
            estimated_end_time=data.estimated_end_time or None,
        )
        if data.enabled:
            if previous is not None and previous.enabled:
                # Still the same maintenance window
                value.enabled_at = previous.enabled_at
                value.enabled_by = previous.enabled_by
            else:
                value.enabled_at = utcnow().isoformat()
                value.enabled_by = owner.id
        self._store(value, owner)
        logger.info("Maintenance settings updated by %s (enabled=%s)", owner.id, value.enabled)
        return MaintenanceUpdateResult(
            message="Maintenance mode enabled" if value.enabled else "Maintenance mode disabled",
            settings=value,
        )

    def toggle(self, owner: User) -> ToggleResult:
        current = self._load() or MaintenanceSettings()
        enabled = not current.enabled
        value = MaintenanceSettings(
            enabled=enabled,
            message=current.message or DEFAULT_MESSAGE,
            allowed_emails=current.allowed_emails,
            estimated_end_time=current.estimated_end_time,
            enabled_at=utcnow().isoformat() if enabled else None,
            enabled_by=owner.id if enabled else None,
        )
        self._store(value, owner)
        logger.info("Maintenance mode %s by %s", "enabled" if enabled else "disabled", owner.id)
        return ToggleResult(
            enabled=enabled,
            message="Maintenance mode enabled" if enabled else "Maintenance mode disabled",
        )

    def sync_tables(self) -> SyncTablesResult:
        """Create any tables missing from the database and re-run bootstraps."""
        engine = self.db.get_bind()

        # Load all module models so Base.metadata is complete
        import_all_models()

        known_tables_before = set(inspect(engine).get_table_names())
        Base.metadata.create_all(bind=engine, checkfirst=True)
        known_tables_after = set(inspect(engine).get_table_names())
        created_tables = sorted(known_tables_after - known_tables_before)
        if created_tables:
            logger.info("Created tables: %s", ", ".join(created_tables))

        ensure_default_owner(self.db)

        return SyncTablesResult(
            status="ok",
            created_tables=created_tables,
            total_known_tables=sorted(known_tables_after),
        )
