from __future__ import annotations

from fastapi import APIRouter

from app.api.deps import AdminUser, DbDep, OptionalUser, OwnerUser
from .schemas import (
    BypassStatus,
    MaintenanceSettings,
    MaintenanceStatus,
    MaintenanceUpdate,
    MaintenanceUpdateResult,
    SyncTablesResult,
    ToggleResult,
)
from .service import MaintenanceService


router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.get("/status", response_model=MaintenanceStatus)
def maintenance_status(db: DbDep):
    return MaintenanceService(db).status()


@router.get("/bypass", response_model=BypassStatus)
def can_bypass(db: DbDep, user: OptionalUser):
    return BypassStatus(can_bypass=MaintenanceService(db).can_bypass(user))


@router.get("/settings", response_model=MaintenanceSettings)
def read_settings(db: DbDep, _: OwnerUser):
    return MaintenanceService(db).get_settings()


@router.put("/settings", response_model=MaintenanceUpdateResult)
def update_settings(payload: MaintenanceUpdate, db: DbDep, owner: OwnerUser):
    return MaintenanceService(db).update_settings(owner, payload)


@router.post("/toggle", response_model=ToggleResult)
def toggle_maintenance(db: DbDep, owner: OwnerUser):
    return MaintenanceService(db).toggle(owner)


@router.get("/sync-tables", response_model=SyncTablesResult)
def sync_tables(db: DbDep, _: AdminUser):
    """
    Ensure all discovered models have their tables created and run bootstraps.
    """
    return MaintenanceService(db).sync_tables()
