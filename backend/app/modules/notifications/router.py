from __future__ import annotations

from fastapi import APIRouter, Query

from app.api.deps import CurrentUser, DbDep, OptionalUser
from .schemas import NotificationRead, NotificationSettings, NotificationSettingsUpdate, UnreadCount
from .service import NotificationsService


router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationRead])
def list_notifications(
    db: DbDep,
    current: CurrentUser,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    unread_only: bool = False,
):
    return NotificationsService(db).list_notifications(
        current, limit=limit, offset=offset, unread_only=unread_only
    )


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(db: DbDep, viewer: OptionalUser):
    return NotificationsService(db).unread_count(viewer)


@router.post("/read-all")
def mark_all_read(db: DbDep, current: CurrentUser):
    updated = NotificationsService(db).mark_all_read(current)
    return {"success": True, "updated": updated}


@router.get("/settings", response_model=NotificationSettings)
def get_settings(db: DbDep, current: CurrentUser):
    return NotificationsService(db).get_settings(current)


@router.put("/settings", response_model=NotificationSettings)
def update_settings(payload: NotificationSettingsUpdate, db: DbDep, current: CurrentUser):
    return NotificationsService(db).update_settings(current, payload)


@router.post("/{notification_id}/read")
def mark_read(notification_id: str, db: DbDep, current: CurrentUser):
    NotificationsService(db).mark_read(current, notification_id)
    return {"success": True}


@router.delete("/{notification_id}")
def delete_notification(notification_id: str, db: DbDep, current: CurrentUser):
    NotificationsService(db).delete(current, notification_id)
    return {"success": True}


@router.delete("")
def clear_notifications(db: DbDep, current: CurrentUser):
    removed = NotificationsService(db).clear_all(current)
    return {"success": True, "removed": removed}
