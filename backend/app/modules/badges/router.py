from __future__ import annotations

from fastapi import APIRouter, Query

from app.api.deps import AdminUser, CurrentUser, DbDep
from .schemas import (
    AwardCheckResult,
    BadgeAssignment,
    BadgeChangeResult,
    BadgeRead,
    BulkAward,
    BulkAwardResult,
    UserBadges,
    UsersWithBadgesPage,
)
from .service import BadgesService


router = APIRouter(prefix="/badges", tags=["badges"])


@router.get("", response_model=list[BadgeRead])
def list_badges(db: DbDep):
    return BadgesService(db).catalog()


@router.get("/users", response_model=UsersWithBadgesPage)
def list_users_with_badges(
    db: DbDep,
    _: AdminUser,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    return BadgesService(db).list_users_with_badges(limit=limit, offset=offset)


@router.get("/users/{user_id}", response_model=UserBadges)
def get_user_badges(user_id: str, db: DbDep):
    return BadgesService(db).get_user_badges(user_id)


@router.post("/assign", response_model=BadgeChangeResult)
def assign_badge(payload: BadgeAssignment, db: DbDep, admin: AdminUser):
    return BadgesService(db).assign(admin, payload.user_id, payload.badge_id)


@router.post("/remove", response_model=BadgeChangeResult)
def remove_badge(payload: BadgeAssignment, db: DbDep, admin: AdminUser):
    return BadgesService(db).remove(admin, payload.user_id, payload.badge_id)


@router.post("/bulk-award", response_model=BulkAwardResult)
def bulk_award_badge(payload: BulkAward, db: DbDep, admin: AdminUser):
    return BadgesService(db).bulk_award(admin, payload.user_ids, payload.badge_id)


@router.post("/check", response_model=AwardCheckResult)
def check_and_award(db: DbDep, current: CurrentUser, user_id: str | None = None):
    return BadgesService(db).check_and_award(current, user_id)
