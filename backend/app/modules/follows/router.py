from __future__ import annotations

from fastapi import APIRouter, Query

from app.api.deps import CurrentUser, DbDep, OptionalUser
from .schemas import FollowPage, FollowResult, FollowStats, FollowStatus
from .service import FollowsService


router = APIRouter(prefix="/follows", tags=["follows"])


@router.post("/{username}", response_model=FollowResult)
def follow_user(username: str, db: DbDep, current: CurrentUser):
    return FollowsService(db).follow(current, username)


@router.delete("/{username}", response_model=FollowResult)
def unfollow_user(username: str, db: DbDep, current: CurrentUser):
    return FollowsService(db).unfollow(current, username)


@router.get("/{username}/status", response_model=FollowStatus)
def is_following(username: str, db: DbDep, current: CurrentUser):
    return FollowsService(db).is_following(current, username)


@router.get("/{username}/followers", response_model=FollowPage)
def list_followers(
    username: str,
    db: DbDep,
    viewer: OptionalUser,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    return FollowsService(db).followers(username, viewer, limit, offset)


@router.get("/{username}/following", response_model=FollowPage)
def list_following(
    username: str,
    db: DbDep,
    viewer: OptionalUser,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    return FollowsService(db).following(username, viewer, limit, offset)


@router.get("/{username}/stats", response_model=FollowStats)
def follow_stats(username: str, db: DbDep):
    return FollowsService(db).follow_stats(username)
