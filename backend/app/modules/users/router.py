from __future__ import annotations

import logging

from fastapi import APIRouter, Query, status

from app.api.deps import AdminUser, CurrentUser, DbDep
from .schemas import (
    LeaderboardPage,
    LeaderboardSort,
    RoleName,
    UserAdminUpdate,
    UserCreate,
    UsernameCheck,
    UserPage,
    UserRead,
    UserSearchResult,
)
from .service import UsersService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_user(data: UserCreate, db: DbDep):
    svc = UsersService(db)
    logger.info("Registering user %s", data.username)
    return svc.register_user(data)


@router.get("/me", response_model=UserRead)
def read_me(current: CurrentUser):
    return current


@router.get("/check-username", response_model=UsernameCheck)
def check_username(db: DbDep, username: str = Query(min_length=1, max_length=50)):
    return UsersService(db).check_username(username)


@router.get("/search", response_model=list[UserSearchResult])
def search_users(
    db: DbDep,
    query: str = Query(min_length=1, max_length=50),
    limit: int = Query(default=10, ge=1, le=20),
):
    return UsersService(db).search(query, limit=limit)


@router.get("/leaderboard", response_model=LeaderboardPage)
def leaderboard(
    db: DbDep,
    sort_by: LeaderboardSort = "score",
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    return UsersService(db).leaderboard(sort_by, limit=limit, offset=offset)


@router.get("", response_model=UserPage)
def list_users(
    db: DbDep,
    _: AdminUser,
    search: str | None = Query(default=None, max_length=100),
    role: RoleName | None = None,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    return UsersService(db).list_users(search=search, role=role, limit=limit, offset=offset)


@router.patch("/{user_id}", response_model=UserRead)
def update_user(user_id: str, payload: UserAdminUpdate, db: DbDep, admin: AdminUser):
    return UsersService(db).update_user(admin, user_id, payload)
