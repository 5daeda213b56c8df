from __future__ import annotations

from fastapi import APIRouter, Request

from app.api.deps import CurrentUser, DbDep, OptionalUser, client_ip
from .schemas import (
    ProfileRead,
    ProfileSettings,
    ProfileUpdate,
    PublicProfileResponse,
    ThemeUpdate,
    ViewResponse,
)
from .service import ProfilesService


router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=ProfileRead)
def read_my_profile(db: DbDep, current: CurrentUser):
    return ProfilesService(db).get_my_profile(current)


@router.patch("/me", response_model=ProfileRead)
def update_my_profile(payload: ProfileUpdate, db: DbDep, current: CurrentUser):
    return ProfilesService(db).update_my_profile(current, payload)


@router.get("/me/settings", response_model=ProfileSettings)
def read_settings(db: DbDep, current: CurrentUser):
    return ProfilesService(db).get_settings(current)


@router.put("/me/theme", response_model=ProfileSettings)
def update_theme(payload: ThemeUpdate, db: DbDep, current: CurrentUser):
    return ProfilesService(db).update_theme(current, payload)


@router.get("/{username}", response_model=PublicProfileResponse)
def read_public_profile(username: str, db: DbDep, viewer: OptionalUser):
    return ProfilesService(db).get_public_profile(username, viewer)


@router.post("/{username}/view", response_model=ViewResponse)
def track_view(username: str, request: Request, db: DbDep):
    return ViewResponse(success=ProfilesService(db).track_view(username, client_ip(request)))
