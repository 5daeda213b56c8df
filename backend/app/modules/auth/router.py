from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from app.api.deps import CurrentUser, DbDep
from app.core.config import settings
from .schemas import CurrentUserSummary, LoginRequest, TokenResponse
from .service import AuthService


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: DbDep):
    svc = AuthService(db)
    token = svc.login(payload.identifier, payload.password)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    return TokenResponse(access_token=token, expires_in=settings.AUTH_TOKEN_TTL_SECONDS)


@router.get("/me", response_model=CurrentUserSummary)
def me(current: CurrentUser):
    return CurrentUserSummary(
        id=current.id,
        email=current.email,
        username=current.username,
        name=current.name,
        role=current.role,
        tier=current.tier,
        email_verified=current.email_verified,
    )
