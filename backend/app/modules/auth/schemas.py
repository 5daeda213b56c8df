from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    # Email address or username
    identifier: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class CurrentUserSummary(BaseModel):
    id: str
    email: str
    username: str
    name: str | None
    role: str
    tier: str
    email_verified: bool
