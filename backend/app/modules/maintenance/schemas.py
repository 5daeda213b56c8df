from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field


DEFAULT_MESSAGE = "We are currently performing maintenance. Please check back soon."


class MaintenanceSettings(BaseModel):
    """Document stored under the ``maintenance_mode`` site setting."""

    enabled: bool = False
    message: str = DEFAULT_MESSAGE
    allowed_emails: list[str] = []
    estimated_end_time: str | None = None
    enabled_at: str | None = None
    enabled_by: str | None = None


class MaintenanceStatus(BaseModel):
    enabled: bool
    message: str | None = None
    estimated_end_time: str | None = None


class BypassStatus(BaseModel):
    can_bypass: bool


class MaintenanceUpdate(BaseModel):
    enabled: bool
    message: str | None = Field(default=None, max_length=500)
    allowed_emails: list[EmailStr] | None = None
    estimated_end_time: str | None = Field(default=None, max_length=64)


class MaintenanceUpdateResult(BaseModel):
    success: bool = True
    message: str
    settings: MaintenanceSettings


class ToggleResult(BaseModel):
    success: bool = True
    enabled: bool
    message: str


class SyncTablesResult(BaseModel):
    status: str
    created_tables: list[str]
    total_known_tables: list[str]
