from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    title: str
    message: str | None = None
    data: dict = Field(default_factory=dict)
    is_read: bool = False
    action_url: str | None = None
    created_at: datetime


class UnreadCount(BaseModel):
    count: int


class NotificationSettings(BaseModel):
    notify_new_follower: bool = True
    notify_milestones: bool = True
    notify_system_updates: bool = True


class NotificationSettingsUpdate(BaseModel):
    notify_new_follower: bool | None = None
    notify_milestones: bool | None = None
    notify_system_updates: bool | None = None
