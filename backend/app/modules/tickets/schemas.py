from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field


TicketCategory = Literal["general", "technical", "billing", "account", "abuse"]
TicketPriority = Literal["low", "normal", "high", "urgent"]
TicketStatus = Literal["open", "in_progress", "waiting_user", "waiting_admin", "resolved", "closed"]


class TicketCreate(BaseModel):
    category: TicketCategory
    subject: str = Field(min_length=5, max_length=255)
    description: str = Field(min_length=20, max_length=5000)
    guest_email: EmailStr | None = None
    guest_name: str | None = Field(default=None, min_length=2, max_length=100)
    metadata: dict[str, Any] | None = None


class TicketCreated(BaseModel):
    success: bool = True
    ticket_id: str
    ticket_number: str
    message: str


class TicketRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    ticket_number: str
    user_id: str | None
    guest_email: str | None
    guest_name: str | None
    category: str
    priority: str
    subject: str
    description: str
    status: str
    assigned_to: str | None
    resolution: str | None
    resolved_at: datetime | None
    resolved_by: str | None
    satisfaction_rating: int | None
    satisfaction_feedback: str | None
    # ORM attribute is `meta`; `metadata` is reserved on declarative models
    metadata: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("meta", "metadata")
    )
    last_activity_at: datetime
    created_at: datetime
    updated_at: datetime | None


class TicketMessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    sender_id: str | None
    sender_type: str
    sender_name: str | None
    message: str
    is_internal: bool
    created_at: datetime


class TicketUserSummary(BaseModel):
    id: str
    username: str
    email: str | None = None
    tier: str | None = None


class TicketDetail(BaseModel):
    ticket: TicketRead
    messages: list[TicketMessageRead]
    assignee: TicketUserSummary | None = None


class TicketPage(BaseModel):
    tickets: list[TicketRead]
    total: int


class AdminTicket(TicketRead):
    user: TicketUserSummary | None = None


class AdminTicketPage(BaseModel):
    tickets: list[AdminTicket]
    total: int


class TicketStats(BaseModel):
    open: int
    in_progress: int
    waiting_admin: int
    urgent: int
    today: int


class ReplyRequest(BaseModel):
    message: str = Field(min_length=1, max_length=5000)


class CloseRequest(BaseModel):
    satisfaction_rating: int | None = Field(default=None, ge=1, le=5)
    satisfaction_feedback: str | None = Field(default=None, max_length=500)


class AssignRequest(BaseModel):
    assignee_id: str | None = None


class StatusUpdate(BaseModel):
    status: TicketStatus
    resolution: str | None = Field(default=None, max_length=1000)


class InternalNote(BaseModel):
    note: str = Field(min_length=1, max_length=2000)


class PriorityUpdate(BaseModel):
    priority: TicketPriority


class SuccessResponse(BaseModel):
    success: bool = True
