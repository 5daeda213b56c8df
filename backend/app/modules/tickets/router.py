from __future__ import annotations

from fastapi import APIRouter, Query, Request, status

from app.api.deps import AdminUser, CurrentUser, DbDep, OptionalUser, client_ip
from .schemas import (
    AdminTicketPage,
    AssignRequest,
    CloseRequest,
    InternalNote,
    PriorityUpdate,
    ReplyRequest,
    StatusUpdate,
    SuccessResponse,
    TicketCategory,
    TicketCreate,
    TicketCreated,
    TicketDetail,
    TicketPage,
    TicketPriority,
    TicketStats,
    TicketStatus,
)
from .service import TicketsService


router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.post("", response_model=TicketCreated, status_code=status.HTTP_201_CREATED)
def create_ticket(payload: TicketCreate, request: Request, db: DbDep, user: OptionalUser):
    return TicketsService(db).create_ticket(user, payload, ip=client_ip(request))


@router.get("/mine", response_model=TicketPage)
def my_tickets(
    db: DbDep,
    current: CurrentUser,
    status_filter: TicketStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=20, ge=1, le=50),
    offset: int = Query(default=0, ge=0),
):
    return TicketsService(db).my_tickets(current, status=status_filter, limit=limit, offset=offset)


@router.get("/guest", response_model=TicketPage)
def guest_tickets(
    db: DbDep,
    email: str = Query(min_length=3, max_length=255),
    ticket_number: str | None = Query(default=None, max_length=20),
    status_filter: TicketStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=20, ge=1, le=50),
    offset: int = Query(default=0, ge=0),
):
    return TicketsService(db).guest_tickets(
        email, ticket_number=ticket_number, status=status_filter, limit=limit, offset=offset
    )


# ---- Admin ----
@router.get("/admin", response_model=AdminTicketPage)
def list_tickets(
    db: DbDep,
    _: AdminUser,
    status_filter: TicketStatus | None = Query(default=None, alias="status"),
    category: TicketCategory | None = None,
    priority: TicketPriority | None = None,
    assigned_to: str | None = None,
    search: str | None = Query(default=None, max_length=100),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    return TicketsService(db).list_tickets(
        status=status_filter,
        category=category,
        priority=priority,
        assigned_to=assigned_to,
        search=search,
        limit=limit,
        offset=offset,
    )


@router.get("/admin/stats", response_model=TicketStats)
def ticket_stats(db: DbDep, _: AdminUser):
    return TicketsService(db).stats()


@router.post("/{ticket_id}/assign", response_model=SuccessResponse)
def assign_ticket(ticket_id: str, payload: AssignRequest, db: DbDep, admin: AdminUser):
    TicketsService(db).assign(admin, ticket_id, payload.assignee_id)
    return SuccessResponse()


@router.post("/{ticket_id}/status", response_model=SuccessResponse)
def update_ticket_status(ticket_id: str, payload: StatusUpdate, db: DbDep, admin: AdminUser):
    TicketsService(db).update_status(admin, ticket_id, payload)
    return SuccessResponse()


@router.post("/{ticket_id}/notes", response_model=SuccessResponse)
def add_internal_note(ticket_id: str, payload: InternalNote, db: DbDep, admin: AdminUser):
    TicketsService(db).add_internal_note(admin, ticket_id, payload.note)
    return SuccessResponse()


@router.post("/{ticket_id}/priority", response_model=SuccessResponse)
def update_ticket_priority(ticket_id: str, payload: PriorityUpdate, db: DbDep, _: AdminUser):
    TicketsService(db).update_priority(ticket_id, payload.priority)
    return SuccessResponse()


# ---- Participants ----
@router.get("/{ticket_id}", response_model=TicketDetail)
def get_ticket(
    ticket_id: str,
    db: DbDep,
    viewer: OptionalUser,
    guest_email: str | None = Query(default=None, max_length=255),
):
    return TicketsService(db).get_ticket(viewer, ticket_id, guest_email)


@router.post("/{ticket_id}/reply", response_model=SuccessResponse)
def reply_to_ticket(ticket_id: str, payload: ReplyRequest, db: DbDep, current: CurrentUser):
    TicketsService(db).reply(current, ticket_id, payload.message)
    return SuccessResponse()


@router.post("/{ticket_id}/close", response_model=SuccessResponse)
def close_ticket(ticket_id: str, payload: CloseRequest, db: DbDep, current: CurrentUser):
    TicketsService(db).close(current, ticket_id, payload)
    return SuccessResponse()
