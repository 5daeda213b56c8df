from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import utcnow
from app.core.errors import NotFoundError, PermissionDeniedError, RateLimitedError, ServiceError
from app.modules.users.models import User
from app.modules.users.repository import UsersRepository
from .models import CATEGORY_PRIORITY, SupportTicket, TicketMessage
from .repository import TicketsRepository
from .schemas import (
    AdminTicket,
    AdminTicketPage,
    CloseRequest,
    StatusUpdate,
    TicketCreate,
    TicketCreated,
    TicketDetail,
    TicketMessageRead,
    TicketPage,
    TicketRead,
    TicketStats,
    TicketUserSummary,
)


logger = logging.getLogger(__name__)

DUPLICATE_WINDOW = timedelta(hours=24)

CATEGORY_LABELS = {
    "general": "General Support",
    "technical": "Technical Support",
    "billing": "Billing & Payments",
    "account": "Account & Security",
    "abuse": "Report Abuse",
}


def generate_ticket_number() -> str:
    return f"TKT-{utcnow().year}-{secrets.randbelow(1_000_000):06d}"


def send_ticket_confirmation(to: str, name: str, ticket: SupportTicket) -> None:
    """Emit the ticket confirmation notice. Delivery is handled outside this service."""
    logger.info(
        "[notify] to=%s subject=%r greeting=%r category=%s url=%s",
        to,
        f"[{ticket.ticket_number}] Ticket Created: {ticket.subject}",
        f"Hey @{name}, we've received your request",
        CATEGORY_LABELS.get(ticket.category, ticket.category),
        f"{str(settings.PUBLIC_BASE_URL).rstrip('/')}/support/tickets",
    )


class TicketsService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = TicketsRepository(db)
        self.users = UsersRepository(db)

    # ---- Submitters ----
    def create_ticket(self, user: User | None, data: TicketCreate, ip: str | None = None) -> TicketCreated:
        if user is None and (not data.guest_email or not data.guest_name):
            raise ServiceError("Email and name required for guest tickets")

        guest_email = None if user else str(data.guest_email).strip().lower()
        submitter = {"user_id": user.id} if user else {"guest_email": guest_email}

        max_open = settings.TICKET_MAX_OPEN_PER_USER if user else settings.TICKET_MAX_OPEN_PER_GUEST
        if self.repo.count_unresolved(**submitter) >= max_open:
            if user:
                raise RateLimitedError(
                    "You have reached the maximum number of open tickets. "
                    "Please wait for existing tickets to be resolved."
                )
            raise RateLimitedError(
                "You already have an open ticket. Please wait for a response "
                "or check your email for updates."
            )

        duplicate = self.repo.find_duplicate(
            category=data.category,
            subject=data.subject,
            since=utcnow() - DUPLICATE_WINDOW,
            **submitter,
        )
        if duplicate:
            raise RateLimitedError(
                "You already have a similar ticket from the last 24 hours. "
                "Please wait for a response."
            )

        now = utcnow()
        metadata = dict(data.metadata or {})
        metadata.update(
            {
                "ip_address": ip,
                "submitted_at": now.isoformat(),
                "user_tier": user.effective_tier if user else "free",
            }
        )
        ticket = SupportTicket(
            ticket_number=self._unique_ticket_number(),
            user_id=user.id if user else None,
            guest_email=guest_email,
            guest_name=None if user else data.guest_name,
            category=data.category,
            priority=CATEGORY_PRIORITY[data.category],
            subject=data.subject,
            description=data.description,
            status="open",
            meta=metadata,
            last_activity_at=now,
        )
        self.repo.add(ticket)
        self.repo.add_message(
            TicketMessage(
                ticket_id=ticket.id,
                sender_id=user.id if user else None,
                sender_type="user",
                sender_name=user.username if user else (data.guest_name or "Guest"),
                message=data.description,
            )
        )
        ticket = self.repo.commit(ticket)
        logger.info("Ticket %s created (%s)", ticket.ticket_number, ticket.category)

        email = user.email if user else guest_email
        if email:
            send_ticket_confirmation(email, user.username if user else data.guest_name, ticket)

        return TicketCreated(
            ticket_id=ticket.id,
            ticket_number=ticket.ticket_number,
            message=f"Ticket {ticket.ticket_number} created successfully",
        )

    def my_tickets(self, user: User, *, status: str | None, limit: int, offset: int) -> TicketPage:
        tickets, total = self.repo.list_for_submitter(
            user_id=user.id, status=status, limit=limit, offset=offset
        )
        return TicketPage(tickets=[TicketRead.model_validate(t) for t in tickets], total=total)

    def guest_tickets(
        self,
        email: str,
        *,
        ticket_number: str | None,
        status: str | None,
        limit: int,
        offset: int,
    ) -> TicketPage:
        tickets, total = self.repo.list_for_submitter(
            guest_email=email,
            ticket_number=ticket_number,
            status=status,
            limit=limit,
            offset=offset,
        )
        return TicketPage(tickets=[TicketRead.model_validate(t) for t in tickets], total=total)

    def get_ticket(self, viewer: User | None, ticket_id: str, guest_email: str | None = None) -> TicketDetail:
        ticket = self._get(ticket_id)
        is_admin = viewer is not None and viewer.is_admin
        is_owner = viewer is not None and ticket.user_id == viewer.id
        is_guest = (
            viewer is None
            and guest_email is not None
            and ticket.guest_email is not None
            and ticket.guest_email.lower() == guest_email.strip().lower()
        )
        if not (is_admin or is_owner or is_guest):
            raise PermissionDeniedError("Access denied")

        assignee = None
        if ticket.assigned_to:
            assigned = self.users.get_by_id(ticket.assigned_to)
            if assigned:
                assignee = TicketUserSummary(id=assigned.id, username=assigned.username)

        messages = self.repo.messages(ticket.id, include_internal=is_admin)
        return TicketDetail(
            ticket=TicketRead.model_validate(ticket),
            messages=[TicketMessageRead.model_validate(m) for m in messages],
            assignee=assignee,
        )

    def reply(self, user: User, ticket_id: str, message: str) -> None:
        ticket = self._get(ticket_id)
        self._require_participant(user, ticket)
        if ticket.status == "closed":
            raise ServiceError("Cannot reply to closed tickets")

        self.repo.add_message(
            TicketMessage(
                ticket_id=ticket.id,
                sender_id=user.id,
                sender_type="admin" if user.is_admin else "user",
                sender_name=user.username or user.email,
                message=message,
            )
        )
        if ticket.status == "resolved":
            ticket.status = "in_progress"
        else:
            ticket.status = "waiting_user" if user.is_admin else "waiting_admin"
        ticket.last_activity_at = utcnow()
        self.repo.commit(ticket)

    def close(self, user: User, ticket_id: str, data: CloseRequest) -> None:
        ticket = self._get(ticket_id)
        self._require_participant(user, ticket)

        now = utcnow()
        ticket.status = "closed"
        ticket.resolved_at = now
        ticket.resolved_by = user.id
        ticket.satisfaction_rating = data.satisfaction_rating
        ticket.satisfaction_feedback = data.satisfaction_feedback
        ticket.last_activity_at = now

        closed_by = "support team" if user.is_admin else "user"
        rating = f" with rating {data.satisfaction_rating}/5" if data.satisfaction_rating else ""
        self._system_message(ticket, user, f"Ticket closed by {closed_by}{rating}")
        self.repo.commit(ticket)
        logger.info("Ticket %s closed by %s", ticket.ticket_number, user.id)

    # ---- Admin ----
    def list_tickets(
        self,
        *,
        status: str | None = None,
        category: str | None = None,
        priority: str | None = None,
        assigned_to: str | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> AdminTicketPage:
        rows, total = self.repo.list_all(
            status=status,
            category=category,
            priority=priority,
            assigned_to=assigned_to,
            search=search,
            limit=limit,
            offset=offset,
        )
        tickets = []
        for ticket, owner in rows:
            item = AdminTicket.model_validate(ticket)
            if owner is not None:
                item.user = TicketUserSummary(
                    id=owner.id, username=owner.username, email=owner.email, tier=owner.tier
                )
            tickets.append(item)
        return AdminTicketPage(tickets=tickets, total=total)

    def stats(self) -> TicketStats:
        count = self.repo.count_where
        return TicketStats(
            open=count(SupportTicket.status == "open"),
            in_progress=count(SupportTicket.status == "in_progress"),
            waiting_admin=count(SupportTicket.status == "waiting_admin"),
            urgent=count(SupportTicket.priority == "urgent"),
            today=count(SupportTicket.created_at > utcnow() - timedelta(hours=24)),
        )

    def assign(self, admin: User, ticket_id: str, assignee_id: str | None) -> None:
        ticket = self._get(ticket_id)
        if assignee_id is not None:
            assignee = self.users.get_by_id(assignee_id)
            if not assignee or not assignee.is_admin:
                raise ServiceError("Assignee must be an admin")
        ticket.assigned_to = assignee_id
        ticket.status = "in_progress" if assignee_id else "open"
        self.repo.commit(ticket)
        logger.info("Ticket %s assigned to %s by %s", ticket.ticket_number, assignee_id, admin.id)

    def update_status(self, admin: User, ticket_id: str, data: StatusUpdate) -> None:
        ticket = self._get(ticket_id)
        ticket.status = data.status
        if data.status in ("resolved", "closed"):
            ticket.resolved_at = utcnow()
            ticket.resolved_by = admin.id
            if data.resolution:
                ticket.resolution = data.resolution
        suffix = f": {data.resolution}" if data.resolution else ""
        self._system_message(ticket, admin, f'Status changed to "{data.status}"{suffix}')
        self.repo.commit(ticket)
        logger.info("Ticket %s status -> %s by %s", ticket.ticket_number, data.status, admin.id)

    def add_internal_note(self, admin: User, ticket_id: str, note: str) -> None:
        ticket = self._get(ticket_id)
        self.repo.add_message(
            TicketMessage(
                ticket_id=ticket.id,
                sender_id=admin.id,
                sender_type="admin",
                sender_name=admin.username or admin.email,
                message=note,
                is_internal=True,
            )
        )
        self.db.commit()

    def update_priority(self, ticket_id: str, priority: str) -> None:
        ticket = self._get(ticket_id)
        ticket.priority = priority
        self.repo.commit(ticket)

    # ---- Helpers ----
    def _get(self, ticket_id: str) -> SupportTicket:
        ticket = self.repo.get(ticket_id)
        if not ticket:
            raise NotFoundError("Ticket not found")
        return ticket

    @staticmethod
    def _require_participant(user: User, ticket: SupportTicket) -> None:
        if not user.is_admin and ticket.user_id != user.id:
            raise PermissionDeniedError("Access denied")

    def _system_message(self, ticket: SupportTicket, actor: User, text: str) -> None:
        self.repo.add_message(
            TicketMessage(
                ticket_id=ticket.id,
                sender_id=actor.id,
                sender_type="system",
                sender_name="System",
                message=text,
            )
        )

    def _unique_ticket_number(self) -> str:
        for _ in range(10):
            number = generate_ticket_number()
            if not self.repo.number_exists(number):
                return number
        raise ServiceError("Could not allocate a ticket number, please try again")
