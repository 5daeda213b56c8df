from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Session

from app.modules.users.models import User
from app.modules.users.repository import escape_like
from .models import CLOSED_STATUSES, SupportTicket, TicketMessage


PRIORITY_RANK = case(
    (SupportTicket.priority == "urgent", 1),
    (SupportTicket.priority == "high", 2),
    (SupportTicket.priority == "normal", 3),
    (SupportTicket.priority == "low", 4),
    else_=5,
)


class TicketsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, ticket_id: str) -> Optional[SupportTicket]:
        return self.db.get(SupportTicket, ticket_id)

    def number_exists(self, ticket_number: str) -> bool:
        stmt = select(func.count(SupportTicket.id)).where(
            SupportTicket.ticket_number == ticket_number
        )
        return bool(self.db.scalar(stmt))

    def count_unresolved(self, *, user_id: str | None = None, guest_email: str | None = None) -> int:
        stmt = select(func.count(SupportTicket.id)).where(
            SupportTicket.status.not_in(CLOSED_STATUSES)
        )
        stmt = stmt.where(self._submitter(user_id, guest_email))
        return self.db.scalar(stmt) or 0

    def find_duplicate(
        self,
        *,
        category: str,
        subject: str,
        since: datetime,
        user_id: str | None = None,
        guest_email: str | None = None,
    ) -> Optional[SupportTicket]:
        stmt = (
            select(SupportTicket)
            .where(
                self._submitter(user_id, guest_email),
                SupportTicket.category == category,
                SupportTicket.subject == subject,
                SupportTicket.created_at > since,
            )
            .limit(1)
        )
        return self.db.scalar(stmt)

    def list_for_submitter(
        self,
        *,
        user_id: str | None = None,
        guest_email: str | None = None,
        ticket_number: str | None = None,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[SupportTicket], int]:
        conditions = [self._submitter(user_id, guest_email)]
        if ticket_number:
            conditions.append(SupportTicket.ticket_number == ticket_number)
        if status:
            conditions.append(SupportTicket.status == status)
        stmt = (
            select(SupportTicket)
            .where(*conditions)
            .order_by(SupportTicket.last_activity_at.desc())
            .limit(limit)
            .offset(offset)
        )
        count_stmt = select(func.count(SupportTicket.id)).where(*conditions)
        return list(self.db.scalars(stmt)), self.db.scalar(count_stmt) or 0

    def list_all(
        self,
        *,
        status: str | None = None,
        category: str | None = None,
        priority: str | None = None,
        assigned_to: str | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[tuple[SupportTicket, User | None]], int]:
        conditions = []
        if status:
            conditions.append(SupportTicket.status == status)
        if category:
            conditions.append(SupportTicket.category == category)
        if priority:
            conditions.append(SupportTicket.priority == priority)
        if assigned_to:
            conditions.append(SupportTicket.assigned_to == assigned_to)
        if search:
            pattern = f"%{escape_like(search.lower())}%"
            conditions.append(
                or_(
                    func.lower(SupportTicket.subject).like(pattern, escape="\\"),
                    func.lower(SupportTicket.ticket_number).like(pattern, escape="\\"),
                )
            )
        stmt = (
            select(SupportTicket, User)
            .outerjoin(User, User.id == SupportTicket.user_id)
            .where(*conditions)
            .order_by(PRIORITY_RANK, SupportTicket.last_activity_at.desc())
            .limit(limit)
            .offset(offset)
        )
        count_stmt = select(func.count(SupportTicket.id)).where(*conditions)
        rows = [(row[0], row[1]) for row in self.db.execute(stmt)]
        return rows, self.db.scalar(count_stmt) or 0

    def count_where(self, *conditions) -> int:
        stmt = select(func.count(SupportTicket.id)).where(*conditions)
        return self.db.scalar(stmt) or 0

    def messages(self, ticket_id: str, *, include_internal: bool) -> list[TicketMessage]:
        stmt = select(TicketMessage).where(TicketMessage.ticket_id == ticket_id)
        if not include_internal:
            stmt = stmt.where(TicketMessage.is_internal.is_(False))
        stmt = stmt.order_by(TicketMessage.created_at, TicketMessage.id)
        return list(self.db.scalars(stmt))

    def add_message(self, message: TicketMessage) -> None:
        self.db.add(message)

    def add(self, ticket: SupportTicket) -> SupportTicket:
        self.db.add(ticket)
        self.db.flush()
        return ticket

    def commit(self, ticket: SupportTicket) -> SupportTicket:
        self.db.add(ticket)
        self.db.commit()
        self.db.refresh(ticket)
        return ticket

    @staticmethod
    def _submitter(user_id: str | None, guest_email: str | None):
        if user_id:
            return SupportTicket.user_id == user_id
        return func.lower(SupportTicket.guest_email) == (guest_email or "").strip().lower()
