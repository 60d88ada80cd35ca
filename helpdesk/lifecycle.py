"""Ticket rules that do not need the database.

They work on ORM rows, ``TicketOut`` records or anything exposing the same
attributes. Storage-level guarantees (new tickets start ``Aberto``, a status
change touches one row, a delete removes one row) live in the tickets router.
"""
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, Optional

from helpdesk.models import ROLE_ADMIN, utcnow
from helpdesk.schemas import TicketPriority, TicketStatus

DEFAULT_CATEGORY = "Geral"


def resolve_priority(
    explicit: Optional[TicketPriority],
    template_priority: Optional[str] = None,
) -> TicketPriority:
    """Explicit choice first, then the common-problem template, then Média."""
    if explicit is not None:
        return TicketPriority(explicit)
    if template_priority:
        return TicketPriority(template_priority)
    return TicketPriority.MEDIUM


def _blank(v: Optional[str]) -> bool:
    return v is None or not str(v).strip()


def apply_template(title, description, category, template) -> tuple[Optional[str], Optional[str], Optional[str]]:
    # o modelo só preenche o que veio vazio
    if template is None:
        return title, description, category
    return (
        template.title if _blank(title) else title,
        template.description if _blank(description) else description,
        template.category if _blank(category) else category,
    )


def can_see(user, ticket) -> bool:
    return user.role == ROLE_ADMIN or ticket.requester_id == user.id


def next_timestamp(previous: datetime, now: Optional[datetime] = None) -> datetime:
    """A fresh updated_at that is strictly after ``previous``."""
    now = now or utcnow()
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def matches_search(term: Optional[str], *values: Optional[str]) -> bool:
    """Case-insensitive substring match used by every search box."""
    if not term:
        return True
    needle = term.strip().lower()
    return any(needle in v.lower() for v in values if v)


def search_tickets(tickets: Iterable, term: Optional[str]) -> list:
    return [
        t for t in tickets
        if matches_search(term, t.title, t.description, t.category, t.sector)
    ]


def _value(v) -> str:
    return v.value if hasattr(v, "value") else v


def count_by(tickets: Iterable, attr: str) -> dict[str, int]:
    return dict(Counter(_value(getattr(t, attr)) or "-" for t in tickets))


def dashboard_stats(tickets: Iterable) -> dict[str, int]:
    tickets = list(tickets)
    by_status = count_by(tickets, "status")
    critical_open = sum(
        1 for t in tickets
        if _value(t.priority) == TicketPriority.CRITICAL.value
        and _value(t.status) != TicketStatus.CLOSED.value
    )
    return {
        "total": len(tickets),
        "open": by_status.get(TicketStatus.OPEN.value, 0),
        "in_progress": by_status.get(TicketStatus.IN_PROGRESS.value, 0),
        "waiting": by_status.get(TicketStatus.WAITING.value, 0),
        "closed": by_status.get(TicketStatus.CLOSED.value, 0),
        "critical_open": critical_open,
    }
