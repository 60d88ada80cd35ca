from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from helpdesk.lifecycle import (
    apply_template, can_see, count_by, dashboard_stats, matches_search,
    next_timestamp, resolve_priority, search_tickets,
)
from helpdesk.schemas import TicketPriority, TicketStatus

T0 = datetime(2024, 5, 1, 12, 0, 0)


def _ticket(tid, requester, status=TicketStatus.OPEN, priority=TicketPriority.MEDIUM, **kw):
    return SimpleNamespace(
        id=tid, requester_id=requester, status=status, priority=priority,
        title=kw.get("title", f"Chamado {tid}"), description="desc",
        category=kw.get("category", "Geral"), sector=kw.get("sector"),
    )


@pytest.fixture()
def tickets():
    return [
        _ticket("t1", "u2", sector="RH"),
        _ticket("t2", "u3", status=TicketStatus.CLOSED, category="Hardware"),
        _ticket("t3", "u3", priority=TicketPriority.CRITICAL),
    ]


def test_resolve_priority_order():
    assert resolve_priority(None) == TicketPriority.MEDIUM
    assert resolve_priority(None, "Alta") == TicketPriority.HIGH
    assert resolve_priority(TicketPriority.LOW, "Alta") == TicketPriority.LOW


def test_apply_template_fills_only_blanks():
    tpl = SimpleNamespace(title="Sem acesso à Internet", description="Sem navegação.", category="Rede")
    assert apply_template(None, "", None, tpl) == ("Sem acesso à Internet", "Sem navegação.", "Rede")
    assert apply_template("Meu título", None, "Outro", tpl) == ("Meu título", "Sem navegação.", "Outro")
    assert apply_template("a", "b", None, None) == ("a", "b", None)


def test_can_see(tickets):
    maria = SimpleNamespace(id="u3", role="USER")
    admin = SimpleNamespace(id="u1", role="ADMIN")
    assert [t.id for t in tickets if can_see(maria, t)] == ["t2", "t3"]
    assert all(can_see(admin, t) for t in tickets)


def test_next_timestamp():
    assert next_timestamp(T0, T0 + timedelta(seconds=1)) == T0 + timedelta(seconds=1)
    assert next_timestamp(T0, T0) == T0 + timedelta(microseconds=1)
    assert next_timestamp(T0, T0 - timedelta(seconds=1)) == T0 + timedelta(microseconds=1)


def test_search(tickets):
    assert matches_search("", "x")
    assert matches_search("erp", "Erro no ERP")
    assert not matches_search("mouse", "Erro no ERP", None)
    assert [t.id for t in search_tickets(tickets, "CHAMADO T3")] == ["t3"]
    assert [t.id for t in search_tickets(tickets, "rh")] == ["t1"]


def test_count_by(tickets):
    assert count_by(tickets, "category") == {"Geral": 2, "Hardware": 1}
    assert count_by(tickets, "sector") == {"RH": 1, "-": 2}


def test_dashboard_stats(tickets):
    stats = dashboard_stats(tickets)
    assert stats == {
        "total": 3,
        "open": 2,
        "in_progress": 0,
        "waiting": 0,
        "closed": 1,
        "critical_open": 1,
    }
