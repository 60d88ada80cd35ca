import pytest
from fastapi import HTTPException

from helpdesk.database import SessionLocal
from helpdesk.models import Ticket, User
from helpdesk.routers.tickets import update_status
from helpdesk.schemas import StatusRequest
from helpdesk.notifications import notifier, TICKET_CREATED


def _create(client, headers, **kw):
    body = {"title": "Erro no ERP", "description": "Não consigo lançar nota fiscal.", "unit_id": "1", "sector_id": "s5"}
    body.update(kw)
    return client.post("/tickets/", json=body, headers=headers)


def test_create_ticket_scenario(client, joao_headers):
    resp = _create(client, joao_headers)
    assert resp.status_code == 200, resp.text
    t = resp.json()
    assert t["status"] == "Aberto"
    assert t["priority"] == "Média"
    assert t["requester_id"] == "u2"
    assert t["sector"] == "RH"
    assert t["unit_name"] == "CLINICA NINARE"
    assert t["category"] == "Geral"
    assert t["created_at"] <= t["updated_at"]
    assert t["version"] == 1


def test_create_ticket_is_listed_first(client, admin_headers, joao_headers):
    new_id = _create(client, joao_headers, title="Impressora travada").json()["id"]
    ids = [t["id"] for t in client.get("/tickets/", headers=admin_headers).json()]
    assert ids == [new_id, "t1", "t2"]


def test_create_ticket_validation(client, joao_headers):
    assert _create(client, joao_headers, unit_id="99").status_code == 400
    # setor de outra unidade
    assert _create(client, joao_headers, sector_id="s1").status_code == 400
    assert _create(client, joao_headers, title="   ").status_code == 400
    assert _create(client, joao_headers, description=None).status_code == 400
    # equipamento da unidade 2
    assert _create(client, joao_headers, equipment_id="a3").status_code == 400
    assert _create(client, joao_headers, equipment_id="a1").status_code == 200


def test_create_from_template_uses_template_priority(client, joao_headers):
    resp = _create(client, joao_headers, title=None, description=None, problem_id="p2")
    assert resp.status_code == 200, resp.text
    t = resp.json()
    assert t["title"] == "Sem acesso à Internet"
    assert t["category"] == "Rede"
    assert t["priority"] == "Alta"

    explicit = _create(client, joao_headers, problem_id="p2", priority="Baixa").json()
    assert explicit["priority"] == "Baixa"
    assert explicit["title"] == "Erro no ERP"

    assert _create(client, joao_headers, problem_id="nope").status_code == 404


def test_create_requires_auth(client):
    assert _create(client, {}).status_code in (401, 403)


def test_requester_lists_only_own_tickets(client, maria_headers):
    rows = client.get("/tickets/", headers=maria_headers).json()
    assert [t["id"] for t in rows] == ["t2"]
    assert all(t["requester_id"] == "u3" for t in rows)


def test_admin_lists_all_with_filters(client, admin_headers):
    assert len(client.get("/tickets/", headers=admin_headers).json()) == 2
    rows = client.get("/tickets/", params={"status": "Fechado"}, headers=admin_headers).json()
    assert [t["id"] for t in rows] == ["t2"]
    rows = client.get("/tickets/", params={"q": "erp"}, headers=admin_headers).json()
    assert [t["id"] for t in rows] == ["t1"]
    rows = client.get("/tickets/", params={"unit_id": "2"}, headers=admin_headers).json()
    assert [t["id"] for t in rows] == ["t2"]
    assert client.get("/tickets/", params={"status": "Perdido"}, headers=admin_headers).status_code == 422


def test_ticket_detail_permissions(client, joao_headers, maria_headers):
    resp = client.get("/tickets/t1", headers=joao_headers)
    assert resp.status_code == 200
    assert resp.json()["ticket"]["id"] == "t1"
    assert client.get("/tickets/t1", headers=maria_headers).status_code == 403
    assert client.get("/tickets/nope", headers=maria_headers).status_code == 404


def test_admin_closes_ticket_scenario(client, admin_headers):
    before = client.get("/tickets/", headers=admin_headers).json()
    t1_before = next(t for t in before if t["id"] == "t1")
    t2_before = next(t for t in before if t["id"] == "t2")

    resp = client.post("/tickets/t1/status", json={"status": "Fechado"}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    t1 = resp.json()
    assert t1["status"] == "Fechado"
    assert t1["updated_at"] > t1_before["updated_at"]
    assert t1["version"] == t1_before["version"] + 1
    unchanged = {k: v for k, v in t1.items() if k not in ("status", "updated_at", "version")}
    assert unchanged == {k: v for k, v in t1_before.items() if k not in ("status", "updated_at", "version")}

    after = client.get("/tickets/", headers=admin_headers).json()
    assert next(t for t in after if t["id"] == "t2") == t2_before

    updates = client.get("/tickets/t1/updates", headers=admin_headers).json()
    assert updates[-1]["event_type"] == "STATUS_CHANGE"


def test_status_change_any_to_any(client, admin_headers):
    for status in ("Aguardando", "Aberto", "Em Andamento", "Fechado", "Aberto"):
        resp = client.post("/tickets/t2/status", json={"status": status}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == status


def test_status_change_admin_only(client, joao_headers):
    resp = client.post("/tickets/t1/status", json={"status": "Fechado"}, headers=joao_headers)
    assert resp.status_code == 403


def test_status_change_expected_version(client, admin_headers):
    resp = client.post("/tickets/t1/status", json={"status": "Aguardando", "expected_version": 1}, headers=admin_headers)
    assert resp.status_code == 200
    # versão antiga: outro admin já alterou
    resp = client.post("/tickets/t1/status", json={"status": "Fechado", "expected_version": 1}, headers=admin_headers)
    assert resp.status_code == 409
    # sem versão: último a gravar vence
    resp = client.post("/tickets/t1/status", json={"status": "Fechado"}, headers=admin_headers)
    assert resp.status_code == 200


def test_edit_ticket(client, admin_headers, joao_headers):
    resp = client.patch("/tickets/t1", json={"priority": "Crítica", "technician_name": "Carlos"}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["priority"] == "Crítica"
    assert resp.json()["technician_name"] == "Carlos"

    assert client.patch("/tickets/t1", json={"priority": "Crítica"}, headers=admin_headers).status_code == 400
    assert client.patch("/tickets/t1", json={"title": "  "}, headers=admin_headers).status_code == 400
    assert client.patch("/tickets/t1", json={"status": "Fechado"}, headers=admin_headers).status_code == 422
    assert client.patch("/tickets/t1", json={"assignee_id": "u2"}, headers=admin_headers).status_code == 404
    assert client.patch("/tickets/t1", json={"assignee_id": "u1"}, headers=admin_headers).json()["assignee_id"] == "u1"
    assert client.patch("/tickets/t1", json={"title": "x"}, headers=joao_headers).status_code == 403


def test_delete_requires_confirmation(client, admin_headers):
    resp = client.delete("/tickets/t1", headers=admin_headers)
    assert resp.status_code == 400
    assert len(client.get("/tickets/", headers=admin_headers).json()) == 2


def test_delete_removes_exactly_one(client, admin_headers, joao_headers):
    a = _create(client, joao_headers, title="A").json()["id"]
    b = _create(client, joao_headers, title="B").json()["id"]
    before = [t["id"] for t in client.get("/tickets/", headers=admin_headers).json()]
    assert before == [b, a, "t1", "t2"]

    resp = client.delete(f"/tickets/{a}", params={"confirm": "true"}, headers=admin_headers)
    assert resp.status_code == 200

    after = [t["id"] for t in client.get("/tickets/", headers=admin_headers).json()]
    assert after == [b, "t1", "t2"]
    assert client.get(f"/tickets/{a}", headers=admin_headers).status_code == 404
    assert client.delete(f"/tickets/{a}", params={"confirm": "true"}, headers=admin_headers).status_code == 404


def test_delete_admin_only(client, joao_headers):
    assert client.delete("/tickets/t1", params={"confirm": "true"}, headers=joao_headers).status_code == 403


def test_create_emits_notification(client, joao_headers, admin_headers):
    events = []

    def listener(event, payload):
        events.append((event, payload["id"]))

    notifier.subscribe(listener)
    try:
        tid = _create(client, joao_headers).json()["id"]
        aid = _create(client, admin_headers).json()["id"]
    finally:
        notifier.unsubscribe(listener)

    assert events == [(TICKET_CREATED, tid), (TICKET_CREATED, aid)]


def test_create_schedules_notification_delay_by_role(client, joao_headers, admin_headers, monkeypatch):
    calls = []

    def record(event, payload, delay):
        calls.append((payload["requester_id"], delay))

    monkeypatch.setattr(notifier, "delay_ms", 500)
    monkeypatch.setattr(notifier, "emit_later", record)

    assert _create(client, joao_headers).status_code == 200
    assert _create(client, admin_headers).status_code == 200

    assert calls == [("u2", 0.5), ("u1", 0.0)]


def test_stale_reader_cannot_overwrite_status(client, admin_headers):
    # sessão que leu o chamado antes da alteração feita pela API
    stale = SessionLocal()
    try:
        admin = stale.query(User).filter(User.id == "u1").one()
        assert stale.query(Ticket).filter(Ticket.id == "t1").one().version == 1

        resp = client.post("/tickets/t1/status", json={"status": "Aguardando", "expected_version": 1}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["version"] == 2

        with pytest.raises(HTTPException) as exc:
            update_status("t1", StatusRequest(status="Fechado", expected_version=1), db=stale, user=admin)
        assert exc.value.status_code == 409
    finally:
        stale.close()

    t1 = client.get("/tickets/t1", headers=admin_headers).json()["ticket"]
    assert t1["status"] == "Aguardando"
    assert t1["version"] == 2
    updates = client.get("/tickets/t1/updates", headers=admin_headers).json()
    assert [u["event_type"] for u in updates].count("STATUS_CHANGE") == 1


def test_edit_ticket_expected_version(client, admin_headers):
    resp = client.patch("/tickets/t1", json={"technician_name": "Carlos", "expected_version": 1}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["version"] == 2

    resp = client.patch("/tickets/t1", json={"technician_name": "Ana", "expected_version": 1}, headers=admin_headers)
    assert resp.status_code == 409
    assert client.get("/tickets/t1", headers=admin_headers).json()["ticket"]["technician_name"] == "Carlos"
