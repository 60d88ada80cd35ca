import csv
import io


def test_dashboard_counts(client, admin_headers):
    stats = client.get("/reports/dashboard", headers=admin_headers).json()
    assert stats == {"total": 2, "open": 1, "in_progress": 0, "waiting": 0, "closed": 1, "critical_open": 0}

    client.patch("/tickets/t1", json={"priority": "Crítica"}, headers=admin_headers)
    client.post("/tickets/t2/status", json={"status": "Em Andamento"}, headers=admin_headers)

    stats = client.get("/reports/dashboard", headers=admin_headers).json()
    assert stats["in_progress"] == 1
    assert stats["closed"] == 0
    assert stats["critical_open"] == 1


def test_dashboard_admin_only(client, joao_headers):
    assert client.get("/reports/dashboard", headers=joao_headers).status_code == 403


def test_ticket_report_filters(client, admin_headers):
    report = client.get("/reports/tickets", headers=admin_headers).json()
    assert report["total"] == 2
    assert report["by_status"] == {"Aberto": 1, "Fechado": 1}
    assert report["by_category"] == {"Software": 1, "Hardware": 1}
    assert report["by_unit"] == {"CLINICA NINARE": 1, "CLINICA NINHO": 1}

    report = client.get("/reports/tickets", params={"unit_id": "2"}, headers=admin_headers).json()
    assert report["total"] == 1

    report = client.get("/reports/tickets", params={"unit_id": "ALL", "period": "SEMANA"}, headers=admin_headers).json()
    assert report["total"] == 2

    # t1 foi aberto ontem, t2 anteontem
    report = client.get("/reports/tickets", params={"period": "DIA"}, headers=admin_headers).json()
    assert report["total"] == 0

    assert client.get("/reports/tickets", params={"period": "ANO"}, headers=admin_headers).status_code == 400


def test_export_csv(client, admin_headers):
    resp = client.get("/reports/tickets.csv", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "relatorio.csv" in resp.headers["content-disposition"]

    rows = list(csv.DictReader(io.StringIO(resp.text)))
    assert [r["id"] for r in rows] == ["t1", "t2"]
    assert rows[0]["title"] == "Erro no ERP"
    assert rows[1]["status"] == "Fechado"
