import csv
import io
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from helpdesk.database import get_db
from helpdesk.deps import require_roles
from helpdesk.lifecycle import count_by, dashboard_stats
from helpdesk.models import Ticket, Unit, User, ROLE_ADMIN, utcnow
from helpdesk.schemas import DashboardStats, TicketReport, TicketOut
from helpdesk.routers.tickets import ticket_out

router = APIRouter()

PERIOD_DAYS = {"DIA": 1, "SEMANA": 7, "MÊS": 30}

CSV_FIELDS = list(TicketOut.model_fields.keys())


def _filtered(db: Session, period: Optional[str], unit_id: Optional[str]) -> list[TicketOut]:
    if period and period not in PERIOD_DAYS:
        raise HTTPException(status_code=400, detail="período inválido")

    q = db.query(Ticket, Unit.name).outerjoin(Unit, Unit.id == Ticket.unit_id)
    if period:
        q = q.filter(Ticket.created_at >= utcnow() - timedelta(days=PERIOD_DAYS[period]))
    if unit_id and unit_id != "ALL":
        q = q.filter(Ticket.unit_id == unit_id)

    rows = q.order_by(Ticket.created_at.desc()).all()
    return [ticket_out(t, unit_name) for (t, unit_name) in rows]


@router.get("/dashboard", response_model=DashboardStats)
def dashboard(db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    # recalculado a cada chamada, sem cache
    return DashboardStats(**dashboard_stats(db.query(Ticket).all()))


@router.get("/tickets", response_model=TicketReport)
def ticket_report(
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
    period: Optional[str] = Query(None, description="DIA, SEMANA ou MÊS"),
    unit_id: Optional[str] = Query(None, description="Unidade ou ALL"),
):
    tickets = _filtered(db, period, unit_id)
    by_unit = {}
    for t in tickets:
        key = t.unit_name or t.unit_id
        by_unit[key] = by_unit.get(key, 0) + 1

    return TicketReport(
        period=period,
        unit_id=unit_id,
        total=len(tickets),
        by_status=count_by(tickets, "status"),
        by_category=count_by(tickets, "category"),
        by_unit=by_unit,
    )


@router.get("/tickets.csv")
def export_csv(
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
    period: Optional[str] = Query(None),
    unit_id: Optional[str] = Query(None),
):
    tickets = _filtered(db, period, unit_id)

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=CSV_FIELDS)
    writer.writeheader()
    for t in tickets:
        writer.writerow(t.model_dump(mode="json"))
    output.seek(0)

    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=relatorio.csv"},
    )
