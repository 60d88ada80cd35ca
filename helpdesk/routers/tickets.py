import uuid, json, logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from helpdesk.database import get_db, commit_or_500
from helpdesk.models import (
    Ticket, TicketUpdate, Unit, Sector, Asset, CommonProblem, User,
    ROLE_ADMIN, utcnow,
)
from helpdesk.schemas import (
    TicketCreate, TicketOut, TicketDetail, TicketEditRequest,
    StatusRequest, TicketUpdateOut, TicketStatus, TicketPriority,
)
from helpdesk.deps import get_current_user, require_roles
from helpdesk.lifecycle import (
    DEFAULT_CATEGORY, apply_template, can_see, next_timestamp,
    resolve_priority, search_tickets,
)
from helpdesk.notifications import notifier, TICKET_CREATED

log = logging.getLogger(__name__)

router = APIRouter()


def add_update(
    db: Session,
    ticket_id: str,
    user_id: str,
    event_type: str,
    note: Optional[str] = None,
    payload: Optional[dict] = None
):
    db.add(TicketUpdate(
        id=str(uuid.uuid4()),
        ticket_id=ticket_id,
        created_by_user_id=user_id,
        event_type=event_type,
        note=note,
        payload_json=json.dumps(payload or {}, ensure_ascii=False),
    ))


def _norm_str(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s if s else None


def ticket_out(t: Ticket, unit_name: Optional[str] = None) -> TicketOut:
    return TicketOut(
        id=t.id, title=t.title, description=t.description,
        status=t.status, priority=t.priority,
        requester_id=t.requester_id, assignee_id=t.assignee_id,
        unit_id=t.unit_id, unit_name=unit_name,
        category=t.category, sector=t.sector, equipment_id=t.equipment_id,
        attachment_name=t.attachment_name, technician_name=t.technician_name,
        observations=t.observations, due_date=t.due_date,
        created_at=t.created_at.isoformat(),
        updated_at=t.updated_at.isoformat(),
        version=t.version,
    )


def update_out(u: TicketUpdate) -> TicketUpdateOut:
    return TicketUpdateOut(
        id=u.id,
        ticket_id=u.ticket_id,
        created_by_user_id=u.created_by_user_id,
        created_at=u.created_at.isoformat() if u.created_at else "",
        event_type=u.event_type,
        note=u.note,
        payload_json=u.payload_json,
    )


def _unit_name(db: Session, unit_id: str) -> Optional[str]:
    unit = db.query(Unit).filter(Unit.id == unit_id).first()
    return unit.name if unit else None


def _get_ticket(db: Session, ticket_id: str) -> Ticket:
    t = db.query(Ticket).filter(Ticket.id == ticket_id).first()
    if not t:
        raise HTTPException(status_code=404, detail="Chamado não encontrado")
    return t


# ---------- Create (USER ou ADMIN) ----------
@router.post("/", response_model=TicketOut)
def create_ticket(
    body: TicketCreate,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    unit = db.query(Unit).filter(Unit.id == body.unit_id).first()
    if not unit:
        raise HTTPException(status_code=400, detail="Selecione a Unidade")

    sector = db.query(Sector).filter(Sector.id == body.sector_id).first()
    if not sector or sector.unit_id != unit.id:
        raise HTTPException(status_code=400, detail="Setor inválido para a unidade")

    template = None
    if body.problem_id:
        template = db.query(CommonProblem).filter(CommonProblem.id == body.problem_id).first()
        if not template:
            raise HTTPException(status_code=404, detail="Problema comum não encontrado")

    title, description, category = apply_template(body.title, body.description, body.category, template)
    title = _norm_str(title)
    description = _norm_str(description)
    if not title:
        raise HTTPException(status_code=400, detail="Título é obrigatório")
    if not description:
        raise HTTPException(status_code=400, detail="Descrição é obrigatória")

    if body.equipment_id:
        asset = db.query(Asset).filter(Asset.id == body.equipment_id).first()
        if not asset or asset.unit_id != unit.id:
            raise HTTPException(status_code=400, detail="Equipamento inválido para a unidade")

    priority = resolve_priority(body.priority, template.priority if template else None)

    now = utcnow()
    t = Ticket(
        id=str(uuid.uuid4()),
        title=title,
        description=description,
        status=TicketStatus.OPEN.value,
        priority=priority.value,
        requester_id=user.id,
        unit_id=unit.id,
        category=_norm_str(category) or DEFAULT_CATEGORY,
        sector=sector.name,
        equipment_id=body.equipment_id or None,
        attachment_name=_norm_str(body.attachment_name),
        observations=_norm_str(body.observations),
        due_date=_norm_str(body.due_date),
        created_at=now,
        updated_at=now,
        version=1,
    )
    db.add(t)
    add_update(db, t.id, user.id, "CREATE", note="Chamado criado", payload={"status": t.status})
    commit_or_500(db, "create_ticket")

    log.info("chamado %s criado por %s (%s)", t.id, user.id, user.role)

    out = ticket_out(t, unit.name)
    background.add_task(
        notifier.emit_later, TICKET_CREATED, out.model_dump(mode="json"), notifier.delay_for(user.role)
    )
    return out


# ---------- List (por papel + filtros) ----------
@router.get("/", response_model=list[TicketOut])
def list_tickets(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    status: Optional[TicketStatus] = Query(None, description="Filtrar por status"),
    priority: Optional[TicketPriority] = Query(None, description="Filtrar por prioridade"),
    unit_id: Optional[str] = Query(None, description="Filtrar por unidade"),
    q: Optional[str] = Query(None, description="Busca em título, descrição, categoria e setor"),
    limit: int = Query(200, ge=1, le=500),
):
    query = db.query(Ticket, Unit.name).outerjoin(Unit, Unit.id == Ticket.unit_id)

    if user.role != ROLE_ADMIN:
        query = query.filter(Ticket.requester_id == user.id)

    if status:
        query = query.filter(Ticket.status == status.value)
    if priority:
        query = query.filter(Ticket.priority == priority.value)
    if unit_id:
        query = query.filter(Ticket.unit_id == unit_id)

    rows = query.order_by(Ticket.created_at.desc()).all()
    tickets = [ticket_out(t, unit_name) for (t, unit_name) in rows]
    return search_tickets(tickets, q)[:limit]


# ---------- Detail ----------
@router.get("/{ticket_id}", response_model=TicketDetail)
def get_ticket(
    ticket_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    t = _get_ticket(db, ticket_id)
    if not can_see(user, t):
        raise HTTPException(status_code=403, detail="Sem permissão para este chamado")

    rows = db.query(TicketUpdate).filter(
        TicketUpdate.ticket_id == ticket_id
    ).order_by(TicketUpdate.created_at.asc()).all()

    return TicketDetail(ticket=ticket_out(t, _unit_name(db, t.unit_id)), updates=[update_out(u) for u in rows])


# ---------- Updates (timeline) ----------
@router.get("/{ticket_id}/updates", response_model=list[TicketUpdateOut])
def list_updates(
    ticket_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    t = _get_ticket(db, ticket_id)
    if not can_see(user, t):
        raise HTTPException(status_code=403, detail="Sem permissão para este chamado")

    rows = db.query(TicketUpdate).filter(
        TicketUpdate.ticket_id == ticket_id
    ).order_by(TicketUpdate.created_at.asc()).all()
    return [update_out(u) for u in rows]


# ---------- Status (ADMIN only, troca direta) ----------
def _write_ticket(db: Session, t: Ticket, values: dict, expected_version: Optional[int]):
    """Apply `values` with a single UPDATE guarded by the row's version.

    When `expected_version` is given the row is only touched if it still
    carries that version; zero matched rows means someone else won.
    """
    q = db.query(Ticket).filter(Ticket.id == t.id)
    if expected_version is not None:
        q = q.filter(Ticket.version == expected_version)
    values = dict(values)
    values["updated_at"] = next_timestamp(t.updated_at)
    values["version"] = Ticket.version + 1
    if not q.update(values, synchronize_session=False):
        db.rollback()
        raise HTTPException(status_code=409, detail="Chamado alterado por outro usuário")


@router.post("/{ticket_id}/status", response_model=TicketOut)
def update_status(
    ticket_id: str,
    body: StatusRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(ROLE_ADMIN))
):
    t = _get_ticket(db, ticket_id)

    old = t.status
    _write_ticket(db, t, {"status": body.status.value}, body.expected_version)
    add_update(db, t.id, user.id, "STATUS_CHANGE", note=body.note, payload={"from": old, "to": body.status.value})
    commit_or_500(db, "update_status")
    db.refresh(t)

    log.info("chamado %s: %s -> %s por %s", t.id, old, t.status, user.id)
    return ticket_out(t, _unit_name(db, t.unit_id))


# ---------- Edit ticket (ADMIN only) ----------
EDITABLE_TEXT = ("title", "description", "category", "technician_name", "observations", "due_date")


@router.patch("/{ticket_id}", response_model=TicketOut)
def edit_ticket(
    ticket_id: str,
    body: TicketEditRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(ROLE_ADMIN))
):
    t = _get_ticket(db, ticket_id)

    before = {}
    changed = {}

    for field in EDITABLE_TEXT:
        raw = getattr(body, field)
        if raw is None:
            continue
        v = _norm_str(raw)
        if v is None:
            raise HTTPException(status_code=400, detail=f"{field} não pode ser vazio")
        if v != getattr(t, field):
            before[field] = getattr(t, field)
            changed[field] = v

    if body.priority is not None and body.priority.value != t.priority:
        before["priority"] = t.priority
        changed["priority"] = body.priority.value

    if body.assignee_id is not None:
        v = _norm_str(body.assignee_id)
        if v is None:
            raise HTTPException(status_code=400, detail="assignee_id não pode ser vazio")
        if not db.query(User).filter(User.id == v, User.role == ROLE_ADMIN, User.active == True).first():
            raise HTTPException(status_code=404, detail="Técnico não encontrado/ativo")
        if v != t.assignee_id:
            before["assignee_id"] = t.assignee_id
            changed["assignee_id"] = v

    if not changed:
        raise HTTPException(status_code=400, detail="Nenhuma alteração enviada")

    _write_ticket(db, t, changed, body.expected_version)
    add_update(
        db,
        t.id,
        user.id,
        "EDIT",
        note="Chamado editado",
        payload={"changed": changed, "before": before}
    )
    commit_or_500(db, "edit_ticket")
    db.refresh(t)

    return ticket_out(t, _unit_name(db, t.unit_id))


# ---------- Delete (ADMIN only, irreversível) ----------
@router.delete("/{ticket_id}")
def delete_ticket(
    ticket_id: str,
    confirm: bool = Query(False, description="Confirmação explícita da exclusão"),
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(ROLE_ADMIN))
):
    t = _get_ticket(db, ticket_id)
    if not confirm:
        raise HTTPException(status_code=400, detail="Confirme a exclusão da OS")

    db.query(TicketUpdate).filter(TicketUpdate.ticket_id == t.id).delete(synchronize_session=False)
    db.delete(t)
    commit_or_500(db, "delete_ticket")

    log.info("chamado %s excluído por %s", ticket_id, user.id)
    return {"ok": True}
