import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from helpdesk.database import get_db, commit_or_500
from helpdesk.deps import get_current_user, require_roles
from helpdesk.lifecycle import matches_search
from helpdesk.models import Unit, Sector, Asset, RemoteAccess, Ticket, User, ROLE_ADMIN
from helpdesk.schemas import UnitCreate, UnitUpdate, UnitOut, SectorOut

router = APIRouter()


def unit_out(u: Unit) -> UnitOut:
    return UnitOut(id=u.id, name=u.name, address=u.address, phone=u.phone, responsible=u.responsible, status=u.status)


@router.get("/", response_model=list[UnitOut])
def list_units(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
    q: Optional[str] = Query(None, description="Buscar unidade"),
):
    rows = db.query(Unit).order_by(Unit.status.asc(), Unit.name).all()
    return [unit_out(u) for u in rows if matches_search(q, u.name)]


@router.post("/", response_model=UnitOut)
def create_unit(body: UnitCreate, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Nome inválido")
    if db.query(Unit).filter(Unit.name.ilike(name)).first():
        raise HTTPException(status_code=409, detail="Já existe uma unidade com esse nome")

    u = Unit(
        id=str(uuid.uuid4()),
        name=name,
        address=body.address,
        phone=body.phone,
        responsible=body.responsible,
        status=body.status.value,
    )
    db.add(u)
    commit_or_500(db, "create_unit")
    return unit_out(u)


@router.patch("/{unit_id}", response_model=UnitOut)
def update_unit(unit_id: str, body: UnitUpdate, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    u = db.query(Unit).filter(Unit.id == unit_id).first()
    if not u:
        raise HTTPException(status_code=404, detail="Unidade não encontrada")

    if body.name is not None:
        name = body.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="Nome inválido")
        if db.query(Unit).filter(Unit.name.ilike(name), Unit.id != u.id).first():
            raise HTTPException(status_code=409, detail="Já existe uma unidade com esse nome")
        u.name = name
    if body.address is not None:
        u.address = body.address
    if body.phone is not None:
        u.phone = body.phone
    if body.responsible is not None:
        u.responsible = body.responsible
    if body.status is not None:
        u.status = body.status.value

    db.add(u)
    commit_or_500(db, "update_unit")
    return unit_out(u)


@router.delete("/{unit_id}")
def delete_unit(unit_id: str, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    u = db.query(Unit).filter(Unit.id == unit_id).first()
    if not u:
        raise HTTPException(status_code=404, detail="Unidade não encontrada")

    for model in (Sector, Ticket, Asset, RemoteAccess, User):
        if db.query(model).filter(model.unit_id == unit_id).first():
            raise HTTPException(status_code=409, detail="Unidade possui registros vinculados")

    db.delete(u)
    commit_or_500(db, "delete_unit")
    return {"ok": True}


@router.get("/{unit_id}/sectors", response_model=list[SectorOut])
def list_unit_sectors(unit_id: str, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    u = db.query(Unit).filter(Unit.id == unit_id).first()
    if not u:
        raise HTTPException(status_code=404, detail="Unidade não encontrada")
    rows = db.query(Sector).filter(Sector.unit_id == unit_id).order_by(Sector.name).all()
    return [
        SectorOut(id=s.id, name=s.name, unit_id=s.unit_id, unit_name=u.name, responsible=s.responsible, status=s.status)
        for s in rows
    ]
