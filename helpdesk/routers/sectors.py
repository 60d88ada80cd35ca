import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from helpdesk.database import get_db, commit_or_500
from helpdesk.deps import get_current_user, require_roles
from helpdesk.lifecycle import matches_search
from helpdesk.models import Sector, Unit, Asset, User, ROLE_ADMIN
from helpdesk.schemas import SectorCreate, SectorUpdate, SectorOut

router = APIRouter()


def _get_unit(db: Session, unit_id: str) -> Unit:
    unit = db.query(Unit).filter(Unit.id == unit_id).first()
    if not unit:
        raise HTTPException(status_code=404, detail="Unidade não encontrada")
    return unit


@router.get("/", response_model=list[SectorOut])
def list_sectors(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
    unit_id: Optional[str] = Query(None, description="Filtrar por unidade"),
    q: Optional[str] = Query(None, description="Buscar setor"),
):
    query = db.query(Sector, Unit.name).join(Unit, Unit.id == Sector.unit_id)
    if unit_id:
        query = query.filter(Sector.unit_id == unit_id)
    rows = query.order_by(Unit.name, Sector.name).all()
    return [
        SectorOut(id=s.id, name=s.name, unit_id=s.unit_id, unit_name=unit_name, responsible=s.responsible, status=s.status)
        for (s, unit_name) in rows
        if matches_search(q, s.name)
    ]


@router.post("/", response_model=SectorOut)
def create_sector(body: SectorCreate, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    unit = _get_unit(db, body.unit_id)
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Nome inválido")
    if db.query(Sector).filter(Sector.unit_id == unit.id, Sector.name.ilike(name)).first():
        raise HTTPException(status_code=409, detail="Setor já existe nesta unidade")

    s = Sector(
        id=str(uuid.uuid4()),
        name=name,
        unit_id=unit.id,
        responsible=body.responsible,
        status=body.status.value,
    )
    db.add(s)
    commit_or_500(db, "create_sector")
    return SectorOut(id=s.id, name=s.name, unit_id=s.unit_id, unit_name=unit.name, responsible=s.responsible, status=s.status)


@router.patch("/{sector_id}", response_model=SectorOut)
def update_sector(sector_id: str, body: SectorUpdate, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    s = db.query(Sector).filter(Sector.id == sector_id).first()
    if not s:
        raise HTTPException(status_code=404, detail="Setor não encontrado")

    if body.unit_id is not None and body.unit_id != s.unit_id:
        _get_unit(db, body.unit_id)
        if db.query(Asset).filter(Asset.sector_id == s.id).first():
            raise HTTPException(status_code=409, detail="Setor possui equipamentos vinculados")
        s.unit_id = body.unit_id
    if body.name is not None:
        name = body.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="Nome inválido")
        s.name = name
    if body.name is not None or body.unit_id is not None:
        clash = (
            db.query(Sector)
            .filter(Sector.unit_id == s.unit_id, Sector.name.ilike(s.name), Sector.id != s.id)
            .first()
        )
        if clash:
            db.rollback()
            raise HTTPException(status_code=409, detail="Setor já existe nesta unidade")
    if body.responsible is not None:
        s.responsible = body.responsible
    if body.status is not None:
        s.status = body.status.value

    db.add(s)
    commit_or_500(db, "update_sector")
    unit = _get_unit(db, s.unit_id)
    return SectorOut(id=s.id, name=s.name, unit_id=s.unit_id, unit_name=unit.name, responsible=s.responsible, status=s.status)


@router.delete("/{sector_id}")
def delete_sector(sector_id: str, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    s = db.query(Sector).filter(Sector.id == sector_id).first()
    if not s:
        raise HTTPException(status_code=404, detail="Setor não encontrado")
    if db.query(Asset).filter(Asset.sector_id == s.id).first():
        raise HTTPException(status_code=409, detail="Setor possui equipamentos vinculados")

    db.delete(s)
    commit_or_500(db, "delete_sector")
    return {"ok": True}
