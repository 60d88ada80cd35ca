import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from helpdesk.database import get_db, commit_or_500
from helpdesk.deps import get_current_user, require_roles
from helpdesk.lifecycle import matches_search
from helpdesk.models import Asset, Unit, Sector, Ticket, User, ROLE_ADMIN
from helpdesk.schemas import AssetCreate, AssetUpdate, AssetOut, AssetStats, AssetStatus

router = APIRouter()

EXTRA_FIELDS = (
    "brand", "model", "serial_number", "acquisition_date", "value", "warranty_date",
    "invoice_number", "supplier", "responsible", "observations",
)

REQUIRED_TEXT = {
    "name": "Nome inválido",
    "patrimony_id": "Patrimônio inválido",
    "category": "Categoria inválida",
}


def asset_out(a: Asset) -> AssetOut:
    return AssetOut(
        id=a.id, name=a.name, patrimony_id=a.patrimony_id, category=a.category,
        status=a.status, unit_id=a.unit_id, sector_id=a.sector_id, description=a.description or "",
        **{f: getattr(a, f) for f in EXTRA_FIELDS},
    )


def _check_location(db: Session, unit_id: str, sector_id: Optional[str]):
    if not db.query(Unit).filter(Unit.id == unit_id).first():
        raise HTTPException(status_code=404, detail="Unidade não encontrada")
    if sector_id:
        sector = db.query(Sector).filter(Sector.id == sector_id).first()
        if not sector or sector.unit_id != unit_id:
            raise HTTPException(status_code=400, detail="Setor inválido para a unidade")


def _matches(a: Asset, q: Optional[str]) -> bool:
    # nome sem diferenciar maiúsculas; patrimônio por trecho exato
    if not q:
        return True
    return matches_search(q, a.name) or q.strip() in a.patrimony_id


@router.get("/", response_model=list[AssetOut])
def list_assets(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
    q: Optional[str] = Query(None, description="Buscar por nome ou patrimônio"),
    unit_id: Optional[str] = Query(None),
    sector_id: Optional[str] = Query(None),
    status: Optional[AssetStatus] = Query(None),
    category: Optional[str] = Query(None),
):
    query = db.query(Asset)
    if unit_id:
        query = query.filter(Asset.unit_id == unit_id)
    if sector_id:
        query = query.filter(Asset.sector_id == sector_id)
    if status:
        query = query.filter(Asset.status == status.value)
    if category:
        query = query.filter(Asset.category == category)
    rows = query.order_by(Asset.name).all()
    return [asset_out(a) for a in rows if _matches(a, q)]


@router.get("/stats", response_model=AssetStats)
def asset_stats(db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    rows = db.query(Asset.status).all()
    statuses = [s for (s,) in rows]
    return AssetStats(
        total=len(statuses),
        active=statuses.count(AssetStatus.ACTIVE.value),
        maintenance=statuses.count(AssetStatus.MAINTENANCE.value),
        in_stock=statuses.count(AssetStatus.IN_STOCK.value),
    )


@router.get("/{asset_id}", response_model=AssetOut)
def get_asset(asset_id: str, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    a = db.query(Asset).filter(Asset.id == asset_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Equipamento não encontrado")
    return asset_out(a)


@router.post("/", response_model=AssetOut)
def create_asset(body: AssetCreate, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    for field, detail in REQUIRED_TEXT.items():
        if not getattr(body, field).strip():
            raise HTTPException(status_code=400, detail=detail)
    patrimony_id = body.patrimony_id.strip()
    if db.query(Asset).filter(Asset.patrimony_id == patrimony_id).first():
        raise HTTPException(status_code=409, detail="Patrimônio já cadastrado")
    _check_location(db, body.unit_id, body.sector_id)

    a = Asset(
        id=str(uuid.uuid4()),
        name=body.name.strip(),
        patrimony_id=patrimony_id,
        category=body.category.strip(),
        status=body.status.value,
        unit_id=body.unit_id,
        sector_id=body.sector_id or None,
        description=body.description,
        **{f: getattr(body, f) for f in EXTRA_FIELDS},
    )
    db.add(a)
    commit_or_500(db, "create_asset")
    return asset_out(a)


@router.patch("/{asset_id}", response_model=AssetOut)
def update_asset(asset_id: str, body: AssetUpdate, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    a = db.query(Asset).filter(Asset.id == asset_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Equipamento não encontrado")

    data = body.model_dump(exclude_unset=True)

    for field, detail in REQUIRED_TEXT.items():
        if data.get(field) is not None:
            data[field] = data[field].strip()
            if not data[field]:
                raise HTTPException(status_code=400, detail=detail)

    pid = data.get("patrimony_id")
    if pid and pid != a.patrimony_id and db.query(Asset).filter(Asset.patrimony_id == pid).first():
        raise HTTPException(status_code=409, detail="Patrimônio já cadastrado")

    unit_id = data.get("unit_id") or a.unit_id
    sector_id = data["sector_id"] if "sector_id" in data else a.sector_id
    _check_location(db, unit_id, sector_id or None)

    for field, value in data.items():
        if value is None and field in ("name", "patrimony_id", "category", "status", "unit_id", "description"):
            continue
        if hasattr(value, "value"):
            value = value.value
        setattr(a, field, value)
    if not a.sector_id:
        a.sector_id = None

    db.add(a)
    commit_or_500(db, "update_asset")
    return asset_out(a)


@router.delete("/{asset_id}")
def delete_asset(asset_id: str, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    a = db.query(Asset).filter(Asset.id == asset_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Equipamento não encontrado")
    if db.query(Ticket).filter(Ticket.equipment_id == a.id).first():
        raise HTTPException(status_code=409, detail="Equipamento vinculado a chamados")

    db.delete(a)
    commit_or_500(db, "delete_asset")
    return {"ok": True}
