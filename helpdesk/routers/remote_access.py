import uuid, logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from helpdesk.database import get_db, commit_or_500
from helpdesk.deps import require_roles
from helpdesk.lifecycle import matches_search
from helpdesk.models import RemoteAccess, RemoteAccessReveal, Unit, User, ROLE_ADMIN, utcnow
from helpdesk.schemas import RemoteAccessCreate, RemoteAccessUpdate, RemoteAccessOut, RevealOut
from helpdesk.security import encrypt_secret, decrypt_secret

log = logging.getLogger(__name__)

router = APIRouter()


def remote_out(r: RemoteAccess) -> RemoteAccessOut:
    return RemoteAccessOut(
        id=r.id, name=r.name, type=r.type, access_id=r.access_id,
        unit_id=r.unit_id, status=r.status, has_password=bool(r.password_encrypted),
    )


def _assert_unit(db: Session, unit_id: Optional[str]):
    if unit_id and not db.query(Unit).filter(Unit.id == unit_id).first():
        raise HTTPException(status_code=404, detail="Unidade não encontrada")


def _get(db: Session, remote_id: str) -> RemoteAccess:
    r = db.query(RemoteAccess).filter(RemoteAccess.id == remote_id).first()
    if not r:
        raise HTTPException(status_code=404, detail="Acesso remoto não encontrado")
    return r


@router.get("/", response_model=list[RemoteAccessOut])
def list_remote(
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
    q: Optional[str] = Query(None, description="Buscar por nome ou ID de acesso"),
    unit_id: Optional[str] = Query(None),
):
    query = db.query(RemoteAccess)
    if unit_id:
        query = query.filter(RemoteAccess.unit_id == unit_id)
    rows = query.order_by(RemoteAccess.name).all()
    return [
        remote_out(r) for r in rows
        if not q or matches_search(q, r.name) or q.strip() in r.access_id
    ]


@router.post("/", response_model=RemoteAccessOut)
def create_remote(body: RemoteAccessCreate, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    _assert_unit(db, body.unit_id)
    r = RemoteAccess(
        id=str(uuid.uuid4()),
        name=body.name.strip(),
        type=body.type.value,
        access_id=body.access_id.strip(),
        password_encrypted=encrypt_secret(body.password),
        unit_id=body.unit_id,
        status=body.status.value,
    )
    db.add(r)
    commit_or_500(db, "create_remote")
    return remote_out(r)


@router.patch("/{remote_id}", response_model=RemoteAccessOut)
def update_remote(remote_id: str, body: RemoteAccessUpdate, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    r = _get(db, remote_id)

    if body.name is not None:
        r.name = body.name.strip()
    if body.type is not None:
        r.type = body.type.value
    if body.access_id is not None:
        r.access_id = body.access_id.strip()
    if body.password is not None:
        # string vazia remove a senha
        r.password_encrypted = encrypt_secret(body.password)
    if body.unit_id is not None:
        _assert_unit(db, body.unit_id)
        r.unit_id = body.unit_id or None
    if body.status is not None:
        r.status = body.status.value

    db.add(r)
    commit_or_500(db, "update_remote")
    return remote_out(r)


@router.post("/{remote_id}/reveal", response_model=RevealOut)
def reveal_password(remote_id: str, db: Session = Depends(get_db), user: User = Depends(require_roles(ROLE_ADMIN))):
    r = _get(db, remote_id)
    try:
        password = decrypt_secret(r.password_encrypted)
    except ValueError:
        log.error("senha ilegível para acesso remoto %s (chave trocada?)", r.id)
        raise HTTPException(status_code=500, detail="Não foi possível decifrar a senha")

    audit = RemoteAccessReveal(id=str(uuid.uuid4()), remote_access_id=r.id, user_id=user.id, revealed_at=utcnow())
    db.add(audit)
    commit_or_500(db, "reveal_password")

    log.warning("senha do acesso remoto %s revelada por %s", r.id, user.id)
    return RevealOut(id=r.id, password=password, revealed_at=audit.revealed_at.isoformat())


@router.delete("/{remote_id}")
def delete_remote(remote_id: str, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    r = _get(db, remote_id)
    db.query(RemoteAccessReveal).filter(RemoteAccessReveal.remote_access_id == r.id).delete(synchronize_session=False)
    db.delete(r)
    commit_or_500(db, "delete_remote")
    return {"ok": True}
