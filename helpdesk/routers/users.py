import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from helpdesk.database import get_db, commit_or_500
from helpdesk.models import User, Unit, Ticket, TicketUpdate, RemoteAccessReveal, ROLE_ADMIN
from helpdesk.schemas import UserCreate, UserUpdate, UserOut
from helpdesk.security import hash_password
from helpdesk.deps import require_roles
from helpdesk.lifecycle import matches_search
from helpdesk.routers.auth import user_out

router = APIRouter()


def _assert_unit(db: Session, unit_id: Optional[str]):
    if unit_id and not db.query(Unit).filter(Unit.id == unit_id).first():
        raise HTTPException(status_code=404, detail="Unidade não encontrada")


@router.get("/", response_model=list[UserOut])
def list_users(
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
    q: Optional[str] = Query(None, description="Buscar por nome ou email"),
):
    rows = db.query(User).order_by(User.role, User.name).all()
    return [user_out(u) for u in rows if matches_search(q, u.name, u.email)]


@router.post("/", response_model=UserOut)
def create_user(body: UserCreate, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    email = body.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="Email já cadastrado")
    _assert_unit(db, body.unit_id)

    user = User(
        id=str(uuid.uuid4()),
        name=body.name.strip(),
        email=email,
        password_hash=hash_password(body.password),
        role=body.role.value,
        unit_id=body.unit_id,
        active=True,
    )
    db.add(user)
    commit_or_500(db, "create_user")
    return user_out(user)


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: str, body: UserUpdate, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    u = db.query(User).filter(User.id == user_id).first()
    if not u:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")

    if body.name is not None:
        if not body.name.strip():
            raise HTTPException(status_code=400, detail="Nome inválido")
        u.name = body.name.strip()
    if body.role is not None:
        u.role = body.role.value
    if body.unit_id is not None:
        if body.unit_id == "":
            u.unit_id = None
        else:
            _assert_unit(db, body.unit_id)
            u.unit_id = body.unit_id
    if body.active is not None:
        u.active = body.active
    if body.password is not None:
        u.password_hash = hash_password(body.password)

    db.add(u)
    commit_or_500(db, "update_user")
    return user_out(u)


@router.delete("/{user_id}")
def delete_user(user_id: str, db: Session = Depends(get_db), admin: User = Depends(require_roles(ROLE_ADMIN))):
    u = db.query(User).filter(User.id == user_id).first()
    if not u:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")
    if u.id == admin.id:
        raise HTTPException(status_code=409, detail="Não é possível excluir o próprio usuário")
    references = (
        Ticket.requester_id,
        Ticket.assignee_id,
        TicketUpdate.created_by_user_id,
        RemoteAccessReveal.user_id,
    )
    for column in references:
        if db.query(column.class_).filter(column == u.id).first():
            raise HTTPException(status_code=409, detail="Usuário possui registros vinculados; desative em vez de excluir")

    db.delete(u)
    commit_or_500(db, "delete_user")
    return {"ok": True}
