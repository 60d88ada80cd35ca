import uuid, logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from helpdesk.database import get_db, commit_or_500
from helpdesk.models import User, ROLE_USER
from helpdesk.schemas import SignupRequest, LoginRequest, LoginResponse, ChangePasswordRequest, UserOut
from helpdesk.security import verify_password, create_access_token, hash_password, revoke_token
from helpdesk.deps import get_current_user, get_token_payload

log = logging.getLogger(__name__)

router = APIRouter()


def user_out(u: User) -> UserOut:
    return UserOut(
        id=u.id,
        name=u.name,
        email=u.email,
        role=u.role,
        unit_id=u.unit_id,
        is_online=bool(u.is_online),
        active=bool(u.active),
    )


def _session_for(db: Session, user: User) -> LoginResponse:
    user.is_online = True
    db.add(user)
    commit_or_500(db, "login")
    token = create_access_token({"uid": user.id, "role": user.role, "sub": user.email})
    return LoginResponse(access_token=token, role=user.role, user=user_out(user))


@router.post("/signup", response_model=LoginResponse)
def signup(body: SignupRequest, db: Session = Depends(get_db)):
    email = body.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="Email inválido")
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="Email já cadastrado")

    user = User(
        id=str(uuid.uuid4()),
        name=body.name.strip(),
        email=email,
        password_hash=hash_password(body.password),
        role=ROLE_USER,
        active=True,
    )
    db.add(user)
    commit_or_500(db, "signup")
    log.info("nova conta %s", user.id)
    return _session_for(db, user)


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    email = body.email.strip().lower()
    user = db.query(User).filter(User.email == email, User.active == True).first()
    if not user or not verify_password(body.password, user.password_hash):
        log.warning("login recusado para %s", email)
        raise HTTPException(status_code=401, detail="Credenciais inválidas")
    return _session_for(db, user)


@router.post("/logout")
def logout(
    payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    revoke_token(payload)
    user.is_online = False
    db.add(user)
    commit_or_500(db, "logout")
    return {"ok": True}


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user_out(user)


@router.post("/change-password")
def change_password(body: ChangePasswordRequest, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    if not verify_password(body.old_password, user.password_hash):
        raise HTTPException(status_code=401, detail="Senha atual inválida")
    user.password_hash = hash_password(body.new_password)
    db.add(user)
    commit_or_500(db, "change_password")
    return {"ok": True}
