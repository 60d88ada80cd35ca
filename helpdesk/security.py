import base64
import hashlib
import threading
import uuid
from datetime import datetime, timedelta, timezone

from cryptography.fernet import Fernet, InvalidToken
from jose import jwt, JWTError
from passlib.context import CryptContext

from helpdesk.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, FERNET_KEY

# PBKDF2: compatível e estável no Render (Python 3.13)
pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

_revoked: set[str] = set()
_revoked_lock = threading.Lock()


def hash_password(p: str) -> str:
    return pwd.hash(p)

def verify_password(p: str, h: str) -> bool:
    return pwd.verify(p, h)

def create_access_token(data: dict, minutes: int | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes or ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "jti": str(uuid.uuid4())})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        raise ValueError("invalid_token") from e
    if payload.get("jti") in _revoked:
        raise ValueError("revoked_token")
    return payload

def revoke_token(payload: dict) -> None:
    jti = payload.get("jti")
    if jti:
        with _revoked_lock:
            _revoked.add(jti)

def clear_revoked() -> None:
    with _revoked_lock:
        _revoked.clear()


# ---------- Senhas de acesso remoto (criptografadas em repouso) ----------
def _fernet() -> Fernet:
    if FERNET_KEY:
        return Fernet(FERNET_KEY.encode())
    digest = hashlib.sha256(SECRET_KEY.encode()).digest()
    return Fernet(base64.urlsafe_b64encode(digest))

def encrypt_secret(plain: str | None) -> str | None:
    if not plain:
        return None
    return _fernet().encrypt(plain.encode()).decode()

def decrypt_secret(token: str | None) -> str | None:
    if not token:
        return None
    try:
        return _fernet().decrypt(token.encode()).decode()
    except InvalidToken as e:
        raise ValueError("invalid_secret") from e
