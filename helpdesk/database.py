import logging

from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from helpdesk.config import DATABASE_URL

log = logging.getLogger(__name__)

if DATABASE_URL.endswith(":memory:"):
    # um único banco em memória compartilhado por todas as sessões
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
elif DATABASE_URL.startswith("sqlite"):
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_500(db: Session, action: str) -> None:
    """Commit the session; on failure roll back, log and answer 500.

    Nothing is retried: the caller's previous state stays as it was.
    """
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("Falha ao salvar (%s)", action)
        raise HTTPException(status_code=500, detail="Falha ao salvar dados")
