from datetime import timedelta

from helpdesk.config import DEMO_PASSWORD
from helpdesk.database import SessionLocal
from helpdesk.models import (
    User, Unit, Sector, Asset, RemoteAccess, CommonProblem, Ticket,
    ROLE_ADMIN, ROLE_USER, utcnow,
)
from helpdesk.security import hash_password, encrypt_secret

UNITS = [
    dict(id="1", name="CLINICA NINARE", address="Rua das Flores, 123", phone="(11) 9999-8888", responsible="Dr. Silva", status="Ativa"),
    dict(id="2", name="CLINICA NINHO", address="Av. Paulista, 1000", phone="(11) 3333-4444", responsible="Dra. Ana", status="Ativa"),
]

SECTORS = [
    dict(id="s1", name="MARKETING", unit_id="2"),
    dict(id="s2", name="ASSISTENCIA CLINICA", unit_id="2"),
    dict(id="s3", name="RECEPÇÃO", unit_id="2"),
    dict(id="s4", name="TERAPEUTA", unit_id="2"),
    dict(id="s5", name="RH", unit_id="1"),
    dict(id="s6", name="TI", unit_id="1"),
]

USERS = [
    dict(id="u1", name="Admin Silva", email="admin@helpdesk.com", role=ROLE_ADMIN, unit_id="1", is_online=True),
    dict(id="u2", name="João Usuário", email="joao@empresa.com", role=ROLE_USER, unit_id="1", is_online=True),
    dict(id="u3", name="Maria Souza", email="maria@empresa.com", role=ROLE_USER, unit_id="2", is_online=False),
]

REMOTES = [
    dict(id="r1", name="PC Recepção", type="ANYDESK", access_id="123 456 789", password="abc123", unit_id="1", status="Online"),
    dict(id="r2", name="Servidor Principal", type="RDP", access_id="192.168.1.100", password="StrongPassword!", unit_id="1", status="Online"),
]

ASSETS = [
    dict(id="a1", name="PC-001", patrimony_id="PAT-0001", category="Computador", status="Ativo", unit_id="1",
         description="Dell OptiPlex 3080", brand="Dell", model="OptiPlex 3080", serial_number="CN12345",
         sector_id="s5", acquisition_date="2023-01-15", value=3500),
    dict(id="a2", name="NB-001", patrimony_id="PAT-0002", category="Notebook", status="Ativo", unit_id="1",
         description="Lenovo ThinkPad E14", brand="Lenovo", model="ThinkPad E14", serial_number="LN54321",
         sector_id="s5", acquisition_date="2023-03-20", value=4200),
    dict(id="a3", name="IMP-001", patrimony_id="PAT-0003", category="Impressora", status="Ativo", unit_id="2",
         description="HP LaserJet Pro M404", brand="HP", model="LaserJet Pro M404", serial_number="HP98765",
         sector_id="s3", acquisition_date="2022-06-10", value=1800),
]

PROBLEMS = [
    dict(id="p1", title="Impressora sem papel/toner", description="A impressora está reportando falta de suprimentos.", priority="Baixa", category="Hardware"),
    dict(id="p2", title="Sem acesso à Internet", description="Computador conectado via cabo mas sem navegação.", priority="Alta", category="Rede"),
    dict(id="p3", title="Computador Lento", description="Sistema operacional demorando para responder.", priority="Média", category="Hardware"),
]


def seed_data():
    db = SessionLocal()
    try:
        if db.query(User).first():
            return

        for u in UNITS:
            db.add(Unit(**u))
        for s in SECTORS:
            db.add(Sector(status="Ativo", **s))
        db.flush()

        for u in USERS:
            db.add(User(password_hash=hash_password(DEMO_PASSWORD), active=True, **u))
        for r in REMOTES:
            r = dict(r)
            db.add(RemoteAccess(password_encrypted=encrypt_secret(r.pop("password")), **r))
        for a in ASSETS:
            db.add(Asset(**a))
        for p in PROBLEMS:
            db.add(CommonProblem(**p))
        db.flush()

        now = utcnow()
        db.add(Ticket(
            id="t1", title="Erro no ERP", description="Não consigo lançar nota fiscal.",
            status="Aberto", priority="Alta", requester_id="u2", unit_id="1", category="Software",
            created_at=now - timedelta(days=1), updated_at=now - timedelta(days=1), version=1,
        ))
        db.add(Ticket(
            id="t2", title="Solicitação de Mouse", description="Mouse parou de funcionar.",
            status="Fechado", priority="Baixa", requester_id="u3", unit_id="2", category="Hardware",
            created_at=now - timedelta(days=2), updated_at=now - timedelta(days=1), version=1,
        ))
        db.commit()
    finally:
        db.close()
