from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Boolean,
    Text,
    Integer,
    Float,
    DateTime,
    ForeignKey,
    Index,
)
from helpdesk.database import Base

ROLE_ADMIN = "ADMIN"
ROLE_USER = "USER"
ROLES = (ROLE_ADMIN, ROLE_USER)


def utcnow() -> datetime:
    # colunas guardam UTC sem tzinfo (SQLite não preserva fuso)
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =========================
# Perfis (usuários)
# =========================
class User(Base):
    __tablename__ = "profiles"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_USER)
    unit_id = Column(String, ForeignKey("units.id"), nullable=True)
    is_online = Column(Boolean, default=False)
    active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)


# =========================
# Unidades / Setores
# =========================
class Unit(Base):
    __tablename__ = "units"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    responsible = Column(String, nullable=True)
    status = Column(String, nullable=False, default="Ativa")


class Sector(Base):
    __tablename__ = "sectors"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    unit_id = Column(String, ForeignKey("units.id"), nullable=False)
    responsible = Column(String, nullable=True)
    status = Column(String, nullable=False, default="Ativo")


Index("ix_sectors_unit_id", Sector.unit_id)


# =========================
# Equipamentos / Patrimônio
# =========================
class Asset(Base):
    __tablename__ = "assets"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    patrimony_id = Column(String, unique=True, nullable=False)
    category = Column(String, nullable=False)
    status = Column(String, nullable=False, default="Ativo")
    unit_id = Column(String, ForeignKey("units.id"), nullable=False)
    sector_id = Column(String, ForeignKey("sectors.id"), nullable=True)
    description = Column(Text, nullable=False, default="")

    brand = Column(String, nullable=True)
    model = Column(String, nullable=True)
    serial_number = Column(String, nullable=True)
    acquisition_date = Column(String, nullable=True)
    value = Column(Float, nullable=True)
    warranty_date = Column(String, nullable=True)
    invoice_number = Column(String, nullable=True)
    supplier = Column(String, nullable=True)
    responsible = Column(String, nullable=True)
    observations = Column(Text, nullable=True)


Index("ix_assets_unit_id", Asset.unit_id)


# =========================
# Acessos remotos
# =========================
class RemoteAccess(Base):
    __tablename__ = "remote_accesses"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    access_id = Column(String, nullable=False)
    # token Fernet, nunca a senha em texto puro
    password_encrypted = Column(Text, nullable=True)
    unit_id = Column(String, ForeignKey("units.id"), nullable=True)
    status = Column(String, nullable=False, default="Offline")


class RemoteAccessReveal(Base):
    __tablename__ = "remote_access_reveals"
    id = Column(String, primary_key=True)
    remote_access_id = Column(String, ForeignKey("remote_accesses.id"), nullable=False)
    user_id = Column(String, ForeignKey("profiles.id"), nullable=False)
    revealed_at = Column(DateTime, default=utcnow)


Index("ix_remote_access_reveals_remote_access_id", RemoteAccessReveal.remote_access_id)


# =========================
# Problemas comuns (preenchimento rápido)
# =========================
class CommonProblem(Base):
    __tablename__ = "common_problems"
    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    priority = Column(String, nullable=False)
    category = Column(String, nullable=False)


# =========================
# Chamados (OS)
# =========================
class Ticket(Base):
    __tablename__ = "tickets"
    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="Aberto")
    priority = Column(String, nullable=False, default="Média")

    requester_id = Column(String, ForeignKey("profiles.id"), nullable=False)
    assignee_id = Column(String, ForeignKey("profiles.id"), nullable=True)
    unit_id = Column(String, ForeignKey("units.id"), nullable=False)

    category = Column(String, nullable=True)
    sector = Column(String, nullable=True)
    equipment_id = Column(String, ForeignKey("assets.id"), nullable=True)
    attachment_name = Column(String, nullable=True)
    technician_name = Column(String, nullable=True)
    observations = Column(Text, nullable=True)
    due_date = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
    version = Column(Integer, nullable=False, default=1)


Index("ix_tickets_requester_id", Ticket.requester_id)
Index("ix_tickets_status", Ticket.status)
Index("ix_tickets_unit_id", Ticket.unit_id)


# =========================
# Histórico de Chamados
# =========================
class TicketUpdate(Base):
    __tablename__ = "ticket_updates"
    id = Column(String, primary_key=True)
    ticket_id = Column(String, ForeignKey("tickets.id"), nullable=False)
    created_by_user_id = Column(String, ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    event_type = Column(String, nullable=False)
    note = Column(Text, nullable=True)
    payload_json = Column(Text, nullable=True)


Index("ix_ticket_updates_ticket_id", TicketUpdate.ticket_id)
