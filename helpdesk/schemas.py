from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional


# ---------- Enums ----------
class Role(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"

class TicketStatus(str, Enum):
    OPEN = "Aberto"
    IN_PROGRESS = "Em Andamento"
    WAITING = "Aguardando"
    CLOSED = "Fechado"

class TicketPriority(str, Enum):
    LOW = "Baixa"
    MEDIUM = "Média"
    HIGH = "Alta"
    CRITICAL = "Crítica"

class UnitStatus(str, Enum):
    ACTIVE = "Ativa"
    INACTIVE = "Inativa"

class SectorStatus(str, Enum):
    ACTIVE = "Ativo"
    INACTIVE = "Inativo"

class AssetStatus(str, Enum):
    ACTIVE = "Ativo"
    IN_USE = "Em Uso"
    IN_STOCK = "Em Estoque"
    MAINTENANCE = "Manutenção"
    DISCARDED = "Descartado"

class RemoteType(str, Enum):
    ANYDESK = "ANYDESK"
    RDP = "RDP"
    TEAMVIEWER = "TEAMVIEWER"
    VNC = "VNC"

class RemoteStatus(str, Enum):
    ONLINE = "Online"
    OFFLINE = "Offline"


# ---------- Auth ----------
class SignupRequest(BaseModel):
    email: str = Field(min_length=3, max_length=254)
    password: str = Field(min_length=6, max_length=128)
    name: str = Field(min_length=1, max_length=120)

class LoginRequest(BaseModel):
    email: str
    password: str

class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str = Field(min_length=6, max_length=128)

class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: Role
    unit_id: Optional[str] = None
    is_online: bool = False
    active: bool = True

class LoginResponse(BaseModel):
    access_token: str
    role: Role
    user: UserOut

# ---------- Users ----------
class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: str = Field(min_length=3, max_length=254)
    password: str = Field(min_length=6, max_length=128)
    role: Role = Role.USER
    unit_id: Optional[str] = None

class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=120)
    role: Optional[Role] = None
    unit_id: Optional[str] = None
    active: Optional[bool] = None
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)

# ---------- Units / Sectors ----------
class UnitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    address: Optional[str] = None
    phone: Optional[str] = None
    responsible: Optional[str] = None
    status: UnitStatus = UnitStatus.ACTIVE

class UnitUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=120)
    address: Optional[str] = None
    phone: Optional[str] = None
    responsible: Optional[str] = None
    status: Optional[UnitStatus] = None

class UnitOut(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    responsible: Optional[str] = None
    status: UnitStatus

class SectorCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    unit_id: str
    responsible: Optional[str] = None
    status: SectorStatus = SectorStatus.ACTIVE

class SectorUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=120)
    unit_id: Optional[str] = None
    responsible: Optional[str] = None
    status: Optional[SectorStatus] = None

class SectorOut(BaseModel):
    id: str
    name: str
    unit_id: str
    unit_name: Optional[str] = None
    responsible: Optional[str] = None
    status: SectorStatus

# ---------- Assets ----------
class AssetBase(BaseModel):
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    sector_id: Optional[str] = None
    acquisition_date: Optional[str] = None
    value: Optional[float] = Field(default=None, ge=0)
    warranty_date: Optional[str] = None
    invoice_number: Optional[str] = None
    supplier: Optional[str] = None
    responsible: Optional[str] = None
    observations: Optional[str] = None

class AssetCreate(AssetBase):
    name: str = Field(min_length=1, max_length=120)
    patrimony_id: str = Field(min_length=1, max_length=60)
    category: str = Field(min_length=1, max_length=60)
    status: AssetStatus = AssetStatus.ACTIVE
    unit_id: str
    description: str = ""

class AssetUpdate(AssetBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    patrimony_id: Optional[str] = Field(default=None, min_length=1, max_length=60)
    category: Optional[str] = Field(default=None, min_length=1, max_length=60)
    status: Optional[AssetStatus] = None
    unit_id: Optional[str] = None
    description: Optional[str] = None

class AssetOut(AssetBase):
    id: str
    name: str
    patrimony_id: str
    category: str
    status: AssetStatus
    unit_id: str
    description: str

class AssetStats(BaseModel):
    total: int
    active: int
    maintenance: int
    in_stock: int

# ---------- Remote access ----------
class RemoteAccessCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    type: RemoteType
    access_id: str = Field(min_length=1, max_length=120)
    password: Optional[str] = Field(default=None, max_length=256)
    unit_id: Optional[str] = None
    status: RemoteStatus = RemoteStatus.OFFLINE

class RemoteAccessUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=120)
    type: Optional[RemoteType] = None
    access_id: Optional[str] = Field(default=None, max_length=120)
    password: Optional[str] = Field(default=None, max_length=256)
    unit_id: Optional[str] = None
    status: Optional[RemoteStatus] = None

class RemoteAccessOut(BaseModel):
    id: str
    name: str
    type: RemoteType
    access_id: str
    unit_id: Optional[str] = None
    status: RemoteStatus
    has_password: bool

class RevealOut(BaseModel):
    id: str
    password: Optional[str] = None
    revealed_at: str

# ---------- Common problems ----------
class ProblemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    priority: TicketPriority = TicketPriority.MEDIUM
    category: str = Field(default="Geral", max_length=60)

class ProblemOut(BaseModel):
    id: str
    title: str
    description: str
    priority: TicketPriority
    category: str

# ---------- Tickets ----------
class TicketCreate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=10000)
    unit_id: str
    sector_id: str
    problem_id: Optional[str] = None
    priority: Optional[TicketPriority] = None
    category: Optional[str] = Field(default=None, max_length=60)
    equipment_id: Optional[str] = None
    attachment_name: Optional[str] = Field(default=None, max_length=255)
    observations: Optional[str] = Field(default=None, max_length=5000)
    due_date: Optional[str] = None

class TicketEditRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=10000)
    priority: Optional[TicketPriority] = None
    category: Optional[str] = Field(default=None, max_length=60)
    assignee_id: Optional[str] = None
    technician_name: Optional[str] = Field(default=None, max_length=120)
    observations: Optional[str] = Field(default=None, max_length=5000)
    due_date: Optional[str] = None
    expected_version: Optional[int] = Field(default=None, ge=1)

    class Config:
        extra = "forbid"

class StatusRequest(BaseModel):
    status: TicketStatus
    expected_version: Optional[int] = Field(default=None, ge=1)
    note: Optional[str] = Field(default=None, max_length=2000)

class TicketOut(BaseModel):
    id: str
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    requester_id: str
    assignee_id: Optional[str] = None
    unit_id: str
    unit_name: Optional[str] = None
    category: Optional[str] = None
    sector: Optional[str] = None
    equipment_id: Optional[str] = None
    attachment_name: Optional[str] = None
    technician_name: Optional[str] = None
    observations: Optional[str] = None
    due_date: Optional[str] = None
    created_at: str
    updated_at: str
    version: int

class TicketUpdateOut(BaseModel):
    id: str
    ticket_id: str
    created_by_user_id: str
    created_at: str
    event_type: str
    note: Optional[str] = None
    payload_json: Optional[str] = None

class TicketDetail(BaseModel):
    ticket: TicketOut
    updates: list[TicketUpdateOut]

# ---------- Reports ----------
class DashboardStats(BaseModel):
    total: int
    open: int
    in_progress: int
    waiting: int
    closed: int
    critical_open: int

class TicketReport(BaseModel):
    period: Optional[str] = None
    unit_id: Optional[str] = None
    total: int
    by_status: dict[str, int]
    by_category: dict[str, int]
    by_unit: dict[str, int]

# ---------- Chat ----------
class ChatMessageCreate(BaseModel):
    text: str = Field(min_length=1, max_length=4000)

class ChatMessageOut(BaseModel):
    id: str
    sender_id: str
    text: str
    timestamp: str
    read: bool

class UnreadOut(BaseModel):
    unread: int
