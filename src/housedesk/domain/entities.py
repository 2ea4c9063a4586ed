"""Domain model entities for housedesk.

These are pure data classes representing business concepts, independent of
how the document store lays records out. Mappers in ``housedesk.database``
convert between stored documents and these entities.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class TaskType(str, Enum):
    """Built-in request kinds. Configured types may add more values."""

    SMS = "SMS"
    FACIAL_SEMANAL = "FACIAL_SEMANAL"
    REMOVER_2FA = "REMOVER_2FA"
    DEPOSITO = "DEPOSITO"
    SAQUE = "SAQUE"
    ENVIO_SALDO = "ENVIO_SALDO"
    CONTA_NOVA = "CONTA_NOVA"
    OUTRO = "OUTRO"


class TaskStatus(str, Enum):
    """Task lifecycle states."""

    PENDENTE = "PENDENTE"
    SOLICITADA = "SOLICITADA"
    FINALIZADA = "FINALIZADA"
    EXCLUIDA = "EXCLUIDA"


class AccountStatus(str, Enum):
    """Account lifecycle states."""

    ACTIVE = "ACTIVE"
    LIMITED = "LIMITED"
    REPLACEMENT = "REPLACEMENT"
    DELETED = "DELETED"


class PackStatus(str, Enum):
    """Pack inventory states."""

    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class Role(str, Enum):
    """Permission levels, USER being the lowest."""

    ADMIN = "ADMIN"
    USER = "USER"
    AGENCIA = "AGENCIA"
    KFB = "KFB"


class PixKeyType(str, Enum):
    """Kinds of Pix payout key."""

    CPF = "CPF"
    CNPJ = "CNPJ"
    EMAIL = "EMAIL"
    TELEFONE = "TELEFONE"
    ALEATORIA = "ALEATORIA"


@dataclass(frozen=True)
class Task:
    """Work request domain entity.

    ``account_name`` is a point-in-time copy of the linked account's name,
    not a reference to it.
    """

    id: str
    type: str
    house: str
    status: TaskStatus
    created_at: datetime
    updated_at: datetime
    account_name: Optional[str] = None
    quantity: Optional[int] = None
    description: Optional[str] = None
    pix_key_info: Optional[str] = None
    deletion_reason: Optional[str] = None
    order_index: Optional[int] = None
    finished_by: Optional[str] = None
    resolved_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status in (TaskStatus.PENDENTE, TaskStatus.SOLICITADA)


@dataclass(frozen=True)
class Account:
    """Betting-house account domain entity."""

    id: str
    name: str
    email: str
    house: str
    deposit_value: Decimal
    status: AccountStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    username: Optional[str] = None
    password: Optional[str] = None
    card: Optional[str] = None
    owner: Optional[str] = None
    tags: tuple[str, ...] = ()
    limited_at: Optional[datetime] = None
    replacement_at: Optional[datetime] = None
    deletion_reason: Optional[str] = None
    task_id_source: Optional[str] = None
    pack_id: Optional[str] = None


@dataclass(frozen=True)
class Pack:
    """Purchased lot of accounts at one house."""

    id: str
    house: str
    quantity: int
    delivered: int
    price: Decimal
    status: PackStatus
    created_at: datetime
    updated_at: datetime

    @property
    def remaining(self) -> int:
        return max(0, self.quantity - self.delivered)


@dataclass(frozen=True)
class PixKey:
    """Saved payout destination."""

    id: str
    name: str
    bank: str
    key_type: PixKeyType
    key: str


@dataclass(frozen=True)
class User:
    """Extended user profile."""

    id: str
    name: str
    username: str
    email: str
    role: Role
    default_pix_key_id: Optional[str] = None


@dataclass(frozen=True)
class LogEntry:
    """Append-only audit entry.

    ``task_description`` and ``user`` are captured when the entry is written.
    """

    id: str
    task_id: str
    task_description: str
    action: str
    user: str
    timestamp: datetime


@dataclass(frozen=True)
class House:
    """Configured betting house."""

    id: str
    name: str
    order: int = 0


@dataclass(frozen=True)
class TaskTypeConfig:
    """Configured task type."""

    id: str
    label: str
    value: str
    order: int = 999


@dataclass(frozen=True)
class AccountById:
    """Reference to an account by document id, resolved at write time."""

    id: str


@dataclass(frozen=True)
class AccountSnapshot:
    """Best-effort link to an account by name and house.

    Tasks keep this copy instead of an id; renames are propagated only by the
    cascade performed when the account is saved.
    """

    name: str
    house: str


AccountRef = Union[AccountById, AccountSnapshot]


@dataclass(frozen=True)
class DeliveredAccount:
    """Account details supplied when fulfilling a new-account request."""

    name: str
    email: str
    deposit_value: Decimal = Decimal("0")
    username: Optional[str] = None
    password: Optional[str] = None
    card: Optional[str] = None
    owner: Optional[str] = None


@dataclass(frozen=True)
class AccountDraft:
    """Account fields submitted by the create/edit form.

    ``id`` is None when creating.
    """

    name: str
    email: str
    house: str
    deposit_value: Decimal = Decimal("0")
    status: AccountStatus = AccountStatus.ACTIVE
    id: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    card: Optional[str] = None
    owner: Optional[str] = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class HouseLifetime:
    """Average days between registration and limiting for one house."""

    house: str
    average_days: int
    count: int


@dataclass(frozen=True)
class InsightsReport:
    """Aggregated account analytics."""

    account_count: int
    total_cost: Decimal
    status_counts: dict[str, int] = field(default_factory=dict)
    lifetimes: tuple[HouseLifetime, ...] = ()
