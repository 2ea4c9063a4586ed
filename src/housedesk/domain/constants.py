"""Business constants shared across the domain layer."""

from housedesk.domain.entities import AccountStatus, TaskStatus, TaskType

# Collection names
TASKS = "tasks"
ACCOUNTS = "accounts"
PACKS = "packs"
LOGS = "logs"
PIX_KEYS = "pixKeys"
USERS = "users"
CONFIG_HOUSES = "config_houses"
CONFIG_TYPES = "config_types"

OPERATIONAL_COLLECTIONS = (TASKS, ACCOUNTS, PACKS, LOGS, PIX_KEYS)

TASK_TYPE_LABELS = {
    TaskType.SMS.value: "SMS",
    TaskType.FACIAL_SEMANAL.value: "Facial Semanal",
    TaskType.REMOVER_2FA.value: "Remover 2FA",
    TaskType.DEPOSITO.value: "Depósito",
    TaskType.SAQUE.value: "Saque",
    TaskType.ENVIO_SALDO.value: "Envio de Saldo",
    TaskType.CONTA_NOVA.value: "Conta Nova",
    TaskType.OUTRO.value: "Outro",
}

TASK_STATUS_LABELS = {
    TaskStatus.PENDENTE: "Pendente",
    TaskStatus.SOLICITADA: "Solicitada",
    TaskStatus.FINALIZADA: "Finalizada",
    TaskStatus.EXCLUIDA: "Excluída",
}

ACCOUNT_STATUS_LABELS = {
    AccountStatus.ACTIVE: "Ativa",
    AccountStatus.LIMITED: "Limitada",
    AccountStatus.REPLACEMENT: "Reposição",
    AccountStatus.DELETED: "Excluída",
}

DEFAULT_HOUSES = [
    "Bet365",
    "Betano",
    "Novibet",
    "KTO",
    "EstrelaBet",
    "Stake",
    "Outra",
]

# Types fulfilled right away skip the PENDENTE stage
AUTO_REQUESTED_TYPES = frozenset(
    {
        TaskType.SMS.value,
        TaskType.REMOVER_2FA.value,
        TaskType.DEPOSITO.value,
        TaskType.CONTA_NOVA.value,
    }
)

SYSTEM_TASK_ID = "SYSTEM"
SYSTEM_USER_NAME = "Sistema"
NOT_INFORMED = "Não informado"
UNKNOWN_ACCOUNT_NAME = "Desconhecida"
NO_ACCOUNT_NAME = "N/A"
WIPE_BATCH_SIZE = 100
MIN_PASSWORD_LENGTH = 6
