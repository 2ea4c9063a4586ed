"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class AuthorizationError(DomainError):
    """The acting user's role may not perform the action."""


def account_required() -> str:
    """Return message for a request type that needs a target account."""
    return "Selecione uma conta para esta pendência."


def house_required() -> str:
    """Return message for a missing house."""
    return "A casa de aposta é obrigatória."


def description_required() -> str:
    """Return message for an 'other' request without description."""
    return "Por favor, descreva a pendência."


def agent_required() -> str:
    """Return message when a KFB finish names no agent."""
    return "Por favor, selecione qual Agência finalizou a tarefa."


def pack_required() -> str:
    """Return message when a non-admin delivers without an active pack."""
    return "Membros da agência devem utilizar um Pack ativo para entregar contas."


def pack_house_mismatch(pack_house: str, house: str) -> str:
    """Return message when the chosen pack belongs to another house."""
    return f"O pack selecionado é da casa {pack_house}, não de {house}."


def action_denied(action: str, role: str) -> str:
    """Return message for a role refused by the policy table."""
    return f"Role {role} is not allowed to {action.lower().replace('_', ' ')}"


def user_not_found(user_id: str) -> str:
    """Return message for missing user profile."""
    return f"User {user_id} not found"
