"""Role-based authorization policy.

Every role-gated action is listed once here; services check the acting
user's role at entry instead of repeating role comparisons.
"""

from enum import Enum

from housedesk.domain.entities import Role, User
from housedesk.domain.errors import AuthorizationError, action_denied


class Action(str, Enum):
    """Role-gated actions."""

    VIEW_HISTORY = "VIEW_HISTORY"
    VIEW_INSIGHTS = "VIEW_INSIGHTS"
    MANAGE_SETTINGS = "MANAGE_SETTINGS"
    EDIT_PACK = "EDIT_PACK"
    CHANGE_ROLE = "CHANGE_ROLE"
    BYPASS_PACK_REQUIREMENT = "BYPASS_PACK_REQUIREMENT"
    RESTORE_DEFAULTS = "RESTORE_DEFAULTS"
    CLEAR_OPERATIONAL_DATA = "CLEAR_OPERATIONAL_DATA"


POLICY: dict[Action, frozenset[Role]] = {
    Action.VIEW_HISTORY: frozenset({Role.ADMIN, Role.KFB}),
    Action.VIEW_INSIGHTS: frozenset({Role.ADMIN}),
    Action.MANAGE_SETTINGS: frozenset({Role.ADMIN, Role.USER, Role.KFB}),
    Action.EDIT_PACK: frozenset({Role.ADMIN}),
    Action.CHANGE_ROLE: frozenset({Role.ADMIN}),
    Action.BYPASS_PACK_REQUIREMENT: frozenset({Role.ADMIN}),
    Action.RESTORE_DEFAULTS: frozenset({Role.ADMIN, Role.USER, Role.KFB}),
    Action.CLEAR_OPERATIONAL_DATA: frozenset({Role.ADMIN}),
}


def is_allowed(action: Action, role: Role) -> bool:
    """Return True if the role may perform the action. Unlisted pairs are denied."""
    return role in POLICY.get(action, frozenset())


def require(action: Action, actor: User) -> None:
    """Raise AuthorizationError unless the actor's role allows the action."""
    if not is_allowed(action, actor.role):
        raise AuthorizationError(action_denied(action.value, actor.role.value))
