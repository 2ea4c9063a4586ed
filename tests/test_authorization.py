"""Tests for the role policy table."""

import pytest

from housedesk.domain.authorization import POLICY, Action, is_allowed, require
from housedesk.domain.entities import Role, User
from housedesk.domain.errors import AuthorizationError


@pytest.mark.parametrize(
    "action, allowed",
    [
        (Action.VIEW_HISTORY, {Role.ADMIN, Role.KFB}),
        (Action.VIEW_INSIGHTS, {Role.ADMIN}),
        (Action.MANAGE_SETTINGS, {Role.ADMIN, Role.USER, Role.KFB}),
        (Action.EDIT_PACK, {Role.ADMIN}),
        (Action.CHANGE_ROLE, {Role.ADMIN}),
        (Action.BYPASS_PACK_REQUIREMENT, {Role.ADMIN}),
        (Action.RESTORE_DEFAULTS, {Role.ADMIN, Role.USER, Role.KFB}),
        (Action.CLEAR_OPERATIONAL_DATA, {Role.ADMIN}),
    ],
)
def test_policy_table(action, allowed):
    for role in Role:
        assert is_allowed(action, role) == (role in allowed)


def test_every_action_has_a_policy():
    assert set(POLICY) == set(Action)


def test_require_raises_for_denied_role():
    user = User(id="u", name="Ana", username="ana", email="ana@mail.com", role=Role.AGENCIA)
    with pytest.raises(AuthorizationError, match="AGENCIA"):
        require(Action.VIEW_INSIGHTS, user)
