"""Role and ownership checks for repository operations.

Decisions are a pure function of the caller, the action and the target
resource. Each action maps to one rule in ``_RULES``; there is no
per-role subclassing.
"""

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from server.apps.accounts.models import UserRole
from server.apps.files.exceptions import ForbiddenError

if TYPE_CHECKING:
    from server.apps.accounts.models import User

logger = logging.getLogger(__name__)


@enum.unique
class Action(enum.StrEnum):
    """Operations that go through the permission table."""

    CREATE_FILE = 'create_file'
    UPDATE_FILE = 'update_file'
    DELETE_FILE = 'delete_file'
    UPDATE_USER = 'update_user'
    DELETE_USER = 'delete_user'
    CHANGE_USER_ROLE = 'change_user_role'


@dataclass(frozen=True, slots=True)
class Caller:
    """Authenticated identity supplied by the identity provider."""

    id: int  # noqa: WPS125
    role: UserRole

    @classmethod
    def from_user(cls, user: 'User') -> 'Caller':
        """Build a caller from a stored account."""
        return cls(id=user.pk, role=UserRole(user.role))


@dataclass(frozen=True, slots=True)
class Resource:
    """Target of an action.

    ``owner_id`` is the owning user for files and the account itself for
    users. ``role`` is only set for user targets.
    """

    owner_id: int | None = None
    role: UserRole | None = None


_Rule = Callable[[Caller, Resource], bool]


def _any_caller(caller: Caller, resource: Resource) -> bool:
    return True


def _owner_only(caller: Caller, resource: Resource) -> bool:
    return resource.owner_id is not None and caller.id == resource.owner_id


def _self_or_admin(caller: Caller, resource: Resource) -> bool:
    return _owner_only(caller, resource) or caller.role == UserRole.ADMIN


def _admin_over_non_admin(caller: Caller, resource: Resource) -> bool:
    return caller.role == UserRole.ADMIN and resource.role != UserRole.ADMIN


_RULES: Final[dict[Action, _Rule]] = {
    Action.CREATE_FILE: _any_caller,
    # File mutation has no role override: moderators and admins included
    Action.UPDATE_FILE: _owner_only,
    Action.DELETE_FILE: _owner_only,
    Action.UPDATE_USER: _self_or_admin,
    Action.DELETE_USER: _self_or_admin,
    Action.CHANGE_USER_ROLE: _admin_over_non_admin,
}


def allow(
    caller: Caller | None,
    action: Action,
    resource: Resource | None = None,
) -> bool:
    """Decide whether the caller may perform the action.

    Args:
        caller: Authenticated caller, or None for anonymous requests.
        action: Requested action.
        resource: Target resource; None for actions without a target.

    Returns:
        True if the action is permitted.
    """
    if caller is None:
        return False
    return _RULES[action](caller, resource or Resource())


def ensure_allowed(
    caller: Caller | None,
    action: Action,
    resource: Resource | None = None,
) -> None:
    """Raise unless the caller may perform the action.

    Args:
        caller: Authenticated caller, or None for anonymous requests.
        action: Requested action.
        resource: Target resource.

    Raises:
        ForbiddenError: If the permission table denies the action.
    """
    if allow(caller, action, resource):
        return

    logger.warning(
        'Permission denied: caller=%s action=%s resource=%s',
        caller,
        action,
        resource,
    )
    raise ForbiddenError(f'Action {action} is not allowed for this caller')
