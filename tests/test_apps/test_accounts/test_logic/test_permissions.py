"""Tests for the permission table."""

import pytest

from server.apps.accounts.logic.permissions import (
    Action,
    Caller,
    Resource,
    allow,
    ensure_allowed,
)
from server.apps.accounts.models import UserRole
from server.apps.files.exceptions import ForbiddenError

_OWNER = 1
_STRANGER = 2

_NORMAL = Caller(id=_STRANGER, role=UserRole.NORMAL)
_MODERATOR = Caller(id=_STRANGER, role=UserRole.MODERATOR)
_ADMIN = Caller(id=_STRANGER, role=UserRole.ADMIN)
_OWNER_CALLER = Caller(id=_OWNER, role=UserRole.NORMAL)


@pytest.mark.parametrize('action', list(Action))
def test_anonymous_denied_everything(action):
    """Test no action is allowed without a caller."""
    assert not allow(None, action, Resource(owner_id=_OWNER))


@pytest.mark.parametrize('caller', [_NORMAL, _MODERATOR, _ADMIN])
def test_any_caller_may_create_files(caller):
    """Test every authenticated role may upload."""
    assert allow(caller, Action.CREATE_FILE)


@pytest.mark.parametrize('action', [Action.UPDATE_FILE, Action.DELETE_FILE])
class TestFileMutation:
    """Tests for file update and delete rules."""

    def test_owner_allowed(self, action):
        """Test the owner may mutate their file."""
        assert allow(_OWNER_CALLER, action, Resource(owner_id=_OWNER))

    @pytest.mark.parametrize('caller', [_NORMAL, _MODERATOR, _ADMIN])
    def test_others_denied(self, action, caller):
        """Test no role overrides file ownership."""
        assert not allow(caller, action, Resource(owner_id=_OWNER))

    def test_missing_owner_denied(self, action):
        """Test a resource without owner is never owned."""
        assert not allow(_OWNER_CALLER, action)


@pytest.mark.parametrize('action', [Action.UPDATE_USER, Action.DELETE_USER])
class TestAccountMutation:
    """Tests for account update and delete rules."""

    def test_self_allowed(self, action):
        """Test users may manage their own account."""
        target = Resource(owner_id=_OWNER, role=UserRole.NORMAL)

        assert allow(_OWNER_CALLER, action, target)

    def test_admin_allowed(self, action):
        """Test admins may manage any account."""
        target = Resource(owner_id=_OWNER, role=UserRole.NORMAL)

        assert allow(_ADMIN, action, target)

    @pytest.mark.parametrize('caller', [_NORMAL, _MODERATOR])
    def test_others_denied(self, action, caller):
        """Test moderators have no power over accounts."""
        target = Resource(owner_id=_OWNER, role=UserRole.NORMAL)

        assert not allow(caller, action, target)


@pytest.mark.parametrize(('caller', 'target_role', 'expected'), [
    (_ADMIN, UserRole.NORMAL, True),
    (_ADMIN, UserRole.MODERATOR, True),
    (_ADMIN, UserRole.ADMIN, False),
    (_MODERATOR, UserRole.NORMAL, False),
    (_NORMAL, UserRole.NORMAL, False),
])
def test_change_user_role(caller, target_role, expected):
    """Test only admins change roles, and never of another admin."""
    target = Resource(owner_id=_OWNER, role=target_role)

    assert allow(caller, Action.CHANGE_USER_ROLE, target) is expected


def test_ensure_allowed_raises():
    """Test denial surfaces as ForbiddenError."""
    with pytest.raises(ForbiddenError):
        ensure_allowed(_NORMAL, Action.DELETE_FILE, Resource(owner_id=_OWNER))


def test_ensure_allowed_passes():
    """Test permitted actions return silently."""
    ensure_allowed(_OWNER_CALLER, Action.DELETE_FILE, Resource(owner_id=_OWNER))


@pytest.mark.django_db
def test_caller_from_user(moderator):
    """Test caller identity is built from a stored account."""
    caller = Caller.from_user(moderator)

    assert caller.id == moderator.pk
    assert caller.role == UserRole.MODERATOR
