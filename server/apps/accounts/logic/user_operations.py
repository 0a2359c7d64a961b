"""Business logic for account operations."""

import logging
from typing import Final

from django.conf import settings
from django.db import IntegrityError, transaction

from server.apps.accounts.infrastructure.passwords import PasswordHasher
from server.apps.accounts.logic.permissions import (
    Action,
    Caller,
    Resource,
    ensure_allowed,
)
from server.apps.accounts.models import User, UserRole
from server.apps.files.exceptions import (
    ConflictError,
    InputValidationError,
    NotFoundError,
    UnauthorizedError,
)
from server.apps.files.infrastructure.storage import BlobStorage, get_blob_storage
from server.apps.files.logic.cascade_operations import (
    delete_user_cascade,
    propagate_author_name,
)
from server.apps.files.logic.search_operations import (
    FileSortField,
    Page,
    SearchFilters,
    SortDirection,
    order_expression,
    paginate,
    parse_sort,
    search_files,
)
from server.apps.files.models import File

logger = logging.getLogger(__name__)

# Roles an admin can hand out; admin itself is never granted this way
_ASSIGNABLE_ROLES: Final = frozenset((UserRole.NORMAL, UserRole.MODERATOR))


def get_users_per_page() -> int:
    """Get page size for user listings.

    Returns:
        Page size from settings or default of 9.
    """
    return getattr(settings, 'USERS_PER_PAGE', 9)


def _validate_login(login: str) -> str:
    login = login.strip()
    if not login:
        raise InputValidationError('Login cannot be empty')
    return login


def create_user(
    login: str,
    password: str,
    retyped_password: str,
    *,
    hasher: PasswordHasher | None = None,
) -> User:
    """Register a new account with the normal role.

    Args:
        login: Requested login.
        password: Raw password.
        retyped_password: Confirmation; must equal password.
        hasher: Password hasher; defaults to the configured one.

    Returns:
        Created User instance.

    Raises:
        InputValidationError: On empty login/password or a confirmation
            mismatch.
        ConflictError: If the login is taken.
    """
    login = _validate_login(login)
    if not password:
        raise InputValidationError('Password cannot be empty')
    if password != retyped_password:
        raise InputValidationError('Passwords do not match')
    if User.objects.filter(login=login).exists():
        raise ConflictError(f'Login already taken: {login}')

    hasher = hasher or PasswordHasher()
    try:
        with transaction.atomic():
            user = User.objects.create(
                login=login,
                password=hasher.hash(password),
            )
    except IntegrityError as exc:
        # Registered concurrently between the check and the insert
        raise ConflictError(f'Login already taken: {login}') from exc

    logger.info('User created: %s (ID: %d)', user.login, user.pk)
    return user


def get_user_by_id(user_id: int) -> User:
    """Get user by id.

    Raises:
        NotFoundError: If no such user exists.
    """
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist as exc:
        raise NotFoundError(f'User not found: ID={user_id}') from exc


def get_user_by_login(login: str) -> User:
    """Get user by login.

    Raises:
        NotFoundError: If no such user exists.
    """
    try:
        return User.objects.get(login=login)
    except User.DoesNotExist as exc:
        raise NotFoundError(f'User not found: login={login}') from exc


def list_users(
    sort: SortDirection | str | None = None,
    page: int = 1,
) -> Page[User]:
    """List accounts by last update.

    Unlike file search, an empty page is reported as not found.

    Args:
        sort: 'asc' or 'desc' (default 'desc').
        page: 1-based page number.

    Returns:
        Page of User instances.

    Raises:
        InputValidationError: On a bad sort direction or page number.
        NotFoundError: If the page holds no users.
    """
    direction, _ = parse_sort(sort, None)
    queryset = User.objects.order_by(
        order_expression('updated_at', direction),
        order_expression('id', direction),
    )

    users_page = paginate(queryset, page, get_users_per_page())
    if not users_page.items:
        raise NotFoundError('No users found')
    return users_page


def list_user_files(  # noqa: WPS211
    login: str,
    filters: SearchFilters | None = None,
    page: int = 1,
    per_page: int | None = None,
    sort: SortDirection | str | None = None,
    sort_by: FileSortField | str | None = None,
) -> Page[File]:
    """Search within the files of one user.

    Args:
        login: Owner's login.
        filters: Extra search filters; author_id is overridden.
        page: 1-based page number.
        per_page: Page size.
        sort: 'asc' or 'desc'.
        sort_by: Sort field.

    Returns:
        Page of the user's File instances (may be empty).

    Raises:
        NotFoundError: If the login does not exist.
    """
    user = get_user_by_login(login)
    filters = filters or SearchFilters()
    owned_filters = SearchFilters(
        type=filters.type,
        subject=filters.subject,
        author_name=filters.author_name,
        title=filters.title,
        author_id=user.pk,
    )
    return search_files(owned_filters, page, per_page, sort, sort_by)


def update_user(  # noqa: WPS211, WPS231
    caller: Caller | None,
    user_id: int,
    *,
    password: str | None = None,
    login: str | None = None,
    new_password: str | None = None,
    retyped_new_password: str | None = None,
    hasher: PasswordHasher | None = None,
) -> User:
    """Change an account's login and/or password.

    Users editing their own account must confirm with their current
    password; admins editing someone else's account do not. A login
    change is followed by rewriting ``author_name`` on the user's files.

    Args:
        caller: Authenticated caller; the account owner or an admin.
        user_id: Account to update.
        password: Current password of the account.
        login: New login.
        new_password: New password.
        retyped_new_password: Confirmation of the new password.
        hasher: Password hasher; defaults to the configured one.

    Returns:
        Updated User instance.

    Raises:
        NotFoundError: If the account does not exist.
        ForbiddenError: If the caller is neither the owner nor an admin.
        UnauthorizedError: If the new passwords differ or the current
            password does not verify.
        InputValidationError: On an empty new login.
        ConflictError: If the new login is taken.
    """
    user = get_user_by_id(user_id)
    ensure_allowed(
        caller,
        Action.UPDATE_USER,
        Resource(owner_id=user.pk, role=UserRole(user.role)),
    )
    hasher = hasher or PasswordHasher()

    if (new_password or None) != (retyped_new_password or None):
        raise UnauthorizedError('New passwords do not match')
    if caller.id == user.pk and not hasher.verify(password or '', user.password):
        raise UnauthorizedError('Wrong password')

    old_login = user.login
    update_fields = ['updated_at']
    if login is not None:
        login = _validate_login(login)
        if login != old_login:
            if User.objects.filter(login=login).exists():
                raise ConflictError(f'Login already taken: {login}')
            user.login = login
            update_fields.append('login')
    if new_password:
        user.password = hasher.hash(new_password)
        update_fields.append('password')

    try:
        with transaction.atomic():
            user.save(update_fields=update_fields)
    except IntegrityError as exc:
        raise ConflictError(f'Login already taken: {login}') from exc

    logger.info(
        'User updated: %s (ID: %d, fields: %s)',
        user.login,
        user.pk,
        ', '.join(update_fields),
    )

    if user.login != old_login:
        logger.info('Login renamed: %s -> %s', old_login, user.login)
        propagate_author_name(user)

    return user


def change_user_role(
    caller: Caller | None,
    user_id: int,
    new_role: UserRole | str,
) -> User:
    """Set an account's role to normal or moderator.

    Admin accounts cannot be changed this way, whoever asks.

    Args:
        caller: Authenticated caller; must be an admin.
        user_id: Account to change.
        new_role: 'normal' or 'moderator'.

    Returns:
        Updated User instance.

    Raises:
        NotFoundError: If the account does not exist.
        InputValidationError: If the target is an admin or the role is
            not assignable.
        ForbiddenError: If the caller is not an admin.
    """
    user = get_user_by_id(user_id)
    if user.is_admin:
        raise InputValidationError('Admin accounts cannot change role')
    if new_role not in _ASSIGNABLE_ROLES:
        raise InputValidationError(f'Role cannot be assigned: {new_role!r}')
    ensure_allowed(
        caller,
        Action.CHANGE_USER_ROLE,
        Resource(owner_id=user.pk, role=UserRole(user.role)),
    )

    user.role = UserRole(new_role)
    user.save(update_fields=['role', 'updated_at'])
    logger.info('User role changed: %s -> %s', user.login, user.role)
    return user


def delete_user(
    caller: Caller | None,
    user_id: int,
    *,
    storage: BlobStorage | None = None,
) -> User:
    """Delete an account and every file it owns.

    Args:
        caller: Authenticated caller; the account owner or an admin.
        user_id: Account to delete.
        storage: Blob storage; defaults to STORAGES['blobs'].

    Returns:
        The deleted User instance (its pk is cleared by Django).

    Raises:
        NotFoundError: If the account does not exist.
        ForbiddenError: If the caller is neither the owner nor an admin.
        ConflictError: If the user gained files during the cascade.
    """
    user = get_user_by_id(user_id)
    ensure_allowed(
        caller,
        Action.DELETE_USER,
        Resource(owner_id=user.pk, role=UserRole(user.role)),
    )
    if storage is None:
        storage = get_blob_storage()

    delete_user_cascade(user, storage)
    return user
