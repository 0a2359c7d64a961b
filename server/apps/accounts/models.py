"""Database models for accounts app."""

from typing import ClassVar, Final, final

from typing_extensions import override

from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.db import models

# Constants for field max lengths
_LOGIN_MAX_LENGTH: Final = 150
_ROLE_MAX_LENGTH: Final = 16


class UserRole(models.TextChoices):
    """Closed set of account roles."""

    NORMAL = 'normal', 'Normal'
    MODERATOR = 'moderator', 'Moderator'
    ADMIN = 'admin', 'Admin'


class UserManager(BaseUserManager):
    """Manager used by ``createsuperuser`` and test fixtures."""

    def create_user(
        self,
        login: str,
        password: str | None = None,
        role: str = UserRole.NORMAL,
    ) -> 'User':
        """Create a user with a hashed password.

        Args:
            login: Unique login.
            password: Raw password, or None for an unusable password.
            role: Account role.

        Returns:
            Saved User instance.
        """
        user = self.model(login=login, role=role)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, login: str, password: str | None = None) -> 'User':
        """Create an admin account."""
        return self.create_user(login, password, role=UserRole.ADMIN)


@final
class User(AbstractBaseUser):
    """Registered account that owns uploaded documents.

    The password digest lives in the inherited ``password`` column and is
    never part of any repository result.
    """

    login = models.CharField(
        max_length=_LOGIN_MAX_LENGTH,
        unique=True,
    )

    role = models.CharField(
        max_length=_ROLE_MAX_LENGTH,
        choices=UserRole.choices,
        default=UserRole.NORMAL,
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects: ClassVar[UserManager] = UserManager()

    USERNAME_FIELD = 'login'

    class Meta:
        """Model metadata."""

        verbose_name = 'User'  # type: ignore[mutable-override]
        verbose_name_plural = 'Users'  # type: ignore[mutable-override]
        ordering = ['-updated_at']

    @override
    def __str__(self) -> str:
        """String representation."""
        return self.login

    @property
    def is_admin(self) -> bool:
        """Whether the account holds the admin role."""
        return self.role == UserRole.ADMIN

    # Django admin site integration
    @property
    def is_staff(self) -> bool:
        """Admins are the only accounts allowed into the admin site."""
        return self.is_admin

    def has_perm(self, perm: str, obj: object = None) -> bool:
        """Admins hold every model permission."""
        return self.is_active and self.is_admin

    def has_module_perms(self, app_label: str) -> bool:
        """Admins see every app in the admin site."""
        return self.is_active and self.is_admin
