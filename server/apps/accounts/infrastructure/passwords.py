"""Password hashing capability backed by Django's hashers."""

from typing import final

from django.conf import settings
from django.contrib.auth.hashers import (
    PBKDF2PasswordHasher,
    check_password,
    make_password,
)


@final
class ConfigurablePBKDF2PasswordHasher(PBKDF2PasswordHasher):
    """PBKDF2 hasher whose cost is read from ``PASSWORD_HASH_ITERATIONS``.

    Registered under its own algorithm name so digests produced with a
    different cost still verify after the setting changes.
    """

    algorithm = 'pbkdf2_sha256_configurable'

    @property
    def iterations(self) -> int:  # type: ignore[override]
        """Current cost factor."""
        return settings.PASSWORD_HASH_ITERATIONS


@final
class PasswordHasher:
    """Hash and verify passwords.

    Injected into account operations so the algorithm is picked by
    configuration, not by the business logic.
    """

    def __init__(self, algorithm: str = 'default') -> None:
        """Initialize the hasher.

        Args:
            algorithm: Algorithm name from ``PASSWORD_HASHERS``;
                'default' selects the first configured hasher.
        """
        self._algorithm = algorithm

    def hash(self, password: str) -> str:  # noqa: WPS125
        """Produce a salted digest for a raw password."""
        return make_password(password, hasher=self._algorithm)

    def verify(self, password: str, digest: str) -> bool:
        """Check a raw password against a stored digest."""
        return check_password(password, digest)
