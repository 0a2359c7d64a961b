"""Shared fixtures for all test modules."""

import pytest

from server.apps.accounts.logic.permissions import Caller
from server.apps.accounts.models import User, UserRole
from server.apps.files.infrastructure.storage import BlobStorage
from server.apps.files.logic.file_operations import upload_file
from server.apps.files.models import FileType


@pytest.fixture(autouse=True)
def fast_password_hashing(settings):
    """Use a cheap hasher so account tests stay fast."""
    settings.PASSWORD_HASHERS = [
        'django.contrib.auth.hashers.MD5PasswordHasher',
    ]


@pytest.fixture
def blob_root(tmp_path, settings):
    """Point the configured blob storage at a temporary directory.

    Returns:
        Path of the temporary storage root.
    """
    root = tmp_path.joinpath('blobs')
    settings.BLOB_STORAGE_ROOT = str(root)
    settings.STORAGES = {
        **settings.STORAGES,
        'blobs': {
            'BACKEND': 'server.apps.files.infrastructure.storage.BlobStorage',
            'OPTIONS': {'location': str(root)},
        },
    }
    return root


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance with the normal role.
    """
    return User.objects.create_user(login='alice', password='secret123')


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(login='bob', password='secret123')


@pytest.fixture
def moderator(db):
    """Create moderator account.

    Returns:
        User instance with the moderator role.
    """
    return User.objects.create_user(
        login='mod',
        password='secret123',
        role=UserRole.MODERATOR,
    )


@pytest.fixture
def admin_user(db):
    """Create admin account.

    Returns:
        User instance with the admin role.
    """
    return User.objects.create_superuser(login='root', password='secret123')


@pytest.fixture
def caller(user):
    """Caller identity for ``user``."""
    return Caller.from_user(user)


@pytest.fixture
def other_caller(other_user):
    """Caller identity for ``other_user``."""
    return Caller.from_user(other_user)


@pytest.fixture
def moderator_caller(moderator):
    """Caller identity for ``moderator``."""
    return Caller.from_user(moderator)


@pytest.fixture
def admin_caller(admin_user):
    """Caller identity for ``admin_user``."""
    return Caller.from_user(admin_user)


@pytest.fixture
def blob_storage(blob_root):
    """Blob storage rooted in a temporary directory.

    Returns:
        BlobStorage instance used explicitly by the tests.
    """
    return BlobStorage(location=str(blob_root))


@pytest.fixture
def sample_content():
    """Sample document content for testing.

    Returns:
        Raw bytes of a small document.
    """
    return b'%PDF-1.4 test document content'


@pytest.fixture
def upload(blob_storage, sample_content):
    """Factory uploading a document through ``upload_file``.

    Returns:
        Callable taking caller and title plus optional upload fields.
    """
    def _upload(  # noqa: WPS430
        caller,
        title,
        subject='',
        file_type=FileType.EBOOK,
        extension='pdf',
        content=None,
    ):
        return upload_file(
            caller,
            title,
            subject,
            file_type,
            sample_content if content is None else content,
            extension,
            storage=blob_storage,
        )

    return _upload
