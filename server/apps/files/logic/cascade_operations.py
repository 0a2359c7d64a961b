"""Cross-entity cascades: account deletion and login renames.

Neither cascade runs inside a single transaction spanning the blob store
and the database. Each step commits on its own, failures propagate to the
caller, and re-running a cascade after a failure is safe.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.db import transaction
from django.db.models import ProtectedError

from server.apps.files.exceptions import (
    BlobNotFoundError,
    ConflictError,
    StorageIOError,
)
from server.apps.files.models import File

if TYPE_CHECKING:
    from server.apps.accounts.models import User
    from server.apps.files.infrastructure.storage import BlobStorage

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CascadeReport:
    """Outcome of deleting a user's files."""

    deleted_files: int = 0
    missing_blobs: list[str] = field(default_factory=list)
    failed_blobs: list[str] = field(default_factory=list)


def delete_blob_if_present(storage: 'BlobStorage', file_instance: File) -> bool:
    """Delete a file's blob, treating a missing blob as already deleted.

    Args:
        storage: Blob storage.
        file_instance: File whose blob is deleted.

    Returns:
        False if the blob was already gone.

    Raises:
        StorageIOError: If the blob exists but cannot be deleted.
    """
    try:
        storage.delete_blob(file_instance.type, file_instance.stored_name)
    except BlobNotFoundError:
        logger.warning(
            'Blob already missing (deleted earlier?): %s',
            file_instance.blob_path,
        )
        return False
    return True


def delete_blob_best_effort(
    storage: 'BlobStorage',
    file_instance: File,
    report: CascadeReport | None = None,
) -> None:
    """Delete a file's blob without letting failures escape.

    A missing blob is logged as a warning (already gone); any other
    storage failure is logged with its traceback. Both are recorded in
    ``report`` when one is given.

    Args:
        storage: Blob storage.
        file_instance: File whose blob is deleted.
        report: Optional report collecting failures.
    """
    blob_path = file_instance.blob_path
    try:
        deleted = delete_blob_if_present(storage, file_instance)
    except StorageIOError:
        logger.exception('Failed to delete blob (orphaned): %s', blob_path)
        if report is not None:
            report.failed_blobs.append(blob_path)
        return

    if not deleted and report is not None:
        report.missing_blobs.append(blob_path)


def delete_owned_files(user: 'User', storage: 'BlobStorage') -> CascadeReport:
    """Delete every file owned by a user, blobs first.

    Blob deletion is best-effort and never aborts the batch. Record
    deletion is a single bulk delete limited to the files whose blobs
    were handled; if it fails the error propagates so the caller can
    stop before deleting the user.

    Args:
        user: Owner whose files are deleted.
        storage: Blob storage.

    Returns:
        CascadeReport with counts and blob failures.
    """
    report = CascadeReport()
    owned_files = list(File.objects.filter(author=user))
    for file_instance in owned_files:
        delete_blob_best_effort(storage, file_instance, report)

    processed_ids = [file_instance.pk for file_instance in owned_files]

    # Files uploaded after the snapshot keep their records and blobs
    try:
        with transaction.atomic():
            report.deleted_files, _ = File.objects.filter(
                pk__in=processed_ids,
            ).delete()
    except Exception:
        logger.exception(
            'Failed to delete file records for user: %s (ID: %d)',
            user.login,
            user.pk,
        )
        raise

    logger.info(
        'Deleted %d files for user %s (missing blobs: %d, failed blobs: %d)',
        report.deleted_files,
        user.login,
        len(report.missing_blobs),
        len(report.failed_blobs),
    )
    return report


def delete_user_cascade(user: 'User', storage: 'BlobStorage') -> CascadeReport:
    """Delete a user together with everything they own.

    Order: blobs (best-effort), then file records, then the user. The
    PROTECT foreign key refuses the last step if a file was uploaded for
    the user in the meantime; that surfaces as ConflictError and the
    cascade can simply be run again.

    Args:
        user: User to delete.
        storage: Blob storage.

    Returns:
        CascadeReport for the file deletion step.

    Raises:
        ConflictError: If the user gained files during the cascade.
    """
    report = delete_owned_files(user, storage)

    user_id = user.pk
    try:
        with transaction.atomic():
            user.delete()
    except ProtectedError as exc:
        logger.warning(
            'User %s still owns files after cascade, not deleted',
            user.login,
        )
        raise ConflictError(
            f'User {user.login} gained files during deletion, retry',
        ) from exc

    logger.info('User deleted: %s (ID: %d)', user.login, user_id)
    return report


def propagate_author_name(user: 'User') -> int:
    """Copy a user's current login onto every file they own.

    Runs after a login rename has been saved. Files still carrying the
    old login, or any earlier login left over from an interrupted pass,
    are rewritten in one bulk update.

    Args:
        user: User whose login changed.

    Returns:
        Number of file records updated.
    """
    updated = File.objects.filter(
        author=user,
    ).exclude(
        author_name=user.login,
    ).update(author_name=user.login)

    logger.info(
        'Propagated author name %s to %d files',
        user.login,
        updated,
    )
    return updated
