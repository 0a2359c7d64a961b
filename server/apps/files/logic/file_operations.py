"""Business logic for document operations."""

import logging
from dataclasses import dataclass
from typing import IO, Final

from django.db import IntegrityError, transaction

from server.apps.accounts.logic.permissions import (
    Action,
    Caller,
    Resource,
    ensure_allowed,
)
from server.apps.accounts.models import User
from server.apps.files.exceptions import (
    InputValidationError,
    NotFoundError,
    UnauthorizedError,
)
from server.apps.files.infrastructure.metadata import (
    detect_mime_type,
    get_content_size,
    normalize_extension,
)
from server.apps.files.infrastructure.storage import BlobStorage, get_blob_storage
from server.apps.files.logic.cascade_operations import delete_blob_if_present
from server.apps.files.logic.slugs import claim_slug
from server.apps.files.models import File, FileType

logger = logging.getLogger(__name__)

# Fields a file owner may change after upload
_UPDATABLE_FIELDS: Final = frozenset(('title', 'subject'))


@dataclass(frozen=True, slots=True)
class Download:
    """Open blob stream plus what a client needs to save it."""

    file: File
    stream: IO[bytes]
    extension: str
    suggested_name: str
    mime_type: str


def _resolve_storage(storage: BlobStorage | None) -> BlobStorage:
    if storage is None:
        return get_blob_storage()
    return storage


def _validate_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise InputValidationError('Title cannot be empty')
    return title


def _validate_file_type(file_type: str) -> FileType:
    try:
        return FileType(file_type)
    except ValueError as exc:
        raise InputValidationError(f'Unknown file type: {file_type!r}') from exc


def _get_author(caller: Caller) -> User:
    try:
        return User.objects.get(pk=caller.id)
    except User.DoesNotExist as exc:
        raise UnauthorizedError('Caller account does not exist') from exc


def upload_file(  # noqa: WPS211
    caller: Caller | None,
    title: str,
    subject: str,
    file_type: str,
    content: bytes | IO[bytes],
    extension: str,
    *,
    storage: BlobStorage | None = None,
) -> File:
    """Store a blob and create the record that points to it.

    Transaction safety: write the blob first, then insert the record.
    If the insert fails, the blob is deleted from storage (rollback), so
    a failed upload leaves neither record nor blob behind.

    A slug taken by a concurrent upload between lookup and insert shows
    up as an IntegrityError; the next free candidate is tried instead.

    Args:
        caller: Authenticated uploader.
        title: Document title.
        subject: Free-text subject.
        file_type: One of FileType values.
        content: Raw bytes or binary file-like object.
        extension: Original extension, with or without the dot.
        storage: Blob storage; defaults to STORAGES['blobs'].

    Returns:
        Created File instance.

    Raises:
        ForbiddenError: If the caller is anonymous.
        UnauthorizedError: If the caller's account no longer exists.
        InputValidationError: On empty title, unknown type or bad extension.
        SlugExhaustedError: If every slug candidate is taken.
        StorageIOError: If the blob cannot be written.
    """
    ensure_allowed(caller, Action.CREATE_FILE)
    title = _validate_title(title)
    file_type = _validate_file_type(file_type)
    extension = normalize_extension(extension)
    author = _get_author(caller)
    file_size = get_content_size(content)
    storage = _resolve_storage(storage)

    # Step 1: Write the blob
    stored_name = storage.store_blob(file_type, content, extension)

    # Step 2: Insert the record, moving to the next slug on collisions
    try:
        file_instance = _insert_with_free_slug(
            title=title,
            subject=subject.strip(),
            author=author,
            file_type=file_type,
            extension=extension,
            stored_name=stored_name,
            file_size=file_size,
        )
    except Exception:
        logger.exception(
            'Failed to create file record, rolling back blob: %s',
            storage.blob_path(file_type, stored_name),
        )
        storage.rollback_upload(file_type, stored_name)
        raise

    logger.info(
        'File uploaded: %s (ID: %d, blob: %s)',
        file_instance.slug,
        file_instance.id,
        file_instance.blob_path,
    )
    return file_instance


def _insert_with_free_slug(  # noqa: WPS211
    title: str,
    subject: str,
    author: User,
    file_type: FileType,
    extension: str,
    stored_name: str,
    file_size: int,
) -> File:
    def try_insert(slug: str) -> File | None:  # noqa: WPS430
        try:
            with transaction.atomic():
                return File.objects.create(
                    title=title,
                    slug=slug,
                    subject=subject,
                    author=author,
                    author_name=author.login,
                    type=file_type,
                    extension=extension,
                    stored_name=stored_name,
                    file_size=file_size,
                )
        except IntegrityError:
            if not File.objects.filter(slug=slug).exists():
                raise
            logger.info('Slug taken concurrently, trying next: %s', slug)
            return None

    return claim_slug(title, try_insert)


def get_file_by_id(file_id: int) -> File:
    """Get file by its id.

    Raises:
        NotFoundError: If no such file exists.
    """
    try:
        return File.objects.get(pk=file_id)
    except File.DoesNotExist as exc:
        raise NotFoundError(f'File not found: ID={file_id}') from exc


def get_file_by_slug(slug: str) -> File:
    """Get file by its slug.

    Raises:
        NotFoundError: If no such file exists.
    """
    try:
        return File.objects.get(slug=slug)
    except File.DoesNotExist as exc:
        raise NotFoundError(f'File not found: slug={slug}') from exc


def download_file(
    file_id: int | None = None,
    slug: str | None = None,
    *,
    storage: BlobStorage | None = None,
) -> Download:
    """Open a document's blob for download.

    Exactly one of ``file_id`` and ``slug`` must be given.

    Args:
        file_id: File id.
        slug: File slug.
        storage: Blob storage; defaults to STORAGES['blobs'].

    Returns:
        Download holding an open stream the caller must close.

    Raises:
        InputValidationError: If neither or both identifiers are given.
        NotFoundError: If the record or its blob is missing.
        StorageIOError: If the blob cannot be opened.
    """
    if (file_id is None) == (slug is None):
        raise InputValidationError('Pass exactly one of file id or slug')

    if file_id is not None:
        file_instance = get_file_by_id(file_id)
    else:
        file_instance = get_file_by_slug(slug)

    storage = _resolve_storage(storage)
    stream = storage.open_blob(file_instance.type, file_instance.stored_name)

    suggested_name = file_instance.suggested_name
    return Download(
        file=file_instance,
        stream=stream,
        extension=file_instance.extension,
        suggested_name=suggested_name,
        mime_type=detect_mime_type(suggested_name),
    )


def update_file(caller: Caller | None, file_id: int, **fields: str) -> File:
    """Change a document's title or subject.

    Slug, type and blob never change after upload.

    Args:
        caller: Authenticated caller; must own the file.
        file_id: File id.
        fields: New values for 'title' and/or 'subject'.

    Returns:
        Updated File instance.

    Raises:
        NotFoundError: If the file does not exist.
        ForbiddenError: If the caller is not the owner.
        InputValidationError: On unknown or non-text fields, or an empty
            title.
    """
    file_instance = get_file_by_id(file_id)
    ensure_allowed(
        caller,
        Action.UPDATE_FILE,
        Resource(owner_id=file_instance.author_id),
    )

    unknown_fields = set(fields) - _UPDATABLE_FIELDS
    if unknown_fields:
        raise InputValidationError(
            f'Fields cannot be updated: {", ".join(sorted(unknown_fields))}',
        )

    non_text = sorted(
        name for name, field_value in fields.items()
        if not isinstance(field_value, str)
    )
    if non_text:
        raise InputValidationError(
            f'Fields must be text: {", ".join(non_text)}',
        )

    if 'title' in fields:
        file_instance.title = _validate_title(fields['title'])
    if 'subject' in fields:
        file_instance.subject = fields['subject'].strip()

    file_instance.save(update_fields=[*fields, 'updated_at'])
    logger.info(
        'File updated: %s (ID: %d, fields: %s)',
        file_instance.slug,
        file_instance.id,
        ', '.join(sorted(fields)),
    )
    return file_instance


def delete_file(
    caller: Caller | None,
    file_id: int,
    *,
    storage: BlobStorage | None = None,
) -> File:
    """Delete a document's blob and record.

    A missing blob is logged and the record is still removed. Any other
    blob failure propagates and leaves the record in place, so the
    delete can be retried.

    Args:
        caller: Authenticated caller; must own the file.
        file_id: File id.
        storage: Blob storage; defaults to STORAGES['blobs'].

    Returns:
        The deleted File instance (its pk is cleared by Django).

    Raises:
        NotFoundError: If the file does not exist.
        ForbiddenError: If the caller is not the owner.
        StorageIOError: If the blob exists but cannot be deleted.
    """
    file_instance = get_file_by_id(file_id)
    ensure_allowed(
        caller,
        Action.DELETE_FILE,
        Resource(owner_id=file_instance.author_id),
    )
    storage = _resolve_storage(storage)

    delete_blob_if_present(storage, file_instance)

    try:
        with transaction.atomic():
            file_instance.delete()
            logger.info('File record deleted from database: ID=%d', file_id)
    except Exception:
        logger.exception('Failed to delete file from database: ID=%d', file_id)
        raise

    return file_instance
