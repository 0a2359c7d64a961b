"""Filesystem storage backend for document blobs."""

import logging
import uuid
from collections.abc import Iterator
from typing import IO, Any, final

from typing_extensions import override

from django.core.files.base import ContentFile
from django.core.files.storage import FileSystemStorage, storages

from server.apps.files.exceptions import BlobNotFoundError, StorageIOError

logger = logging.getLogger(__name__)


def get_blob_storage() -> 'BlobStorage':
    """Get the configured blob storage backend.

    Returns:
        BlobStorage built from ``STORAGES['blobs']``.
    """
    return storages['blobs']  # type: ignore[return-value]


@final
class BlobStorage(FileSystemStorage):
    """Blob store laid out as ``{location}/{type}/{stored_name}``.

    Extends Django's FileSystemStorage with:
    - Generated, collision-resistant blob names
    - Typed errors for missing blobs and I/O failures
    - Upload rollback for failed metadata inserts
    - Enhanced error logging

    The storage root is always passed in as ``location``.
    """

    @override
    def save(  # noqa: WPS211
        self,
        name: str,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save file to disk with error handling and logging.

        Args:
            name: Storage path for the file.
            content: File content (file-like object).
            max_length: Optional maximum length for the filename.

        Returns:
            Actual storage path used (differs from name on conflicts).

        Raises:
            StorageIOError: If the write fails.
        """
        try:
            logger.info('Writing blob to storage: %s', name)
            saved_name = super().save(name, content, max_length)
            logger.info('Successfully wrote blob: %s', saved_name)
        except OSError as exc:
            logger.exception('Failed to write blob to storage: %s', name)
            raise StorageIOError(f'Failed to write blob {name}') from exc
        else:
            return saved_name

    def store_blob(
        self,
        file_type: str,
        content: bytes | IO[bytes],
        extension: str,
    ) -> str:
        """Write a new blob under the type directory.

        The name is a fresh uuid4 token plus the extension. Existing files
        are never overwritten: on a clash the storage picks another name.

        Args:
            file_type: Document type (directory name).
            content: Raw bytes or a binary file-like object.
            extension: Extension without the dot, may be empty.

        Returns:
            Stored name (relative to the type directory).

        Raises:
            StorageIOError: If the write fails.
        """
        stored_name = uuid.uuid4().hex
        if extension:
            stored_name = f'{stored_name}.{extension}'
        if isinstance(content, bytes):
            content = ContentFile(content)

        saved_path = self.save(self.blob_path(file_type, stored_name), content)
        # The storage may have renamed the blob to avoid a clash
        return saved_path.rsplit('/', 1)[-1]

    def open_blob(self, file_type: str, stored_name: str) -> IO[bytes]:
        """Open a blob for reading.

        Args:
            file_type: Document type (directory name).
            stored_name: Generated blob name.

        Returns:
            Binary stream; the caller closes it.

        Raises:
            BlobNotFoundError: If the blob does not exist.
            StorageIOError: If the blob cannot be opened.
        """
        name = self.blob_path(file_type, stored_name)
        try:
            return self.open(name, 'rb')
        except FileNotFoundError as exc:
            logger.warning('Blob missing on read: %s', name)
            raise BlobNotFoundError(file_type, stored_name) from exc
        except OSError as exc:
            logger.exception('Failed to open blob: %s', name)
            raise StorageIOError(f'Failed to read blob {name}') from exc

    def delete_blob(self, file_type: str, stored_name: str) -> None:
        """Delete a blob with error handling and logging.

        Args:
            file_type: Document type (directory name).
            stored_name: Generated blob name.

        Raises:
            BlobNotFoundError: If the blob does not exist.
            StorageIOError: If the delete fails.
        """
        name = self.blob_path(file_type, stored_name)
        if not self.exists(name):
            raise BlobNotFoundError(file_type, stored_name)

        try:
            logger.info('Deleting blob from storage: %s', name)
            self.delete(name)
            logger.info('Successfully deleted blob: %s', name)
        except OSError as exc:
            logger.exception('Failed to delete blob from storage: %s', name)
            raise StorageIOError(f'Failed to delete blob {name}') from exc

    def rollback_upload(self, file_type: str, stored_name: str) -> None:
        """Delete an uploaded blob after its metadata insert failed.

        Best-effort: a failed delete is logged and left for
        reconcile_storage.

        Args:
            file_type: Document type (directory name).
            stored_name: Generated blob name.
        """
        try:
            logger.warning(
                'Rolling back upload, deleting blob: %s',
                self.blob_path(file_type, stored_name),
            )
            self.delete_blob(file_type, stored_name)
        except (BlobNotFoundError, StorageIOError):
            # reconcile_storage reports whatever is left behind
            logger.exception(
                'Failed to roll back upload, orphaned blob: %s',
                self.blob_path(file_type, stored_name),
            )

    def blob_exists(self, file_type: str, stored_name: str) -> bool:
        """Check whether a blob is present."""
        return self.exists(self.blob_path(file_type, stored_name))

    def iter_blobs(self) -> Iterator[tuple[str, str]]:
        """Yield ``(type, stored_name)`` for every blob on disk.

        Yields:
            Pairs of type directory and blob name, sorted by directory.
        """
        if not self.exists(''):
            return
        type_dirs, _ = self.listdir('')
        for file_type in sorted(type_dirs):
            _, stored_names = self.listdir(file_type)
            for stored_name in sorted(stored_names):
                yield file_type, stored_name

    @staticmethod
    def blob_path(file_type: str, stored_name: str) -> str:
        """Build the storage path of a blob.

        Example: ('ebook', 'ab12.pdf') -> 'ebook/ab12.pdf'
        """
        return f'{file_type}/{stored_name}'
