"""Exceptions for the document repository.

Every error raised by the repository operations derives from
``RepositoryError`` so callers at the API boundary can map the whole
taxonomy with a single ``except`` clause.
"""


class RepositoryError(Exception):
    """Base class for document repository errors."""


class NotFoundError(RepositoryError):
    """Raised when a file, user or slug does not exist."""


class BlobNotFoundError(NotFoundError):
    """Raised when a blob is missing from the storage root."""

    def __init__(self, file_type: str, stored_name: str) -> None:
        """Initialize BlobNotFoundError.

        Args:
            file_type: Type directory the blob was expected in.
            stored_name: Generated blob name.
        """
        self.file_type = file_type
        self.stored_name = stored_name
        super().__init__(f'Blob not found: {file_type}/{stored_name}')


class ConflictError(RepositoryError):
    """Raised on duplicate logins or an exhausted slug space."""


class SlugExhaustedError(ConflictError):
    """Raised when every slug candidate for a title is taken."""

    def __init__(self, base_slug: str, attempts: int) -> None:
        """Initialize SlugExhaustedError.

        Args:
            base_slug: Slug derived from the title.
            attempts: Number of candidates tried.
        """
        self.base_slug = base_slug
        self.attempts = attempts
        super().__init__(
            f'No free slug for {base_slug!r} after {attempts} attempts',
        )


class ForbiddenError(RepositoryError):
    """Raised when the caller is not allowed to perform an action."""


class UnauthorizedError(RepositoryError):
    """Raised when a password does not verify or confirmation differs."""


class InputValidationError(RepositoryError):
    """Raised on malformed input, before any mutation happens."""


class StorageIOError(RepositoryError):
    """Raised when a blob cannot be written, read or deleted."""
