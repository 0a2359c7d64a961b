"""Metadata extraction utilities for uploaded documents."""

import mimetypes
import re
from typing import IO, Final

from server.apps.files.exceptions import InputValidationError

_EXTENSION_MAX_LENGTH: Final = 32
_EXTENSION_PATTERN: Final = re.compile(r'^[a-z0-9]+(?:\.[a-z0-9]+)*$')
_DEFAULT_MIME_TYPE: Final = 'application/octet-stream'


def detect_mime_type(filename: str) -> str:
    """Detect MIME type from filename.

    Uses Python's built-in mimetypes module to guess MIME type
    from filename extension.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string (e.g., 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return _DEFAULT_MIME_TYPE
    return mime_type


def normalize_extension(extension: str) -> str:
    """Normalize a user-supplied extension.

    Accepts 'PDF', '.pdf' or 'tar.gz' style values.

    Args:
        extension: Original extension, with or without the leading dot.

    Returns:
        Extension without dot, lowercase. Empty string if none given.

    Raises:
        InputValidationError: If the extension contains path separators
            or other characters unsafe for a filename.
    """
    normalized = extension.strip().lstrip('.').lower()
    if not normalized:
        return ''
    if len(normalized) > _EXTENSION_MAX_LENGTH:
        raise InputValidationError(
            f'Extension longer than {_EXTENSION_MAX_LENGTH} characters',
        )
    if not _EXTENSION_PATTERN.match(normalized):
        raise InputValidationError(f'Invalid extension: {extension!r}')
    return normalized


def get_content_size(content: bytes | IO[bytes]) -> int:
    """Get size of upload content in bytes.

    File-like objects are measured by seeking to the end, then rewound.

    Args:
        content: Raw bytes or a seekable binary file-like object.

    Returns:
        Size in bytes.
    """
    if isinstance(content, bytes):
        return len(content)
    if hasattr(content, 'size'):
        return content.size
    content.seek(0, 2)
    size = content.tell()
    content.seek(0)
    return size
