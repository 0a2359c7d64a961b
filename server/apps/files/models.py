"""Database models for files app."""

from typing import Final, final

from typing_extensions import override

from django.conf import settings
from django.db import models

# Constants for field max lengths
_TITLE_MAX_LENGTH: Final = 255
_SLUG_MAX_LENGTH: Final = 255
_SUBJECT_MAX_LENGTH: Final = 255
_AUTHOR_NAME_MAX_LENGTH: Final = 150
_TYPE_MAX_LENGTH: Final = 32
_EXTENSION_MAX_LENGTH: Final = 32
_STORED_NAME_MAX_LENGTH: Final = 100


class FileType(models.TextChoices):
    """Document categories. Each one is a directory in the blob store."""

    EBOOK = 'ebook', 'E-book'
    NOTES = 'notes', 'Notes'
    PRESENTATION = 'presentation', 'Presentation'
    EXAM = 'exam', 'Exam'
    OTHER = 'other', 'Other'


@final
class File(models.Model):
    """Uploaded document and the blob it points to.

    The blob lives at ``{BLOB_STORAGE_ROOT}/{type}/{stored_name}``.
    ``author_name`` is a copy of the owner's login kept for searching
    without a join; renaming the owner rewrites it.
    """

    title = models.CharField(max_length=_TITLE_MAX_LENGTH)

    # Derived from the title once, never rewritten
    slug = models.SlugField(
        max_length=_SLUG_MAX_LENGTH,
        unique=True,
    )

    subject = models.CharField(
        max_length=_SUBJECT_MAX_LENGTH,
        blank=True,
        default='',
    )

    # Owner relationship; PROTECT keeps owners with files from disappearing
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='files',
        db_index=True,
    )

    author_name = models.CharField(
        max_length=_AUTHOR_NAME_MAX_LENGTH,
        db_index=True,
    )

    type = models.CharField(  # noqa: WPS125
        max_length=_TYPE_MAX_LENGTH,
        choices=FileType.choices,
    )

    extension = models.CharField(
        max_length=_EXTENSION_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Original extension, lowercase, without the dot',
    )

    stored_name = models.CharField(
        max_length=_STORED_NAME_MAX_LENGTH,
        help_text='Generated blob name inside the type directory',
    )

    file_size = models.PositiveBigIntegerField(
        help_text='File size in bytes',
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering = ['-updated_at']

        indexes = [
            # Default search ordering
            models.Index(
                fields=['type', '-updated_at'],
                name='files_type_recent_idx',
            ),
            # Cascades and per-user listings
            models.Index(
                fields=['author', '-updated_at'],
                name='files_author_recent_idx',
            ),
        ]

        constraints = [
            # One record per blob
            models.UniqueConstraint(
                fields=['type', 'stored_name'],
                name='files_type_stored_name_unique',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.author_name}:{self.slug}'

    @property
    def blob_path(self) -> str:
        """Blob path relative to the storage root.

        Example: type 'ebook', stored name 'ab12.pdf' -> 'ebook/ab12.pdf'
        """
        return f'{self.type}/{self.stored_name}'

    @property
    def suggested_name(self) -> str:
        """Download filename built from the slug and extension.

        Example: slug 'intro-to-biology', extension 'pdf'
        -> 'intro-to-biology.pdf'
        """
        if not self.extension:
            return self.slug
        return f'{self.slug}.{self.extension}'
