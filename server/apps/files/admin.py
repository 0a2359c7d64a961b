"""Django admin configuration for files app."""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from server.apps.files.infrastructure.storage import get_blob_storage
from server.apps.files.logic.cascade_operations import delete_blob_if_present
from server.apps.files.models import File


def format_bytes(size_bytes: int) -> str:
    """Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted size string (e.g., '1.5 MB', '234 KB').
    """
    if size_bytes < 1024:
        return f'{size_bytes} B'
    if size_bytes < 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / 1024:.1f} KB'
    if size_bytes < 1024 * 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / (1024 * 1024):.1f} MB'
    return f'{size_bytes / (1024 * 1024 * 1024):.1f} GB'


@admin.register(File)
class FileAdmin(admin.ModelAdmin[File]):
    """Admin interface for File model.

    Deleting from the admin removes blobs too. A blob that cannot be
    deleted stops the delete with its record still in place.
    """

    list_display = [
        'title',
        'slug',
        'type',
        'author_name',
        'size_display',
        'updated_at',
    ]

    list_filter = [
        'type',
        'updated_at',
    ]

    search_fields = [
        'title',
        'slug',
        'subject',
        'author_name',
    ]

    readonly_fields = [
        'slug',
        'author',
        'author_name',
        'type',
        'extension',
        'stored_name',
        'file_size',
        'created_at',
        'updated_at',
    ]

    fieldsets = (
        ('Document', {
            'fields': ('title', 'slug', 'subject', 'type'),
        }),
        ('Author', {
            'fields': ('author', 'author_name'),
        }),
        ('Storage', {
            'fields': ('stored_name', 'extension', 'file_size'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
        }),
    )

    def size_display(self, obj: File) -> str:
        """Display file size in human-readable format."""
        return format_bytes(obj.file_size)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Files are only created by uploads."""
        return False

    def delete_model(self, request: HttpRequest, obj: File) -> None:
        """Delete the blob, then the record."""
        delete_blob_if_present(get_blob_storage(), obj)
        super().delete_model(request, obj)

    def delete_queryset(
        self,
        request: HttpRequest,
        queryset: QuerySet[File],
    ) -> None:
        """Delete the selected files one by one, each blob before its record."""
        storage = get_blob_storage()
        for file_instance in queryset:
            delete_blob_if_present(storage, file_instance)
            file_instance.delete()
