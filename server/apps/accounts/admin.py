"""Django admin configuration for accounts app."""

from django.contrib import admin
from django.http import HttpRequest

from server.apps.accounts.models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin[User]):
    """Read-mostly admin interface for User model.

    Logins and roles change only through ``update_user`` and
    ``change_user_role``, which rename the user's files and enforce the
    role rules. Users who still own files cannot be deleted here (the
    file foreign key is PROTECT); use ``delete_user``, which cascades.
    """

    list_display = [
        'login',
        'role',
        'file_count',
        'created_at',
        'updated_at',
    ]

    list_filter = [
        'role',
    ]

    search_fields = [
        'login',
    ]

    # The password digest is never shown
    exclude = ['password']

    readonly_fields = [
        'login',
        'role',
        'last_login',
        'created_at',
        'updated_at',
    ]

    def file_count(self, obj: User) -> int:
        """Number of files the user owns."""
        return obj.files.count()
    file_count.short_description = 'Files'  # type: ignore[attr-defined]

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Accounts are created by registration or createsuperuser."""
        return False
