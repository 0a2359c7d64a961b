"""Django storage configuration for the document blob store.

Blobs live on the local filesystem below ``BLOB_STORAGE_ROOT``, one
sub-directory per document type. The root is handed to the backend as an
explicit ``location`` option.
"""

from typing import Any, Final

from server.settings.components import BASE_DIR, config

BLOB_STORAGE_ROOT: Final = config(
    'BLOB_STORAGE_ROOT',
    default=str(BASE_DIR.joinpath('storage')),
)

STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'blobs': {
        'BACKEND': 'server.apps.files.infrastructure.storage.BlobStorage',
        'OPTIONS': {
            'location': BLOB_STORAGE_ROOT,
        },
    },
    'staticfiles': {
        # Keep static files separate from user files
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}
