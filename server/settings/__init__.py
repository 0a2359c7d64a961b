"""Main settings file, composed from split components.

``django-split-settings`` includes every component in order, so later
components may reference names defined by earlier ones.
"""

import django_stubs_ext
from split_settings.tools import include

# Runtime support for generic Django classes such as ModelAdmin[File]
django_stubs_ext.monkeypatch()

include(
    'components/common.py',
    'components/logging.py',
    'components/storages.py',
    'components/repository.py',
)
