"""Document repository settings."""

from server.settings.components import config

# Slug candidates tried per title before giving up (base, base-2, ...)
FILES_SLUG_MAX_ATTEMPTS = config('FILES_SLUG_MAX_ATTEMPTS', cast=int, default=1000)

# Pagination and autocomplete
FILES_SEARCH_PER_PAGE = config('FILES_SEARCH_PER_PAGE', cast=int, default=9)
FILES_SUGGESTION_LIMIT = config('FILES_SUGGESTION_LIMIT', cast=int, default=10)
USERS_PER_PAGE = config('USERS_PER_PAGE', cast=int, default=9)
