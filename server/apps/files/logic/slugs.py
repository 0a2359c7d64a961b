"""Slug generation for document titles."""

import logging
import re
from collections.abc import Callable, Iterator
from typing import Final, TypeVar

from django.conf import settings
from django.utils.text import slugify

from server.apps.files.exceptions import SlugExhaustedError
from server.apps.files.models import File

logger = logging.getLogger(__name__)

_ClaimedT = TypeVar('_ClaimedT')

# Runs of anything that is not a letter or digit, underscores included
_SEPARATOR_RUN: Final = re.compile(r'[\W_]+')

# Leaves room for a '-NNNN' suffix inside the 255 character column
_BASE_SLUG_MAX_LENGTH: Final = 240

# Used when a title has no ASCII-representable letters or digits
_FALLBACK_SLUG: Final = 'file'


def get_slug_max_attempts() -> int:
    """Get how many slug candidates are tried per title.

    Returns:
        Attempt bound from settings or default of 1000.
    """
    return getattr(settings, 'FILES_SLUG_MAX_ATTEMPTS', 1000)


def slugify_title(title: str) -> str:
    """Turn a title into a base slug.

    Example: 'Intro to Biology (2nd ed.)' -> 'intro-to-biology-2nd-ed'

    Args:
        title: Document title.

    Returns:
        Lowercase ASCII slug with single hyphens between words.
    """
    spaced = _SEPARATOR_RUN.sub(' ', title)
    base_slug = slugify(spaced)[:_BASE_SLUG_MAX_LENGTH].strip('-')
    return base_slug or _FALLBACK_SLUG


def iter_slug_candidates(base_slug: str, max_attempts: int) -> Iterator[str]:
    """Yield ``base``, ``base-2``, ``base-3``, ... up to max_attempts values.

    Args:
        base_slug: Slug derived from the title.
        max_attempts: Total number of candidates to yield.

    Yields:
        Slug candidates in order.
    """
    if max_attempts < 1:
        return
    yield base_slug
    for suffix in range(2, max_attempts + 1):
        yield f'{base_slug}-{suffix}'


def taken_slugs(base_slug: str) -> set[str]:
    """Load the slugs already used by ``base_slug`` and its suffixed forms.

    Args:
        base_slug: Slug derived from the title.

    Returns:
        Set of existing slugs equal to the base or starting with 'base-'.
    """
    return set(
        File.objects.filter(
            slug__startswith=base_slug,
        ).values_list('slug', flat=True),
    )


def free_slug_candidates(base_slug: str, max_attempts: int) -> Iterator[str]:
    """Yield the candidates for a base slug that are not yet taken.

    Taken slugs are loaded once up front; a candidate yielded here can
    still lose a race against a concurrent insert.

    Args:
        base_slug: Slug derived from the title.
        max_attempts: Total number of candidates considered.

    Yields:
        Unused slug candidates, in order.
    """
    existing = taken_slugs(base_slug)
    for candidate in iter_slug_candidates(base_slug, max_attempts):
        if candidate not in existing:
            yield candidate


def claim_slug(
    title: str,
    try_slug: Callable[[str], _ClaimedT | None],
) -> _ClaimedT:
    """Offer free slug candidates for a title until one is accepted.

    ``try_slug`` returns None to reject a candidate (for example one
    taken by a concurrent insert) and any other value to accept it.

    Args:
        title: Document title.
        try_slug: Callback attempting to use a candidate.

    Returns:
        Whatever ``try_slug`` returned for the accepted candidate.

    Raises:
        SlugExhaustedError: If every candidate is taken or rejected.
    """
    base_slug = slugify_title(title)
    max_attempts = get_slug_max_attempts()
    for candidate in free_slug_candidates(base_slug, max_attempts):
        claimed = try_slug(candidate)
        if claimed is not None:
            return claimed

    logger.warning(
        'Slug space exhausted for %s after %d attempts',
        base_slug,
        max_attempts,
    )
    raise SlugExhaustedError(base_slug, max_attempts)


def generate_slug(title: str) -> str:
    """Pick the first free slug for a title.

    The result is only a candidate: a concurrent insert may take it
    before the caller does, so inserts go through ``claim_slug`` and
    handle the unique constraint on ``File.slug``.

    Raises:
        SlugExhaustedError: If every candidate is taken.
    """
    return claim_slug(title, lambda candidate: candidate)
