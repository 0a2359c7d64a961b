"""Search, pagination and title autocomplete over stored documents."""

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from django.conf import settings
from django.db.models import Case, IntegerField, Max, Min, QuerySet, Value, When

from server.apps.files.exceptions import InputValidationError
from server.apps.files.models import File, FileType

logger = logging.getLogger(__name__)

_ItemT = TypeVar('_ItemT')


@enum.unique
class SortDirection(enum.StrEnum):
    """Sort direction accepted by listings."""

    ASC = 'asc'
    DESC = 'desc'


@enum.unique
class FileSortField(enum.StrEnum):
    """File fields a search can be sorted by."""

    UPDATED_AT = 'updated_at'
    CREATED_AT = 'created_at'
    TITLE = 'title'
    FILE_SIZE = 'file_size'


@dataclass(frozen=True, slots=True)
class SearchFilters:
    """Optional search filters, combined with logical AND.

    ``subject`` matches as a case-insensitive prefix, ``title`` as a
    case-insensitive substring, the rest exactly.
    """

    type: FileType | str | None = None  # noqa: WPS125
    subject: str | None = None
    author_name: str | None = None
    title: str | None = None
    author_id: int | None = None


@dataclass(frozen=True, slots=True)
class Page(Generic[_ItemT]):
    """One page of a listing."""

    items: list[_ItemT] = field(default_factory=list)
    total: int = 0
    required_pages: int = 0
    page: int = 1


def get_default_per_page() -> int:
    """Get search page size used when none is given.

    Returns:
        Page size from settings or default of 9.
    """
    return getattr(settings, 'FILES_SEARCH_PER_PAGE', 9)


def get_suggestion_limit() -> int:
    """Get maximum number of autocomplete suggestions.

    Returns:
        Limit from settings or default of 10.
    """
    return getattr(settings, 'FILES_SUGGESTION_LIMIT', 10)


def required_pages(total: int, per_page: int) -> int:
    """Number of pages needed for ``total`` items.

    Example: 10 items, 9 per page -> 2; 0 items -> 0.
    """
    return math.ceil(total / per_page)


def paginate(
    queryset: QuerySet[_ItemT],
    page: int,
    per_page: int,
) -> Page[_ItemT]:
    """Slice a queryset into a page.

    Args:
        queryset: Ordered queryset.
        page: 1-based page number.
        per_page: Page size.

    Returns:
        Page with items, total count and required page count.

    Raises:
        InputValidationError: If page < 1 or per_page < 1.
    """
    if page < 1:
        raise InputValidationError('Page must be at least 1')
    if per_page < 1:
        raise InputValidationError('Page size must be at least 1')

    total = queryset.count()
    skip = (page - 1) * per_page
    items = list(queryset[skip:skip + per_page])

    return Page(
        items=items,
        total=total,
        required_pages=required_pages(total, per_page),
        page=page,
    )


def parse_sort(
    sort: SortDirection | str | None,
    sort_by: FileSortField | str | None,
) -> tuple[SortDirection, FileSortField]:
    """Validate sort arguments and apply defaults.

    Args:
        sort: 'asc' or 'desc'; None means 'desc'.
        sort_by: Field name; None means 'updated_at'.

    Returns:
        Direction and field.

    Raises:
        InputValidationError: If either value is unknown.
    """
    try:
        direction = SortDirection(sort or SortDirection.DESC)
    except ValueError as exc:
        raise InputValidationError(f'Unknown sort direction: {sort!r}') from exc
    try:
        sort_field = FileSortField(sort_by or FileSortField.UPDATED_AT)
    except ValueError as exc:
        raise InputValidationError(f'Unknown sort field: {sort_by!r}') from exc
    return direction, sort_field


def order_expression(field_name: str, direction: SortDirection) -> str:
    """Build an ``order_by`` argument.

    Example: ('title', DESC) -> '-title'
    """
    if direction == SortDirection.DESC:
        return f'-{field_name}'
    return field_name


def filter_files(filters: SearchFilters) -> QuerySet[File]:
    """Build the queryset matching all given filters.

    Args:
        filters: Search filters; unset filters are ignored.

    Returns:
        Unordered queryset of matching files.

    Raises:
        InputValidationError: If the type filter is not a known type.
    """
    queryset = File.objects.all()

    if filters.type:
        if filters.type not in FileType.values:
            raise InputValidationError(f'Unknown file type: {filters.type!r}')
        queryset = queryset.filter(type=filters.type)
    if filters.subject:
        queryset = queryset.filter(subject__istartswith=filters.subject)
    if filters.author_name:
        queryset = queryset.filter(author_name=filters.author_name)
    if filters.title:
        queryset = queryset.filter(title__icontains=filters.title)
    if filters.author_id is not None:
        queryset = queryset.filter(author_id=filters.author_id)

    return queryset


def search_files(
    filters: SearchFilters | None = None,
    page: int = 1,
    per_page: int | None = None,
    sort: SortDirection | str | None = None,
    sort_by: FileSortField | str | None = None,
) -> Page[File]:
    """Filter, sort and paginate documents.

    An empty result is a valid empty page, never an error.

    Args:
        filters: Search filters.
        page: 1-based page number.
        per_page: Page size; None uses FILES_SEARCH_PER_PAGE.
        sort: 'asc' or 'desc' (default 'desc').
        sort_by: Sort field (default 'updated_at').

    Returns:
        Page of File instances.

    Raises:
        InputValidationError: On bad paging, sorting or type values.
    """
    filters = filters or SearchFilters()
    if per_page is None:
        per_page = get_default_per_page()
    direction, sort_field = parse_sort(sort, sort_by)

    queryset = filter_files(filters).order_by(
        order_expression(sort_field, direction),
        # Stable order for equal sort keys
        order_expression('id', direction),
    )

    logger.debug(
        'Searching files: filters=%s page=%d per_page=%d sort=%s %s',
        filters,
        page,
        per_page,
        sort_field,
        direction,
    )
    return paginate(queryset, page, per_page)


def suggest_titles(
    partial_title: str,
    author_name: str | None = None,
    file_type: FileType | str | None = None,
    limit: int | None = None,
) -> list[str]:
    """Autocomplete document titles.

    Titles that start with the query come before titles that only
    contain it; within each group the most recently updated come first.
    Duplicate titles are collapsed.

    Args:
        partial_title: Text typed so far.
        author_name: Optional exact author filter.
        file_type: Optional type filter.
        limit: Maximum suggestions; None uses FILES_SUGGESTION_LIMIT.

    Returns:
        Distinct titles, best match first.

    Raises:
        InputValidationError: If the type filter is not a known type.
    """
    query = partial_title.strip()
    if not query:
        return []
    if limit is None:
        limit = get_suggestion_limit()

    rows = filter_files(SearchFilters(
        type=file_type,
        author_name=author_name,
        title=query,
    )).values('title').annotate(
        prefix_rank=Min(Case(
            When(title__istartswith=query, then=Value(0)),
            default=Value(1),
            output_field=IntegerField(),
        )),
        last_updated=Max('updated_at'),
    ).order_by('prefix_rank', '-last_updated', 'title')[:limit]

    return [row['title'] for row in rows]
