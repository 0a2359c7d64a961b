"""Tests for search, pagination and autocomplete."""

from datetime import timedelta

import pytest
from django.utils import timezone

from server.apps.files.exceptions import InputValidationError
from server.apps.files.logic.search_operations import (
    SearchFilters,
    order_expression,
    parse_sort,
    required_pages,
    search_files,
    suggest_titles,
)
from server.apps.files.models import File, FileType


def _touch(file_instance, minutes_ago):
    """Set updated_at without going through auto_now."""
    File.objects.filter(pk=file_instance.pk).update(
        updated_at=timezone.now() - timedelta(minutes=minutes_ago),
    )


@pytest.mark.parametrize(('total', 'per_page', 'expected'), [
    (0, 9, 0),
    (1, 9, 1),
    (9, 9, 1),
    (10, 9, 2),
    (19, 9, 3),
])
def test_required_pages(total, per_page, expected):
    """Test page count is the ceiling of total / per_page."""
    assert required_pages(total, per_page) == expected


def test_parse_sort_defaults():
    """Test defaults are newest first by update time."""
    assert parse_sort(None, None) == ('desc', 'updated_at')


@pytest.mark.parametrize(('sort', 'sort_by'), [
    ('up', None),
    (None, 'author'),
])
def test_parse_sort_rejects_unknown(sort, sort_by):
    """Test unknown direction or field is rejected."""
    with pytest.raises(InputValidationError):
        parse_sort(sort, sort_by)


def test_order_expression():
    """Test direction maps onto Django's ordering syntax."""
    assert order_expression('title', parse_sort('asc', None)[0]) == 'title'
    assert order_expression('title', parse_sort('desc', None)[0]) == '-title'


@pytest.mark.django_db
class TestSearchFiles:
    """Tests for search_files."""

    @pytest.fixture
    def library(self, user, other_user, make_file):
        """Small catalogue spread over two authors and several types."""
        files = {
            'biology': make_file(
                user,
                'Intro to Biology',
                subject='Biology',
                file_type=FileType.EBOOK,
                file_size=300,
            ),
            'microbiology': make_file(
                user,
                'Microbes',
                subject='Microbiology',
                file_type=FileType.NOTES,
                file_size=100,
            ),
            'exam': make_file(
                other_user,
                'Biology Final Exam',
                subject='biology',
                file_type=FileType.EXAM,
                file_size=200,
            ),
            'slides': make_file(
                other_user,
                'Algebra Slides',
                subject='Math',
                file_type=FileType.PRESENTATION,
                file_size=50,
            ),
        }
        for minutes_ago, key in enumerate(('slides', 'exam', 'microbiology', 'biology')):
            _touch(files[key], minutes_ago)
        return files

    def test_no_filters_returns_newest_first(self, library):
        """Test default sort is updated_at descending."""
        result = search_files()

        assert result.total == 4
        assert result.required_pages == 1
        assert result.page == 1
        assert [file_instance.title for file_instance in result.items] == [
            'Algebra Slides',
            'Biology Final Exam',
            'Microbes',
            'Intro to Biology',
        ]

    def test_filter_by_type(self, library):
        """Test exact type filter."""
        result = search_files(SearchFilters(type=FileType.EXAM))

        assert [file_instance.title for file_instance in result.items] == [
            'Biology Final Exam',
        ]

    def test_filter_by_subject_prefix_case_insensitive(self, library):
        """Test subject matches as a case-insensitive prefix."""
        result = search_files(SearchFilters(subject='BIO'))

        assert {file_instance.title for file_instance in result.items} == {
            'Intro to Biology',
            'Biology Final Exam',
        }

    def test_filter_by_author_name(self, library):
        """Test author filter is exact."""
        result = search_files(SearchFilters(author_name='bob'))

        assert result.total == 2
        assert search_files(SearchFilters(author_name='bo')).total == 0

    def test_filter_by_title_substring(self, library):
        """Test title matches anywhere, ignoring case."""
        result = search_files(SearchFilters(title='BIOLOGY'))

        assert {file_instance.title for file_instance in result.items} == {
            'Intro to Biology',
            'Biology Final Exam',
        }

    def test_filters_combine_with_and(self, library):
        """Test all given filters must match."""
        result = search_files(SearchFilters(title='biology', author_name='alice'))

        assert [file_instance.title for file_instance in result.items] == [
            'Intro to Biology',
        ]

    def test_sort_by_title_ascending(self, library):
        """Test explicit sort field and direction."""
        result = search_files(sort='asc', sort_by='title')

        assert [file_instance.title for file_instance in result.items] == [
            'Algebra Slides',
            'Biology Final Exam',
            'Intro to Biology',
            'Microbes',
        ]

    def test_sort_by_size(self, library):
        """Test sorting by file size, largest first."""
        result = search_files(sort_by='file_size')

        assert [file_instance.file_size for file_instance in result.items] == [
            300,
            200,
            100,
            50,
        ]

    def test_no_match_is_empty_page(self, library):
        """Test an empty result is not an error."""
        result = search_files(SearchFilters(title='chemistry'))

        assert result.items == []
        assert result.total == 0
        assert result.required_pages == 0

    def test_unknown_type_rejected(self, library):
        """Test type outside the closed set is rejected."""
        with pytest.raises(InputValidationError):
            search_files(SearchFilters(type='video'))

    @pytest.mark.parametrize(('page', 'per_page'), [(0, 9), (1, 0), (-1, 9)])
    def test_bad_paging_rejected(self, db, page, per_page):
        """Test page and page size must be positive."""
        with pytest.raises(InputValidationError):
            search_files(page=page, per_page=per_page)


@pytest.mark.django_db
class TestPagination:
    """Tests for paging through search results."""

    def test_ten_files_nine_per_page(self, user, make_file, settings):
        """Test 10 matches split into pages of 9 and 1."""
        settings.FILES_SEARCH_PER_PAGE = 9
        for number in range(10):
            make_file(user, f'Chapter {number}')

        first_page = search_files(page=1)
        second_page = search_files(page=2)

        assert len(first_page.items) == 9
        assert len(second_page.items) == 1
        assert first_page.total == second_page.total == 10
        assert first_page.required_pages == 2
        seen = {file_instance.id for file_instance in first_page.items}
        assert second_page.items[0].id not in seen

    def test_page_past_the_end_is_empty(self, user, make_file):
        """Test a page beyond the last one holds no items."""
        make_file(user, 'Chapter 1')

        result = search_files(page=5, per_page=9)

        assert result.items == []
        assert result.total == 1
        assert result.required_pages == 1


@pytest.mark.django_db
class TestSuggestTitles:
    """Tests for title autocomplete."""

    def test_prefix_matches_rank_first(self, user, make_file):
        """Test titles starting with the query come before other matches."""
        contains = make_file(user, 'Intro to Biology')
        prefix = make_file(user, 'Biology Basics')
        _touch(contains, 1)
        _touch(prefix, 10)

        assert suggest_titles('bio') == ['Biology Basics', 'Intro to Biology']

    def test_recent_first_within_group(self, user, make_file):
        """Test more recently updated titles lead within a group."""
        older = make_file(user, 'Biology Basics')
        newer = make_file(user, 'Biology Advanced')
        _touch(older, 10)
        _touch(newer, 1)

        assert suggest_titles('biology') == ['Biology Advanced', 'Biology Basics']

    def test_duplicate_titles_collapsed(self, user, other_user, make_file):
        """Test the same title from several files is suggested once."""
        make_file(user, 'Biology Basics')
        make_file(other_user, 'Biology Basics')

        assert suggest_titles('bio') == ['Biology Basics']

    def test_limit(self, user, make_file):
        """Test at most ``limit`` suggestions are returned."""
        for number in range(5):
            make_file(user, f'Biology {number}')

        assert len(suggest_titles('bio', limit=3)) == 3

    def test_filters(self, user, other_user, make_file):
        """Test author and type narrow the suggestions."""
        make_file(user, 'Biology Notes', file_type=FileType.NOTES)
        make_file(user, 'Biology Exam', file_type=FileType.EXAM)
        make_file(other_user, 'Biology Slides', file_type=FileType.NOTES)

        assert suggest_titles('bio', author_name='alice', file_type='notes') == [
            'Biology Notes',
        ]

    @pytest.mark.parametrize('query', ['', '   '])
    def test_blank_query(self, user, make_file, query):
        """Test blank input suggests nothing."""
        make_file(user, 'Biology Basics')

        assert suggest_titles(query) == []
