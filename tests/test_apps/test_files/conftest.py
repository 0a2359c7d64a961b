"""Shared fixtures for files app tests."""

import itertools

import pytest

from server.apps.files.models import File, FileType


@pytest.fixture
def make_file():
    """Factory creating file records without touching blob storage.

    Returns:
        Callable taking the owner and title plus optional fields.
    """
    counter = itertools.count(1)

    def _make_file(  # noqa: WPS430
        author,
        title,
        subject='',
        file_type=FileType.NOTES,
        extension='pdf',
        file_size=100,
    ):
        number = next(counter)
        return File.objects.create(
            title=title,
            slug=f'record-{number}',
            subject=subject,
            author=author,
            author_name=author.login,
            type=file_type,
            extension=extension,
            stored_name=f'{number:032x}.{extension}',
            file_size=file_size,
        )

    return _make_file
