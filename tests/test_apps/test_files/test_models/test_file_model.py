"""Tests for File model."""

import pytest
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError

from server.apps.files.models import File, FileType


@pytest.mark.django_db
class TestFileModel:
    """Tests for File model fields and constraints."""

    def test_str_and_paths(self, user, make_file):
        """Test string form, blob path and download name."""
        file_instance = make_file(user, 'Intro to Biology', file_type=FileType.EBOOK)
        file_instance.slug = 'intro-to-biology'

        assert str(file_instance) == 'alice:intro-to-biology'
        assert file_instance.blob_path == f'ebook/{file_instance.stored_name}'
        assert file_instance.suggested_name == 'intro-to-biology.pdf'

    def test_suggested_name_without_extension(self, user, make_file):
        """Test download name is the bare slug when there is no extension."""
        file_instance = make_file(user, 'README', extension='')

        assert file_instance.suggested_name == file_instance.slug

    def test_slug_unique(self, user, make_file):
        """Test two records cannot share a slug."""
        first = make_file(user, 'Notes')
        second = make_file(user, 'Notes')
        second.slug = first.slug

        with pytest.raises(IntegrityError), transaction.atomic():
            second.save()

    def test_blob_referenced_once(self, user, make_file):
        """Test two records cannot point at the same blob."""
        first = make_file(user, 'Notes')
        second = make_file(user, 'Notes')
        second.stored_name = first.stored_name

        with pytest.raises(IntegrityError), transaction.atomic():
            second.save()

    def test_owner_protected(self, user, make_file):
        """Test owner with files cannot be deleted directly."""
        make_file(user, 'Notes')

        with pytest.raises(ProtectedError):
            user.delete()

    def test_default_ordering_newest_first(self, user, make_file):
        """Test default ordering is by last update, newest first."""
        make_file(user, 'First')
        second = make_file(user, 'Second')
        second.title = 'Second, edited'
        second.save()

        assert File.objects.first() == second
