"""Management command to check blobs against file records."""

import logging
from typing import Any

from django.core.management.base import BaseCommand

from server.apps.files.infrastructure.storage import get_blob_storage
from server.apps.files.logic.reconciliation import reconcile_storage

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Report orphan blobs and dangling records, optionally removing orphans."""

    help = 'Compare the blob store with file records'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--delete-orphans',
            action='store_true',
            help='Delete blobs that no file record references',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the reconciliation command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        delete_orphans = options['delete_orphans']
        dry_run = options['dry_run']
        storage = get_blob_storage()

        report = reconcile_storage(storage)

        for file_instance in report.dangling_records:
            self.stdout.write(
                f'Missing blob: {file_instance.blob_path} '
                f'(file: {file_instance.slug}, ID: {file_instance.id})',
            )

        removed = 0
        failed = 0
        for blob_path in report.orphan_blobs:
            if not delete_orphans or dry_run:
                self.stdout.write(f'Orphan blob: {blob_path}')
                continue

            try:
                storage.delete(blob_path)
                removed += 1
                logger.info('Removed orphan blob: %s', blob_path)
            except OSError as exc:
                self.stderr.write(f'Failed to remove {blob_path}: {exc}')
                logger.exception('Failed to remove orphan blob: %s', blob_path)
                failed += 1

        summary = (
            f'{len(report.orphan_blobs)} orphan blobs, '
            f'{len(report.dangling_records)} dangling records'
        )
        if delete_orphans and not dry_run:
            summary = f'{summary}; removed {removed} orphan blobs, {failed} failed'

        if report.is_consistent:
            self.stdout.write(self.style.SUCCESS(summary))
        else:
            self.stdout.write(self.style.WARNING(summary))
