"""Consistency checks between file records and blobs on disk."""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from server.apps.files.models import File

if TYPE_CHECKING:
    from server.apps.files.infrastructure.storage import BlobStorage

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconciliationReport:
    """Blobs without records and records without blobs."""

    orphan_blobs: list[str] = field(default_factory=list)
    dangling_records: list[File] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        """True when every record has a blob and every blob a record."""
        return not self.orphan_blobs and not self.dangling_records


def reconcile_storage(storage: 'BlobStorage') -> ReconciliationReport:
    """Compare the blob store with the file records.

    Orphans are expected after an interrupted rollback; dangling records
    after a blob vanished outside the repository.

    Args:
        storage: Blob storage to scan.

    Returns:
        ReconciliationReport with blob paths and File instances.
    """
    report = ReconciliationReport()
    referenced = set(File.objects.values_list('type', 'stored_name'))

    for file_type, stored_name in storage.iter_blobs():
        if (file_type, stored_name) not in referenced:
            report.orphan_blobs.append(storage.blob_path(file_type, stored_name))

    for file_instance in File.objects.order_by('id').iterator():
        if not storage.blob_exists(file_instance.type, file_instance.stored_name):
            report.dangling_records.append(file_instance)

    logger.info(
        'Storage reconciled: %d orphan blobs, %d dangling records',
        len(report.orphan_blobs),
        len(report.dangling_records),
    )
    return report
