"""
DMARC Ingest Pipeline

Runs each input file through archive traversal, decoding, normalization
and persistence, applying the run's policy for failures.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from dmarc_ingest.analysis.normalizer import normalize
from dmarc_ingest.errors import ArchiveError, IngestError, StorageError
from dmarc_ingest.parsers.archive import format_for_path, traverse
from dmarc_ingest.parsers.dmarc_parser import decode
from dmarc_ingest.storage.writer import persist

logger = logging.getLogger(__name__)

STATUS_STORED = 'stored'
STATUS_FAILED = 'failed'
STATUS_IGNORED = 'ignored'


@dataclass(frozen=True)
class IngestPolicy:
    """
    Which failures stop the run.

    By default only storage failures are fatal. ``skip_storage_errors``
    makes them per-report failures too; ``fail_fast`` makes every
    failure fatal.
    """

    skip_storage_errors: bool = False
    fail_fast: bool = False
    debug: bool = False

    def is_fatal(self, error):
        if self.fail_fast:
            return True
        return isinstance(error, StorageError) and not self.skip_storage_errors


@dataclass
class IngestResult:
    source: str
    status: str
    report_id: Optional[str] = None
    items: int = 0
    error: Optional[IngestError] = None


class Ingester:
    """Sequentially ingests report files over one shared connection."""

    def __init__(self, connection, policy=None):
        self.connection = connection
        self.policy = policy or IngestPolicy()
        self.results = []
        self.aborted = False

    def run(self, paths):
        """
        Ingest files in the order given.

        Args:
            paths: Iterable of report file paths

        Returns:
            list: IngestResult for every file or archive entry seen
        """
        for path in paths:
            if self.aborted:
                break
            self.ingest_file(path)
        return self.results

    def ingest_file(self, path):
        label = str(path)
        hint = format_for_path(label)
        if hint is None:
            logger.info("Ignoring %s", label)
            self.results.append(IngestResult(label, STATUS_IGNORED))
            return

        logger.info("Processing %s", label)
        try:
            with open(path, 'rb') as f:
                for entry in traverse(f, hint, label=label):
                    if entry.error is not None:
                        self._fail(entry.label, entry.error)
                    else:
                        self.ingest_payload(entry.label, entry.data)
                    if self.aborted:
                        break
        except ArchiveError as e:
            self._fail(label, e)
        except OSError as e:
            self._fail(label, ArchiveError(f"cannot read file: {e}"))

    def ingest_payload(self, label, data):
        """Decode, normalize and store one XML payload."""
        report_id = None
        try:
            feedback = decode(data)
            report_id = feedback.report_metadata.report_id
            if self.policy.debug:
                logger.debug("%s: %r", label, feedback)
            normalized = normalize(feedback)
            persist(normalized, self.connection)
        except IngestError as e:
            self._fail(label, e, report_id)
            return

        self.results.append(
            IngestResult(label, STATUS_STORED, report_id, len(normalized.items)))

    def _fail(self, label, error, report_id=None):
        if error.source is None:
            error.source = label
        logger.error("%s", error)
        self.results.append(IngestResult(label, STATUS_FAILED, report_id, error=error))
        if self.policy.is_fatal(error):
            logger.error("Aborting run after failure in %s", label)
            self.aborted = True
