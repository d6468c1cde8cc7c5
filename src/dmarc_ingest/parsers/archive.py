"""
Archive traversal for DMARC report files.

Reports arrive as plain XML, gzip-compressed XML, or zip archives that
bundle several (possibly gzip-compressed) XML entries. This module turns
any of them into a sequence of decompressed XML payloads.
"""

import gzip
import io
import logging
import zipfile
import zlib
from collections import namedtuple
from enum import Enum

from dmarc_ingest.errors import ArchiveError

logger = logging.getLogger(__name__)

GZIP_XML_SUFFIX = '.xml.gz'
XML_SUFFIX = '.xml'
ZIP_SUFFIX = '.zip'

# Errors raised by gzip/zipfile/zlib on corrupt or unsupported payloads
_DECOMPRESSION_ERRORS = (OSError, EOFError, zlib.error, zipfile.BadZipFile,
                         NotImplementedError, RuntimeError)


class SourceFormat(Enum):
    PLAIN_XML = 'plain-xml'
    GZIP_XML = 'gzip-xml'
    ZIP = 'zip'


class ArchiveEntry(namedtuple('ArchiveEntry', ['label', 'data', 'error'])):
    """
    One payload produced by traverse().

    Exactly one of ``data`` (decompressed XML bytes) and ``error``
    (an ArchiveError) is set.
    """

    __slots__ = ()

    @property
    def ok(self):
        return self.error is None


def format_for_path(path):
    """
    Work out how a report file is packaged from its name.

    Args:
        path: File name or path

    Returns:
        SourceFormat, or None if the file is not a report file
    """
    name = str(path).lower()
    if name.endswith(GZIP_XML_SUFFIX):
        return SourceFormat.GZIP_XML
    if name.endswith(XML_SUFFIX):
        return SourceFormat.PLAIN_XML
    if name.endswith(ZIP_SUFFIX):
        return SourceFormat.ZIP
    return None


def gunzip(payload, label):
    """Gunzip a payload, raising ArchiveError on a corrupt stream."""
    try:
        return gzip.decompress(payload)
    except _DECOMPRESSION_ERRORS as e:
        raise ArchiveError(f"corrupt gzip stream: {e}", source=label) from e


def _read_all(source):
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    return source.read()


def _traverse_zip(source, label):
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    try:
        archive = zipfile.ZipFile(source, 'r')
    except _DECOMPRESSION_ERRORS as e:
        raise ArchiveError(f"unreadable zip archive: {e}", source=label) from e

    with archive:
        # infolist() is in central directory (index) order
        for info in archive.infolist():
            entry_label = f"{label}:{info.filename}" if label else info.filename
            if info.is_dir():
                logger.debug("Skipping directory entry %s", entry_label)
                continue

            try:
                with archive.open(info) as f:
                    data = f.read()
                if info.filename.lower().endswith(GZIP_XML_SUFFIX):
                    data = gunzip(data, entry_label)
            except ArchiveError as e:
                yield ArchiveEntry(entry_label, None, e)
                continue
            except _DECOMPRESSION_ERRORS as e:
                error = ArchiveError(f"unreadable archive entry: {e}", source=entry_label)
                yield ArchiveEntry(entry_label, None, error)
                continue

            yield ArchiveEntry(entry_label, data, None)


def traverse(source, hint, label=None):
    """
    Yield the XML payloads contained in a report source.

    Args:
        source: Report content as bytes or a readable binary file object
        hint: SourceFormat describing how the content is packaged
        label: Name used to identify the source in entries and errors

    Yields:
        ArchiveEntry: One per XML payload; zip entries in archive index order.
            A failed zip entry is yielded with its error and traversal goes on.

    Raises:
        ArchiveError: If a gzip file or the zip container itself is unreadable
    """
    if hint is SourceFormat.ZIP:
        yield from _traverse_zip(source, label)
    elif hint is SourceFormat.GZIP_XML:
        yield ArchiveEntry(label, gunzip(_read_all(source), label), None)
    elif hint is SourceFormat.PLAIN_XML:
        yield ArchiveEntry(label, _read_all(source), None)
    else:
        raise ValueError(f"unknown source format: {hint!r}")
