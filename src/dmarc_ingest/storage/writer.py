"""
Persistence of normalized DMARC reports.

A report is written as one row in ``report`` followed by one row per
record in ``item``, all inside a single transaction.
"""

import logging

from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError

from dmarc_ingest.errors import StorageError
from dmarc_ingest.storage.schema import item as item_table
from dmarc_ingest.storage.schema import report as report_table
from dmarc_ingest.utils.helpers import iso_to_datetime

logger = logging.getLogger(__name__)


def _report_values(report):
    return {
        'report_id': report.report_id,
        'begin_date': iso_to_datetime(report.begin_date),
        'end_date': iso_to_datetime(report.end_date),
        'domain': report.domain,
        'org_name': report.org_name,
        'email': report.email,
        'policy_adkim': report.policy_adkim,
        'policy_aspf': report.policy_aspf,
        'policy_p': report.policy_p,
        'policy_sp': report.policy_sp,
        'policy_pct': report.policy_pct,
    }


def _item_values(item):
    return {
        'report_id': item.report_id,
        'ip': item.ip,
        'count': item.count,
        'disposition': item.disposition,
        'dkim_domain': item.dkim_domain,
        'dkim_result': item.dkim_result,
        'policy_dkim': item.policy_dkim,
        'spf_domain': item.spf_domain,
        'spf_result': item.spf_result,
        'policy_spf': item.policy_spf,
        'reason': item.reason,
        'header_from': item.header_from,
    }


def _describe(stage, item_index, items_written, items_total):
    if stage == 'item':
        return f"item {item_index} ({items_written} of {items_total} items written)"
    if stage == 'commit':
        return "commit"
    return "report header"


def persist(normalized, connection):
    """
    Write one normalized report.

    The report is committed in its own transaction, so the connection
    must not already have one open; call ``commit()`` or ``rollback()``
    after any earlier reads on it.

    Args:
        normalized: NormalizedFeedback from the normalizer
        connection: Open SQLAlchemy Connection, reused across reports

    Raises:
        StorageError: If the connection is already in a transaction, or
            any insert or the commit fails. Nothing from this report is
            left committed; the error records how far the write got.
    """
    report = normalized.report
    if connection.in_transaction():
        raise StorageError(
            f"cannot store report {report.report_id!r}: connection already has a transaction open",
            report_id=report.report_id,
        )

    items_total = len(normalized.items)
    stage = 'header'
    item_index = None
    items_written = 0

    try:
        with connection.begin():
            connection.execute(insert(report_table).values(**_report_values(report)))
            stage = 'item'
            for item_index, item in enumerate(normalized.items):
                connection.execute(insert(item_table).values(**_item_values(item)))
                items_written += 1
            # Leaving the block commits
            stage = 'commit'
            item_index = None
    except SQLAlchemyError as e:
        where = _describe(stage, item_index, items_written, items_total)
        raise StorageError(
            f"failed to store report {report.report_id!r} at {where}: {e}",
            report_id=report.report_id,
            stage=stage,
            item_index=item_index,
            items_written=items_written,
            items_total=items_total,
        ) from e

    logger.info("Stored report %s with %d items", report.report_id, items_total)
