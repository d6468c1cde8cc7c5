"""
Text Summary Generator for DMARC Ingest

This module renders a human-readable summary of what an ingest run
stored and what failed.
"""

from collections import Counter

from tabulate import tabulate

from dmarc_ingest.ingest import STATUS_FAILED, STATUS_STORED


def _shorten(text, width=60):
    return text[:width] + ('...' if len(text) > width else '')


def generate_summary(results, aborted=False):
    """
    Generate a summary of an ingest run.

    Args:
        results: List of IngestResult from the ingester
        aborted: Whether a fatal failure stopped the run early

    Returns:
        str: Formatted text summary
    """
    if not results:
        return "No DMARC report files were processed."

    report_lines = []

    report_lines.append("= DMARC Ingest Summary =")
    table = []
    for result in results:
        error = str(result.error.message) if result.error is not None else ''
        table.append([
            result.source,
            result.status,
            result.report_id or '',
            result.items if result.status == STATUS_STORED else '',
            _shorten(error),
        ])
    report_lines.append(tabulate(table,
                                 headers=["Source", "Status", "Report ID", "Items", "Error"],
                                 tablefmt="simple"))
    report_lines.append("")

    statuses = Counter(result.status for result in results)
    items = sum(result.items for result in results if result.status == STATUS_STORED)
    report_lines.append(f"Reports stored: {statuses[STATUS_STORED]} ({items} items)")
    report_lines.append(f"Failures: {statuses[STATUS_FAILED]}")
    if aborted:
        report_lines.append("Run aborted after a fatal error.")

    return "\n".join(report_lines)
