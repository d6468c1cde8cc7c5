"""
DMARC Report Normalization

This module turns a decoded report into the flat, storage-ready values
written to the report and item tables.
"""

from dataclasses import dataclass
from typing import Tuple

from dmarc_ingest.errors import CountOverflowError
from dmarc_ingest.models import (
    DKIMResultType,
    DispositionType,
    DMARCResultType,
    SPFResultType,
)
from dmarc_ingest.utils.helpers import STORAGE_INT_MAX, epoch_to_iso

UNDEFINED_DOMAIN = '*undef*'
NO_REASON = '-'


@dataclass(frozen=True)
class NormalizedReport:
    report_id: str
    begin_date: str  # ISO-8601 UTC
    end_date: str
    domain: str
    org_name: str
    email: str
    policy_adkim: str
    policy_aspf: str
    policy_p: str
    policy_sp: str
    policy_pct: int


@dataclass(frozen=True)
class NormalizedItem:
    report_id: str
    ip: str
    count: int
    disposition: DispositionType
    dkim_domain: str
    dkim_result: DKIMResultType
    policy_dkim: DMARCResultType
    spf_domain: str
    spf_result: SPFResultType
    policy_spf: DMARCResultType
    reason: str
    header_from: str


@dataclass(frozen=True)
class NormalizedFeedback:
    report: NormalizedReport
    items: Tuple[NormalizedItem, ...]


def primary_dkim(auth_results):
    """
    Pick the DKIM result that represents a record.

    Only the first result is stored; later signatures are dropped.

    Returns:
        tuple: (domain, DKIMResultType)
    """
    if auth_results.dkim:
        first = auth_results.dkim[0]
        return first.domain, first.result
    return UNDEFINED_DOMAIN, DKIMResultType.NONE


def primary_spf(auth_results):
    """Same as primary_dkim() for SPF results."""
    if auth_results.spf:
        first = auth_results.spf[0]
        return first.domain, first.result
    return UNDEFINED_DOMAIN, SPFResultType.NONE


def reason_text(policy_evaluated):
    reason = policy_evaluated.reason
    if reason is not None and reason.comment is not None:
        return reason.comment
    return NO_REASON


def _normalize_item(report_id, index, record):
    row = record.row
    if row.count > STORAGE_INT_MAX:
        raise CountOverflowError(f"record[{index}].row.count", row.count)

    dkim_domain, dkim_result = primary_dkim(record.auth_results)
    spf_domain, spf_result = primary_spf(record.auth_results)
    evaluated = row.policy_evaluated

    return NormalizedItem(
        report_id=report_id,
        ip=row.source_ip,
        count=row.count,
        disposition=evaluated.disposition,
        dkim_domain=dkim_domain,
        dkim_result=dkim_result,
        policy_dkim=evaluated.dkim,
        spf_domain=spf_domain,
        spf_result=spf_result,
        policy_spf=evaluated.spf,
        reason=reason_text(evaluated),
        header_from=record.identifiers.header_from,
    )


def normalize(feedback):
    """
    Derive storage-ready values from a decoded report.

    Args:
        feedback: Feedback instance produced by the parser

    Returns:
        NormalizedFeedback: The header row and one item row per record

    Raises:
        CountOverflowError: If a record's count exceeds the storage integer
    """
    metadata = feedback.report_metadata
    policy = feedback.policy_published

    report = NormalizedReport(
        report_id=metadata.report_id,
        begin_date=epoch_to_iso(metadata.date_range.begin),
        end_date=epoch_to_iso(metadata.date_range.end),
        domain=policy.domain,
        org_name=metadata.org_name,
        email=metadata.email,
        policy_adkim=policy.adkim,
        policy_aspf=policy.aspf,
        policy_p=policy.p.value,
        policy_sp=policy.sp,
        policy_pct=policy.pct,
    )
    items = tuple(
        _normalize_item(metadata.report_id, index, record)
        for index, record in enumerate(feedback.record)
    )
    return NormalizedFeedback(report=report, items=items)
