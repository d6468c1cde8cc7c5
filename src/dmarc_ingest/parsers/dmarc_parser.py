"""
DMARC Report Parser

This module decodes DMARC aggregate XML reports (RFC 7489, appendix C)
into the typed model in dmarc_ingest.models, enforcing required fields
and the closed vocabularies of the enumerated elements.
"""

import logging
import re
import xml.etree.ElementTree as ET_stdlib  # Keep for ParseError

from defusedxml import ElementTree as ET
from defusedxml.common import DefusedXmlException

from dmarc_ingest.errors import (
    InvalidRangeError,
    InvalidTimestampError,
    MalformedXmlError,
    MissingFieldError,
)
from dmarc_ingest.models import (
    AlignmentType,
    AuthResult,
    DateRange,
    DKIMAuthResult,
    DKIMResultType,
    DispositionType,
    DMARCResultType,
    Feedback,
    Identifier,
    PolicyEvaluated,
    PolicyOverrideReason,
    PolicyOverrideType,
    PolicyPublished,
    Record,
    ReportMetadata,
    Row,
    SPFAuthResult,
    SPFDomainScope,
    SPFResultType,
)

logger = logging.getLogger(__name__)

# Range of epoch seconds that map onto a calendar date (years 1..9999)
MIN_EPOCH = -62135596800
MAX_EPOCH = 253402300799

# Plain ASCII decimal integers only
_DECIMAL = re.compile(r'[+-]?[0-9]+')


def _local_name(tag):
    """Strip any '{namespace}' prefix from an element tag."""
    if not isinstance(tag, str):
        return None
    return tag.rsplit('}', 1)[-1]


def _children(elem, name):
    return [child for child in elem if _local_name(child.tag) == name]


def _child(elem, name):
    for child in elem:
        if _local_name(child.tag) == name:
            return child
    return None


def _text(elem):
    return (elem.text or '').strip()


def _required(elem, name, path):
    child = _child(elem, name)
    if child is None:
        raise MissingFieldError(f"{path}.{name}" if path else name)
    return child


def _required_text(elem, name, path):
    return _text(_required(elem, name, path))


def _optional_text(elem, name, default=''):
    child = _child(elem, name)
    if child is None:
        return default
    return _text(child)


def _required_enum(vocabulary, elem, name, path):
    return vocabulary.parse(f"{path}.{name}", _required_text(elem, name, path))


def _optional_enum(vocabulary, elem, name, path):
    child = _child(elem, name)
    if child is None:
        return None
    return vocabulary.parse(f"{path}.{name}", _text(child))


def _optional_enum_text(vocabulary, elem, name, path):
    """Validate an optional enumerated field but keep it as its canonical text."""
    member = _optional_enum(vocabulary, elem, name, path)
    return member.value if member is not None else ''


def _parse_int(text):
    # int() alone would also take '1_0' and non-ASCII digits
    if not _DECIMAL.fullmatch(text):
        return None
    return int(text)


def _parse_timestamp(elem, name, path):
    text = _required_text(elem, name, path)
    value = _parse_int(text)
    if value is None or not MIN_EPOCH <= value <= MAX_EPOCH:
        raise InvalidTimestampError(f"{path}.{name}", text)
    return value


def _parse_report_metadata(elem):
    path = 'report_metadata'
    date_range_elem = _required(elem, 'date_range', path)
    date_path = f"{path}.date_range"
    begin = _parse_timestamp(date_range_elem, 'begin', date_path)
    end = _parse_timestamp(date_range_elem, 'end', date_path)
    if begin > end:
        raise InvalidTimestampError(f"{date_path}.begin", f"{begin} > {end}")

    return ReportMetadata(
        org_name=_required_text(elem, 'org_name', path),
        email=_required_text(elem, 'email', path),
        report_id=_required_text(elem, 'report_id', path),
        extra_contact_info=_optional_text(elem, 'extra_contact_info'),
        date_range=DateRange(begin=begin, end=end),
    )


def _parse_policy_published(elem):
    path = 'policy_published'
    pct_text = _required_text(elem, 'pct', path)
    pct = _parse_int(pct_text)
    if pct is None or not 0 <= pct <= 100:
        raise InvalidRangeError(f"{path}.pct", pct_text)

    return PolicyPublished(
        domain=_required_text(elem, 'domain', path),
        adkim=_optional_enum_text(AlignmentType, elem, 'adkim', path),
        aspf=_optional_enum_text(AlignmentType, elem, 'aspf', path),
        p=_required_enum(DispositionType, elem, 'p', path),
        sp=_optional_enum_text(DispositionType, elem, 'sp', path),
        pct=pct,
        fo=_optional_text(elem, 'fo'),
    )


def _parse_policy_evaluated(elem, path):
    reason = None
    reasons = _children(elem, 'reason')
    if reasons:
        # Only the first override reason is kept
        reason_path = f"{path}.reason"
        comment = _child(reasons[0], 'comment')
        reason = PolicyOverrideReason(
            type=_required_enum(PolicyOverrideType, reasons[0], 'type', reason_path),
            comment=_text(comment) if comment is not None else None,
        )

    return PolicyEvaluated(
        disposition=_required_enum(DispositionType, elem, 'disposition', path),
        dkim=_required_enum(DMARCResultType, elem, 'dkim', path),
        spf=_required_enum(DMARCResultType, elem, 'spf', path),
        reason=reason,
    )


def _parse_row(elem, path):
    count_text = _required_text(elem, 'count', path)
    count = _parse_int(count_text)
    if count is None or count < 0:
        raise InvalidRangeError(f"{path}.count", count_text)

    return Row(
        source_ip=_required_text(elem, 'source_ip', path),
        count=count,
        policy_evaluated=_parse_policy_evaluated(
            _required(elem, 'policy_evaluated', path), f"{path}.policy_evaluated"),
    )


def _parse_identifiers(elem, path):
    return Identifier(
        header_from=_required_text(elem, 'header_from', path),
        envelope_to=_optional_text(elem, 'envelope_to'),
        envelope_from=_optional_text(elem, 'envelope_from'),
    )


def _parse_auth_results(elem, path):
    dkim_path = f"{path}.dkim"
    dkim = tuple(
        DKIMAuthResult(
            domain=_required_text(dkim_elem, 'domain', dkim_path),
            selector=_optional_text(dkim_elem, 'selector'),
            result=_required_enum(DKIMResultType, dkim_elem, 'result', dkim_path),
            human_result=_optional_text(dkim_elem, 'human_result'),
        )
        for dkim_elem in _children(elem, 'dkim')
    )

    spf_path = f"{path}.spf"
    spf = tuple(
        SPFAuthResult(
            domain=_required_text(spf_elem, 'domain', spf_path),
            scope=_optional_enum(SPFDomainScope, spf_elem, 'scope', spf_path),
            result=_required_enum(SPFResultType, spf_elem, 'result', spf_path),
            selector=_optional_text(spf_elem, 'selector'),
        )
        for spf_elem in _children(elem, 'spf')
    )

    return AuthResult(dkim=dkim, spf=spf)


def _parse_record(elem, index):
    path = f"record[{index}]"
    return Record(
        row=_parse_row(_required(elem, 'row', path), f"{path}.row"),
        identifiers=_parse_identifiers(
            _required(elem, 'identifiers', path), f"{path}.identifiers"),
        auth_results=_parse_auth_results(
            _required(elem, 'auth_results', path), f"{path}.auth_results"),
    )


def decode(data):
    """
    Decode one DMARC aggregate report.

    Args:
        data: XML document as bytes (or str)

    Returns:
        Feedback: The decoded report

    Raises:
        ParseError: If the document is malformed, lacks a required field,
            or carries a value outside its vocabulary or range
    """
    try:
        root = ET.fromstring(data)
    except (ET_stdlib.ParseError, DefusedXmlException) as e:
        raise MalformedXmlError(f"error parsing XML: {e}") from e

    if _local_name(root.tag) != 'feedback':
        raise MissingFieldError('feedback')

    feedback = Feedback(
        report_metadata=_parse_report_metadata(_required(root, 'report_metadata', '')),
        policy_published=_parse_policy_published(_required(root, 'policy_published', '')),
        record=tuple(_parse_record(record_elem, index)
                     for index, record_elem in enumerate(_children(root, 'record'))),
    )
    logger.debug("Decoded report %s with %d records",
                 feedback.report_metadata.report_id, len(feedback.record))
    return feedback
