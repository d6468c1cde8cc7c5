"""
DMARC Report Data Model

Typed representation of an RFC 7489 aggregate report and the closed
vocabularies its enumerated fields are drawn from.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from dmarc_ingest.errors import InvalidEnumError


class Vocabulary(str, Enum):
    """Base for closed string vocabularies."""

    @classmethod
    def aliases(cls):
        return {}

    @classmethod
    def parse(cls, field_name, text):
        """
        Look up the member whose canonical string is ``text``.

        Args:
            field_name: Dotted name of the field being decoded, for errors
            text: Raw text content of the element

        Returns:
            The matching member

        Raises:
            InvalidEnumError: If ``text`` is not in the vocabulary
        """
        value = cls.aliases().get(text, text)
        for member in cls:
            if member.value == value:
                return member
        raise InvalidEnumError(field_name, text)

    def __str__(self):
        return self.value


class AlignmentType(Vocabulary):
    RELAXED = 'r'
    STRICT = 's'

    @classmethod
    def aliases(cls):
        return {'relaxed': 'r', 'strict': 's'}


class DispositionType(Vocabulary):
    NONE = 'none'
    QUARANTINE = 'quarantine'
    REJECT = 'reject'


class DMARCResultType(Vocabulary):
    PASS = 'pass'
    FAIL = 'fail'


class PolicyOverrideType(Vocabulary):
    FORWARDED = 'forwarded'
    SAMPLED_OUT = 'sampled_out'
    TRUSTED_FORWARDER = 'trusted_forwarder'
    MAILING_LIST = 'mailing_list'
    LOCAL_POLICY = 'local_policy'
    OTHER = 'other'


class DKIMResultType(Vocabulary):
    NONE = 'none'
    PASS = 'pass'
    FAIL = 'fail'
    POLICY = 'policy'
    NEUTRAL = 'neutral'
    TEMPERROR = 'temperror'
    PERMERROR = 'permerror'


class SPFResultType(Vocabulary):
    NONE = 'none'
    NEUTRAL = 'neutral'
    PASS = 'pass'
    FAIL = 'fail'
    SOFTFAIL = 'softfail'
    TEMPERROR = 'temperror'
    PERMERROR = 'permerror'
    UNKNOWN = 'unknown'
    ERROR = 'error'


class SPFDomainScope(Vocabulary):
    HELO = 'helo'
    MFROM = 'mfrom'


@dataclass(frozen=True)
class DateRange:
    begin: int  # seconds since epoch
    end: int


@dataclass(frozen=True)
class ReportMetadata:
    org_name: str
    email: str
    report_id: str
    date_range: DateRange
    extra_contact_info: str = ''


@dataclass(frozen=True)
class PolicyPublished:
    domain: str
    p: DispositionType
    pct: int
    # Optional alignment and subdomain policy are '' when absent
    adkim: str = ''
    aspf: str = ''
    sp: str = ''
    fo: str = ''


@dataclass(frozen=True)
class PolicyOverrideReason:
    type: PolicyOverrideType
    comment: Optional[str] = None


@dataclass(frozen=True)
class PolicyEvaluated:
    disposition: DispositionType
    dkim: DMARCResultType
    spf: DMARCResultType
    reason: Optional[PolicyOverrideReason] = None


@dataclass(frozen=True)
class Row:
    source_ip: str
    count: int
    policy_evaluated: PolicyEvaluated


@dataclass(frozen=True)
class Identifier:
    header_from: str
    envelope_to: str = ''
    envelope_from: str = ''


@dataclass(frozen=True)
class DKIMAuthResult:
    domain: str
    result: DKIMResultType
    selector: str = ''
    human_result: str = ''


@dataclass(frozen=True)
class SPFAuthResult:
    domain: str
    result: SPFResultType
    scope: Optional[SPFDomainScope] = None
    # Not part of RFC 7489 but sent by some reporters
    selector: str = ''


@dataclass(frozen=True)
class AuthResult:
    dkim: Tuple[DKIMAuthResult, ...] = ()
    spf: Tuple[SPFAuthResult, ...] = ()


@dataclass(frozen=True)
class Record:
    row: Row
    identifiers: Identifier
    auth_results: AuthResult


@dataclass(frozen=True)
class Feedback:
    """One decoded aggregate report."""

    report_metadata: ReportMetadata
    policy_published: PolicyPublished
    record: Tuple[Record, ...] = field(default_factory=tuple)
