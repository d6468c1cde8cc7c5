"""
Tests for the closed vocabularies of the data model.
"""

import pytest

from dmarc_ingest.errors import InvalidEnumError
from dmarc_ingest.models import (
    AlignmentType,
    DKIMResultType,
    DispositionType,
    DMARCResultType,
    PolicyOverrideType,
    SPFDomainScope,
    SPFResultType,
)


@pytest.mark.parametrize('vocabulary, values', [
    (AlignmentType, {'r', 's'}),
    (DispositionType, {'none', 'quarantine', 'reject'}),
    (DMARCResultType, {'pass', 'fail'}),
    (PolicyOverrideType, {'forwarded', 'sampled_out', 'trusted_forwarder',
                          'mailing_list', 'local_policy', 'other'}),
    (DKIMResultType, {'none', 'pass', 'fail', 'policy', 'neutral', 'temperror', 'permerror'}),
    (SPFResultType, {'none', 'neutral', 'pass', 'fail', 'softfail', 'temperror',
                     'permerror', 'unknown', 'error'}),
    (SPFDomainScope, {'helo', 'mfrom'}),
])
def test_vocabulary_members(vocabulary, values):
    assert {member.value for member in vocabulary} == values
    for value in values:
        assert vocabulary.parse('field', value).value == value


def test_parse_rejects_unknown_value():
    with pytest.raises(InvalidEnumError) as excinfo:
        DispositionType.parse('row.disposition', 'Reject')
    assert excinfo.value.field == 'row.disposition'
    assert excinfo.value.value == 'Reject'


def test_str_is_canonical_value():
    assert str(SPFResultType.SOFTFAIL) == 'softfail'
