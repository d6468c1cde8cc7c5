"""
Pytest configuration and fixtures for all tests.
"""

import io
import os
import sys
import zipfile

import pytest
from sqlalchemy import create_engine

# Add src to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from dmarc_ingest.storage.connection import create_schema  # noqa: E402


def record_xml(source_ip='192.0.2.1', count='3', disposition='none',
               policy_dkim='pass', policy_spf='pass', reason='',
               header_from='example.com', identifiers_extra='',
               dkim=None, spf=None):
    """Build one <record> element."""
    if dkim is None:
        dkim = [{'domain': 'example.com', 'result': 'pass'}]
    if spf is None:
        spf = [{'domain': 'example.com', 'result': 'pass'}]

    auth = ''.join(
        '<dkim>' + ''.join(f'<{k}>{v}</{k}>' for k, v in entry.items()) + '</dkim>'
        for entry in dkim
    )
    auth += ''.join(
        '<spf>' + ''.join(f'<{k}>{v}</{k}>' for k, v in entry.items()) + '</spf>'
        for entry in spf
    )
    return f"""
  <record>
    <row>
      <source_ip>{source_ip}</source_ip>
      <count>{count}</count>
      <policy_evaluated>
        <disposition>{disposition}</disposition>
        <dkim>{policy_dkim}</dkim>
        <spf>{policy_spf}</spf>
        {reason}
      </policy_evaluated>
    </row>
    <identifiers>
      <header_from>{header_from}</header_from>
      {identifiers_extra}
    </identifiers>
    <auth_results>{auth}</auth_results>
  </record>"""


def report_xml(report_id='R1', org_name='acme', email='noreply@acme.example',
               begin='1609459200', end='1609545599', domain='example.com',
               p='none', pct='100', policy_extra='<adkim>r</adkim><aspf>s</aspf><sp>reject</sp><fo>1</fo>',
               metadata_extra='', records=None):
    """Build a complete aggregate report as bytes."""
    if records is None:
        records = [record_xml()]
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<feedback>
  <report_metadata>
    <org_name>{org_name}</org_name>
    <email>{email}</email>
    {metadata_extra}
    <report_id>{report_id}</report_id>
    <date_range>
      <begin>{begin}</begin>
      <end>{end}</end>
    </date_range>
  </report_metadata>
  <policy_published>
    <domain>{domain}</domain>
    {policy_extra}
    <p>{p}</p>
    <pct>{pct}</pct>
  </policy_published>
  {''.join(records)}
</feedback>
""".encode('utf-8')


def zip_bytes(entries, compression=zipfile.ZIP_DEFLATED):
    """Build a zip archive from (name, bytes) pairs, in order."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, 'w', compression) as archive:
        for name, data in entries:
            archive.writestr(name, data)
    return buf.getvalue()


def corrupt_zip_entry(data, name):
    """
    Flip the first payload bytes of a stored (uncompressed) entry so that
    reading it fails its CRC check.
    """
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        info = archive.getinfo(name)
    # Local header is 30 bytes plus the name; writestr() adds no extra field
    payload_start = info.header_offset + 30 + len(info.filename.encode())
    corrupted = bytearray(data)
    for offset in range(payload_start, payload_start + 8):
        corrupted[offset] ^= 0xFF
    return bytes(corrupted)


@pytest.fixture
def engine():
    engine = create_engine('sqlite://')
    yield engine
    engine.dispose()


@pytest.fixture
def connection(engine):
    with engine.connect() as connection:
        create_schema(connection)
        yield connection
