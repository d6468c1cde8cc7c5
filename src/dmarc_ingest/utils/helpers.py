"""
Utility functions for the DMARC ingester.
"""

from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Upper bound of the signed 32-bit INTEGER columns
STORAGE_INT_MAX = 2 ** 31 - 1


def epoch_to_datetime(seconds):
    """Convert epoch seconds to an aware UTC datetime."""
    # Adding a timedelta also covers dates before 1970 on every platform
    return EPOCH + timedelta(seconds=seconds)


def epoch_to_iso(seconds):
    """Convert epoch seconds to a 'YYYY-MM-DDTHH:MM:SSZ' UTC string."""
    dt = epoch_to_datetime(seconds).replace(tzinfo=None)
    return dt.isoformat(timespec='seconds') + 'Z'


def iso_to_datetime(text):
    """Parse a string produced by epoch_to_iso() back into an aware datetime."""
    return datetime.fromisoformat(text.rstrip('Z')).replace(tzinfo=timezone.utc)
