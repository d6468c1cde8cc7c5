"""
Error taxonomy for the DMARC ingester.

Every error raised while ingesting a file derives from IngestError and
carries the identity of the file or archive entry it came from once the
pipeline has seen it.
"""


class IngestError(Exception):
    """Base class for ingestion failures."""

    def __init__(self, message, source=None):
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self):
        if self.source:
            return f"{self.source}: {self.message}"
        return self.message


class ConfigError(IngestError):
    """Database configuration is missing or unusable."""


class ArchiveError(IngestError):
    """A compressed container or one of its entries could not be read."""


class ParseError(IngestError):
    """A report could not be decoded into the domain model."""


class MalformedXmlError(ParseError):
    """The payload is not well-formed (or not safe) XML."""


class MissingFieldError(ParseError):
    def __init__(self, field, source=None):
        super().__init__(f"missing required field '{field}'", source)
        self.field = field


class InvalidEnumError(ParseError):
    def __init__(self, field, value, source=None):
        super().__init__(f"invalid value {value!r} for field '{field}'", source)
        self.field = field
        self.value = value


class InvalidRangeError(ParseError):
    def __init__(self, field, value, source=None):
        super().__init__(f"value {value!r} out of range for field '{field}'", source)
        self.field = field
        self.value = value


class InvalidTimestampError(ParseError):
    def __init__(self, field, value, source=None):
        super().__init__(f"invalid timestamp {value!r} for field '{field}'", source)
        self.field = field
        self.value = value


class CountOverflowError(ParseError):
    """A message count does not fit the storage integer column."""

    def __init__(self, field, value, source=None):
        super().__init__(f"value {value!r} for field '{field}' overflows storage integer", source)
        self.field = field
        self.value = value


class StorageError(IngestError):
    """
    Writing a report failed.

    The report's transaction has been rolled back, so none of its rows
    are stored. ``stage`` names the step that failed: 'header', 'item'
    or 'commit'. For an item failure ``item_index`` is the position of
    the failing item row and ``items_written`` counts the item rows
    inserted before it.
    """

    def __init__(self, message, report_id=None, stage=None, item_index=None,
                 items_written=0, items_total=0, source=None):
        super().__init__(message, source)
        self.report_id = report_id
        self.stage = stage
        self.item_index = item_index
        self.items_written = items_written
        self.items_total = items_total

    @property
    def failed_at_item(self):
        return self.item_index is not None
