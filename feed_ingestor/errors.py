"""Exception hierarchy for the feed ingestor.

Every failure below the CLI propagates as one of these; the run boundary in
``feed_ingestor.cli`` logs it and exits non-zero.
"""

from typing import Optional


class IngestError(Exception):
    """Base class for all ingestion failures."""


class ConfigError(IngestError):
    """Configuration file could not be read, parsed or validated."""


class FetchError(IngestError):
    """An upstream API request failed at the transport or HTTP level."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class DecodeError(IngestError):
    """An upstream response body did not have the expected shape."""


class FieldError(IngestError):
    """A field of a raw record could not be extracted."""

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        super().__init__(f"{field_name}: {message}")


class MissingFieldError(FieldError):
    """A required field is absent or null."""

    def __init__(self, field_name: str):
        super().__init__(field_name, "required field is missing or null")


class FieldTypeError(FieldError):
    """A field is present but has the wrong type."""


class StorageError(IngestError):
    """A database statement failed."""
