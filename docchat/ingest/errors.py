"""Exception taxonomy for document ingestion.

Validation errors (:class:`InvalidType`, :class:`OversizeFile`) are
collected by the validator into a ``ValidationResult``; extraction errors
are raised by readers and caught per file by the batch orchestrator.
"""
from __future__ import annotations

from typing import Optional


class IngestError(Exception):
    """Base class for every ingestion failure.

    ``kind`` is a stable, machine-readable name used in API payloads and
    tagged batch results.
    """

    kind = "IngestError"

    def __init__(self, message: str, file_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.file_name = file_name


class UnsupportedFormat(IngestError):
    """Neither the declared MIME type nor the extension matched a reader."""

    kind = "UnsupportedFormat"

    def __init__(self, file_name: str, mime_type: str = ""):
        super().__init__(
            f"Unsupported file type: {mime_type or 'unknown'} ({file_name})",
            file_name=file_name,
        )
        self.mime_type = mime_type


class MalformedDocument(IngestError):
    """The underlying decoder could not parse the byte stream."""

    kind = "MalformedDocument"


class ImageOnlyDocument(IngestError):
    """Every page of a PDF is empty -- the document needs OCR."""

    kind = "ImageOnlyDocument"


class NoExtractableText(IngestError):
    """Extraction finished but produced nothing."""

    kind = "NoExtractableText"


class InvalidType(IngestError):
    kind = "InvalidType"


class OversizeFile(IngestError):
    kind = "OversizeFile"
