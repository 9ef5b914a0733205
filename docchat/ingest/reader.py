"""Format dispatcher for document ingestion.

Readers are held in a :class:`ReaderRegistry`, an ordered table of
``format -> (MIME types, extensions, reader)``.  A file is routed by:

1. exact match of its declared MIME type, then
2. case-insensitive extension suffix match, in registration order.

The extension pass exists because browsers report unreliable MIME types
for legacy Office formats and CSV.  Generic types such as
``application/octet-stream`` go straight to the extension pass.

Default table
-------------
* **pdf**        -- ``.pdf``            via :class:`~.pdf_reader.PdfExtractor`
* **word**       -- ``.docx``, ``.doc``  via :func:`~.docx_reader.extract_word`
* **excel**      -- ``.xlsx``, ``.xls``  via :func:`~.excel_reader.extract_excel`
* **powerpoint** -- ``.pptx``, ``.ppt``  via :func:`~.pptx_reader.extract_powerpoint`
* **csv**        -- ``.csv``            via :func:`~.csv_reader.extract_csv`
* **text**       -- ``.txt``, ``.md``, ``.json`` via :func:`~.text_reader.extract_text`

Usage::

    from docchat.ingest.reader import parse_file

    text = parse_file(UploadCandidate.from_path("report.pdf"))
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from docchat.config.models import IngestConfig, UploadCandidate

from .csv_reader import extract_csv
from .docx_reader import extract_word
from .errors import UnsupportedFormat
from .excel_reader import extract_excel
from .pdf_reader import PdfExtractor
from .pptx_reader import extract_powerpoint
from .text_reader import extract_text

logger = logging.getLogger(__name__)

Reader = Callable[[bytes], str]

GENERIC_MIME_TYPES = frozenset({"", "application/octet-stream", "binary/octet-stream"})


@dataclass(frozen=True)
class ReaderEntry:
    format: str
    mime_types: Tuple[str, ...]
    extensions: Tuple[str, ...]
    reader: Reader


class ReaderRegistry:
    """Ordered capability table mapping MIME types and extensions to readers."""

    def __init__(self) -> None:
        self._entries: List[ReaderEntry] = []

    def register(
        self,
        format: str,
        reader: Reader,
        mime_types: Sequence[str] = (),
        extensions: Sequence[str] = (),
    ) -> ReaderEntry:
        """Append a reader; later entries lose ties to earlier ones."""
        if any(e.format == format for e in self._entries):
            raise ValueError(f"Format already registered: {format}")
        entry = ReaderEntry(
            format=format,
            mime_types=tuple(m.lower() for m in mime_types),
            extensions=tuple(e.lower() for e in extensions),
            reader=reader,
        )
        self._entries.append(entry)
        return entry

    @property
    def formats(self) -> List[str]:
        return [e.format for e in self._entries]

    def supported_extensions(self) -> List[str]:
        return [ext for e in self._entries for ext in e.extensions]

    def resolve(self, candidate: UploadCandidate) -> ReaderEntry:
        """Pick the reader for *candidate*.

        Raises
        ------
        UnsupportedFormat
            If neither the MIME type nor the extension matched.
        """
        mime_type = candidate.mime_type
        if mime_type not in GENERIC_MIME_TYPES:
            for entry in self._entries:
                if mime_type in entry.mime_types:
                    logger.debug("%s: matched %s by MIME type %s", candidate.name, entry.format, mime_type)
                    return entry

        name = candidate.name.lower()
        for entry in self._entries:
            if any(name.endswith(ext) for ext in entry.extensions):
                logger.debug("%s: matched %s by extension", candidate.name, entry.format)
                return entry

        raise UnsupportedFormat(candidate.name, mime_type)


def build_registry(config: Optional[IngestConfig] = None) -> ReaderRegistry:
    """Build the default reader table, wiring the PDF backends from *config*."""
    config = config or IngestConfig()
    pdf = PdfExtractor(config.pdf_backends)

    registry = ReaderRegistry()
    registry.register("pdf", pdf.extract, ["application/pdf"], [".pdf"])
    registry.register(
        "word",
        extract_word,
        [
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/msword",
        ],
        [".docx", ".doc"],
    )
    registry.register(
        "excel",
        extract_excel,
        [
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "application/vnd.ms-excel",
        ],
        [".xlsx", ".xls"],
    )
    registry.register(
        "powerpoint",
        extract_powerpoint,
        [
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
            "application/vnd.ms-powerpoint",
        ],
        [".pptx", ".ppt"],
    )
    registry.register("csv", extract_csv, ["text/csv"], [".csv"])
    registry.register(
        "text",
        extract_text,
        ["text/plain", "text/markdown", "application/json"],
        [".txt", ".md", ".json"],
    )
    return registry


_default_registry: Optional[ReaderRegistry] = None


def get_default_registry() -> ReaderRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = build_registry()
    return _default_registry


def parse_file(candidate: UploadCandidate, registry: Optional[ReaderRegistry] = None) -> str:
    """Extract plain text from one file.

    Raises
    ------
    UnsupportedFormat
        If no reader accepts the file.
    IngestError
        Any reader failure (``MalformedDocument``, ``ImageOnlyDocument``,
        ``NoExtractableText``).
    """
    entry = (registry or get_default_registry()).resolve(candidate)
    logger.info("Reading %s document: %s", entry.format.upper(), candidate.name)
    return entry.reader(candidate.content)
