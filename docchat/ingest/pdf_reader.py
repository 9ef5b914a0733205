"""PDF text extraction with page markers preserved.

Backends are tried in the order given to :class:`PdfExtractor`:

  1. pdfplumber -- pdfminer based, handles most text PDFs
  2. PyPDF2     -- pure-python fallback for files pdfminer rejects

A backend that cannot decode the stream is skipped; a backend that decodes
it but finds no text on any page hands over to the next one as well, since
another decoder may map the fonts differently.  Only when every backend
has had its turn is the best result judged.

Each page's text runs are joined with single spaces and whitespace is
collapsed, so the output is one line of text per page under a
``--- Page N ---`` marker.
"""
from __future__ import annotations

import io
import logging
import re
from typing import Callable, Dict, List, Optional, Sequence

from .base import EMPTY_PAGE_PLACEHOLDER, DocumentContent, PageContent
from .errors import ImageOnlyDocument, MalformedDocument, NoExtractableText

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_page_text(runs: Sequence[str]) -> str:
    """Join text runs with single spaces and collapse whitespace."""
    joined = " ".join(r for r in runs if r and r.strip())
    return _WHITESPACE.sub(" ", joined).strip()


# ---------------------------------------------------------------------------
# pdfplumber
# ---------------------------------------------------------------------------

def _pdfplumber_page_runs(pdf_page, page_number: int) -> List[str]:
    """Text runs for one page: ``extract_text`` first, words as fallback."""
    try:
        text = pdf_page.extract_text() or ""
        if text.strip():
            return [text]
    except Exception as exc:
        logger.debug("pdfplumber: extract_text failed on page %d: %s", page_number, exc)

    try:
        words = pdf_page.extract_words(x_tolerance=3, y_tolerance=3) or []
        return [w["text"] for w in words]
    except Exception as exc:
        logger.debug("pdfplumber: extract_words failed on page %d: %s", page_number, exc)
    return []


def _read_with_pdfplumber(data: bytes) -> DocumentContent:
    import pdfplumber

    pages: List[PageContent] = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        metadata = {
            k: v for k, v in (pdf.metadata or {}).items()
            if isinstance(v, (str, int, float, bool))
        }
        for idx, pdf_page in enumerate(pdf.pages):
            page_number = idx + 1
            text = normalize_page_text(_pdfplumber_page_runs(pdf_page, page_number))
            pages.append(PageContent(page_number=page_number, text=text, source_type="pdf"))
    return DocumentContent(file_type="pdf", pages=pages, metadata=metadata)


# ---------------------------------------------------------------------------
# PyPDF2
# ---------------------------------------------------------------------------

def _read_with_pypdf2(data: bytes) -> DocumentContent:
    import PyPDF2

    reader = PyPDF2.PdfReader(io.BytesIO(data))
    metadata: dict = {}
    raw_meta = reader.metadata
    if raw_meta:
        for key in ("/Title", "/Author", "/Subject", "/Creator", "/Producer"):
            val = raw_meta.get(key)
            if val:
                metadata[key.lstrip("/")] = str(val)

    pages: List[PageContent] = []
    for idx, pdf_page in enumerate(reader.pages):
        page_number = idx + 1
        try:
            text = pdf_page.extract_text() or ""
        except Exception as exc:
            logger.warning("PyPDF2: failed to extract text from page %d: %s", page_number, exc)
            text = ""
        pages.append(
            PageContent(page_number=page_number, text=normalize_page_text([text]), source_type="pdf")
        )
    return DocumentContent(file_type="pdf", pages=pages, metadata=metadata)


BACKENDS: Dict[str, Callable[[bytes], DocumentContent]] = {
    "pdfplumber": _read_with_pdfplumber,
    "PyPDF2": _read_with_pypdf2,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class PdfExtractor:
    """Turn PDF bytes into page-marked plain text.

    Parameters
    ----------
    backends : sequence of str
        Names from :data:`BACKENDS`, tried in order.
    """

    def __init__(self, backends: Sequence[str] = ("pdfplumber", "PyPDF2")):
        unknown = [b for b in backends if b not in BACKENDS]
        if unknown:
            raise ValueError(
                f"Unknown PDF backend(s): {', '.join(unknown)}. "
                f"Available: {', '.join(BACKENDS)}"
            )
        if not backends:
            raise ValueError("At least one PDF backend is required")
        self.backends = tuple(backends)

    def read(self, data: bytes) -> DocumentContent:
        """Decode *data* into per-page content without judging the result.

        Raises
        ------
        MalformedDocument
            If no backend could decode the byte stream.
        """
        best: Optional[DocumentContent] = None
        backend_errors: List[str] = []

        for name in self.backends:
            try:
                result = BACKENDS[name](data)
            except Exception as exc:
                logger.warning("PDF extraction with %s failed: %s", name, exc)
                backend_errors.append(f"{name}: {exc}")
                continue

            logger.info(
                "%s: %d chars from %d/%d pages",
                name, result.text_char_count, result.pages_with_content, result.total_pages,
            )
            if best is None or result.text_char_count > best.text_char_count:
                best = result
            if result.pages_with_content > 0:
                break

        if best is None:
            detail = "; ".join(backend_errors) or "no backend produced a result"
            raise MalformedDocument(f"Failed to extract text from PDF: {detail}")
        return best

    def extract(self, data: bytes) -> str:
        """Return page-marked text for *data*.

        Raises
        ------
        MalformedDocument
            Corrupt or undecodable byte stream.
        ImageOnlyDocument
            Every page is empty; the document needs OCR.
        NoExtractableText
            Nothing remained after trimming.
        """
        document = self.read(data)
        logger.info(
            "PDF loaded: %d pages, %d empty, %d chars",
            document.total_pages, document.empty_pages, document.text_char_count,
        )

        if document.is_image_only:
            raise ImageOnlyDocument(
                "Failed to extract text from PDF: This PDF appears to be image-based (scanned). "
                "Text extraction requires OCR. "
                "Please use a text-based PDF."
            )
        if document.empty_pages:
            logger.warning(
                "%d of %d pages are empty. These may be scanned images requiring OCR.",
                document.empty_pages, document.total_pages,
            )

        text = document.full_text(empty_placeholder=EMPTY_PAGE_PLACEHOLDER)
        if not text:
            raise NoExtractableText(
                "Failed to extract text from PDF: No text content extracted from PDF. "
                "The file may be corrupted or image-based."
            )
        return text


def extract_pdf(data: bytes, backends: Sequence[str] = ("pdfplumber", "PyPDF2")) -> str:
    return PdfExtractor(backends).extract(data)
