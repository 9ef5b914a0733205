"""Word document text extraction.

Uses python-docx to walk the document body in order, so paragraphs and
tables come out interleaved exactly as they appear.  Styling is dropped;
table rows are rendered as ``" | "``-joined cells.

Legacy binary ``.doc`` files are OLE2 containers that python-docx cannot
open; they are reported as malformed with a hint to re-save as ``.docx``.
"""
import io
import logging
import zipfile
from typing import List

from .errors import MalformedDocument

logger = logging.getLogger(__name__)

_OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def _extract_table_rows(table) -> List[str]:
    """Render a python-docx Table as one line per row."""
    rows: List[str] = []
    try:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                rows.append(" | ".join(cells))
    except Exception as exc:
        # Merged or malformed cells: keep the rest of the document.
        logger.warning("Failed to extract table: %s", exc)
    return rows


def extract_word(data: bytes) -> str:
    """Extract raw text from a ``.docx`` byte stream.

    Raises
    ------
    MalformedDocument
        If the bytes are a legacy ``.doc`` or cannot be opened.
    """
    if data[:8] == _OLE2_SIGNATURE:
        raise MalformedDocument(
            "Failed to extract text from Word document: legacy binary .doc "
            "files are not supported, please save the file as .docx"
        )
    if not zipfile.is_zipfile(io.BytesIO(data)):
        raise MalformedDocument(
            "Failed to extract text from Word document: not a valid .docx archive"
        )

    import docx

    try:
        doc = docx.Document(io.BytesIO(data))
    except Exception as exc:
        raise MalformedDocument(
            f"Failed to extract text from Word document: {exc}"
        ) from exc

    # ------------------------------------------------------------------
    # Walk the body in order.  python-docx exposes paragraphs and tables
    # as separate lists; the XML children give their interleaving.
    # ------------------------------------------------------------------
    all_paragraphs = doc.paragraphs
    all_tables = doc.tables
    para_index = 0
    table_index = 0
    lines: List[str] = []

    for child in doc.element.body:
        tag = child.tag.split("}")[-1] if "}" in child.tag else child.tag

        if tag == "p":
            if para_index < len(all_paragraphs):
                lines.append(all_paragraphs[para_index].text or "")
            para_index += 1
        elif tag == "tbl":
            if table_index < len(all_tables):
                lines.extend(_extract_table_rows(all_tables[table_index]))
            table_index += 1

    text = "\n".join(lines).strip()
    logger.info(
        "Word document parsed: %d paragraphs, %d tables, %d chars",
        para_index, table_index, len(text),
    )
    if not text:
        logger.warning("Word document contains no text")
    return text
