"""PowerPoint text extraction with slide markers preserved.

Uses python-pptx to iterate over slides and extract text from every shape
that carries a text frame (titles, body placeholders, free text boxes,
grouped shapes), table rows, and speaker notes.
"""
import io
import logging
from typing import List

from .base import DocumentContent, PageContent
from .errors import MalformedDocument, NoExtractableText

logger = logging.getLogger(__name__)


def _table_rows_from_shape(shape) -> List[str]:
    rows: List[str] = []
    try:
        for row in shape.table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                rows.append(" | ".join(cells))
    except Exception as exc:
        logger.warning("Failed to extract table from shape: %s", exc)
    return rows


def _collect_texts_from_shape(shape) -> List[str]:
    """Recursively collect text fragments from a shape (including groups)."""
    from pptx.enum.shapes import MSO_SHAPE_TYPE

    if shape.shape_type == MSO_SHAPE_TYPE.GROUP:
        texts: List[str] = []
        for child_shape in shape.shapes:
            texts.extend(_collect_texts_from_shape(child_shape))
        return texts

    if getattr(shape, "has_table", False) and shape.has_table:
        return _table_rows_from_shape(shape)

    if shape.has_text_frame:
        return [
            p.text.strip() for p in shape.text_frame.paragraphs if p.text.strip()
        ]
    return []


def extract_powerpoint(data: bytes) -> str:
    """Extract slide-marked text from a ``.pptx`` byte stream.

    Raises
    ------
    MalformedDocument
        If the file cannot be opened (legacy ``.ppt`` included).
    NoExtractableText
        If no slide has any text.
    """
    from pptx import Presentation

    try:
        prs = Presentation(io.BytesIO(data))
    except Exception as exc:
        raise MalformedDocument(
            f"Failed to extract text from PowerPoint: {exc}"
        ) from exc

    pages: List[PageContent] = []
    for slide_idx, slide in enumerate(prs.slides):
        slide_texts: List[str] = []
        for shape in slide.shapes:
            slide_texts.extend(_collect_texts_from_shape(shape))

        if slide.has_notes_slide:
            notes_frame = slide.notes_slide.notes_text_frame
            notes_text = notes_frame.text.strip() if notes_frame is not None else ""
            if notes_text:
                slide_texts.append(f"[Speaker Notes]\n{notes_text}")

        pages.append(
            PageContent(
                page_number=slide_idx + 1,
                text="\n".join(slide_texts),
                source_type="powerpoint",
            )
        )

    document = DocumentContent(file_type="powerpoint", pages=pages)
    logger.info(
        "PowerPoint parsed: %d slides, %d with text, %d chars",
        document.total_pages, document.pages_with_content, document.text_char_count,
    )
    if document.pages_with_content == 0:
        raise NoExtractableText("No text content found in PowerPoint presentation.")
    return document.full_text()
