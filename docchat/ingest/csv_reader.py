"""CSV text extraction.

Rows are rendered with ``" | "`` between fields.  The first row is the
header and is written as ``Headers: a | b`` followed by a blank line;
row order is preserved exactly.
"""
import csv
import io
import logging
from typing import List

from .errors import MalformedDocument

logger = logging.getLogger(__name__)


def parse_csv_rows(text: str) -> List[List[str]]:
    """Parse *text* into trimmed rows, skipping empty lines.

    Uses strict quoting so an unbalanced quote is an error rather than a
    silently swallowed remainder of the file.
    """
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    rows: List[List[str]] = []
    for row in reader:
        cells = [cell.strip() for cell in row]
        if any(cells):
            rows.append(cells)
    return rows


def extract_csv(data: bytes) -> str:
    """Extract header-labelled text from CSV bytes.

    Raises
    ------
    MalformedDocument
        On undecodable bytes or a CSV parse error.
    """
    try:
        text = data.decode("utf-8-sig")
        rows = parse_csv_rows(text)
    except (UnicodeDecodeError, csv.Error) as exc:
        raise MalformedDocument(f"Failed to extract text from CSV: {exc}") from exc

    lines = []
    for index, row in enumerate(rows):
        if index == 0:
            lines.append(f"Headers: {' | '.join(row)}\n")
        else:
            lines.append(" | ".join(row))

    logger.info("CSV parsed: %d rows", len(rows))
    return "\n".join(lines)
