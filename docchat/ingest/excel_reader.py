"""Excel workbook text extraction, one marked block per sheet.

Modern ``.xlsx`` workbooks are read with openpyxl (read-only, cached cell
values rather than formulas).  Legacy ``.xls`` files, recognised by their
OLE2 signature, are read with xlrd.

Each sheet is rendered as tab-separated cells, one row per line, under a
``--- Sheet N: <name> ---`` marker, in workbook order.
"""
from __future__ import annotations

import io
import logging
from typing import Any, Iterable, List, Sequence

from .base import DocumentContent, PageContent
from .errors import MalformedDocument

logger = logging.getLogger(__name__)

_OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def rows_to_tsv(rows: Iterable[Sequence[Any]]) -> str:
    """Render rows as tab/newline text, dropping trailing empty cells and rows."""
    lines: List[str] = []
    for row in rows:
        cells = [_cell_text(v) for v in row]
        while cells and not cells[-1]:
            cells.pop()
        lines.append("\t".join(cells))
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines)


def _read_xlsx(data: bytes) -> List[PageContent]:
    import openpyxl

    wb = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        return [
            PageContent(
                page_number=idx + 1,
                text=rows_to_tsv(ws.iter_rows(values_only=True)),
                title=ws.title,
                source_type="excel",
            )
            for idx, ws in enumerate(wb.worksheets)
        ]
    finally:
        wb.close()


def _xls_row(sheet, r: int, datemode: int) -> List[Any]:
    import xlrd

    values: List[Any] = []
    for c in range(sheet.ncols):
        ctype = sheet.cell_type(r, c)
        value = sheet.cell_value(r, c)
        # xlrd reports dates as serial floats and booleans as 0/1
        if ctype == xlrd.XL_CELL_DATE:
            value = xlrd.xldate_as_datetime(value, datemode)
        elif ctype == xlrd.XL_CELL_BOOLEAN:
            value = bool(value)
        values.append(value)
    return values


def _read_xls(data: bytes) -> List[PageContent]:
    import xlrd

    book = xlrd.open_workbook(file_contents=data)
    return [
        PageContent(
            page_number=idx + 1,
            text=rows_to_tsv(_xls_row(sheet, r, book.datemode) for r in range(sheet.nrows)),
            title=sheet.name,
            source_type="excel",
        )
        for idx, sheet in enumerate(book.sheets())
    ]


def extract_excel(data: bytes) -> str:
    """Extract sheet-marked text from an ``.xlsx`` or ``.xls`` byte stream.

    Raises
    ------
    MalformedDocument
        If the workbook cannot be decoded.
    """
    legacy = data[:8] == _OLE2_SIGNATURE
    try:
        sheets = _read_xls(data) if legacy else _read_xlsx(data)
    except Exception as exc:
        raise MalformedDocument(f"Failed to extract text from Excel: {exc}") from exc

    document = DocumentContent(file_type="excel", pages=sheets)
    logger.info(
        "Workbook parsed (%s): %d sheets, %d chars",
        "xls" if legacy else "xlsx", document.total_pages, document.text_char_count,
    )
    return document.full_text()
