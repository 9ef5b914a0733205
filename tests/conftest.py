"""Shared fixtures for the Document Chat test suite.

Provides in-memory document builders (PDF, Word, Excel, PowerPoint) and
upload-candidate helpers so reader tests never depend on files checked
into the repository.
"""

import datetime
import io
from typing import List

import pytest
import openpyxl

from docchat.config.models import IngestConfig, UploadCandidate


# ---------------------------------------------------------------------------
# Minimal PDF writer
# ---------------------------------------------------------------------------

def build_pdf(page_texts: List[str]) -> bytes:
    """Build a valid PDF with one Helvetica text line per page.

    An empty string produces a page with an empty content stream, which
    is how a scanned page looks to a text extractor.  Object offsets in
    the xref table are computed exactly so strict parsers accept it.
    """
    n = len(page_texts)
    page_ids = [4 + 2 * i for i in range(n)]
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {n} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for pid, text in zip(page_ids, page_texts):
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {pid + 1} 0 R >>"
            ).encode()
        )
        stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode() if text else b""
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for num, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % num + body + b"\nendobj\n"

    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for off in offsets:
        out += b"%010d 00000 n \n" % off
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        len(objects) + 1,
        xref_at,
    )
    return bytes(out)


@pytest.fixture
def make_pdf():
    """Return the :func:`build_pdf` factory."""
    return build_pdf


# ---------------------------------------------------------------------------
# Office document fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def xlsx_bytes():
    """Two-sheet workbook: Sales (header + 2 rows) and Costs (1 row)."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Sales"
    ws.append(["Region", "Amount"])
    ws.append(["East", 100])
    ws.append(["West", 2.5])

    ws2 = wb.create_sheet(title="Costs")
    ws2.append(["Rent", 1200])

    buf = io.BytesIO()
    wb.save(buf)
    wb.close()
    return buf.getvalue()


@pytest.fixture
def xls_bytes():
    """Legacy BIFF workbook: Sales (a date row) and Costs (number + boolean)."""
    import xlwt

    wb = xlwt.Workbook()
    ws = wb.add_sheet("Sales")
    ws.write(0, 0, "Day")
    ws.write(0, 1, "Amount")
    ws.write(1, 0, datetime.date(2024, 3, 5), xlwt.easyxf(num_format_str="YYYY-MM-DD"))
    ws.write(1, 1, 100)

    ws2 = wb.add_sheet("Costs")
    ws2.write(0, 0, "Rent")
    ws2.write(0, 1, 12.5)
    ws2.write(1, 0, "Paid")
    ws2.write(1, 1, True)

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def docx_bytes():
    """Word document: paragraph, 2x2 table, paragraph."""
    import docx

    doc = docx.Document()
    doc.add_paragraph("Quarterly summary")
    table = doc.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Metric"
    table.cell(0, 1).text = "Value"
    table.cell(1, 0).text = "Revenue"
    table.cell(1, 1).text = "42"
    doc.add_paragraph("End of report")

    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def pptx_bytes():
    """Two slides: a titled slide with notes, then a blank slide."""
    from pptx import Presentation

    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[1])
    slide.shapes.title.text = "Q1 Review"
    slide.placeholders[1].text = "Revenue grew 10%"
    slide.notes_slide.notes_text_frame.text = "Mention the new region"

    prs.slides.add_slide(prs.slide_layouts[6])

    buf = io.BytesIO()
    prs.save(buf)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Candidates / config
# ---------------------------------------------------------------------------

@pytest.fixture
def candidate():
    """Factory: ``candidate(name, content, mime="")`` -> UploadCandidate."""

    def _make(name: str, content: bytes = b"", mime: str = "", size: int = 0) -> UploadCandidate:
        return UploadCandidate(
            name=name,
            declared_mime_type=mime,
            size_bytes=size or len(content),
            content=content,
        )

    return _make


@pytest.fixture
def default_config():
    return IngestConfig()
