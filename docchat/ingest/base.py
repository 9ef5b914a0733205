"""Base classes for document ingestion."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

EMPTY_PAGE_PLACEHOLDER = "[Empty page - possibly scanned image]"


@dataclass
class PageContent:
    """Content from a single page, sheet or slide."""
    page_number: int
    text: str
    title: str = ""  # sheet name for workbooks
    source_type: str = ""  # "pdf", "excel", "powerpoint"

    @property
    def has_content(self) -> bool:
        return bool(self.text and self.text.strip())

    @property
    def marker(self) -> str:
        """Boundary line that ties output text back to its source unit."""
        if self.source_type == "excel":
            return f"--- Sheet {self.page_number}: {self.title} ---"
        if self.source_type == "powerpoint":
            return f"--- Slide {self.page_number} ---"
        return f"--- Page {self.page_number} ---"


@dataclass
class DocumentContent:
    """Full extracted document content."""
    file_type: str
    pages: List[PageContent]
    metadata: dict = field(default_factory=dict)
    source_filename: str = ""

    @property
    def total_pages(self) -> int:
        return len(self.pages)

    @property
    def pages_with_content(self) -> int:
        return sum(1 for p in self.pages if p.has_content)

    @property
    def empty_pages(self) -> int:
        return self.total_pages - self.pages_with_content

    @property
    def text_char_count(self) -> int:
        """Total characters of extracted text (excluding markers)."""
        return sum(len(p.text) for p in self.pages if p.has_content)

    @property
    def is_image_only(self) -> bool:
        """True when pages exist but none of them yielded text."""
        return self.total_pages > 0 and self.pages_with_content == 0

    def full_text(self, empty_placeholder: Optional[str] = None) -> str:
        """Join every unit as ``marker\\ntext`` blocks separated by blank lines.

        Empty units keep their marker; *empty_placeholder*, when given, is
        written in place of the missing text.
        """
        blocks = []
        for p in self.pages:
            body = p.text if p.has_content else (empty_placeholder or "")
            blocks.append(f"{p.marker}\n{body}" if body else p.marker)
        return "\n\n".join(blocks).strip()
