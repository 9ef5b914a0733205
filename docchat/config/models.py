"""
Document Chat - Ingestion Configuration and Data Models
========================================================

Defines the Pydantic v2 models used across the ingestion pipeline:

  Config   : IngestConfig
  Input    : UploadCandidate
  Validate : ValidationResult
  Extract  : ParseOutcome

Convention
----------
- Models that only carry derived results (``ValidationResult``,
  ``ParseOutcome``) are frozen.
- ``UploadCandidate.content`` is excluded from ``repr`` so log lines never
  dump file bytes.
"""

from __future__ import annotations

import mimetypes
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# ============================================================
# Allow-list
# ============================================================

MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_PREVIEW_LENGTH = 500

ALLOWED_FILE_TYPES: Dict[str, List[str]] = {
    # PDF
    "application/pdf": [".pdf"],
    # Text
    "text/plain": [".txt"],
    "text/markdown": [".md"],
    "text/csv": [".csv"],
    # Microsoft Word
    "application/msword": [".doc"],
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": [".docx"],
    # Microsoft Excel
    "application/vnd.ms-excel": [".xls"],
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": [".xlsx"],
    # Microsoft PowerPoint
    "application/vnd.ms-powerpoint": [".ppt"],
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": [".pptx"],
}


# ============================================================
# 1.  IngestConfig
# ============================================================


class IngestConfig(BaseModel):
    """Upload constraints and extraction settings.

    Attributes:
        max_file_size_bytes: Per-file size ceiling enforced by the validator.
        preview_length:      Characters kept by the content preview.
        allowed_types:       MIME type -> accepted extensions.
        pdf_backends:        PDF libraries to try, in order.
        max_workers:         Batch worker count; 1 keeps extraction sequential.
    """

    max_file_size_bytes: int = Field(default=MAX_FILE_SIZE, gt=0)
    preview_length: int = Field(default=DEFAULT_PREVIEW_LENGTH, gt=0)
    allowed_types: Dict[str, List[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in ALLOWED_FILE_TYPES.items()},
    )
    pdf_backends: Tuple[str, ...] = Field(default=("pdfplumber", "PyPDF2"))
    max_workers: int = Field(default=1, ge=1)

    # -- validators ----------------------------------------------------------

    @field_validator("allowed_types", mode="after")
    @classmethod
    def _normalise_allow_list(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        out: Dict[str, List[str]] = {}
        for mime, exts in v.items():
            out[mime.lower()] = [
                e.lower() if e.startswith(".") else f".{e.lower()}" for e in exts
            ]
        return out

    @model_validator(mode="after")
    def _ensure_pdf_backend(self) -> "IngestConfig":
        if not self.pdf_backends:
            raise ValueError("At least one PDF backend must be configured.")
        return self

    # -- helpers -------------------------------------------------------------

    @property
    def allowed_extensions(self) -> List[str]:
        """Flattened, order-preserved list of accepted extensions."""
        seen: set[str] = set()
        out: list[str] = []
        for exts in self.allowed_types.values():
            for ext in exts:
                if ext not in seen:
                    seen.add(ext)
                    out.append(ext)
        return out

    @classmethod
    def from_env(cls) -> "IngestConfig":
        """Build a config, overriding defaults from ``INGEST_*`` env vars."""
        data: dict = {}
        size_mb = os.environ.get("INGEST_MAX_FILE_SIZE_MB")
        if size_mb:
            data["max_file_size_bytes"] = int(float(size_mb) * 1024 * 1024)
        preview = os.environ.get("INGEST_PREVIEW_LENGTH")
        if preview:
            data["preview_length"] = int(preview)
        workers = os.environ.get("INGEST_MAX_WORKERS")
        if workers:
            data["max_workers"] = int(workers)
        return cls(**data)


# ============================================================
# 2.  UploadCandidate
# ============================================================


class UploadCandidate(BaseModel):
    """An in-memory file handle collected from a picker, form or path.

    Attributes:
        name:               Original file name (used for extension fallback).
        declared_mime_type: MIME type reported by the client; may be empty.
        size_bytes:         Declared size, checked by the validator.
        content:            Raw bytes handed to the reader.
    """

    name: str
    declared_mime_type: str = ""
    size_bytes: int = Field(default=0, ge=0)
    content: bytes = Field(default=b"", repr=False)

    @model_validator(mode="after")
    def _default_size(self) -> "UploadCandidate":
        if self.size_bytes == 0 and self.content:
            self.size_bytes = len(self.content)
        return self

    @property
    def extension(self) -> str:
        """Lower-case suffix including the dot, or ``""``."""
        return Path(self.name).suffix.lower()

    @property
    def mime_type(self) -> str:
        return (self.declared_mime_type or "").strip().lower()

    @classmethod
    def from_path(cls, file_path: str, mime_type: Optional[str] = None) -> "UploadCandidate":
        """Read *file_path* from disk into a candidate."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        if not path.is_file():
            raise ValueError(f"Path is not a file: {file_path}")
        content = path.read_bytes()
        if mime_type is None:
            mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            declared_mime_type=mime_type or "",
            size_bytes=len(content),
            content=content,
        )


# ============================================================
# 3.  ValidationResult
# ============================================================


class ValidationResult(BaseModel):
    """Aggregated pre-upload validation for a batch.

    ``errors`` holds one ``"<filename>: <reason>"`` message per failing
    file, in input order.
    """

    model_config = ConfigDict(frozen=True)

    valid: bool = True
    errors: List[str] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(valid=not errors, errors=list(errors))


# ============================================================
# 4.  ParseOutcome
# ============================================================

ERROR_SENTINEL_PREFIX = "[Error parsing "


class ParseOutcome(BaseModel):
    """Tagged per-file result of a batch extraction.

    Attributes:
        file_name:     Name of the input file.
        ok:            True when ``text`` holds the extracted content.
        text:          Extracted plain text (success only).
        format:        Reader that handled the file, when one was found.
        error_kind:    Taxonomy name of the failure (failure only).
        error_message: Human-readable failure reason (failure only).
    """

    model_config = ConfigDict(frozen=True)

    file_name: str
    ok: bool
    text: Optional[str] = None
    format: Optional[str] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    def render(self) -> str:
        """Return the text, or the inline error sentinel on failure."""
        if self.ok:
            return self.text or ""
        return f"{ERROR_SENTINEL_PREFIX}{self.file_name}: {self.error_message or 'Unknown error'}]"
