"""Document upload and parse schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


StorageType = Literal["knowledge_base", "chat_session"]


class ParsedFile(BaseModel):
    """One file's extraction result."""

    file_name: str
    ok: bool
    format: Optional[str] = None
    chars: int = 0
    preview: str = ""
    error_kind: Optional[str] = None
    error_message: Optional[str] = None


class ParseResponse(BaseModel):
    """Response for a batch parse."""

    files: List[ParsedFile] = Field(default_factory=list)
    file_contents: List[str] = Field(
        default_factory=list,
        description="One string per file: text or '[Error parsing <name>: <msg>]'.",
    )
    total: int = 0
    failed: int = 0
    message: Optional[str] = None


class DocumentResponse(BaseModel):
    """A stored document metadata row."""

    id: str
    user_id: str
    session_id: Optional[str] = None
    file_name: str
    file_path: str
    file_type: str = ""
    file_size: int = 0
    content_preview: str = ""
    storage_type: StorageType
    created_at: Optional[datetime] = None


class DocumentUploadResponse(BaseModel):
    """Response after document upload."""

    document: DocumentResponse
    extracted_chars: int = 0
    indexed: bool = False
    warning: Optional[str] = None
