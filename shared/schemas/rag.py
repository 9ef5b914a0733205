"""Request/response payloads for the remote RAG service."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RAGRequest(BaseModel):
    """Body of ``POST {RAG_API_BASE_URL}/chat``."""

    user_id: str
    session_id: str
    question: Optional[str] = None
    file_contents: Optional[List[str]] = None
    index_user: bool = False


class RAGSource(BaseModel):
    title: str
    page: Optional[int] = None


class RAGMappedResponse(BaseModel):
    """Chat answer as consumed by the chat UI."""

    message: str
    sources: List[RAGSource] = Field(default_factory=list)
    reports: Optional[Dict[str, Any]] = None
    analysis: Optional[Dict[str, Any]] = None
    charts: Optional[Dict[str, Any]] = None


class KBUploadRequest(BaseModel):
    """Body of ``POST {RAG_API_BASE_URL}/kb/user/upload``."""

    user_id: str
    file_contents: List[str]


class KBUploadResponse(BaseModel):
    user_id: str
    status: str
    detail: List[Dict[str, Any]] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """Response of the chat endpoint: answer plus parse summary."""

    answer: RAGMappedResponse
    parsed_files: int = 0
    failed_files: int = 0
    warning: Optional[str] = None
