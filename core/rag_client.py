"""HTTP client for the remote RAG service.

Two endpoints are used:

- ``POST {base}/chat``            -- answer a question, optionally with
  freshly extracted ``file_contents`` (``index_user`` also adds them to the
  user's knowledge base).
- ``POST {base}/kb/user/upload``  -- index documents into the user's
  knowledge base without asking anything.

When ``RAG_API_BASE_URL`` is unset or points at ``localhost``/``example``
the client runs in development mode: the payload is logged and a mock
answer is returned without touching the network.
"""

from __future__ import annotations

import logging
import os
from typing import Any, List, Optional

import httpx

from shared.schemas.rag import (
    KBUploadRequest,
    KBUploadResponse,
    RAGMappedResponse,
    RAGRequest,
    RAGSource,
)

logger = logging.getLogger(__name__)

RAG_API_BASE_URL = os.environ.get("RAG_API_BASE_URL", "")

MOCK_MESSAGE = (
    "This is a mock AI response. Configure RAG_API_BASE_URL to connect to "
    "your actual RAG backend. Your request payload has been logged for debugging."
)


class RAGServiceError(Exception):
    """The RAG backend failed or answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _log_payload(label: str, payload: dict) -> None:
    contents = payload.get("file_contents") or []
    logger.info(
        "%s: user=%s session=%s index_user=%s files=%d question=%r",
        label,
        payload.get("user_id"),
        payload.get("session_id", "-"),
        payload.get("index_user", False),
        len(contents),
        payload.get("question") or "(none)",
    )
    for i, content in enumerate(contents, 1):
        logger.debug("%s: file %d/%d, %d chars: %s", label, i, len(contents), len(content), content[:300])


def _map_sources(raw: Any) -> List[RAGSource]:
    sources = []
    for item in raw or []:
        if isinstance(item, str):
            sources.append(RAGSource(title=item))
        elif isinstance(item, dict) and item.get("title"):
            sources.append(RAGSource(title=item["title"], page=item.get("page")))
    return sources


class RAGClient:
    """Thin synchronous client for the RAG HTTP API.

    Parameters
    ----------
    base_url : str, optional
        Service root; defaults to ``RAG_API_BASE_URL``.
    timeout : float
        Per-request timeout in seconds.
    transport : httpx.BaseTransport, optional
        Injected transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 120.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url if base_url is not None else RAG_API_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def development_mode(self) -> bool:
        return (
            not self.base_url
            or "localhost" in self.base_url
            or "example" in self.base_url
        )

    def _post(self, path: str, payload: dict) -> dict:
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise RAGServiceError(f"RAG service error: {e}") from e

        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = None
            detail = body.get("error") if isinstance(body, dict) else None
            logger.error("RAG endpoint %s returned %d", url, resp.status_code)
            raise RAGServiceError(
                f"RAG service error: {detail or f'RAG endpoint returned {resp.status_code}'}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise RAGServiceError(f"RAG service error: invalid JSON response: {e}") from e
        if not isinstance(data, dict):
            raise RAGServiceError("RAG service error: invalid JSON response: expected an object")
        return data

    def chat(
        self,
        user_id: str,
        session_id: str,
        question: Optional[str] = None,
        file_contents: Optional[List[str]] = None,
        index_user: bool = False,
    ) -> RAGMappedResponse:
        """Ask the RAG backend a question about the session's documents."""
        request = RAGRequest(
            user_id=user_id,
            session_id=session_id,
            question=question,
            file_contents=file_contents,
            index_user=index_user,
        )
        payload = request.model_dump()

        if self.development_mode:
            _log_payload("RAG chat (development mode)", payload)
            return RAGMappedResponse(
                message=MOCK_MESSAGE,
                sources=[
                    RAGSource(title="Mock Source 1", page=1),
                    RAGSource(title="Mock Source 2", page=5),
                ],
            )

        _log_payload("RAG chat", payload)
        data = self._post("/chat", payload)
        message = data.get("message") or data.get("answer") or ""
        logger.info(
            "RAG response: %d chars, reports=%s analysis=%s charts=%s",
            len(message), bool(data.get("reports")), bool(data.get("analysis")), bool(data.get("charts")),
        )
        return RAGMappedResponse(
            message=message,
            sources=_map_sources(data.get("sources")),
            reports=data.get("reports"),
            analysis=data.get("analysis"),
            charts=data.get("charts"),
        )

    def index_knowledge_base(self, user_id: str, file_contents: List[str]) -> KBUploadResponse:
        """Index documents into the user's knowledge base."""
        payload = KBUploadRequest(user_id=user_id, file_contents=file_contents).model_dump()

        if self.development_mode:
            _log_payload("KB index (development mode)", payload)
            return KBUploadResponse(user_id=user_id, status="mock_indexed", detail=[{"mock": True}])

        _log_payload("KB index", payload)
        data = self._post("/kb/user/upload", payload)
        logger.info("Indexed %d document(s) to user KB", len(file_contents))
        return KBUploadResponse(
            user_id=data.get("user_id", user_id),
            status=data.get("status", "indexed"),
            detail=data.get("detail") or [],
        )
