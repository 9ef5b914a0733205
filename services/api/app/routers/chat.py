"""Chat endpoint: parse attached files and ask the RAG backend."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from core.rag_client import RAGClient, RAGServiceError
from docchat.ingest.batch import failure_message, parse_files_detailed
from docchat.ingest.validator import validate_files
from shared.schemas.rag import ChatResponse

from .documents import get_config, get_registry, raise_if_invalid, read_candidates

logger = logging.getLogger(__name__)
router = APIRouter()


def get_rag_client() -> RAGClient:
    return RAGClient()


@router.post("/chat", response_model=ChatResponse)
async def chat(
    user_id: str = Form(...),
    session_id: str = Form(...),
    question: Optional[str] = Form(None),
    index_user: bool = Form(False),
    files: Optional[List[UploadFile]] = File(None),
):
    """Send a question plus freshly extracted file contents to the RAG service.

    Unreadable files are forwarded as ``[Error parsing ...]`` entries so
    the rest of the batch still reaches the model.
    """
    if not (question and question.strip()) and not files:
        raise HTTPException(
            status_code=422,
            detail={"code": "VALIDATION_ERROR", "message": "Provide a question or at least one file"},
        )

    contents: Optional[List[str]] = None
    parsed = failed = 0
    warning = None
    if files:
        config = get_config()
        candidates = await read_candidates(files)
        raise_if_invalid(validate_files(candidates, config))
        outcomes = await run_in_threadpool(
            parse_files_detailed, candidates, get_registry(), config.max_workers
        )
        contents = [o.render() for o in outcomes]
        failed = sum(1 for o in outcomes if not o.ok)
        parsed = len(outcomes) - failed
        warning = failure_message(outcomes)

    try:
        answer = await run_in_threadpool(
            get_rag_client().chat,
            user_id=user_id,
            session_id=session_id,
            question=question.strip() if question else None,
            file_contents=contents,
            index_user=index_user,
        )
    except RAGServiceError as e:
        logger.error("RAG chat failed for session %s: %s", session_id, e)
        raise HTTPException(
            status_code=502,
            detail={"code": "RAG_UNAVAILABLE", "message": "RAG service unavailable"},
        )

    return ChatResponse(answer=answer, parsed_files=parsed, failed_files=failed, warning=warning)
