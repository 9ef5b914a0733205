"""Document validation, parsing and upload endpoints."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool

from core.rag_client import RAGClient, RAGServiceError
from core.storage import StorageError, delete_file, upload_file
from docchat.config.models import IngestConfig, UploadCandidate, ValidationResult
from docchat.ingest.batch import failure_message, parse_files_detailed, parse_one
from docchat.ingest.file_utils import STORAGE_TYPES, create_content_preview, generate_storage_path
from docchat.ingest.reader import ReaderRegistry, build_registry
from docchat.ingest.validator import validate_files
from shared.schemas.documents import (
    DocumentResponse,
    DocumentUploadResponse,
    ParsedFile,
    ParseResponse,
)

from .. import db

logger = logging.getLogger(__name__)
router = APIRouter()

INDEX_WARNING = "Document uploaded but indexing failed. Please try re-indexing manually."

_config: Optional[IngestConfig] = None
_registry: Optional[ReaderRegistry] = None


def get_config() -> IngestConfig:
    global _config
    if _config is None:
        _config = IngestConfig.from_env()
    return _config


def get_registry() -> ReaderRegistry:
    global _registry
    if _registry is None:
        _registry = build_registry(get_config())
    return _registry


async def read_candidates(files: List[UploadFile]) -> List[UploadCandidate]:
    """Read multipart uploads into in-memory candidates."""
    candidates = []
    for f in files:
        content = await f.read()
        candidates.append(
            UploadCandidate(
                name=f.filename or "upload",
                declared_mime_type=f.content_type or "",
                size_bytes=len(content),
                content=content,
            )
        )
    return candidates


def raise_if_invalid(result: ValidationResult) -> None:
    if not result.valid:
        raise HTTPException(
            status_code=422,
            detail={
                "code": "VALIDATION_ERROR",
                "message": result.errors[0],
                "errors": result.errors,
            },
        )


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "DOCUMENT_NOT_FOUND", "message": "Document not found"},
    )


# ---------------------------------------------------------------------------
# Validate / parse
# ---------------------------------------------------------------------------

@router.post("/documents/validate", response_model=ValidationResult)
async def validate_documents(files: List[UploadFile] = File(...)):
    """Check type and size of every file without parsing."""
    candidates = await read_candidates(files)
    return validate_files(candidates, get_config())


@router.post("/documents/parse", response_model=ParseResponse)
async def parse_documents(files: List[UploadFile] = File(...)):
    """Validate, then extract text from every file."""
    config = get_config()
    candidates = await read_candidates(files)
    raise_if_invalid(validate_files(candidates, config))

    outcomes = await run_in_threadpool(
        parse_files_detailed, candidates, get_registry(), config.max_workers
    )
    parsed = [
        ParsedFile(
            file_name=o.file_name,
            ok=o.ok,
            format=o.format,
            chars=len(o.text or ""),
            preview=create_content_preview(o.text or "", config.preview_length),
            error_kind=o.error_kind,
            error_message=o.error_message,
        )
        for o in outcomes
    ]
    return ParseResponse(
        files=parsed,
        file_contents=[o.render() for o in outcomes],
        total=len(outcomes),
        failed=sum(1 for o in outcomes if not o.ok),
        message=failure_message(outcomes),
    )


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

@router.post("/documents/upload", status_code=201, response_model=DocumentUploadResponse)
async def upload_document(
    user_id: str = Form(...),
    storage_type: str = Form("knowledge_base"),
    session_id: Optional[str] = Form(None),
    index: bool = Form(False),
    file: UploadFile = File(...),
):
    """Validate, extract, store and record a single document.

    ``index=true`` on a knowledge-base upload also sends the extracted
    text to the RAG knowledge base; an indexing failure is returned as a
    warning and the upload still succeeds.
    """
    if storage_type not in STORAGE_TYPES:
        raise HTTPException(
            status_code=422,
            detail={"code": "VALIDATION_ERROR", "message": f"Unknown storage type: {storage_type}"},
        )
    if storage_type == "chat_session" and not session_id:
        raise HTTPException(
            status_code=422,
            detail={"code": "VALIDATION_ERROR", "message": "session_id is required for chat_session uploads"},
        )

    config = get_config()
    [candidate] = await read_candidates([file])
    raise_if_invalid(validate_files([candidate], config))

    outcome = await run_in_threadpool(parse_one, candidate, get_registry())
    if not outcome.ok:
        raise HTTPException(
            status_code=422,
            detail={
                "code": "PARSE_FAILED",
                "kind": outcome.error_kind,
                "message": outcome.render(),
            },
        )
    text = outcome.text or ""

    try:
        storage_path = generate_storage_path(user_id, candidate.name, storage_type, session_id)
    except ValueError as e:
        raise HTTPException(
            status_code=422,
            detail={"code": "VALIDATION_ERROR", "message": str(e)},
        )

    try:
        await run_in_threadpool(
            upload_file,
            storage_path,
            candidate.content,
            candidate.mime_type or "application/octet-stream",
        )
    except StorageError as e:
        logger.error("Storage upload failed for %s: %s", candidate.name, e)
        raise HTTPException(
            status_code=502,
            detail={"code": "STORAGE_ERROR", "message": str(e)},
        )

    try:
        doc = await run_in_threadpool(
            db.create_document,
            user_id=user_id,
            session_id=session_id if storage_type == "chat_session" else None,
            file_name=candidate.name,
            file_path=storage_path,
            file_type=candidate.mime_type,
            file_size=candidate.size_bytes,
            content_preview=create_content_preview(text, config.preview_length),
            storage_type=storage_type,
        )
    except Exception as e:
        logger.error("Failed to save document metadata: %s", e)
        try:
            await run_in_threadpool(delete_file, storage_path)
        except StorageError as cleanup_err:
            logger.warning("Cleanup of %s failed: %s", storage_path, cleanup_err)
        raise HTTPException(
            status_code=500,
            detail={"code": "DB_ERROR", "message": str(e)},
        )

    indexed = False
    warning = None
    if index and storage_type == "knowledge_base":
        try:
            await run_in_threadpool(RAGClient().index_knowledge_base, user_id, [text])
            indexed = True
        except RAGServiceError as e:
            logger.warning("Failed to index %s in RAG: %s", candidate.name, e)
            warning = INDEX_WARNING

    return DocumentUploadResponse(
        document=DocumentResponse(**doc),
        extracted_chars=len(text),
        indexed=indexed,
        warning=warning,
    )


# ---------------------------------------------------------------------------
# Retrieval / deletion
# ---------------------------------------------------------------------------

@router.get("/documents", response_model=List[DocumentResponse])
def list_documents(
    user_id: str = Query(...),
    storage_type: Optional[str] = Query(None),
    session_id: Optional[str] = Query(None),
):
    return [DocumentResponse(**d) for d in db.list_documents(user_id, storage_type, session_id)]


def get_document_or_404(doc_id: str, user_id: Optional[str] = None) -> dict:
    doc = db.get_document(doc_id)
    if not doc or (user_id and doc["user_id"] != user_id):
        raise _not_found()
    return doc


@router.get("/documents/{doc_id}", response_model=DocumentResponse)
def get_document(doc_id: str, user_id: Optional[str] = Query(None)):
    return DocumentResponse(**get_document_or_404(doc_id, user_id))


@router.delete("/documents/{doc_id}")
def delete_document(doc_id: str, user_id: Optional[str] = Query(None)):
    """Delete the stored file and its metadata row."""
    doc = get_document_or_404(doc_id, user_id)
    try:
        delete_file(doc["file_path"])
    except StorageError as e:
        logger.warning("Failed to delete %s from storage: %s", doc["file_path"], e)
    db.delete_document(doc_id)
    return {"id": doc_id, "deleted": True}
