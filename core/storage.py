"""Supabase Storage helper for uploaded documents.

Supports two modes:
- Supabase Storage when SUPABASE_URL + SUPABASE_SERVICE_KEY are set
- Local filesystem fallback for development

Object keys come from ``docchat.ingest.file_utils.generate_storage_path``
and are never overwritten: an upload to an existing key fails.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_SERVICE_KEY = os.environ.get("SUPABASE_SERVICE_KEY", "")
STORAGE_BUCKET = os.environ.get("STORAGE_BUCKET", "documents")
LOCAL_UPLOAD_DIR = os.environ.get("LOCAL_UPLOAD_DIR", "/tmp/docchat_uploads")

_supabase_client = None


class StorageError(Exception):
    """Upload, download or delete failed."""


def _get_supabase():
    """Lazy-init Supabase client."""
    global _supabase_client
    if _supabase_client is not None:
        return _supabase_client
    if not SUPABASE_URL or not SUPABASE_SERVICE_KEY:
        return None
    try:
        from supabase import create_client
        _supabase_client = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
        logger.info("Supabase client initialized")
        return _supabase_client
    except Exception as e:
        logger.warning("Failed to init Supabase: %s, using local storage", e)
        return None


def _use_supabase() -> bool:
    return _get_supabase() is not None


def _local_path(storage_path: str) -> Path:
    root = Path(LOCAL_UPLOAD_DIR).resolve()
    path = (root / storage_path).resolve()
    if root not in path.parents:
        raise StorageError(f"Storage path escapes upload dir: {storage_path}")
    return path


def upload_file(
    storage_path: str,
    content: bytes,
    content_type: str = "application/octet-stream",
) -> str:
    """Store *content* at *storage_path* and return the path.

    Raises
    ------
    StorageError
        If the upload fails or the key already exists.
    """
    if _use_supabase():
        client = _get_supabase()
        try:
            client.storage.from_(STORAGE_BUCKET).upload(
                path=storage_path,
                file=content,
                file_options={
                    "content-type": content_type,
                    "cache-control": "3600",
                    "upsert": "false",
                },
            )
        except Exception as e:
            raise StorageError(f"Storage upload failed: {e}") from e
        logger.info("Uploaded to Supabase: %s", storage_path)
    else:
        local_path = _local_path(storage_path)
        if local_path.exists():
            raise StorageError(f"File already exists: {storage_path}")
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_bytes(content)
        logger.info("Saved locally: %s", local_path)

    return storage_path


def download_file(storage_path: str) -> Optional[bytes]:
    """Download file content by storage path."""
    if _use_supabase():
        client = _get_supabase()
        try:
            return client.storage.from_(STORAGE_BUCKET).download(storage_path)
        except Exception as e:
            raise StorageError(f"Storage download failed: {e}") from e
    local_path = _local_path(storage_path)
    if local_path.exists():
        return local_path.read_bytes()
    return None


def get_signed_url(storage_path: str, expires_in: int = 3600) -> str:
    """Get a signed URL for the file (``file://`` URL in local mode)."""
    if _use_supabase():
        client = _get_supabase()
        result = client.storage.from_(STORAGE_BUCKET).create_signed_url(
            storage_path, expires_in,
        )
        return result.get("signedURL") or result.get("signedUrl", "")
    return f"file://{_local_path(storage_path)}"


def list_files(prefix: str = "") -> List[str]:
    """List object names directly under *prefix*."""
    if _use_supabase():
        client = _get_supabase()
        entries = client.storage.from_(STORAGE_BUCKET).list(prefix)
        return [e["name"] for e in entries]
    local_dir = Path(LOCAL_UPLOAD_DIR) / prefix
    if not local_dir.is_dir():
        return []
    return sorted(p.name for p in local_dir.iterdir())


def delete_file(storage_path: str) -> bool:
    """Delete a file from storage."""
    if _use_supabase():
        client = _get_supabase()
        try:
            client.storage.from_(STORAGE_BUCKET).remove([storage_path])
        except Exception as e:
            raise StorageError(f"Storage delete failed: {e}") from e
        logger.info("Deleted from Supabase: %s", storage_path)
        return True
    local_path = _local_path(storage_path)
    if local_path.exists():
        local_path.unlink()
        return True
    return False
