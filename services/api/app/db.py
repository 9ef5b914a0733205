"""Database connection layer.

Supports two modes:
- PostgreSQL (Supabase) when DATABASE_URL is set
- In-memory fallback for local development without DB

Only the ``documents`` metadata table lives here; file bytes are kept in
object storage (see ``core.storage``).
"""

from __future__ import annotations

import logging
import os
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

DATABASE_URL = os.environ.get("DATABASE_URL", "")

# ---------------------------------------------------------------------------
# Connection pool (lazy init)
# ---------------------------------------------------------------------------

_pool = None
_pool_init_done = False  # True once we've attempted to connect (success or failure)


def _get_pool():
    global _pool, _pool_init_done
    if _pool is not None:
        return _pool
    if _pool_init_done:
        return None  # Already tried and failed; don't retry on every request
    _pool_init_done = True
    if not DATABASE_URL:
        logger.info("No DATABASE_URL set, using in-memory fallback")
        return None
    try:
        from psycopg2 import pool as pg_pool

        _pool = pg_pool.ThreadedConnectionPool(
            minconn=1,
            maxconn=3,
            dsn=DATABASE_URL,
            connect_timeout=5,
        )
        logger.info("PostgreSQL connection pool created")
        _run_migrations(_pool)
        return _pool
    except Exception as e:
        logger.warning("Failed to create PostgreSQL pool: %s, using in-memory fallback", e)
        return None


def _run_migrations(pool):
    """Create the documents table and its lookup index if missing."""
    try:
        conn = pool.getconn()
        try:
            cur = conn.cursor()
            cur.execute(
                """CREATE TABLE IF NOT EXISTS documents (
                     id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                     user_id TEXT NOT NULL,
                     session_id TEXT,
                     file_name TEXT NOT NULL,
                     file_path TEXT NOT NULL,
                     file_type TEXT NOT NULL DEFAULT '',
                     file_size BIGINT NOT NULL DEFAULT 0,
                     content_preview TEXT NOT NULL DEFAULT '',
                     storage_type TEXT NOT NULL
                       CHECK (storage_type IN ('knowledge_base', 'chat_session')),
                     created_at TIMESTAMPTZ NOT NULL DEFAULT now()
                   )"""
            )
            cur.execute(
                "CREATE INDEX IF NOT EXISTS documents_user_idx "
                "ON documents (user_id, storage_type, created_at DESC)"
            )
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.warning("Migration failed (non-fatal): %s", e)
        finally:
            pool.putconn(conn)
    except Exception as e:
        logger.warning("Could not run migrations: %s", e)


@contextmanager
def get_conn():
    """Yield a PostgreSQL connection from the pool."""
    pool = _get_pool()
    if pool is None:
        yield None
        return
    conn = pool.getconn()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        pool.putconn(conn)


# ---------------------------------------------------------------------------
# In-memory fallback store
# ---------------------------------------------------------------------------

_mem_documents: Dict[str, dict] = {}


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _uuid() -> str:
    return str(uuid.uuid4())


def _use_pg() -> bool:
    return _get_pool() is not None


_DOC_COLS = (
    "id, user_id, session_id, file_name, file_path, file_type, "
    "file_size, content_preview, storage_type, created_at"
)


def _doc_row_to_dict(row) -> dict:
    if row is None:
        return {}
    created = row[9]
    return {
        "id": str(row[0]),
        "user_id": row[1],
        "session_id": row[2],
        "file_name": row[3],
        "file_path": row[4],
        "file_type": row[5] or "",
        "file_size": int(row[6] or 0),
        "content_preview": row[7] or "",
        "storage_type": row[8],
        "created_at": created.isoformat() if hasattr(created, "isoformat") else str(created),
    }


# ===================================================================
# Documents
# ===================================================================

def create_document(
    user_id: str,
    file_name: str,
    file_path: str,
    storage_type: str,
    session_id: Optional[str] = None,
    file_type: str = "",
    file_size: int = 0,
    content_preview: str = "",
) -> dict:
    if _use_pg():
        with get_conn() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""INSERT INTO documents
                      (user_id, session_id, file_name, file_path, file_type,
                       file_size, content_preview, storage_type)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING {_DOC_COLS}""",
                (user_id, session_id, file_name, file_path, file_type,
                 file_size, content_preview, storage_type),
            )
            return _doc_row_to_dict(cur.fetchone())

    did = _uuid()
    d = {
        "id": did,
        "user_id": user_id,
        "session_id": session_id,
        "file_name": file_name,
        "file_path": file_path,
        "file_type": file_type,
        "file_size": file_size,
        "content_preview": content_preview,
        "storage_type": storage_type,
        "created_at": _now_iso(),
    }
    _mem_documents[did] = d
    return d


def get_document(doc_id: str) -> Optional[dict]:
    if _use_pg():
        with get_conn() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_DOC_COLS} FROM documents WHERE id = %s", (doc_id,))
            row = cur.fetchone()
            return _doc_row_to_dict(row) if row else None
    return _mem_documents.get(doc_id)


def list_documents(
    user_id: str,
    storage_type: Optional[str] = None,
    session_id: Optional[str] = None,
) -> List[dict]:
    """Documents owned by *user_id*, newest first."""
    if _use_pg():
        clauses = ["user_id = %s"]
        params: list = [user_id]
        if storage_type:
            clauses.append("storage_type = %s")
            params.append(storage_type)
        if session_id:
            clauses.append("session_id = %s")
            params.append(session_id)
        with get_conn() as conn:
            cur = conn.cursor()
            cur.execute(
                f"SELECT {_DOC_COLS} FROM documents WHERE {' AND '.join(clauses)} "
                "ORDER BY created_at DESC",
                tuple(params),
            )
            return [_doc_row_to_dict(r) for r in cur.fetchall()]

    docs = [
        d for d in reversed(list(_mem_documents.values()))
        if d["user_id"] == user_id
        and (not storage_type or d["storage_type"] == storage_type)
        and (not session_id or d["session_id"] == session_id)
    ]
    # reversed() first so equal timestamps still come out newest first
    return sorted(docs, key=lambda d: d["created_at"], reverse=True)


def delete_document(doc_id: str) -> bool:
    if _use_pg():
        with get_conn() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM documents WHERE id = %s", (doc_id,))
            return cur.rowcount > 0
    return _mem_documents.pop(doc_id, None) is not None
