"""Shared fixtures for API integration tests.

Uses FastAPI TestClient (in-memory, no network) so tests run
without a live server or external dependencies.
"""

from __future__ import annotations

import os
import sys

import pytest

# Ensure project root is on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Force in-memory DB, local storage and RAG development mode
os.environ.pop("DATABASE_URL", None)
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("RAG_API_BASE_URL", None)


@pytest.fixture(autouse=True)
def _reset_in_memory_db(tmp_path, monkeypatch):
    """Clear in-memory stores and point storage at a temp dir before each test."""
    from core import rag_client, storage
    from services.api.app import db

    db._mem_documents.clear()
    # Reset pool flag so each test starts fresh
    db._pool = None
    db._pool_init_done = False
    monkeypatch.setattr(db, "DATABASE_URL", "")

    monkeypatch.setattr(storage, "_supabase_client", None)
    monkeypatch.setattr(storage, "SUPABASE_URL", "")
    monkeypatch.setattr(storage, "LOCAL_UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(rag_client, "RAG_API_BASE_URL", "")
    yield


@pytest.fixture()
def client():
    """FastAPI TestClient: no network, no server startup needed."""
    from fastapi.testclient import TestClient

    from services.api.app.main import app

    return TestClient(app)


@pytest.fixture()
def uploaded_document(client):
    """Upload a knowledge-base text document and return the response body."""
    resp = client.post(
        "/v1/documents/upload",
        data={"user_id": "user-1", "storage_type": "knowledge_base"},
        files={"file": ("plan.txt", b"Our plan: ship the ingestion service.", "text/plain")},
    )
    assert resp.status_code == 201
    return resp.json()
