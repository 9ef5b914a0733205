"""FastAPI application: Document Chat API.

Validates and parses uploaded documents, stores them with their
metadata, and relays chat questions to the RAG backend.
"""

from __future__ import annotations

import os
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docchat import __version__

from .routers import chat, documents

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Document Chat API",
    version=__version__,
    description="Document ingestion (validate, extract, store) and RAG chat relay",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
ALLOWED_ORIGINS = os.environ.get(
    "CORS_ORIGINS",
    "http://localhost:3000",
).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in ALLOWED_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(documents.router, prefix="/v1", tags=["documents"])
app.include_router(chat.router, prefix="/v1", tags=["chat"])


# ---------------------------------------------------------------------------
# Health Check
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


@app.get("/")
async def root():
    return {"message": "Document Chat API", "docs": "/docs"}
