"""Document Chat: upload ingestion for the document chat assistant.

Validates uploaded files, extracts plain text per format, and prepares
previews and storage keys for the hosted storage/database and the RAG
backend.
"""

__version__ = "0.3.0"
