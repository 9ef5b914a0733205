"""Service-side helpers for Document Chat.

Object storage for uploaded files and the HTTP client for the RAG
backend. Nothing here depends on the web framework.
"""
