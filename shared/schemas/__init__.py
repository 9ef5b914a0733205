"""Pydantic v2 schemas shared between API, clients, and frontend types."""

from .documents import *  # noqa: F401,F403
from .rag import *  # noqa: F401,F403
