"""File helpers: size formatting, type names, storage paths, previews."""
from __future__ import annotations

import math
import re
import time
from typing import Optional

from docchat.config.models import DEFAULT_PREVIEW_LENGTH

PREVIEW_ELLIPSIS = "..."

FILE_TYPE_NAMES = {
    "pdf": "PDF Document",
    "txt": "Text File",
    "md": "Markdown",
    "csv": "CSV Spreadsheet",
    "doc": "Word Document",
    "docx": "Word Document",
    "xls": "Excel Spreadsheet",
    "xlsx": "Excel Spreadsheet",
    "ppt": "PowerPoint",
    "pptx": "PowerPoint",
}

STORAGE_TYPES = ("knowledge_base", "chat_session")

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def format_file_size(num_bytes: int) -> str:
    """Format a byte count as ``"1.5 KB"`` / ``"10 MB"``."""
    if num_bytes <= 0:
        return "0 Bytes"
    k = 1024
    sizes = ["Bytes", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(num_bytes) / math.log(k))), len(sizes) - 1)
    value = round(num_bytes / (k ** i), 2)
    # 10.0 -> "10", 1.5 -> "1.5"
    return f"{value:g} {sizes[i]}"


def get_file_extension(filename: str) -> str:
    """Return the lower-case extension without the dot, or ``""``."""
    parts = filename.split(".")
    return parts[-1].lower() if len(parts) > 1 else ""


def get_file_type_name(filename: str) -> str:
    return FILE_TYPE_NAMES.get(get_file_extension(filename), "Unknown File")


def sanitize_filename(filename: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", filename)


def _path_segment(value: str, label: str) -> str:
    segment = sanitize_filename(value)
    if segment in ("", ".", ".."):
        raise ValueError(f"Invalid {label} for storage path: {value!r}")
    return segment


def generate_storage_path(
    user_id: str,
    filename: str,
    storage_type: str,
    session_id: Optional[str] = None,
    timestamp_ms: Optional[int] = None,
) -> str:
    """Build the object-store key for an uploaded file.

    ``knowledge_base`` files live under ``{user}/knowledge-base/`` and
    ``chat_session`` files under ``{user}/sessions/{session}/``.  The
    millisecond timestamp prefix keeps keys unique across repeated
    uploads of the same name.

    Raises
    ------
    ValueError
        If *storage_type* is unknown, ``chat_session`` is requested
        without a *session_id*, or an ID reduces to an empty, ``.`` or
        ``..`` segment.  Other unsafe characters, ``/`` included, are
        replaced with ``_``.
    """
    if storage_type not in STORAGE_TYPES:
        raise ValueError(
            f"Unknown storage type {storage_type!r}; expected one of {STORAGE_TYPES}"
        )
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    name = f"{timestamp_ms}_{sanitize_filename(filename)}"

    user = _path_segment(user_id, "user ID")
    if storage_type == "knowledge_base":
        return f"{user}/knowledge-base/{name}"
    if not session_id:
        raise ValueError("Session ID is required for chat_session storage type")
    return f"{user}/sessions/{_path_segment(session_id, 'session ID')}/{name}"


def create_content_preview(content: str, max_length: int = DEFAULT_PREVIEW_LENGTH) -> str:
    """Return *content* unchanged when it fits, else a truncated prefix + ``"..."``."""
    max_length = max(max_length, 0)
    if len(content) <= max_length:
        return content
    return content[:max_length] + PREVIEW_ELLIPSIS
