"""Plain text, Markdown and JSON files, returned verbatim."""
from .errors import MalformedDocument


def extract_text(data: bytes) -> str:
    """Decode *data* as UTF-8 with no other transformation."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedDocument(f"Failed to read text file: {exc}") from exc
