"""Document ingestion module: validate uploads and extract plain text.

Supported formats: PDF, Word, Excel, PowerPoint, CSV, plain text/Markdown/JSON.

Public API
----------
.. autofunction:: validate_files
.. autofunction:: parse_file
.. autofunction:: parse_files
.. autofunction:: parse_files_detailed
.. autofunction:: create_content_preview
.. autofunction:: generate_storage_path
"""
from .batch import is_error_sentinel, parse_files, parse_files_detailed
from .errors import (
    ImageOnlyDocument,
    IngestError,
    InvalidType,
    MalformedDocument,
    NoExtractableText,
    OversizeFile,
    UnsupportedFormat,
)
from .file_utils import create_content_preview, format_file_size, generate_storage_path
from .reader import ReaderRegistry, build_registry, parse_file
from .validator import validate_files

__all__ = [
    "validate_files",
    "parse_file",
    "parse_files",
    "parse_files_detailed",
    "is_error_sentinel",
    "create_content_preview",
    "format_file_size",
    "generate_storage_path",
    "ReaderRegistry",
    "build_registry",
    "IngestError",
    "UnsupportedFormat",
    "MalformedDocument",
    "ImageOnlyDocument",
    "NoExtractableText",
    "InvalidType",
    "OversizeFile",
]
