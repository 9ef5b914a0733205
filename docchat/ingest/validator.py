"""Pre-upload validation: MIME/extension allow-list and size ceiling.

Validation runs before any parsing.  It never mutates its input and
reports every failing file at once so the caller can decide whether to
drop the offenders or abort the whole upload.
"""
import logging
from typing import Iterable, Optional, Tuple

from docchat.config.models import IngestConfig, UploadCandidate, ValidationResult

from .errors import InvalidType, OversizeFile
from .file_utils import format_file_size

logger = logging.getLogger(__name__)

TYPE_ERROR_MESSAGE = (
    "File type not supported. "
    "Please upload PDF, TXT, Word, Excel, PowerPoint, or CSV files."
)


def validate_file_type(file: UploadCandidate, config: Optional[IngestConfig] = None) -> bool:
    """True when the declared MIME type, or failing that the extension, is allowed."""
    config = config or IngestConfig()
    if file.mime_type and file.mime_type in config.allowed_types:
        return True
    name = file.name.lower()
    return any(name.endswith(ext) for ext in config.allowed_extensions)


def validate_file_size(file: UploadCandidate, config: Optional[IngestConfig] = None) -> bool:
    config = config or IngestConfig()
    return file.size_bytes <= config.max_file_size_bytes


def check_file(file: UploadCandidate, config: Optional[IngestConfig] = None) -> None:
    """Raise :class:`InvalidType` or :class:`OversizeFile` for a bad file.

    The type check runs first; a file failing both reports only the type.
    """
    config = config or IngestConfig()
    if not validate_file_type(file, config):
        raise InvalidType(TYPE_ERROR_MESSAGE, file_name=file.name)
    if not validate_file_size(file, config):
        raise OversizeFile(
            f"File size exceeds {format_file_size(config.max_file_size_bytes)} limit.",
            file_name=file.name,
        )


def validate_file(
    file: UploadCandidate, config: Optional[IngestConfig] = None
) -> Tuple[bool, Optional[str]]:
    """Return ``(ok, error_message)`` for a single file."""
    try:
        check_file(file, config)
    except (InvalidType, OversizeFile) as exc:
        return False, exc.message
    return True, None


def validate_files(
    files: Iterable[UploadCandidate], config: Optional[IngestConfig] = None
) -> ValidationResult:
    """Validate a batch and aggregate one ``"<name>: <reason>"`` per failure."""
    config = config or IngestConfig()
    errors = []
    for file in files:
        ok, error = validate_file(file, config)
        if not ok:
            errors.append(f"{file.name}: {error}")

    if errors:
        logger.info("Validation rejected %d file(s): %s", len(errors), "; ".join(errors))
    return ValidationResult.from_errors(errors)
