"""Batch extraction with per-file failure isolation.

Every input file yields exactly one :class:`ParseOutcome`, in input
order.  A reader failure is recorded on that file's outcome and the batch
moves on; nothing raised by a reader escapes :func:`parse_files_detailed`.

Files are processed one at a time by default so only one decoded file is
held in memory.  ``max_workers > 1`` fans out over a bounded thread pool;
results are still returned in input order.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

from docchat.config.models import ERROR_SENTINEL_PREFIX, ParseOutcome, UploadCandidate

from .errors import IngestError, MalformedDocument
from .reader import ReaderRegistry, get_default_registry

logger = logging.getLogger(__name__)


def parse_one(candidate: UploadCandidate, registry: ReaderRegistry) -> ParseOutcome:
    """Extract one file, converting any failure into a failed outcome."""
    fmt = None
    try:
        entry = registry.resolve(candidate)
        fmt = entry.format
        text = entry.reader(candidate.content)
    except IngestError as exc:
        logger.warning("Failed to parse %s: %s", candidate.name, exc.message)
        return ParseOutcome(
            file_name=candidate.name,
            ok=False,
            format=fmt,
            error_kind=exc.kind,
            error_message=exc.message,
        )
    except Exception as exc:
        logger.exception("Unexpected error while parsing %s", candidate.name)
        return ParseOutcome(
            file_name=candidate.name,
            ok=False,
            format=fmt,
            error_kind=MalformedDocument.kind,
            error_message=str(exc) or type(exc).__name__,
        )

    logger.info("Parsed %s (%s): %d chars", candidate.name, fmt, len(text))
    logger.debug("%s first 300 chars: %s", candidate.name, text[:300])
    return ParseOutcome(file_name=candidate.name, ok=True, text=text, format=fmt)


def parse_files_detailed(
    files: Sequence[UploadCandidate],
    registry: Optional[ReaderRegistry] = None,
    max_workers: int = 1,
) -> List[ParseOutcome]:
    """Extract every file and return one tagged outcome per input, in order."""
    registry = registry or get_default_registry()
    total = len(files)
    logger.info("Starting to parse %d file(s)", total)

    if max_workers <= 1 or total <= 1:
        outcomes = []
        for i, candidate in enumerate(files):
            logger.info("Processing file %d/%d: %s", i + 1, total, candidate.name)
            outcomes.append(parse_one(candidate, registry))
    else:
        with ThreadPoolExecutor(max_workers=min(max_workers, total)) as pool:
            outcomes = list(pool.map(lambda c: parse_one(c, registry), files))

    summary = summarize(outcomes)
    logger.info(
        "Parsing summary: %d total, %d parsed, %d failed",
        summary["total"], summary["parsed"], summary["failed"],
    )
    return outcomes


def parse_files(
    files: Sequence[UploadCandidate],
    registry: Optional[ReaderRegistry] = None,
    max_workers: int = 1,
) -> List[str]:
    """Return one string per file: the text, or ``[Error parsing <name>: <msg>]``."""
    return [o.render() for o in parse_files_detailed(files, registry, max_workers)]


def is_error_sentinel(text: str) -> bool:
    return text.startswith(ERROR_SENTINEL_PREFIX) and text.endswith("]")


def summarize(outcomes: Sequence[ParseOutcome]) -> Dict[str, int]:
    failed = sum(1 for o in outcomes if not o.ok)
    return {"total": len(outcomes), "parsed": len(outcomes) - failed, "failed": failed}


def failure_message(outcomes: Sequence[ParseOutcome]) -> Optional[str]:
    """Aggregate message for the UI toast, or None when everything parsed."""
    summary = summarize(outcomes)
    if not summary["failed"]:
        return None
    return f"{summary['failed']} of {summary['total']} files failed to parse"
