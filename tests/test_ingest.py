"""Tests for docchat.ingest.reader -- format dispatcher.

Covers MIME-first routing with extension fallback, unsupported types,
custom reader registration, and the single-file ``parse_file`` entry.
"""

import pytest

from docchat.config.models import IngestConfig
from docchat.ingest.errors import UnsupportedFormat
from docchat.ingest.reader import (
    GENERIC_MIME_TYPES,
    ReaderRegistry,
    build_registry,
    get_default_registry,
    parse_file,
)


# ===================================================================
# Default table
# ===================================================================

class TestDefaultRegistry:
    """Verify the built-in reader table."""

    def test_format_order(self):
        registry = build_registry()
        assert registry.formats == ["pdf", "word", "excel", "powerpoint", "csv", "text"]

    def test_supported_extensions(self):
        exts = build_registry().supported_extensions()
        for ext in (".pdf", ".docx", ".doc", ".xlsx", ".xls", ".pptx", ".ppt", ".csv", ".txt", ".md"):
            assert ext in exts

    def test_default_registry_is_cached(self):
        assert get_default_registry() is get_default_registry()

    def test_octet_stream_is_generic(self):
        assert "application/octet-stream" in GENERIC_MIME_TYPES

    def test_config_backends_are_wired(self):
        with pytest.raises(ValueError, match="PDF backend"):
            build_registry(IngestConfig(pdf_backends=("nope",)))


# ===================================================================
# Routing
# ===================================================================

class TestResolve:
    """MIME type first, extension second."""

    def test_mime_match(self, candidate):
        entry = build_registry().resolve(candidate("blob", b"x", mime="application/pdf"))
        assert entry.format == "pdf"

    def test_mime_is_case_insensitive(self, candidate):
        entry = build_registry().resolve(candidate("blob", b"x", mime="Text/CSV"))
        assert entry.format == "csv"

    def test_extension_fallback_without_mime(self, candidate):
        entry = build_registry().resolve(candidate("Report.PDF", b"x"))
        assert entry.format == "pdf"

    def test_extension_fallback_for_octet_stream(self, candidate):
        entry = build_registry().resolve(
            candidate("deck.pptx", b"x", mime="application/octet-stream")
        )
        assert entry.format == "powerpoint"

    def test_extension_fallback_for_unknown_mime(self, candidate):
        entry = build_registry().resolve(candidate("notes.md", b"x", mime="text/x-markdown"))
        assert entry.format == "text"

    def test_mime_wins_over_extension(self, candidate):
        # Browsers report CSV as the legacy Excel type on some platforms.
        entry = build_registry().resolve(
            candidate("data.csv", b"a,b", mime="application/vnd.ms-excel")
        )
        assert entry.format == "excel"

    def test_legacy_doc_routes_to_word(self, candidate):
        entry = build_registry().resolve(candidate("old.doc", b"x"))
        assert entry.format == "word"


class TestUnsupportedTypes:
    """Files no reader accepts raise UnsupportedFormat."""

    def test_image_raises(self, candidate):
        with pytest.raises(UnsupportedFormat) as exc_info:
            build_registry().resolve(candidate("photo.jpg", b"\xff\xd8\xff", mime="image/jpeg"))
        assert exc_info.value.mime_type == "image/jpeg"
        assert "image/jpeg" in exc_info.value.message
        assert "photo.jpg" in exc_info.value.message

    def test_unknown_without_mime_reports_unknown(self, candidate):
        with pytest.raises(UnsupportedFormat, match="unknown"):
            build_registry().resolve(candidate("archive.zip", b"PK"))

    def test_kind(self, candidate):
        with pytest.raises(UnsupportedFormat) as exc_info:
            parse_file(candidate("a.exe", b"MZ"))
        assert exc_info.value.kind == "UnsupportedFormat"


# ===================================================================
# Registration
# ===================================================================

class TestRegistration:

    def test_custom_reader(self, candidate):
        registry = ReaderRegistry()
        registry.register("upper", lambda data: data.decode().upper(), ["text/x-upper"], [".up"])
        assert parse_file(candidate("a.up", b"abc"), registry) == "ABC"

    def test_duplicate_format_rejected(self):
        registry = ReaderRegistry()
        registry.register("text", lambda data: "", [], [".txt"])
        with pytest.raises(ValueError, match="already registered"):
            registry.register("text", lambda data: "", [], [".text"])

    def test_earlier_entry_wins_extension_tie(self, candidate):
        registry = ReaderRegistry()
        registry.register("first", lambda data: "first", [], [".dat"])
        registry.register("second", lambda data: "second", [], [".dat"])
        assert parse_file(candidate("x.dat", b""), registry) == "first"

    def test_extensions_are_lowercased(self, candidate):
        registry = ReaderRegistry()
        registry.register("log", lambda data: "log", [], [".LOG"])
        assert registry.resolve(candidate("server.log", b"")).format == "log"


# ===================================================================
# parse_file
# ===================================================================

class TestParseFile:

    def test_plain_text_identity(self, candidate):
        body = "line one\n  indented\n\ttabbed  \n"
        assert parse_file(candidate("notes.txt", body.encode(), mime="text/plain")) == body

    def test_json_is_read_verbatim(self, candidate):
        body = '{"a": [1, 2]}'
        assert parse_file(candidate("data.json", body.encode())) == body

    def test_csv_through_dispatcher(self, candidate):
        text = parse_file(candidate("t.csv", b"a,b\n1,2", mime="text/csv"))
        assert text.startswith("Headers: a | b")
