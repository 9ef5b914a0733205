"""Tests for docchat.ingest.batch -- per-file failure isolation."""

import threading
import time

import pytest

from docchat.config.models import ParseOutcome
from docchat.ingest.batch import (
    failure_message,
    is_error_sentinel,
    parse_files,
    parse_files_detailed,
    summarize,
)
from docchat.ingest.errors import NoExtractableText
from docchat.ingest.reader import ReaderRegistry


class TestParseFiles:

    def test_corrupt_file_isolated(self, candidate, make_pdf):
        files = [
            candidate("a.txt", b"first file", mime="text/plain"),
            candidate("b.pdf", b"not a pdf", mime="application/pdf"),
            candidate("c.csv", b"x,y\n1,2", mime="text/csv"),
        ]
        out = parse_files(files)
        assert len(out) == 3
        assert out[0] == "first file"
        assert out[1].startswith("[Error parsing b.pdf: ")
        assert out[1].endswith("]")
        assert out[2] == "Headers: x | y\n\n1 | 2"

    def test_empty_batch(self):
        assert parse_files([]) == []

    def test_unsupported_type_becomes_sentinel(self, candidate):
        [text] = parse_files([candidate("pic.gif", b"GIF89a", mime="image/gif")])
        assert text == "[Error parsing pic.gif: Unsupported file type: image/gif (pic.gif)]"

    def test_image_only_pdf_becomes_sentinel(self, candidate, make_pdf):
        [outcome] = parse_files_detailed([candidate("scan.pdf", make_pdf(["", ""]))])
        assert not outcome.ok
        assert outcome.error_kind == "ImageOnlyDocument"
        assert outcome.format == "pdf"
        assert "OCR" in outcome.render()


class TestParseFilesDetailed:

    def test_outcome_tags(self, candidate):
        ok, bad = parse_files_detailed([
            candidate("a.md", b"# hi"),
            candidate("b.docx", b"not a zip"),
        ])
        assert ok.ok and ok.text == "# hi" and ok.format == "text"
        assert ok.error_kind is None
        assert not bad.ok and bad.text is None
        assert bad.error_kind == "MalformedDocument"

    def test_unexpected_exception_is_contained(self, candidate):
        registry = ReaderRegistry()

        def _explode(data):
            raise KeyError("boom")

        registry.register("bad", _explode, [], [".bad"])
        registry.register("good", lambda data: data.decode(), [], [".good"])
        outcomes = parse_files_detailed(
            [candidate("1.bad", b""), candidate("2.good", b"fine")], registry
        )
        assert outcomes[0].error_kind == "MalformedDocument"
        assert "boom" in outcomes[0].error_message
        assert outcomes[1].text == "fine"

    def test_reader_error_kind_preserved(self, candidate):
        registry = ReaderRegistry()

        def _empty(data):
            raise NoExtractableText("nothing here")

        registry.register("empty", _empty, [], [".e"])
        [outcome] = parse_files_detailed([candidate("x.e", b"")], registry)
        assert outcome.error_kind == "NoExtractableText"
        assert outcome.render() == "[Error parsing x.e: nothing here]"

    def test_workers_preserve_input_order(self, candidate):
        registry = ReaderRegistry()

        def _slow_first(data):
            # Later files finish first.
            time.sleep(0.05 * (5 - int(data)))
            return f"doc{data.decode()}"

        registry.register("num", _slow_first, [], [".n"])
        files = [candidate(f"{i}.n", str(i).encode()) for i in range(5)]
        outcomes = parse_files_detailed(files, registry, max_workers=4)
        assert [o.text for o in outcomes] == [f"doc{i}" for i in range(5)]

    def test_workers_run_concurrently(self, candidate):
        registry = ReaderRegistry()
        seen = set()
        lock = threading.Lock()

        def _record(data):
            with lock:
                seen.add(threading.get_ident())
            time.sleep(0.05)
            return "ok"

        registry.register("rec", _record, [], [".r"])
        parse_files_detailed([candidate(f"{i}.r", b"") for i in range(4)], registry, max_workers=4)
        assert len(seen) > 1

    def test_sequential_by_default(self, candidate):
        registry = ReaderRegistry()
        seen = set()

        def _record(data):
            seen.add(threading.get_ident())
            return "ok"

        registry.register("rec", _record, [], [".r"])
        parse_files_detailed([candidate(f"{i}.r", b"") for i in range(3)], registry)
        assert seen == {threading.get_ident()}


class TestSummaries:

    def _outcomes(self):
        return [
            ParseOutcome(file_name="a", ok=True, text="x"),
            ParseOutcome(file_name="b", ok=False, error_kind="MalformedDocument", error_message="bad"),
            ParseOutcome(file_name="c", ok=True, text="y"),
        ]

    def test_summarize(self):
        assert summarize(self._outcomes()) == {"total": 3, "parsed": 2, "failed": 1}

    def test_failure_message(self):
        assert failure_message(self._outcomes()) == "1 of 3 files failed to parse"

    def test_no_failure_message_when_all_parsed(self):
        assert failure_message(self._outcomes()[:1]) is None

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("[Error parsing a.pdf: corrupt]", True),
            ("Error parsing a.pdf", False),
            ("regular text", False),
        ],
    )
    def test_is_error_sentinel(self, text, expected):
        assert is_error_sentinel(text) is expected

    def test_render_without_message(self):
        outcome = ParseOutcome(file_name="z", ok=False)
        assert outcome.render() == "[Error parsing z: Unknown error]"
