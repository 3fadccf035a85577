"""Scanner configuration, per-file flags and error rendering."""

import io
import logging

import pytest
from rich.console import Console

from hashnote.config import AT_VARIANT, HASH_VARIANT, Config, ScannerConfig, get_variant
from hashnote.error_reporter import (
    ErrorReporter,
    MalformedAnnotation,
    offset_to_position,
    print_error,
)
from hashnote.file_flags import parse_file_flags
from hashnote.hashnote_ast import DelimiterKind


class TestScannerConfig:
    def test_defaults(self):
        cfg = ScannerConfig()
        assert cfg.introducer == "#"
        assert cfg.opens_block("<") is DelimiterKind.ANGLE
        assert cfg.opens_block("{") is None
        assert cfg.max_nesting_depth == 64

    @pytest.mark.parametrize("kwargs", [
        {"introducer": "a"},
        {"introducer": "##"},
        {"introducer": "'"},
        {"max_nesting_depth": 0},
        {"block_delimiters": ()},
        {"quote_blocks": "x"},
        {"special_chars": "!a"},
        {"hashbang_marker": "!!"},
    ])
    def test_rejects_bad_values(self, kwargs):
        with pytest.raises(ValueError):
            ScannerConfig(**kwargs)

    def test_overrides_accept_loose_values(self):
        cfg = HASH_VARIANT.with_overrides(block_delimiters="paren, curly", max_nesting_depth="8")
        assert cfg.block_delimiters == (DelimiterKind.PAREN, DelimiterKind.CURLY)
        assert cfg.max_nesting_depth == 8
        assert HASH_VARIANT.with_overrides() is HASH_VARIANT

    def test_from_dict(self):
        cfg = ScannerConfig.from_dict({"variant": "at", "max_nesting_depth": 4})
        assert cfg.introducer == "@"
        assert cfg.max_nesting_depth == 4
        with pytest.raises(ValueError):
            ScannerConfig.from_dict({"colour": "blue"})

    def test_variants(self):
        assert get_variant("hash") is HASH_VARIANT
        assert get_variant("at") is AT_VARIANT
        assert AT_VARIANT.hashbang_marker is None
        with pytest.raises(ValueError):
            get_variant("percent")


def test_runtime_debug_switch():
    runtime = Config()
    runtime.enable_debug_logs = True
    assert logging.getLogger("hashnote").level == logging.DEBUG
    runtime.enable_debug_logs = False
    assert logging.getLogger("hashnote").level == logging.WARNING
    assert runtime.scanner_config() is HASH_VARIANT


class TestFileFlags:
    def test_key_value_form(self):
        flags = parse_file_flags("// @hashnote: strict=true; max_nesting_depth=16; block_delimiters=paren,curly\n")
        assert flags == {"strict": True, "max_nesting_depth": 16, "block_delimiters": "paren,curly"}

    def test_json_form(self):
        flags = parse_file_flags('/* @hashnote: {"variant": "at"} */\nlet x\n')
        assert flags == {"variant": "at"}

    def test_malformed_json_is_ignored(self):
        assert parse_file_flags("// @hashnote: {not json}\n") == {}

    def test_only_leading_lines_are_read(self):
        source = "\n" * 30 + "// @hashnote: strict=true\n"
        assert parse_file_flags(source) == {}

    def test_quoted_values(self):
        assert parse_file_flags("// @hashnote: special_chars='!?'") == {"special_chars": "!?"}


class TestErrorReporting:
    def test_offset_to_position(self):
        source = "ab\ncd\n"
        assert offset_to_position(source, 0) == (1, 1)
        assert offset_to_position(source, 4) == (2, 2)
        assert offset_to_position(source, 100) == (3, 1)

    def test_report_error_attaches_source_line(self):
        reporter = ErrorReporter()
        error = reporter.report_error(
            MalformedAnnotation, "Unterminated annotation block",
            line=2, column=7, filename="demo.js", suggestion="Close it.",
            reason=MalformedAnnotation.UNTERMINATED_BLOCK, start=12,
        )
        assert error.source_line == "let b #<x"
        assert error.format_error().splitlines() == [
            "demo.js:2:7: MalformedAnnotation: Unterminated annotation block",
            "    let b #<x",
            "          ^",
            "  hint: Close it.",
        ]
        assert error.to_dict()["reason"] == "unterminated_block"
        assert str(error) == "demo.js:2:7: Unterminated annotation block"

    def test_print_error(self):
        out = io.StringIO()
        error = MalformedAnnotation("Mismatched ']'", line=1, column=3, filename="x.js",
                                    source_line="#(]", suggestion="Balance [brackets].")
        print_error(error, Console(file=out, width=120))
        text = out.getvalue()
        assert "MalformedAnnotation" in text
        assert "x.js:1:3" in text
        assert "Balance [brackets]." in text
