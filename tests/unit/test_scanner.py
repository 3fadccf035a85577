"""Block scanner: form recognition, balancing and failure modes."""

import pytest

from hashnote.config import AT_VARIANT, ScannerConfig
from hashnote.error_reporter import MalformedAnnotation
from hashnote.hashnote_ast import DelimiterKind, Introducer, SourceSpan
from hashnote.scanner import BlockScanner, Lookaround


def _scan(source, pos=0, **kwargs):
    return BlockScanner(source, **kwargs).scan(pos)


def test_identifier_form():
    node, end = _scan("#string = 1")
    assert node.introducer is Introducer.IDENTIFIER
    assert node.payload == "string"
    assert node.span == SourceSpan(0, 7)
    assert end == 7


def test_identifier_form_with_trailing_markers():
    node, end = _scan("#string?")
    assert node.payload == "string"
    assert node.trailing_marker == "?"
    assert end == 8

    node, end = _scan("#User!? rest")
    assert node.payload == "User"
    assert node.trailing_marker == "!?"
    assert end == 7


def test_each_trailing_marker_folds_once():
    node, end = _scan("#T?? x")
    assert node.trailing_marker == "?"
    assert end == 3


def test_trailing_marker_leaves_comparison_alone():
    node, end = _scan("#flag!= other")
    assert node.payload == "flag"
    assert node.trailing_marker == ""
    assert end == 5


def test_special_char_form():
    node, end = _scan("x #? y", pos=2)
    assert node.introducer is Introducer.SPECIAL_CHAR
    assert node.payload == "?"
    assert end == 4

    node, _ = _scan("#^")
    assert node.payload == "^"


def test_disambiguation_char_is_dropped_from_payload():
    node, end = _scan("#:readonly id")
    assert node.introducer is Introducer.IDENTIFIER
    assert node.payload == "readonly"
    assert end == 10


def test_not_an_annotation():
    assert _scan("# heading") is None
    assert _scan("#1") is None
    assert _scan("#") is None


def test_scan_requires_introducer():
    with pytest.raises(ValueError):
        _scan("let x", pos=0)


def test_hashbang_form():
    source = "#!/usr/bin/env node\nlet x"
    node, end = _scan(source)
    assert node.introducer is Introducer.HASHBANG
    assert node.payload == "/usr/bin/env node"
    assert end == 19


def test_hashbang_only_at_offset_zero():
    node, end = _scan(" #!x", pos=1)
    assert node.introducer is Introducer.SPECIAL_CHAR
    assert node.payload == "!"
    assert end == 3


def test_block_form_angle():
    source = "#<Map<string, Array<number>>> rest"
    node, end = _scan(source)
    assert node.introducer is Introducer.BLOCK
    assert node.delimiter is DelimiterKind.ANGLE
    assert node.payload == "Map<string, Array<number>>"
    assert source[end:] == " rest"


def test_block_form_paren_with_mixed_brackets():
    node, _ = _scan("#(fn: (a: number[]), opts: {ok: boolean})")
    assert node.delimiter is DelimiterKind.PAREN
    assert node.payload == "fn: (a: number[]), opts: {ok: boolean}"


def test_block_form_spanning_lines():
    source = "#<interface Person {\n  name #string\n  age #number\n}>\nlet p"
    node, end = _scan(source)
    assert node.payload.startswith("interface Person {")
    assert node.line == 1
    assert node.end_line == 4
    assert source[end:] == "\nlet p"


def test_nested_introducer_is_plain_content():
    node, _ = _scan("#<outer #<inner> tail>")
    assert node.payload == "outer #<inner> tail"


def test_strings_inside_block_are_atomic():
    node, _ = _scan('#(msg: ")" )')
    assert node.payload == 'msg: ")" '

    node, _ = _scan("#<'>' | `<`>")
    assert node.payload == "'>' | `<`"


def test_unterminated_block():
    with pytest.raises(MalformedAnnotation) as info:
        _scan("#<( unterminated")
    assert info.value.reason == MalformedAnnotation.UNTERMINATED_BLOCK
    assert info.value.start == 0


def test_unterminated_string_inside_block():
    with pytest.raises(MalformedAnnotation) as info:
        _scan('#(a "b)')
    assert info.value.reason == MalformedAnnotation.UNTERMINATED_STRING


def test_mismatched_close_with_open_stack():
    with pytest.raises(MalformedAnnotation) as info:
        _scan("#(a<b)")
    assert info.value.reason == MalformedAnnotation.MISMATCHED_DELIMITER
    assert info.value.column == 6


def test_foreign_close_with_empty_stack():
    with pytest.raises(MalformedAnnotation) as info:
        _scan("#(a]")
    assert info.value.reason == MalformedAnnotation.MISMATCHED_DELIMITER


def test_arrow_inside_block_counts_as_closer():
    with pytest.raises(MalformedAnnotation) as info:
        _scan("#(a => b)")
    assert info.value.reason == MalformedAnnotation.MISMATCHED_DELIMITER

    node, _ = _scan("#(a '=>' b)")
    assert node.payload == "a '=>' b"


def test_nesting_depth_cap():
    cfg = ScannerConfig(max_nesting_depth=3)
    node, _ = _scan("#((x))", scanner_config=cfg)
    assert node.payload == "((x))"

    with pytest.raises(MalformedAnnotation) as info:
        _scan("#(((x)))", scanner_config=cfg)
    assert info.value.reason == MalformedAnnotation.NESTING_DEPTH_EXCEEDED


def test_deep_nesting_fails_without_recursion():
    depth = 10000
    source = "#(" + "(" * depth + ")" * depth + ")"
    with pytest.raises(MalformedAnnotation):
        _scan(source)
    node, _ = _scan(source, scanner_config=ScannerConfig(max_nesting_depth=depth + 1))
    assert len(node.payload) == 2 * depth


def test_member_access_is_not_an_annotation():
    assert _scan("obj.#name", pos=4) is None
    assert _scan("obj?.#name", pos=5) is None


def test_private_field_predicate_only_blocks_bare_identifiers():
    look = Lookaround(is_private_field_identifier=lambda pos: True)
    assert _scan("#count = 0", lookaround=look) is None

    node, _ = _scan("#:count", lookaround=look)
    assert node.payload == "count"

    node, _ = _scan("#(count)", lookaround=look)
    assert node.payload == "count"


def test_at_variant_forms():
    node, _ = _scan("@{a: {b: 1}}", scanner_config=AT_VARIANT)
    assert node.delimiter is DelimiterKind.CURLY
    assert node.payload == "a: {b: 1}"

    node, end = _scan("@'some text' x", scanner_config=AT_VARIANT)
    assert node.introducer is Introducer.BLOCK
    assert node.delimiter is None
    assert node.payload == "some text"
    assert end == 12

    # angle brackets do not open blocks in this variant
    assert _scan("@<x>", scanner_config=AT_VARIANT) is None


def test_unterminated_quoted_block():
    with pytest.raises(MalformedAnnotation) as info:
        _scan("@'abc\nlet x", scanner_config=AT_VARIANT)
    assert info.value.reason == MalformedAnnotation.UNTERMINATED_BLOCK


def test_error_renders_source_line():
    with pytest.raises(MalformedAnnotation) as info:
        BlockScanner("let a = 1\nlet b #(oops]", filename="broken.js").scan(16)
    rendered = info.value.format_error()
    assert rendered.startswith("broken.js:2:13: MalformedAnnotation:")
    assert "let b #(oops]" in rendered
    assert rendered.splitlines()[2].endswith("^")


def test_positions():
    node, _ = _scan("let a\n  #number", pos=8)
    assert (node.line, node.column) == (2, 3)
