"""
Block scanner
=============

Recognizes a single annotation starting at an introducer character and
reports exactly which characters it consumes.

Usage::

    from hashnote.scanner import BlockScanner
    scanner = BlockScanner(source)
    found = scanner.scan(offset)        # None when not an annotation
    if found:
        node, end = found

Forms, highest precedence first: hashbang (``#!...`` at offset 0), block
(``#<...>`` / ``#(...)``, or a quoted block such as ``@'...'``) and
identifier/special-char (``#name``, ``#:name``, ``#?``).  Block contents are
balanced with one explicit stack shared by all four bracket kinds; string
literals inside a block are skipped whole.

The only context the scanner needs comes from ``Lookaround`` predicates,
which the host tokenizer supplies.  Without them the scanner falls back to
plain text lookbehind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .config import ScannerConfig, config as runtime_config
from .error_reporter import MalformedAnnotation, get_error_reporter, offset_to_position
from .hashnote_ast import AnnotationNode, DelimiterKind, Introducer, SourceSpan

logger = logging.getLogger(__name__)

Predicate = Callable[[int], bool]


def is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_" or ch == "$"


def is_ident_part(ch: str) -> bool:
    return ch.isalnum() or ch == "_" or ch == "$"


@dataclass(frozen=True)
class Lookaround:
    """Host-supplied predicates over offsets of the introducer / source."""
    is_private_field_identifier: Optional[Predicate] = None
    follows_member_access: Optional[Predicate] = None
    is_string_literal_start: Optional[Predicate] = None


class BlockScanner:
    def __init__(self, source: str, scanner_config: Optional[ScannerConfig] = None,
                 filename: str = "<stdin>", lookaround: Optional[Lookaround] = None):
        self.source = source
        self.config = scanner_config or runtime_config.scanner_config()
        self.filename = filename
        look = lookaround or Lookaround()
        self._is_private = look.is_private_field_identifier or (lambda pos: False)
        self._after_member_access = look.follows_member_access or self._text_follows_dot
        self._is_string_start = look.is_string_literal_start or self._text_is_quote
        self.error_reporter = get_error_reporter()

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def scan(self, pos: int) -> Optional[Tuple[AnnotationNode, int]]:
        """Scan the annotation whose introducer sits at *pos*.

        Returns ``(node, end)`` where ``end`` is the offset just past the
        annotation, or ``None`` when the introducer does not start one.
        Raises ``MalformedAnnotation`` when a block cannot be closed.
        """
        src = self.source
        cfg = self.config
        if pos >= len(src) or src[pos] != cfg.introducer:
            raise ValueError(f"no introducer {cfg.introducer!r} at offset {pos}")

        nxt = self._char(pos + 1)

        if pos == 0 and cfg.hashbang_marker and nxt == cfg.hashbang_marker:
            return self._scan_hashbang(pos)

        kind = cfg.opens_block(nxt) if nxt else None
        if kind is not None:
            return self._scan_block(pos, kind)

        if nxt and nxt in cfg.quote_blocks:
            return self._scan_quoted(pos, nxt)

        return self._scan_word(pos)

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------

    def _scan_hashbang(self, pos):
        src = self.source
        end = src.find("\n", pos)
        if end == -1:
            end = len(src)
        payload = src[pos + 2:end]
        if payload.endswith("\r"):
            payload = payload[:-1]
        return self._make(pos, end, Introducer.HASHBANG, payload), end

    def _scan_word(self, pos):
        src = self.source
        cfg = self.config
        i = pos + 1
        disambiguated = False

        ch = self._char(i)
        if ch and ch in cfg.disambiguation_chars:
            after = self._char(i + 1)
            if after and (is_ident_start(after) or after in cfg.special_chars):
                disambiguated = True
                i += 1
                ch = after

        if ch and is_ident_start(ch):
            if not disambiguated and (self._after_member_access(pos) or self._is_private(pos)):
                return None
            start = i
            while i < len(src) and is_ident_part(src[i]):
                i += 1
            payload = src[start:i]
            form = Introducer.IDENTIFIER
        elif ch and ch in cfg.special_chars:
            payload = ch
            i += 1
            form = Introducer.SPECIAL_CHAR
        else:
            return None

        trailing = ""
        while True:
            ch = self._char(i)
            if not ch or ch not in cfg.trailing_markers or ch in trailing:
                break
            # `#flag!= x` keeps its comparison operator
            if self._char(i + 1) == "=":
                break
            trailing += ch
            i += 1

        return self._make(pos, i, form, payload, trailing=trailing), i

    def _scan_block(self, pos, kind: DelimiterKind):
        src = self.source
        n = len(src)
        limit = self.config.max_nesting_depth
        stack: List[Tuple[DelimiterKind, int]] = []
        i = pos + 2

        while i < n:
            ch = src[i]

            if self._is_string_start(i):
                i = self._skip_string(i, pos)
                continue

            opener = DelimiterKind.for_open(ch)
            if opener is not None:
                # The block's own delimiter counts as the first level
                if len(stack) + 1 >= limit:
                    raise self._fail(
                        MalformedAnnotation.NESTING_DEPTH_EXCEEDED,
                        f"Annotation nesting deeper than {limit} levels",
                        pos, i,
                        suggestion="Flatten the annotation or raise max_nesting_depth.",
                    )
                stack.append((opener, i))
                i += 1
                continue

            closer = DelimiterKind.for_close(ch)
            if closer is not None:
                if stack:
                    open_kind, open_at = stack[-1]
                    if open_kind is not closer:
                        raise self._fail(
                            MalformedAnnotation.MISMATCHED_DELIMITER,
                            f"Mismatched '{ch}' inside annotation, expected '{open_kind.close}'",
                            pos, i,
                            suggestion=f"Close the '{open_kind.open}' opened at offset {open_at} first.",
                        )
                    stack.pop()
                elif closer is kind:
                    end = i + 1
                    node = self._make(pos, end, Introducer.BLOCK, src[pos + 2:i], delimiter=kind)
                    return node, end
                else:
                    raise self._fail(
                        MalformedAnnotation.MISMATCHED_DELIMITER,
                        f"Unexpected '{ch}' inside annotation, expected '{kind.close}'",
                        pos, i,
                        suggestion=f"Balance the '{ch}' or end the annotation with '{kind.close}'.",
                    )
            i += 1

        raise self._fail(
            MalformedAnnotation.UNTERMINATED_BLOCK,
            "Unterminated annotation block",
            pos, pos,
            suggestion=f"Close the block with '{kind.close}' before the end of the file.",
        )

    def _scan_quoted(self, pos, quote):
        src = self.source
        i = pos + 2
        while i < len(src):
            ch = src[i]
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                end = i + 1
                return self._make(pos, end, Introducer.BLOCK, src[pos + 2:i]), end
            if ch == "\n" and quote != "`":
                break
            i += 1
        raise self._fail(
            MalformedAnnotation.UNTERMINATED_BLOCK,
            "Unterminated quoted annotation",
            pos, pos,
            suggestion=f"Close the annotation with {quote}.",
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _skip_string(self, i, annotation_start):
        """Return the offset just past the string literal starting at *i*."""
        src = self.source
        quote = src[i]
        j = i + 1
        while j < len(src):
            ch = src[j]
            if ch == "\\":
                j += 2
                continue
            if ch == quote:
                return j + 1
            if ch == "\n" and quote != "`":
                break
            j += 1
        raise self._fail(
            MalformedAnnotation.UNTERMINATED_STRING,
            "Unterminated string literal inside annotation",
            annotation_start, i,
            suggestion=f"Add a closing {quote} to terminate the string.",
        )

    def _make(self, start, end, form, payload, trailing="", delimiter=None):
        line, column = offset_to_position(self.source, start)
        end_line, _ = offset_to_position(self.source, max(start, end - 1))
        node = AnnotationNode(
            span=SourceSpan(start, end),
            introducer=form,
            payload=payload,
            trailing_marker=trailing,
            delimiter=delimiter,
            line=line,
            column=column,
            end_line=end_line,
        )
        logger.debug("scanned %r", node)
        return node

    def _fail(self, reason, message, start, at, suggestion=None):
        line, column = offset_to_position(self.source, at)
        return self.error_reporter.report_error(
            MalformedAnnotation,
            message,
            line=line,
            column=column,
            filename=self.filename,
            suggestion=suggestion,
            source=self.source,
            reason=reason,
            start=start,
        )

    def _char(self, i):
        if 0 <= i < len(self.source):
            return self.source[i]
        return ""

    def _text_follows_dot(self, pos):
        i = pos - 1
        while i >= 0 and self.source[i] in " \t":
            i -= 1
        return i >= 0 and self.source[i] == "."

    def _text_is_quote(self, i):
        return self.source[i] in self.config.string_quotes
