"""
Attachment resolver
===================

Assigns every scanned annotation to exactly one binding target.

Rules, first match wins:

0. hashbang annotations describe the module
1. an annotation cut off from what follows by a blank line (or the end of
   the file), with nothing before it on its line, describes the module
2. an annotation right after a declarator, parameter, ``)`` of a parameter
   list, member name or clause name *on the same line* describes that
   construct (annotations stick to what precedes them)
3. between ``)`` of a parameter list and the body, on any line, it
   describes the return value
4. otherwise a declarator, parameter, member or clause name right after it,
   looking past ``let``/``const``/``var``/``export`` and member modifiers
5. inside an import/export brace list, an annotation filling a name slot on
   its own names the specifier itself
6. anything else describes the module; strict mode rejects it instead
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .annotation_table import AnnotationTable
from .config import config as runtime_config
from .error_reporter import AmbiguousAttachment, get_error_reporter
from .hashnote_ast import (
    MODULE_SCOPE,
    AnnotationNode,
    BindingTarget,
    ExportSpecifier,
    FunctionReturn,
    ImportSpecifier,
    Introducer,
)
from .hashnote_token import *
from .lexer import MEMBER_MODIFIERS
from .skeleton import Skeleton, build_skeleton

logger = logging.getLogger(__name__)

_LEAD_IN_TYPES = {LET, CONST, VAR, EXPORT}


class AttachmentResolver:
    def __init__(self, tokens, skeleton: Optional[Skeleton] = None, strict: Optional[bool] = None,
                 filename: str = "<stdin>"):
        self.tokens = tokens
        self.skeleton = skeleton if skeleton is not None else build_skeleton(tokens)
        self.strict = runtime_config.strict_attachment if strict is None else strict
        self.filename = filename
        self.error_reporter = get_error_reporter()

    def resolve(self) -> AnnotationTable:
        table = AnnotationTable()
        for index, tok in enumerate(self.tokens):
            if tok.type != ANNOTATION:
                continue
            table.add(self.attach(index), tok.annotation)
        return table.freeze()

    def attach(self, index: int) -> BindingTarget:
        node: AnnotationNode = self.tokens[index].annotation
        target, rule = self._decide(index, node)
        logger.debug("%r -> %s (%s)", node, target, rule)
        return target

    def _decide(self, index, node):
        if node.introducer is Introducer.HASHBANG:
            return MODULE_SCOPE, "hashbang"

        prev = self._prev_host(index)
        nxt = self._next_host(index)
        prev_tok = self.tokens[prev] if prev is not None else None
        next_tok = self.tokens[nxt] if nxt is not None else None
        same_line = prev_tok is not None and prev_tok.end_line == node.line

        if not same_line and self._isolated(index):
            return MODULE_SCOPE, "isolated"

        before = self.skeleton.role_of(prev)
        if same_line and before is not None:
            return before, "trailing"

        if isinstance(before, FunctionReturn) and next_tok is not None and next_tok.type in (LBRACE, ARROW):
            return before, "return-position"

        after = self._leading_role(nxt)
        if after is not None and not isinstance(after, FunctionReturn):
            return after, "leading"

        slot = self._slot_target(index, node, prev_tok, next_tok)
        if slot is not None:
            return slot, "clause-slot"

        if self.strict:
            raise self.error_reporter.report_error(
                AmbiguousAttachment,
                f"Annotation {node.payload!r} does not attach to any construct",
                line=node.line,
                column=node.column,
                filename=self.filename,
                suggestion="Move it next to a declaration, or separate it with a blank line "
                           "to make it module-level.",
                node=node,
            )
        return MODULE_SCOPE, "fallback"

    def _prev_host(self, index):
        i = index - 1
        while i >= 0:
            if self.tokens[i].type != ANNOTATION:
                return i
            i -= 1
        return None

    def _next_host(self, index):
        i = index + 1
        while i < len(self.tokens):
            if self.tokens[i].type != ANNOTATION:
                return i
            i += 1
        return None

    def _leading_role(self, i):
        while i is not None:
            role = self.skeleton.role_of(i)
            if role is not None:
                return role
            tok = self.tokens[i]
            lead_in = tok.type in _LEAD_IN_TYPES or (tok.type == IDENT and tok.literal in MEMBER_MODIFIERS)
            if not lead_in:
                return None
            i = self._next_host(i)
        return None

    def _isolated(self, index):
        """True when a blank line or the end of input follows the annotation.

        Only whitespace-only lines count as blank; a comment line keeps the
        annotation next to what follows.  Stacked annotations are followed
        through, so the first of several consecutive annotation lines is not
        isolated by its neighbours.
        """
        for tok in self.tokens[index + 1:]:
            if tok.type == EOF or tok.blank_before:
                return True
            if tok.type != ANNOTATION:
                return False
        return True

    def _slot_target(self, index, node, prev_tok, next_tok):
        region = self.skeleton.clause_at(index)
        if region is None or prev_tok is None or next_tok is None:
            return None
        if prev_tok.type not in (LBRACE, COMMA) or next_tok.type not in (COMMA, RBRACE):
            return None
        name = node.payload.strip()
        if not name:
            return None
        if region.kind == "import":
            return ImportSpecifier(region.module_path or "", name)
        return ExportSpecifier(name)


def resolve(tokens, skeleton=None, strict=None, filename="<stdin>") -> AnnotationTable:
    return AttachmentResolver(tokens, skeleton, strict, filename).resolve()


def attachments(table: AnnotationTable, nodes: List[AnnotationNode]):
    """Map each node to the targets it appears under (always exactly one)."""
    found = {node: [] for node in nodes}
    for target, attached in table.items():
        for node in attached:
            if node in found:
                found[node].append(target)
    return found
