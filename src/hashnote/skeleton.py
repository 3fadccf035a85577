"""
Syntax skeleton
===============

A single forward pass over host tokens that records, for the handful of
token positions an annotation can describe, which binding target that
position stands for:

- ``let``/``const``/``var`` declarator names (simple destructuring included)
- parameter names of functions, methods and arrows, by slot index
- the ``)`` closing a parameter list, standing for the return position
- class member names (fields, methods, accessors, private names)
- names inside ``import``/``export`` clauses

It is not a parser.  Everything else in the token stream is only tracked
as far as bracket nesting requires.  Annotation tokens are invisible to the
pass; roles are keyed by indices into the full token list so the resolver
can look at neighbours of an annotation directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .hashnote_ast import (
    BindingTarget,
    ClassConstructorParameter,
    ClassMember,
    ExportSpecifier,
    FunctionReturn,
    ImportSpecifier,
    Parameter,
    VariableDeclaration,
)
from .hashnote_token import *
from .lexer import CONTINUATION_TYPES, MEMBER_MODIFIERS

logger = logging.getLogger(__name__)

_MEMBER_NAME_TYPES = {
    IDENT, PRIVATE_NAME, STRING, NUMBER, KEYWORD,
    LET, CONST, VAR, FUNCTION, CLASS, EXTENDS, IMPORT, EXPORT, RETURN, DEFAULT, NEW, THIS,
}

_STATEMENT_KEYWORDS = {LET, CONST, VAR, FUNCTION, CLASS, IMPORT, EXPORT}


@dataclass
class ClauseRegion:
    """Brace-delimited name list of an import or export clause."""
    kind: str
    open_index: int
    close_index: Optional[int] = None
    module_path: Optional[str] = None

    def contains(self, index: int) -> bool:
        close = self.close_index if self.close_index is not None else float("inf")
        return self.open_index < index < close


@dataclass
class Skeleton:
    roles: Dict[int, BindingTarget] = field(default_factory=dict)
    clauses: List[ClauseRegion] = field(default_factory=list)

    def role_of(self, index: Optional[int]) -> Optional[BindingTarget]:
        if index is None:
            return None
        return self.roles.get(index)

    def clause_at(self, index: int) -> Optional[ClauseRegion]:
        for region in self.clauses:
            if region.contains(index):
                return region
        return None


class _Frame:
    __slots__ = ("kind", "owner", "index", "expect_slot", "ctor_class",
                 "member_start", "in_default")

    def __init__(self, kind, owner=None, ctor_class=None):
        self.kind = kind
        self.owner = owner
        self.index = 0
        self.expect_slot = True
        self.ctor_class = ctor_class
        self.member_start = True
        self.in_default = False

    def __repr__(self):
        return f"_Frame({self.kind}, owner={self.owner})"


class _Declaration:
    __slots__ = ("depth",)

    def __init__(self, depth):
        self.depth = depth


class SkeletonBuilder:
    def __init__(self, tokens):
        self.tokens = tokens
        self.host = [i for i, tok in enumerate(tokens) if tok.type != ANNOTATION]
        self.skeleton = Skeleton()
        self.stack: List[_Frame] = []
        self.declaration: Optional[_Declaration] = None
        self.expect_declarator = False
        self.pending_class = None
        self.matching = self._match_brackets()

    # ------------------------------------------------------------------
    # Token access by host position
    # ------------------------------------------------------------------

    def _tok(self, p):
        if 0 <= p < len(self.host):
            return self.tokens[self.host[p]]
        return None

    def _type(self, p):
        tok = self._tok(p)
        return tok.type if tok is not None else None

    def _is_word(self, p, word):
        tok = self._tok(p)
        return tok is not None and tok.type == IDENT and tok.literal == word

    def _assign(self, p, target):
        self.skeleton.roles[self.host[p]] = target
        logger.debug("role %s at %r", target, self._tok(p))

    def _match_brackets(self):
        pairs = {}
        opened = []
        closers = {RPAREN: LPAREN, RBRACKET: LBRACKET, RBRACE: LBRACE}
        for p in range(len(self.host)):
            t = self._type(p)
            if t in (LPAREN, LBRACKET, LBRACE):
                opened.append((t, p))
            elif t in closers:
                while opened:
                    kind, at = opened.pop()
                    if kind == closers[t]:
                        pairs[at] = p
                        break
        return pairs

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def build(self) -> Skeleton:
        p = 0
        while p < len(self.host):
            p = self._step(p)
        return self.skeleton

    def _step(self, p):
        tok = self._tok(p)
        t = tok.type
        if t == EOF:
            return p + 1

        self._maybe_end_declaration(p)
        frame = self.stack[-1] if self.stack else None

        if frame is not None:
            handled = None
            if frame.kind == "class" and self._is_member_start(p, frame):
                handled = self._member(p, frame)
            elif frame.kind == "params":
                handled = self._param(p, frame)
            elif frame.kind == "pattern":
                handled = self._pattern(p, frame)
            if handled is not None:
                return handled

        if t in (LET, CONST, VAR):
            self.declaration = _Declaration(len(self.stack))
            self.expect_declarator = True
            return p + 1

        if self.expect_declarator:
            self.expect_declarator = False
            if t == IDENT:
                self._assign(p, VariableDeclaration(tok.literal))
                return p + 1
            if t in (LBRACE, LBRACKET):
                self.stack.append(_Frame("pattern"))
                return p + 1

        if t == COMMA and self.declaration is not None and len(self.stack) == self.declaration.depth:
            self.expect_declarator = True
            return p + 1

        if t == FUNCTION:
            return self._function(p)
        if t == CLASS:
            return self._class(p)
        if t == IMPORT:
            return self._import(p)
        if t == EXPORT:
            return self._export(p)

        if t == IDENT and self._type(p + 1) == ARROW:
            self._assign(p, Parameter(self._callable_name(p, "arrow"), 0))
            return p + 1

        if t in (LPAREN, LBRACKET, LBRACE):
            self._open(p)
        elif t in (RPAREN, RBRACKET, RBRACE):
            self._close()
        return p + 1

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _maybe_end_declaration(self, p):
        decl = self.declaration
        if decl is None:
            return
        depth = len(self.stack)
        tok = self._tok(p)
        if depth < decl.depth:
            self.declaration = None
        elif depth == decl.depth:
            if tok.type == SEMICOLON:
                self.declaration = None
            elif tok.type != COMMA and self._starts_line(p):
                self.declaration = None
        if self.declaration is None:
            self.expect_declarator = False

    def _pattern(self, p, frame):
        tok = self._tok(p)
        t = tok.type
        if t == COMMA:
            frame.in_default = False
            return p + 1
        if t in (RBRACE, RBRACKET):
            self._close()
            return p + 1
        if t == ASSIGN:
            frame.in_default = True
            return p + 1
        if frame.in_default:
            return None
        if t == IDENT:
            if self._type(p + 1) != COLON:
                self._assign(p, VariableDeclaration(tok.literal))
            return p + 1
        if t in (LBRACE, LBRACKET):
            self.stack.append(_Frame("pattern"))
            return p + 1
        if t in (ELLIPSIS, COLON):
            return p + 1
        return None

    # ------------------------------------------------------------------
    # Functions and parameters
    # ------------------------------------------------------------------

    def _function(self, p):
        q = p + 1
        nxt = self._tok(q)
        if nxt is not None and nxt.type == OPERATOR and nxt.literal == "*":
            q += 1
        if self._type(q) == IDENT:
            name = self._tok(q).literal
            q += 1
        else:
            name = self._callable_name(p, "anonymous")
        if self._type(q) == LPAREN:
            self._open_params(name)
            return q + 1
        return q

    def _open_params(self, owner, ctor_class=None):
        self.stack.append(_Frame("params", owner=owner, ctor_class=ctor_class))

    def _param(self, p, frame):
        tok = self._tok(p)
        t = tok.type
        if t == RPAREN:
            self.stack.pop()
            self._assign(p, FunctionReturn(frame.owner))
            return p + 1
        if t == COMMA:
            frame.index += 1
            frame.expect_slot = True
            return p + 1
        if t == ELLIPSIS:
            return p + 1
        if t == ASSIGN:
            frame.expect_slot = False
            return p + 1
        if frame.expect_slot:
            frame.expect_slot = False
            if t == IDENT:
                if frame.ctor_class is not None:
                    target = ClassConstructorParameter(frame.ctor_class, frame.index)
                else:
                    target = Parameter(frame.owner, frame.index)
                self._assign(p, target)
                return p + 1
        return None

    def _callable_name(self, p, fallback):
        """Name a function from `name = function`, `name: (...) =>` and friends."""
        q = p - 1
        if self._is_word(q, "async"):
            q -= 1
        before = self._tok(q - 1)
        if self._type(q) in (ASSIGN, COLON) and before is not None and before.type in (IDENT, STRING):
            return before.literal
        tok = self._tok(p)
        return f"<{fallback}:{tok.line}:{tok.column}>"

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def _class(self, p):
        q = p + 1
        if self._type(q) == IDENT:
            name = self._tok(q).literal
            q += 1
        else:
            name = self._callable_name(p, "anonymous")
        self.pending_class = (name, len(self.stack))
        return q

    def _is_member_start(self, p, frame):
        if frame.member_start:
            return True
        return self._starts_line(p)

    def _member(self, p, frame):
        tok = self._tok(p)
        t = tok.type
        if t == SEMICOLON:
            frame.member_start = True
            return p + 1
        if t == OPERATOR and tok.literal == "*":
            frame.member_start = True
            return p + 1
        nxt = self._tok(p + 1)
        if t == IDENT and tok.literal in MEMBER_MODIFIERS and nxt is not None:
            if nxt.line == tok.line and (nxt.type in _MEMBER_NAME_TYPES or nxt.type == LBRACKET
                                         or (nxt.type == OPERATOR and nxt.literal == "*")):
                frame.member_start = True
                return p + 1
            if nxt.type == LBRACE:
                # static initialization block
                return None
        if t == LBRACKET:
            frame.member_start = False
            return None
        if t in _MEMBER_NAME_TYPES:
            frame.member_start = False
            self._assign(p, ClassMember(frame.owner, tok.literal))
            if nxt is not None and nxt.type == LPAREN:
                ctor = frame.owner if tok.literal == "constructor" else None
                self._open_params(f"{frame.owner}.{tok.literal}", ctor_class=ctor)
                return p + 2
            return p + 1
        return None

    # ------------------------------------------------------------------
    # Brackets
    # ------------------------------------------------------------------

    def _open(self, p):
        t = self._type(p)
        if t == LPAREN:
            close = self.matching.get(p)
            after = self._type(close + 1) if close is not None else None
            if after == ARROW:
                self._open_params(self._callable_name(p, "arrow"))
                return
            prev = self._tok(p - 1)
            if after == LBRACE and prev is not None and prev.type == IDENT:
                # method shorthand in an object literal
                self._open_params(prev.literal)
                return
            self.stack.append(_Frame("paren"))
        elif t == LBRACKET:
            self.stack.append(_Frame("bracket"))
        else:
            pending = self.pending_class
            if pending is not None and pending[1] == len(self.stack):
                self.pending_class = None
                self.stack.append(_Frame("class", owner=pending[0]))
            else:
                self.stack.append(_Frame("block"))

    def _close(self):
        if not self.stack:
            return
        closed = self.stack.pop()
        if self.pending_class is not None and self.pending_class[1] > len(self.stack):
            self.pending_class = None
        top = self.stack[-1] if self.stack else None
        if top is not None and top.kind == "class" and closed.kind == "block":
            top.member_start = True

    def _starts_line(self, p):
        prev = self._tok(p - 1)
        tok = self._tok(p)
        if prev is None:
            return True
        return tok.line > prev.end_line and prev.type not in CONTINUATION_TYPES

    # ------------------------------------------------------------------
    # Import / export clauses
    # ------------------------------------------------------------------

    def _import(self, p):
        if self._type(p + 1) in (LPAREN, DOT):
            return p + 1
        return self._clause(p + 1, "import")

    def _export(self, p):
        nxt = self._tok(p + 1)
        if nxt is None:
            return p + 1
        if nxt.type == LBRACE or (nxt.type == OPERATOR and nxt.literal == "*"):
            return self._clause(p + 1, "export")
        return p + 1

    def _clause(self, q, kind):
        names = []
        region = None
        module_path = None
        in_braces = False

        while q < len(self.host):
            tok = self._tok(q)
            t = tok.type
            if t in (EOF, SEMICOLON):
                break
            if t == LBRACE and region is None:
                region = ClauseRegion(kind, self.host[q])
                in_braces = True
            elif t == RBRACE and in_braces:
                region.close_index = self.host[q]
                in_braces = False
            elif t == STRING and not in_braces:
                # `import "side-effect"` carries no names
                module_path = tok.literal
                q += 1
                break
            elif self._is_word(q, "from") and self._type(q + 1) == STRING:
                module_path = self._tok(q + 1).literal
                q += 2
                break
            elif not in_braces and (t in _STATEMENT_KEYWORDS
                                    or (region is not None and self._starts_line(q))):
                break
            elif (t == IDENT and tok.literal != "as") or (t == DEFAULT and in_braces):
                names.append(q)
            q += 1

        if region is not None:
            region.module_path = module_path
            self.skeleton.clauses.append(region)
        for n in names:
            literal = self._tok(n).literal
            if kind == "import":
                self._assign(n, ImportSpecifier(module_path or "", literal))
            else:
                self._assign(n, ExportSpecifier(literal))
        return q


def build_skeleton(tokens) -> Skeleton:
    return SkeletonBuilder(tokens).build()
