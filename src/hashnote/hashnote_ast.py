"""
Annotation data model
=====================

Plain immutable records shared by the scanner, the resolver and every
consumer of an ``AnnotationTable``.

``BindingTarget`` is a closed union.  Code that dispatches on a target
should check ``isinstance`` against ``TARGET_TYPES`` in full (see
``describe_target``) so a new construct kind fails loudly everywhere it
matters.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


# ---------------------------------------------------------------------------
# Spans and delimiters
# ---------------------------------------------------------------------------

@dataclass(frozen=True, order=True)
class SourceSpan:
    """Half-open character range ``[start, end)`` over the source text."""
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid span [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    def text(self, source: str) -> str:
        return source[self.start:self.end]

    def overlaps(self, other: "SourceSpan") -> bool:
        return self.start < other.end and other.start < self.end


class DelimiterKind(Enum):
    PAREN = ("(", ")")
    ANGLE = ("<", ">")
    SQUARE = ("[", "]")
    CURLY = ("{", "}")

    @property
    def open(self) -> str:
        return self.value[0]

    @property
    def close(self) -> str:
        return self.value[1]

    @classmethod
    def for_open(cls, ch: str) -> Optional["DelimiterKind"]:
        return _BY_OPEN.get(ch)

    @classmethod
    def for_close(cls, ch: str) -> Optional["DelimiterKind"]:
        return _BY_CLOSE.get(ch)

    @classmethod
    def parse(cls, name: str) -> "DelimiterKind":
        """Accept ``"paren"``, ``"ANGLE"`` or a bracket character."""
        key = name.strip()
        kind = _BY_OPEN.get(key) or _BY_CLOSE.get(key)
        if kind is not None:
            return kind
        try:
            return cls[key.upper()]
        except KeyError:
            raise ValueError(f"unknown delimiter kind: {name!r}") from None


_BY_OPEN = {kind.open: kind for kind in DelimiterKind}
_BY_CLOSE = {kind.close: kind for kind in DelimiterKind}


class Introducer(Enum):
    IDENTIFIER = "identifier"
    SPECIAL_CHAR = "special-char"
    BLOCK = "block"
    HASHBANG = "hashbang"


# ---------------------------------------------------------------------------
# Annotation nodes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnnotationNode:
    span: SourceSpan
    introducer: Introducer
    payload: str
    trailing_marker: str = ""
    delimiter: Optional[DelimiterKind] = None
    line: int = 1
    column: int = 1
    end_line: int = 1

    @property
    def is_block(self) -> bool:
        return self.introducer is Introducer.BLOCK

    def to_dict(self) -> dict:
        return {
            "start": self.span.start,
            "end": self.span.end,
            "line": self.line,
            "column": self.column,
            "form": self.introducer.value,
            "payload": self.payload,
            "trailing": self.trailing_marker,
            "delimiter": self.delimiter.name.lower() if self.delimiter else None,
        }

    def __repr__(self):
        extra = f", trailing={self.trailing_marker!r}" if self.trailing_marker else ""
        return (f"AnnotationNode({self.introducer.value}, {self.payload!r}, "
                f"[{self.span.start}, {self.span.end}){extra})")


# ---------------------------------------------------------------------------
# Binding targets
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModuleScope:
    def __str__(self):
        return "ModuleScope"


@dataclass(frozen=True)
class VariableDeclaration:
    name: str

    def __str__(self):
        return f"VariableDeclaration({self.name})"


@dataclass(frozen=True)
class Parameter:
    function: str
    index: int

    def __str__(self):
        return f"Parameter({self.function}, {self.index})"


@dataclass(frozen=True)
class FunctionReturn:
    function: str

    def __str__(self):
        return f"FunctionReturn({self.function})"


@dataclass(frozen=True)
class ClassMember:
    class_name: str
    member: str

    def __str__(self):
        return f"ClassMember({self.class_name}, {self.member})"


@dataclass(frozen=True)
class ClassConstructorParameter:
    class_name: str
    index: int

    def __str__(self):
        return f"ClassConstructorParameter({self.class_name}, {self.index})"


@dataclass(frozen=True)
class ImportSpecifier:
    module_path: str
    name: str

    def __str__(self):
        return f"ImportSpecifier({self.module_path}, {self.name})"


@dataclass(frozen=True)
class ExportSpecifier:
    name: str

    def __str__(self):
        return f"ExportSpecifier({self.name})"


BindingTarget = Union[
    ModuleScope,
    VariableDeclaration,
    Parameter,
    FunctionReturn,
    ClassMember,
    ClassConstructorParameter,
    ImportSpecifier,
    ExportSpecifier,
]

TARGET_TYPES = (
    ModuleScope,
    VariableDeclaration,
    Parameter,
    FunctionReturn,
    ClassMember,
    ClassConstructorParameter,
    ImportSpecifier,
    ExportSpecifier,
)

MODULE_SCOPE = ModuleScope()


def describe_target(target: BindingTarget) -> dict:
    """JSON-friendly rendering of a target, exhaustive over ``TARGET_TYPES``."""
    if isinstance(target, ModuleScope):
        return {"kind": "module"}
    if isinstance(target, VariableDeclaration):
        return {"kind": "variable", "name": target.name}
    if isinstance(target, Parameter):
        return {"kind": "parameter", "function": target.function, "index": target.index}
    if isinstance(target, FunctionReturn):
        return {"kind": "return", "function": target.function}
    if isinstance(target, ClassMember):
        return {"kind": "member", "class": target.class_name, "member": target.member}
    if isinstance(target, ClassConstructorParameter):
        return {"kind": "constructor-parameter", "class": target.class_name, "index": target.index}
    if isinstance(target, ImportSpecifier):
        return {"kind": "import", "module": target.module_path, "name": target.name}
    if isinstance(target, ExportSpecifier):
        return {"kind": "export", "name": target.name}
    raise TypeError(f"not a binding target: {target!r}")
