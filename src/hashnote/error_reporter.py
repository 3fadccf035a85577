"""
Error reporting for hashnote.

Callers hand the source text to ``report_error`` so that any error raised
while scanning can be rendered with the offending line and a caret under the
column::

    demo.js:1:1: MalformedAnnotation: Unterminated annotation block
        #<( unterminated
        ^
      hint: Close the block with '>' before the end of the file.
"""

from __future__ import annotations

from typing import Optional, Tuple

from rich.console import Console
from rich.markup import escape


class HashnoteError(Exception):
    """Base class for every error reported by hashnote."""

    def __init__(self, message, line=None, column=None, filename="<stdin>",
                 suggestion=None, source_line=None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.filename = filename
        self.suggestion = suggestion
        self.source_line = source_line

    @property
    def kind(self) -> str:
        return type(self).__name__

    def location(self) -> str:
        if self.line is None:
            return self.filename
        return f"{self.filename}:{self.line}:{self.column or 1}"

    def format_error(self) -> str:
        parts = [f"{self.location()}: {self.kind}: {self.message}"]
        if self.source_line is not None:
            parts.append(f"    {self.source_line}")
            if self.column:
                parts.append("    " + " " * (self.column - 1) + "^")
        if self.suggestion:
            parts.append(f"  hint: {self.suggestion}")
        return "\n".join(parts)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "message": self.message,
            "filename": self.filename,
            "line": self.line,
            "column": self.column,
        }

    def __str__(self):
        return f"{self.location()}: {self.message}"


class SyntaxError(HashnoteError):
    """Host-level lexing problem (unterminated string or block comment)."""


class MalformedAnnotation(HashnoteError):
    """An annotation was opened but could not be closed."""

    UNTERMINATED_BLOCK = "unterminated_block"
    UNTERMINATED_STRING = "unterminated_string"
    MISMATCHED_DELIMITER = "mismatched_delimiter"
    NESTING_DEPTH_EXCEEDED = "nesting_depth_exceeded"

    def __init__(self, message, reason=None, start=None, **kwargs):
        super().__init__(message, **kwargs)
        self.reason = reason
        # Offset of the introducer that failed to open an annotation
        self.start = start

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["reason"] = self.reason
        data["start"] = self.start
        return data


class AmbiguousAttachment(HashnoteError):
    """Raised in strict mode when an annotation attaches to no construct."""

    def __init__(self, message, node=None, **kwargs):
        super().__init__(message, **kwargs)
        self.node = node


def offset_to_position(source: str, offset: int) -> Tuple[int, int]:
    """Return the 1-based ``(line, column)`` of *offset* in *source*."""
    offset = max(0, min(offset, len(source)))
    line = source.count("\n", 0, offset) + 1
    line_start = source.rfind("\n", 0, offset) + 1
    return line, offset - line_start + 1


def source_line_at(source: Optional[str], line: Optional[int]) -> Optional[str]:
    if source is None or line is None:
        return None
    lines = source.splitlines()
    if 1 <= line <= len(lines):
        return lines[line - 1]
    return None


class ErrorReporter:
    """Builds errors with their source context.  Holds no per-file state."""

    def report_error(self, error_class, message, line=None, column=None,
                     filename="<stdin>", suggestion=None, source=None, **extra):
        """Build (but do not raise) an error carrying its source context."""
        return error_class(
            message,
            line=line,
            column=column,
            filename=filename,
            suggestion=suggestion,
            source_line=source_line_at(source, line),
            **extra,
        )


_reporter = ErrorReporter()
_console = Console(stderr=True)


def get_error_reporter() -> ErrorReporter:
    return _reporter


def print_error(error: HashnoteError, console: Optional[Console] = None) -> None:
    out = console or _console
    out.print(f"[bold red]{error.kind}[/bold red] {escape(error.location())}")
    out.print(f"  {error.message}", markup=False, highlight=False)
    if error.source_line is not None:
        out.print(f"    {error.source_line}", markup=False, highlight=False)
        if error.column:
            out.print("    " + " " * (error.column - 1) + "[red]^[/red]")
    if error.suggestion:
        out.print(f"  [yellow]hint:[/yellow] {escape(error.suggestion)}", highlight=False)
