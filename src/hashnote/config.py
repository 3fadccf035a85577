# src/hashnote/config.py
"""
Configuration for hashnote.

``ScannerConfig`` describes one concrete annotation syntax.  The two
shipped presets cover the syntaxes in circulation:

- ``hash``: ``#name``, ``#?``, ``#<...>``, ``#(...)``, ``#!`` hashbang
- ``at``:   ``@name``, ``@{...}``, ``@(...)``, ``@'...'``

``config`` holds process-wide runtime switches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional, Tuple

from .hashnote_ast import DelimiterKind

_IDENT_CHARS = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_$")
_QUOTES = set("'\"`")


@dataclass(frozen=True)
class ScannerConfig:
    introducer: str = "#"
    block_delimiters: Tuple[DelimiterKind, ...] = (DelimiterKind.PAREN, DelimiterKind.ANGLE)
    special_chars: str = "!?^&*"
    disambiguation_chars: str = ":"
    trailing_markers: str = "?!"
    hashbang_marker: Optional[str] = "!"
    # Quote characters that open a quoted block (``@'...'``)
    quote_blocks: str = ""
    string_quotes: str = "'\"`"
    max_nesting_depth: int = 64

    def __post_init__(self):
        if len(self.introducer) != 1:
            raise ValueError("introducer must be a single character")
        if self.introducer in _IDENT_CHARS or self.introducer.isspace():
            raise ValueError(f"introducer {self.introducer!r} would collide with identifiers")
        if self.introducer in _QUOTES:
            raise ValueError("introducer may not be a quote character")
        if not isinstance(self.max_nesting_depth, int) or self.max_nesting_depth < 1:
            raise ValueError("max_nesting_depth must be a positive integer")
        if not self.block_delimiters and not self.quote_blocks:
            raise ValueError("at least one block delimiter or quote block is required")
        for kind in self.block_delimiters:
            if not isinstance(kind, DelimiterKind):
                raise ValueError(f"not a delimiter kind: {kind!r}")
        for ch in self.quote_blocks:
            if ch not in _QUOTES:
                raise ValueError(f"quote block {ch!r} is not a quote character")
        for ch in self.special_chars + self.disambiguation_chars:
            if ch in _IDENT_CHARS or ch.isspace():
                raise ValueError(f"marker character {ch!r} would collide with identifiers")
        if self.hashbang_marker is not None and len(self.hashbang_marker) != 1:
            raise ValueError("hashbang_marker must be a single character or None")

    def opens_block(self, ch: str) -> Optional[DelimiterKind]:
        kind = DelimiterKind.for_open(ch)
        if kind is not None and kind in self.block_delimiters:
            return kind
        return None

    def with_overrides(self, **overrides) -> "ScannerConfig":
        if not overrides:
            return self
        return replace(self, **_coerce(overrides))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScannerConfig":
        """Build a config from loose values (strings, lists, ints).

        A ``variant`` key selects the preset the remaining keys override.
        """
        data = dict(data)
        base = get_variant(data.pop("variant", "hash"))
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(sorted(unknown))}")
        return base.with_overrides(**data)


def _coerce(values: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(values)
    delims = out.get("block_delimiters")
    if delims is not None:
        if isinstance(delims, str):
            delims = [d for d in delims.replace(",", " ").split() if d]
        out["block_delimiters"] = tuple(
            d if isinstance(d, DelimiterKind) else DelimiterKind.parse(str(d)) for d in delims
        )
    if "max_nesting_depth" in out:
        out["max_nesting_depth"] = int(out["max_nesting_depth"])
    for key in ("special_chars", "disambiguation_chars", "trailing_markers",
                "quote_blocks", "string_quotes"):
        if key in out and not isinstance(out[key], str):
            out[key] = "".join(out[key])
    return out


HASH_VARIANT = ScannerConfig()

AT_VARIANT = ScannerConfig(
    introducer="@",
    block_delimiters=(DelimiterKind.CURLY, DelimiterKind.PAREN),
    special_chars="!?",
    hashbang_marker=None,
    quote_blocks="'",
)

VARIANTS = {
    "hash": HASH_VARIANT,
    "at": AT_VARIANT,
}


def get_variant(name: str) -> ScannerConfig:
    try:
        return VARIANTS[name]
    except KeyError:
        raise ValueError(
            f"unknown variant {name!r} (expected one of: {', '.join(VARIANTS)})"
        ) from None


class Config:
    """Runtime switches shared by every scan in the process."""

    def __init__(self):
        self._enable_debug_logs = False
        self.strict_attachment = False
        self.default_variant = "hash"

    @property
    def enable_debug_logs(self) -> bool:
        return self._enable_debug_logs

    @enable_debug_logs.setter
    def enable_debug_logs(self, value: bool):
        self._enable_debug_logs = bool(value)
        logging.getLogger("hashnote").setLevel(logging.DEBUG if value else logging.WARNING)

    def scanner_config(self) -> ScannerConfig:
        return get_variant(self.default_variant)


config = Config()
