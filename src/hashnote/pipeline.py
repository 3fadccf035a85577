"""
End-to-end extraction: text -> tokens -> annotations -> attachment table.

    from hashnote import extract
    result = extract('let x #string = "hi"')
    result.table.payloads(VariableDeclaration("x"))   # ['string']
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .annotation_table import AnnotationTable
from .config import ScannerConfig, config as runtime_config, get_variant
from .error_reporter import HashnoteError
from .file_flags import parse_file_flags
from .hashnote_ast import AnnotationNode
from .hashnote_token import ANNOTATION, EOF, Token
from .lexer import Lexer
from .resolver import AttachmentResolver

logger = logging.getLogger(__name__)

_CONFIG_KEYS = {f.name for f in fields(ScannerConfig)}


@dataclass
class ExtractionResult:
    source: str
    filename: str
    tokens: List[Token]
    table: AnnotationTable
    diagnostics: List[HashnoteError] = field(default_factory=list)
    flags: Dict[str, Any] = field(default_factory=dict)

    @property
    def nodes(self) -> List[AnnotationNode]:
        return [tok.annotation for tok in self.tokens if tok.type == ANNOTATION]

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    def host_tokens(self) -> List[Token]:
        return [tok for tok in self.tokens if tok.type not in (ANNOTATION, EOF)]

    def stripped_source(self, fill: str = "") -> str:
        return strip_annotations(self.source, self.nodes, fill)


def configure(flags: Dict[str, Any], scanner_config: Optional[ScannerConfig] = None,
              strict: Optional[bool] = None) -> Tuple[ScannerConfig, bool]:
    """Combine a base config with per-file flags.

    File flags override the base scanner config; an explicit *strict* argument
    overrides the file.
    """
    cfg = scanner_config or runtime_config.scanner_config()
    flags = dict(flags)
    variant = flags.pop("variant", None)
    strict_flag = flags.pop("strict", None)
    if variant:
        try:
            cfg = get_variant(str(variant))
        except ValueError as exc:
            logger.warning("ignoring @hashnote variant: %s", exc)

    # Flags apply one at a time; an invalid value is dropped alone
    for key, value in flags.items():
        if key not in _CONFIG_KEYS:
            logger.warning("ignoring unknown @hashnote flag %r", key)
            continue
        try:
            cfg = cfg.with_overrides(**{key: value})
        except (TypeError, ValueError) as exc:
            logger.warning("ignoring @hashnote flag %s=%r: %s", key, value, exc)

    if strict is None:
        strict = bool(strict_flag) if strict_flag is not None else runtime_config.strict_attachment
    return cfg, strict


def extract(source: str, filename: str = "<stdin>", scanner_config: Optional[ScannerConfig] = None,
            strict: Optional[bool] = None, honor_file_flags: bool = True) -> ExtractionResult:
    flags = parse_file_flags(source) if honor_file_flags else {}
    cfg, strict = configure(flags, scanner_config, strict)

    lexer = Lexer(source, filename, cfg)
    tokens = lexer.tokenize()
    table = AttachmentResolver(tokens, strict=strict, filename=filename).resolve()

    logger.debug("%s: %d annotation(s), %d target(s), %d diagnostic(s)",
                 filename, sum(len(nodes) for _, nodes in table.items()),
                 len(table), len(lexer.diagnostics))
    return ExtractionResult(source, filename, tokens, table, lexer.diagnostics, flags)


def extract_file(path, **kwargs) -> ExtractionResult:
    path = Path(path)
    return extract(path.read_text(encoding="utf-8"), filename=str(path), **kwargs)


def scan_annotations(source: str, scanner_config: Optional[ScannerConfig] = None,
                     filename: str = "<stdin>") -> List[AnnotationNode]:
    """Scan without attaching; malformed annotations are skipped."""
    lexer = Lexer(source, filename, scanner_config)
    return [tok.annotation for tok in lexer.tokenize() if tok.type == ANNOTATION]


def strip_annotations(source: str, nodes: Iterable[AnnotationNode], fill: str = "") -> str:
    """Remove every annotation span from *source*, replacing each with *fill*."""
    pieces = []
    last = 0
    for node in sorted(nodes, key=lambda n: n.span.start):
        pieces.append(source[last:node.span.start])
        pieces.append(fill)
        last = node.span.end
    pieces.append(source[last:])
    return "".join(pieces)
