"""
hashnote - recognize annotation comments and attach them to declarations.
"""

from .annotation_table import AnnotationTable, FrozenTableError
from .config import AT_VARIANT, HASH_VARIANT, VARIANTS, ScannerConfig, config, get_variant
from .error_reporter import (
    AmbiguousAttachment,
    HashnoteError,
    MalformedAnnotation,
    get_error_reporter,
    print_error,
)
from .hashnote_ast import (
    MODULE_SCOPE,
    AnnotationNode,
    BindingTarget,
    ClassConstructorParameter,
    ClassMember,
    DelimiterKind,
    ExportSpecifier,
    FunctionReturn,
    ImportSpecifier,
    Introducer,
    ModuleScope,
    Parameter,
    SourceSpan,
    VariableDeclaration,
)
from .lexer import Lexer
from .pipeline import ExtractionResult, extract, extract_file, scan_annotations, strip_annotations
from .resolver import AttachmentResolver
from .scanner import BlockScanner, Lookaround
from .skeleton import build_skeleton

__version__ = "0.1.0"

__all__ = [
    "AnnotationTable", "FrozenTableError",
    "AT_VARIANT", "HASH_VARIANT", "VARIANTS", "ScannerConfig", "config", "get_variant",
    "AmbiguousAttachment", "HashnoteError", "MalformedAnnotation", "get_error_reporter", "print_error",
    "MODULE_SCOPE", "AnnotationNode", "BindingTarget", "ClassConstructorParameter", "ClassMember",
    "DelimiterKind", "ExportSpecifier", "FunctionReturn", "ImportSpecifier", "Introducer",
    "ModuleScope", "Parameter", "SourceSpan", "VariableDeclaration",
    "Lexer", "ExtractionResult", "extract", "extract_file", "scan_annotations", "strip_annotations",
    "AttachmentResolver", "BlockScanner", "Lookaround", "build_skeleton",
]
