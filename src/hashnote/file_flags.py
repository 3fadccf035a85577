"""Parse inline configuration directives for a single source file.

Supported directive formats (first 25 lines):
- // @hashnote: {"variant": "at", "strict": true}
- // @hashnote: strict=true; max_nesting_depth=16; block_delimiters=paren,curly

Values accept booleans, ints, floats, or strings.  Inside the key=value form
only ``;`` separates entries so list values may use commas.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict

logger = logging.getLogger(__name__)

_MAX_SCAN_LINES = 25
_DIRECTIVE = "@hashnote"


def parse_file_flags(source: str) -> Dict[str, Any]:
    flags: Dict[str, Any] = {}
    if not source:
        return flags

    lines = source.splitlines()[:_MAX_SCAN_LINES]
    for line in lines:
        stripped = line.strip()
        if not stripped or _DIRECTIVE not in stripped:
            continue

        # Strip leading comment markers
        directive = stripped
        for prefix in ("//", "/*", "#", "*"):
            if directive.startswith(prefix):
                directive = directive[len(prefix):].strip()
        if directive.endswith("*/"):
            directive = directive[:-2].strip()
        if not directive.lower().startswith(_DIRECTIVE):
            continue
        directive = directive[len(_DIRECTIVE):].strip()
        if directive.startswith(":"):
            directive = directive[1:].strip()

        # JSON object form
        if directive.startswith("{"):
            try:
                parsed = json.loads(directive)
            except json.JSONDecodeError as exc:
                logger.warning("ignoring malformed @hashnote directive %r: %s", directive, exc)
                continue
            if isinstance(parsed, dict):
                flags.update(parsed)
            continue

        # key=value form
        for part in re.split(r";", directive):
            part = part.strip()
            if not part or "=" not in part:
                continue
            key, raw_val = part.split("=", 1)
            flags[key.strip()] = _parse_value(raw_val.strip())

    return flags


def _parse_value(raw: str) -> Any:
    if not raw:
        return raw
    lowered = raw.lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    try:
        if "." in raw:
            return float(raw)
        return int(raw)
    except ValueError:
        pass
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ("'", '"'):
        return raw[1:-1]
    return raw
