from __future__ import annotations

import re
from typing import Any

MASK = "***"

_SENSITIVE_FIELD_RE = re.compile(r"(?i)(token|secret|password|authorization|api[_-]?key)")
_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(?i)\b(bearer\s+)[^\s\"',]+"), rf"\g<1>{MASK}"),
    (re.compile(r"(?i)(token|key|secret|password)(\s*[=:]\s*)[^\s,;&\"']+"), rf"\g<1>\g<2>{MASK}"),
)


def redact_string(s: str) -> str:
    for pattern, replacement in _PATTERNS:
        s = pattern.sub(replacement, s)
    return s


def redact_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Mask structured log fields whose name marks them as a credential."""
    cleaned: dict[str, Any] = {}
    for key, value in fields.items():
        if _SENSITIVE_FIELD_RE.search(key):
            cleaned[key] = MASK
        elif isinstance(value, str):
            cleaned[key] = redact_string(value)
        else:
            cleaned[key] = value
    return cleaned
