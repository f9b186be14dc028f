"""Prompt-injection redaction and size clamping for user text."""

from __future__ import annotations

import re

MAX_TEXT_LENGTH = 10_000
REDACTION_MARKER = "[FILTERED]"

_INJECTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"\b(ignore|disregard|forget)\s+(previous|all|above|prior)\s+"
        r"(instructions?|prompts?|commands?)",
        re.IGNORECASE,
    ),
    re.compile(r"\b(system|assistant|user|role)\s*:", re.IGNORECASE),
    re.compile(r"\[INST\]", re.IGNORECASE),
    re.compile(r"\[/INST\]", re.IGNORECASE),
    re.compile(r"<\|.*?\|>"),
)


def sanitize_user_input(text: str | None, *, max_chars: int = MAX_TEXT_LENGTH) -> str:
    """Redact injection patterns, clamp to `max_chars`, then strip whitespace."""

    if not text:
        return ""

    sanitized = text
    for pattern in _INJECTION_PATTERNS:
        sanitized = pattern.sub(REDACTION_MARKER, sanitized)

    if len(sanitized) > max_chars:
        sanitized = sanitized[:max_chars]
    return sanitized.strip()
