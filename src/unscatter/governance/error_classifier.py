"""Deterministic mapping of failures to user-safe error categories."""

from __future__ import annotations

from dataclasses import dataclass

from unscatter.models import ErrorKind

ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.EMPTY_INPUT: "Input cannot be empty. Please provide text or images.",
    ErrorKind.INVALID_IMAGE: "One or more images could not be accepted. "
    "Please use up to 10 PNG, JPG, or WEBP files of at most 4MB each.",
    ErrorKind.RATE_LIMITED: "Too many requests. Please wait before trying again.",
    ErrorKind.NETWORK_FAILURE: "Network error. Please check your connection and try again.",
    ErrorKind.AUTH_FAILURE: "Authentication error. Please check your API configuration.",
    ErrorKind.QUOTA_EXCEEDED: "Service quota exceeded. Please try again in a few minutes.",
    ErrorKind.INVALID_RESPONSE_STRUCTURE: "Invalid response received. Please try again.",
    ErrorKind.GENERIC_FAILURE: "An unexpected error occurred. Please try again.",
}

_AUTH_PATTERNS: tuple[str, ...] = (
    "api key",
    "unauthorized",
    "forbidden",
    "authentication",
)
_QUOTA_PATTERNS: tuple[str, ...] = (
    "quota",
    "limit",
    "rate",
)
_NETWORK_PATTERNS: tuple[str, ...] = (
    "network",
    "timeout",
    "fetch",
)
_INVALID_RESPONSE_PATTERNS: tuple[str, ...] = (
    "invalid",
    "parse",
    "json",
)

# Order is significant: the first rule with a matching pattern wins.
_RULES: tuple[tuple[str, ErrorKind, tuple[str, ...]], ...] = (
    ("auth", ErrorKind.AUTH_FAILURE, _AUTH_PATTERNS),
    ("quota", ErrorKind.QUOTA_EXCEEDED, _QUOTA_PATTERNS),
    ("network", ErrorKind.NETWORK_FAILURE, _NETWORK_PATTERNS),
    ("invalid_response", ErrorKind.INVALID_RESPONSE_STRUCTURE, _INVALID_RESPONSE_PATTERNS),
)

_CODE_ALIASES: dict[str, ErrorKind] = {
    "auth": ErrorKind.AUTH_FAILURE,
    "unauthorized": ErrorKind.AUTH_FAILURE,
    "quota": ErrorKind.QUOTA_EXCEEDED,
    "rate_limit": ErrorKind.RATE_LIMITED,
    "rate_limited": ErrorKind.RATE_LIMITED,
    "timeout": ErrorKind.NETWORK_FAILURE,
    "network": ErrorKind.NETWORK_FAILURE,
    "invalid_response": ErrorKind.INVALID_RESPONSE_STRUCTURE,
    "empty_input": ErrorKind.EMPTY_INPUT,
}


@dataclass(slots=True, frozen=True)
class ErrorClassification:
    """Normalized classification result."""

    kind: ErrorKind
    message: str
    matched_rule: str
    matched_pattern: str | None


def classify_error(
    error: BaseException | str | None,
    *,
    code: str | None = None,
) -> ErrorClassification:
    """Classify a failure, preferring a machine-readable code over text sniffing.

    `code` may also be carried by the exception itself as an ``error_code``
    attribute. Never raises; unknown input maps to the generic category.
    """

    kind = _kind_from_code(code if code is not None else getattr(error, "error_code", None))
    if kind is not None:
        return ErrorClassification(
            kind=kind,
            message=ERROR_MESSAGES[kind],
            matched_rule="error_code",
            matched_pattern=None,
        )

    haystack = _error_text(error).lower()
    for rule, rule_kind, patterns in _RULES:
        pattern = _first_match(haystack, patterns)
        if pattern is not None:
            return ErrorClassification(
                kind=rule_kind,
                message=ERROR_MESSAGES[rule_kind],
                matched_rule=rule,
                matched_pattern=pattern,
            )

    return ErrorClassification(
        kind=ErrorKind.GENERIC_FAILURE,
        message=ERROR_MESSAGES[ErrorKind.GENERIC_FAILURE],
        matched_rule="fallback_generic",
        matched_pattern=None,
    )


def get_safe_error_message(error: BaseException | str | None) -> str:
    """Return only the pre-approved user-facing message for `error`."""

    return classify_error(error).message


def rate_limit_message(wait_time: str) -> str:
    return f"Rate limit exceeded. Please wait {wait_time} before trying again."


def _kind_from_code(code: object) -> ErrorKind | None:
    if not isinstance(code, str):
        return None
    normalized = code.strip().lower()
    if not normalized:
        return None
    try:
        return ErrorKind(normalized)
    except ValueError:
        return _CODE_ALIASES.get(normalized)


def _error_text(error: BaseException | str | None) -> str:
    if error is None:
        return ""
    if isinstance(error, str):
        return error
    try:
        return str(error)
    except Exception:  # noqa: BLE001
        return type(error).__name__


def _first_match(haystack: str, patterns: tuple[str, ...]) -> str | None:
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None
