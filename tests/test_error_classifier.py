from __future__ import annotations

import allure
import pytest

from unscatter.governance.error_classifier import (
    ERROR_MESSAGES,
    classify_error,
    get_safe_error_message,
    rate_limit_message,
)
from unscatter.http.client import BackendError
from unscatter.models import ErrorKind

pytestmark = [
    allure.epic("Request Governance"),
    allure.feature("Error Classification"),
]


def test_classifier_maps_unauthorized_api_key_to_auth() -> None:
    classified = classify_error(Exception("401 Unauthorized: invalid api key"))
    assert classified.kind == ErrorKind.AUTH_FAILURE
    assert classified.matched_rule == "auth"
    assert classified.matched_pattern == "api key"
    assert classified.message == ERROR_MESSAGES[ErrorKind.AUTH_FAILURE]


def test_classifier_maps_connection_timeout_to_network() -> None:
    classified = classify_error(Exception("ECONNRESET timeout"))
    assert classified.kind == ErrorKind.NETWORK_FAILURE
    assert classified.matched_pattern == "timeout"


def test_classifier_falls_back_to_generic() -> None:
    classified = classify_error(Exception("segmentation fault in worker 7"))
    assert classified.kind == ErrorKind.GENERIC_FAILURE
    assert classified.matched_rule == "fallback_generic"
    assert classified.matched_pattern is None


def test_classifier_prefers_quota_over_network_and_parse() -> None:
    classified = classify_error("Quota exceeded while parsing network response")
    assert classified.kind == ErrorKind.QUOTA_EXCEEDED
    assert classified.matched_pattern == "quota"


def test_classifier_prefers_auth_over_quota() -> None:
    classified = classify_error("Forbidden: rate limit for this key")
    assert classified.kind == ErrorKind.AUTH_FAILURE


def test_classifier_maps_parse_errors_to_invalid_response() -> None:
    classified = classify_error(ValueError("Unexpected token in JSON at position 0"))
    assert classified.kind == ErrorKind.INVALID_RESPONSE_STRUCTURE
    assert classified.matched_pattern == "json"


def test_classifier_is_case_insensitive() -> None:
    assert classify_error("NETWORK DOWN").kind == ErrorKind.NETWORK_FAILURE


def test_classifier_prefers_error_code_over_text() -> None:
    classified = classify_error("invalid api key", code="quota_exceeded")
    assert classified.kind == ErrorKind.QUOTA_EXCEEDED
    assert classified.matched_rule == "error_code"


def test_classifier_reads_error_code_from_exception() -> None:
    error = BackendError("something odd happened", error_code="timeout")
    assert classify_error(error).kind == ErrorKind.NETWORK_FAILURE


def test_classifier_ignores_unknown_error_code() -> None:
    classified = classify_error("service unauthorized", code="E_WEIRD")
    assert classified.kind == ErrorKind.AUTH_FAILURE
    assert classified.matched_rule == "auth"


@pytest.mark.parametrize("error", [None, "", Exception()])
def test_classifier_handles_empty_input(error: object) -> None:
    assert classify_error(error).kind == ErrorKind.GENERIC_FAILURE  # type: ignore[arg-type]


def test_classifier_survives_unprintable_exception() -> None:
    class Unprintable(Exception):
        def __str__(self) -> str:
            raise RuntimeError("boom")

    assert classify_error(Unprintable()).kind == ErrorKind.GENERIC_FAILURE


def test_safe_message_never_echoes_raw_detail() -> None:
    raw = "Traceback: key=sk-secret-123 at /srv/app.py line 3"
    message = get_safe_error_message(raw)
    assert message in ERROR_MESSAGES.values()
    assert "sk-secret" not in message


def test_every_kind_has_a_message() -> None:
    assert set(ERROR_MESSAGES) == set(ErrorKind)
    assert all(message.strip() for message in ERROR_MESSAGES.values())


def test_rate_limit_message_includes_wait_time() -> None:
    assert rate_limit_message("5 seconds") == (
        "Rate limit exceeded. Please wait 5 seconds before trying again."
    )
