"""Async HTTP client for the analysis backend proxy."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx

from unscatter.models import ImagePayload

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3001"
DEFAULT_TIMEOUT_SECONDS = 30.0
ANALYZE_PATH = "/api/analyze"
HEALTH_PATH = "/health"
DEFAULT_USER_AGENT = "unscatter-client/0.1"


class BackendError(RuntimeError):
    """Raised when the backend proxy cannot produce a usable response.

    Holds raw upstream detail; callers must classify it before showing it.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


@dataclass(slots=True)
class HealthStatus:
    """Result of a health probe."""

    ok: bool
    status: str | None
    timestamp: str | None
    error: str | None = None


class AnalysisClient:
    """Thin wrapper over `httpx.AsyncClient` for the proxy endpoints.

    No automatic retries are performed; each call is one round trip bounded
    by `timeout_seconds` from request start to full response.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        base_headers = {"User-Agent": user_agent, "Accept": "application/json"}
        if headers:
            base_headers.update(headers)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_seconds, connect=min(10.0, timeout_seconds)),
            headers=base_headers,
            transport=transport,
        )

    async def analyze(self, text: str, images: Sequence[ImagePayload]) -> Any:
        """POST one analysis request and return the decoded JSON body."""

        body = {"inputText": text, "images": [image.to_dict() for image in images]}
        response = await self._send("POST", ANALYZE_PATH, json=body)
        if not response.is_success:
            message, error_code = _error_details(response)
            logger.warning("Analyze request failed: HTTP %s %s", response.status_code, message)
            raise BackendError(message, status_code=response.status_code, error_code=error_code)
        try:
            return response.json()
        except ValueError as error:
            raise BackendError(
                f"Failed to parse JSON response: {error}",
                status_code=response.status_code,
                error_code="invalid_response",
            ) from error

    async def check_health(self) -> HealthStatus:
        """Probe the proxy health endpoint; transport failures yield ``ok=False``."""

        try:
            response = await self._send("GET", HEALTH_PATH)
            payload = response.json() if response.is_success else {}
        except (BackendError, ValueError) as error:
            return HealthStatus(ok=False, status=None, timestamp=None, error=str(error))
        if not isinstance(payload, dict):
            payload = {}
        status = payload.get("status")
        return HealthStatus(
            ok=response.is_success and status == "ok",
            status=status if isinstance(status, str) else None,
            timestamp=str(payload["timestamp"]) if payload.get("timestamp") else None,
            error=None if response.is_success else f"HTTP {response.status_code}",
        )

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await asyncio.wait_for(
                self._client.request(method, path, **kwargs),
                timeout=self.timeout_seconds,
            )
        except (TimeoutError, httpx.TimeoutException) as error:
            logger.warning("Timeout calling %s%s", self.base_url, path)
            raise BackendError(
                f"Request timeout after {self.timeout_seconds:g}s",
                error_code="timeout",
            ) from error
        except httpx.HTTPError as error:
            logger.warning("Network error calling %s%s: %s", self.base_url, path, error)
            raise BackendError(f"Network error: {error}", error_code="network") from error

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AnalysisClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()


def _error_details(response: httpx.Response) -> tuple[str, str | None]:
    """Extract ``(message, code)`` from an error body, falling back to the reason.

    When the body carries no ``code`` field, well-known status codes supply one.
    """

    fallback = response.reason_phrase or f"HTTP {response.status_code}"
    status_code = _STATUS_ERROR_CODES.get(response.status_code)
    try:
        payload = response.json()
    except ValueError:
        return fallback, status_code
    if not isinstance(payload, dict):
        return fallback, status_code
    message = payload.get("error")
    code = payload.get("code")
    return (
        message if isinstance(message, str) and message else fallback,
        code if isinstance(code, str) and code else status_code,
    )


_STATUS_ERROR_CODES: dict[int, str] = {
    401: "auth_failure",
    403: "auth_failure",
    408: "network_failure",
    429: "rate_limited",
    504: "network_failure",
}
