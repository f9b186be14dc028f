"""Tests for the backend proxy HTTP client."""

from __future__ import annotations

import asyncio
import json

import allure
import httpx
import pytest

from tests.conftest import PNG_BYTES, encode_image, sample_response
from unscatter.http.client import AnalysisClient, BackendError

pytestmark = [
    allure.epic("Request Governance"),
    allure.feature("Backend Client"),
]


def _client(handler, **kwargs) -> AnalysisClient:
    return AnalysisClient(
        base_url="http://proxy.test",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_analyze_posts_text_and_images() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=sample_response())

    image = encode_image(PNG_BYTES, "image/png")
    async with _client(handler) as client:
        payload = await client.analyze("Buy milk", [image])

    assert payload == sample_response()
    assert len(seen) == 1
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/api/analyze"
    assert json.loads(seen[0].content) == {
        "inputText": "Buy milk",
        "images": [{"mimeType": "image/png", "data": image.data}],
    }


@pytest.mark.asyncio
async def test_analyze_raises_with_error_body_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "Service quota exceeded. Please try again later."})

    async with _client(handler) as client:
        with pytest.raises(BackendError) as info:
            await client.analyze("x", [])

    assert str(info.value) == "Service quota exceeded. Please try again later."
    assert info.value.status_code == 500
    assert info.value.error_code is None


@pytest.mark.asyncio
async def test_analyze_uses_machine_readable_code() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "upstream said no", "code": "quota_exceeded"})

    async with _client(handler) as client:
        with pytest.raises(BackendError) as info:
            await client.analyze("x", [])

    assert info.value.error_code == "quota_exceeded"


@pytest.mark.asyncio
async def test_analyze_falls_back_to_reason_phrase() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    async with _client(handler) as client:
        with pytest.raises(BackendError) as info:
            await client.analyze("x", [])

    assert str(info.value) == "Bad Gateway"
    assert info.value.status_code == 502


@pytest.mark.asyncio
async def test_analyze_derives_code_from_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": "Too many requests."})

    async with _client(handler) as client:
        with pytest.raises(BackendError) as info:
            await client.analyze("x", [])

    assert info.value.error_code == "rate_limited"


@pytest.mark.asyncio
async def test_analyze_flags_unparseable_success_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="definitely not json")

    async with _client(handler) as client:
        with pytest.raises(BackendError) as info:
            await client.analyze("x", [])

    assert info.value.error_code == "invalid_response"


@pytest.mark.asyncio
async def test_analyze_maps_transport_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    async with _client(handler) as client:
        with pytest.raises(BackendError) as info:
            await client.analyze("x", [])

    assert info.value.error_code == "timeout"


@pytest.mark.asyncio
async def test_analyze_aborts_slow_response() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json=sample_response())

    async with _client(handler, timeout_seconds=0.05) as client:
        with pytest.raises(BackendError) as info:
            await client.analyze("x", [])

    assert info.value.error_code == "timeout"
    assert "timeout" in str(info.value).lower()


@pytest.mark.asyncio
async def test_analyze_maps_connection_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(BackendError) as info:
            await client.analyze("x", [])

    assert info.value.error_code == "network"
    assert "connection refused" in str(info.value)


@pytest.mark.asyncio
async def test_check_health_ok() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/health"
        return httpx.Response(200, json={"status": "ok", "timestamp": "2026-10-19T10:00:00Z"})

    async with _client(handler) as client:
        status = await client.check_health()

    assert status.ok
    assert status.status == "ok"
    assert status.timestamp == "2026-10-19T10:00:00Z"
    assert status.error is None


@pytest.mark.asyncio
async def test_check_health_reports_http_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": "down"})

    async with _client(handler) as client:
        status = await client.check_health()

    assert not status.ok
    assert status.error == "HTTP 503"


@pytest.mark.asyncio
async def test_check_health_never_raises_on_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route", request=request)

    async with _client(handler) as client:
        status = await client.check_health()

    assert not status.ok
    assert status.error is not None
