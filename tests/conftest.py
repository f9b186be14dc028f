"""Shared test fixtures."""

from __future__ import annotations

import base64
import copy
import os

import pytest

from unscatter.models import ImagePayload

SAMPLE_RESPONSE = {
    "tasks": [
        {
            "id": 1,
            "task": "Buy milk",
            "cluster": "Errands",
            "effort": "low",
            "impact": "low",
            "dependencies": [],
        },
        {
            "id": 2,
            "task": "Call dentist",
            "cluster": "Errands",
            "effort": "medium",
            "impact": "medium",
            "dependencies": [],
        },
    ],
    "nextActionId": 1,
}

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 24
WEBP_BYTES = b"RIFF\x24\x00\x00\x00WEBPVP8 " + b"\x00" * 16


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def sample_response() -> dict[str, object]:
    return copy.deepcopy(SAMPLE_RESPONSE)


def encode_image(raw: bytes, mime_type: str) -> ImagePayload:
    return ImagePayload(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop UNSCATTER_* variables from the developer environment."""

    for name in list(os.environ):
        if name.startswith("UNSCATTER_"):
            monkeypatch.delenv(name, raising=False)
