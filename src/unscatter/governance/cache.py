"""Bounded, time-expiring memoization of analysis results."""

from __future__ import annotations

import hashlib
import time
from collections import OrderedDict
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from unscatter.models import AnalysisResult, ImagePayload

DEFAULT_MAX_AGE_SECONDS = 5 * 60.0
DEFAULT_MAX_SIZE = 50

KEY_STRATEGIES = ("digest", "fingerprint")
EVICTION_POLICIES = ("fifo", "lru")

_FINGERPRINT_TEXT_CHARS = 100
_FINGERPRINT_IMAGE_CHARS = 20


@dataclass(slots=True)
class CacheEntry:
    """Stored result with its insertion and last-access timestamps."""

    key: str
    result: AnalysisResult
    timestamp: float
    last_access: float


@dataclass(slots=True, frozen=True)
class CacheStats:
    size: int
    max_size: int


def fingerprint_key(text: str, images: Sequence[ImagePayload]) -> str:
    """Lossy key: text prefix plus a short prefix of each image payload.

    Two inputs sharing the same prefixes collide.
    """

    text_key = text[:_FINGERPRINT_TEXT_CHARS]
    image_key = "_".join(image.data[:_FINGERPRINT_IMAGE_CHARS] for image in images)
    return f"{text_key}_{image_key}"


def digest_key(text: str, images: Sequence[ImagePayload]) -> str:
    """SHA-256 over the full text and every image, length-prefixed per field."""

    digest = hashlib.sha256()
    for part in (text, *(f"{image.mime_type}\x00{image.data}" for image in images)):
        encoded = part.encode("utf-8")
        digest.update(len(encoded).to_bytes(8, "big"))
        digest.update(encoded)
    return digest.hexdigest()


class ResultCache:
    """Cache of analysis results keyed by request content.

    Entries expire after `max_age_seconds`. When the cache is full, one entry
    is evicted before a new key is inserted: the earliest inserted one with
    ``eviction="fifo"``, or the least recently read one with ``eviction="lru"``.
    """

    def __init__(
        self,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        *,
        key_strategy: str = "digest",
        eviction: str = "fifo",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_age_seconds < 0:
            raise ValueError("max_age_seconds must be >= 0.")
        if max_size < 1:
            raise ValueError("max_size must be >= 1.")
        if key_strategy not in KEY_STRATEGIES:
            raise ValueError(
                f"Unsupported cache key strategy: {key_strategy!r}; "
                f"expected one of {', '.join(KEY_STRATEGIES)}.",
            )
        if eviction not in EVICTION_POLICIES:
            raise ValueError(
                f"Unsupported cache eviction policy: {eviction!r}; "
                f"expected one of {', '.join(EVICTION_POLICIES)}.",
            )
        self.max_age_seconds = max_age_seconds
        self.max_size = max_size
        self.key_strategy = key_strategy
        self.eviction = eviction
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def compute_key(self, text: str, images: Sequence[ImagePayload] = ()) -> str:
        if self.key_strategy == "fingerprint":
            return fingerprint_key(text, images)
        return digest_key(text, images)

    def get(self, text: str, images: Sequence[ImagePayload] = ()) -> AnalysisResult | None:
        key = self.compute_key(text, images)
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock()
        if now - entry.timestamp > self.max_age_seconds:
            del self._entries[key]
            return None

        entry.last_access = now
        if self.eviction == "lru":
            self._entries.move_to_end(key)
        return entry.result

    def set(
        self,
        text: str,
        images: Sequence[ImagePayload],
        result: AnalysisResult,
    ) -> None:
        key = self.compute_key(text, images)
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            self._entries.popitem(last=False)

        now = self._clock()
        self._entries[key] = CacheEntry(key=key, result=result, timestamp=now, last_access=now)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> CacheStats:
        return CacheStats(size=len(self._entries), max_size=self.max_size)

    def __len__(self) -> int:
        return len(self._entries)
