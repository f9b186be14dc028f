"""Runtime configuration for the analysis client and its governance layer."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

from unscatter.governance.cache import (
    DEFAULT_MAX_AGE_SECONDS,
    DEFAULT_MAX_SIZE,
    EVICTION_POLICIES,
    KEY_STRATEGIES,
)
from unscatter.governance.images import DEFAULT_MAX_IMAGE_BYTES, DEFAULT_MAX_IMAGES
from unscatter.governance.rate_limiter import DEFAULT_MAX_REQUESTS, DEFAULT_WINDOW_SECONDS
from unscatter.governance.sanitization import MAX_TEXT_LENGTH
from unscatter.http.client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS


@dataclass(slots=True)
class ApiSettings:
    """Backend proxy endpoint settings."""

    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


@dataclass(slots=True)
class RateLimitSettings:
    """Client-side sliding-window limits."""

    max_requests: int = DEFAULT_MAX_REQUESTS
    window_seconds: float = DEFAULT_WINDOW_SECONDS


@dataclass(slots=True)
class CacheSettings:
    """Result cache settings."""

    max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS
    max_size: int = DEFAULT_MAX_SIZE
    key_strategy: str = "digest"
    eviction: str = "fifo"
    key_on_sanitized_text: bool = False


@dataclass(slots=True)
class InputSettings:
    """Limits applied to user text and images."""

    max_text_length: int = MAX_TEXT_LENGTH
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    max_images: int = DEFAULT_MAX_IMAGES
    verify_image_signatures: bool = True


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    api: ApiSettings = field(default_factory=ApiSettings)
    rate_limit: RateLimitSettings = field(default_factory=RateLimitSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    input: InputSettings = field(default_factory=InputSettings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with defaults for local development."""

        settings = cls(
            api=ApiSettings(
                base_url=os.getenv("UNSCATTER_API_URL", DEFAULT_BASE_URL).strip(),
                timeout_seconds=_env_float(
                    "UNSCATTER_API_TIMEOUT_SECONDS",
                    DEFAULT_TIMEOUT_SECONDS,
                ),
            ),
            rate_limit=RateLimitSettings(
                max_requests=_env_int("UNSCATTER_RATE_LIMIT_MAX_REQUESTS", DEFAULT_MAX_REQUESTS),
                window_seconds=_env_float(
                    "UNSCATTER_RATE_LIMIT_WINDOW_SECONDS",
                    DEFAULT_WINDOW_SECONDS,
                ),
            ),
            cache=CacheSettings(
                max_age_seconds=_env_float(
                    "UNSCATTER_CACHE_MAX_AGE_SECONDS",
                    DEFAULT_MAX_AGE_SECONDS,
                ),
                max_size=_env_int("UNSCATTER_CACHE_MAX_SIZE", DEFAULT_MAX_SIZE),
                key_strategy=os.getenv("UNSCATTER_CACHE_KEY_STRATEGY", "digest").strip().lower(),
                eviction=os.getenv("UNSCATTER_CACHE_EVICTION", "fifo").strip().lower(),
                key_on_sanitized_text=_env_bool(
                    "UNSCATTER_CACHE_KEY_ON_SANITIZED_TEXT",
                    default=False,
                ),
            ),
            input=InputSettings(
                max_text_length=_env_int("UNSCATTER_MAX_TEXT_LENGTH", MAX_TEXT_LENGTH),
                max_image_bytes=_env_int("UNSCATTER_MAX_IMAGE_BYTES", DEFAULT_MAX_IMAGE_BYTES),
                max_images=_env_int("UNSCATTER_MAX_IMAGES", DEFAULT_MAX_IMAGES),
                verify_image_signatures=_env_bool(
                    "UNSCATTER_VERIFY_IMAGE_SIGNATURES",
                    default=True,
                ),
            ),
        )
        settings.validate()
        return settings

    def validate(self) -> None:  # noqa: C901
        """Raise configuration error naming the offending variable."""

        parsed = urlparse(self.api.base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(
                "Invalid UNSCATTER_API_URL: "
                f"{self.api.base_url!r}. Expected an absolute URL with http:// or https:// scheme.",
            )
        if self.api.timeout_seconds <= 0:
            raise ValueError("UNSCATTER_API_TIMEOUT_SECONDS must be > 0.")
        if self.rate_limit.max_requests < 1:
            raise ValueError("UNSCATTER_RATE_LIMIT_MAX_REQUESTS must be >= 1.")
        if self.rate_limit.window_seconds <= 0:
            raise ValueError("UNSCATTER_RATE_LIMIT_WINDOW_SECONDS must be > 0.")
        if self.cache.max_age_seconds < 0:
            raise ValueError("UNSCATTER_CACHE_MAX_AGE_SECONDS must be >= 0.")
        if self.cache.max_size < 1:
            raise ValueError("UNSCATTER_CACHE_MAX_SIZE must be >= 1.")
        if self.cache.key_strategy not in KEY_STRATEGIES:
            raise ValueError(
                f"Invalid UNSCATTER_CACHE_KEY_STRATEGY: {self.cache.key_strategy!r}; "
                f"expected {' or '.join(KEY_STRATEGIES)}.",
            )
        if self.cache.eviction not in EVICTION_POLICIES:
            raise ValueError(
                f"Invalid UNSCATTER_CACHE_EVICTION: {self.cache.eviction!r}; "
                f"expected {' or '.join(EVICTION_POLICIES)}.",
            )
        if self.input.max_text_length < 1:
            raise ValueError("UNSCATTER_MAX_TEXT_LENGTH must be >= 1.")
        if self.input.max_image_bytes < 1:
            raise ValueError("UNSCATTER_MAX_IMAGE_BYTES must be >= 1.")
        if self.input.max_images < 0:
            raise ValueError("UNSCATTER_MAX_IMAGES must be >= 0.")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {raw!r}") from error


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError as error:
        raise ValueError(f"Invalid numeric value for {name}: {raw!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
