"""Orchestration of sanitization, rate limiting, caching, and error handling."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

import httpx

from unscatter.governance.cache import ResultCache
from unscatter.governance.error_classifier import (
    ERROR_MESSAGES,
    classify_error,
    rate_limit_message,
)
from unscatter.governance.images import ImagePolicy
from unscatter.governance.rate_limiter import RateLimiter
from unscatter.governance.sanitization import MAX_TEXT_LENGTH, sanitize_user_input
from unscatter.governance.validator import validate_response_payload
from unscatter.http.client import AnalysisClient, BackendError, HealthStatus
from unscatter.models import AnalysisError, AnalysisResult, ErrorKind, ImagePayload

if TYPE_CHECKING:
    from unscatter.config import Settings

logger = logging.getLogger(__name__)


class AnalysisGateway:
    """Single entry point for analysis calls.

    One gateway owns one rate limiter and one cache; callers receive the
    gateway by reference instead of importing module-level singletons. Every
    failure leaves as an `AnalysisError` with a user-safe message.
    """

    def __init__(
        self,
        client: AnalysisClient,
        *,
        rate_limiter: RateLimiter | None = None,
        cache: ResultCache | None = None,
        max_text_length: int = MAX_TEXT_LENGTH,
        key_on_sanitized_text: bool = False,
        image_policy: ImagePolicy | None = None,
    ) -> None:
        self.client = client
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
        self.cache = cache if cache is not None else ResultCache()
        self.max_text_length = max_text_length
        self.key_on_sanitized_text = key_on_sanitized_text
        self.image_policy = image_policy

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> AnalysisGateway:
        """Build the composition root: one client, limiter, and cache."""

        return cls(
            AnalysisClient(
                base_url=settings.api.base_url,
                timeout_seconds=settings.api.timeout_seconds,
                transport=transport,
            ),
            rate_limiter=RateLimiter(
                settings.rate_limit.max_requests,
                settings.rate_limit.window_seconds,
            ),
            cache=ResultCache(
                settings.cache.max_age_seconds,
                settings.cache.max_size,
                key_strategy=settings.cache.key_strategy,
                eviction=settings.cache.eviction,
            ),
            max_text_length=settings.input.max_text_length,
            key_on_sanitized_text=settings.cache.key_on_sanitized_text,
            image_policy=ImagePolicy(
                max_images=settings.input.max_images,
                max_image_bytes=settings.input.max_image_bytes,
                verify_signatures=settings.input.verify_image_signatures,
            ),
        )

    async def analyze(
        self,
        text: str | None,
        images: Sequence[ImagePayload] = (),
    ) -> AnalysisResult:
        """Analyze text and images into a task plan.

        Consumes one rate-limit slot per call, including cache hits, and makes
        at most one network round trip.
        """

        raw_text = text or ""
        image_list = tuple(images or ())
        if not raw_text.strip() and not image_list:
            raise AnalysisError(ErrorKind.EMPTY_INPUT, ERROR_MESSAGES[ErrorKind.EMPTY_INPUT])

        if self.image_policy is not None:
            check = self.image_policy.check_all(image_list)
            if not check.valid:
                logger.warning("Rejected image payload: %s", check.error)
                raise AnalysisError(
                    ErrorKind.INVALID_IMAGE,
                    ERROR_MESSAGES[ErrorKind.INVALID_IMAGE],
                )

        if not self.rate_limiter.can_make_request():
            wait_seconds = self.rate_limiter.seconds_until_next_request()
            logger.warning("Client rate limit reached; next slot in %.1fs", wait_seconds)
            raise AnalysisError(
                ErrorKind.RATE_LIMITED,
                rate_limit_message(self.rate_limiter.wait_time_message()),
                retry_after_seconds=wait_seconds,
            )

        sanitized = sanitize_user_input(raw_text, max_chars=self.max_text_length)
        cache_text = sanitized if self.key_on_sanitized_text else raw_text
        cached = self.cache.get(cache_text, image_list)
        if cached is not None:
            logger.debug("Cache hit for analysis request (%d images)", len(image_list))
            return cached

        try:
            result = await self._request(sanitized, image_list)
        except Exception as error:  # noqa: BLE001
            classification = classify_error(error)
            logger.warning(
                "Analysis failed: kind=%s rule=%s pattern=%s detail=%s",
                classification.kind.value,
                classification.matched_rule,
                classification.matched_pattern,
                error,
            )
            raise AnalysisError(classification.kind, classification.message) from error

        self.cache.set(cache_text, image_list, result)
        return result

    async def check_health(self) -> HealthStatus:
        return await self.client.check_health()

    async def _request(self, sanitized: str, images: tuple[ImagePayload, ...]) -> AnalysisResult:
        payload = await self.client.analyze(sanitized, images)
        validation = validate_response_payload(payload)
        if not validation.is_valid or validation.result is None:
            raise BackendError(
                validation.error_summary or "Invalid structure",
                error_code=ErrorKind.INVALID_RESPONSE_STRUCTURE.value,
            )
        logger.info(
            "Analysis succeeded: tasks=%d next_action_id=%d",
            len(validation.result.tasks),
            validation.result.next_action_id,
        )
        return validation.result

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> AnalysisGateway:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()
