"""Request governance around the analysis backend.

Every call to the backend proxy passes through the same sequence: input
checks, client-side admission control, a short-lived result cache, the
network round trip, response validation, and error normalization. The
pieces are plain objects owned by one `AnalysisGateway` so that tests and
embedding applications can build isolated instances.
"""

from unscatter.governance.cache import CacheStats, ResultCache
from unscatter.governance.error_classifier import (
    ERROR_MESSAGES,
    ErrorClassification,
    classify_error,
    get_safe_error_message,
)
from unscatter.governance.gateway import AnalysisGateway
from unscatter.governance.images import ImagePolicy
from unscatter.governance.rate_limiter import RateLimiter
from unscatter.governance.sanitization import sanitize_user_input

__all__ = [
    "ERROR_MESSAGES",
    "AnalysisGateway",
    "CacheStats",
    "ErrorClassification",
    "ImagePolicy",
    "RateLimiter",
    "ResultCache",
    "classify_error",
    "get_safe_error_message",
    "sanitize_user_input",
]
