"""HTTP access to the analysis backend proxy."""

from unscatter.http.client import AnalysisClient, BackendError, HealthStatus

__all__ = [
    "AnalysisClient",
    "BackendError",
    "HealthStatus",
]
