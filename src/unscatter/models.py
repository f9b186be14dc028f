"""Domain models for analysis requests, task plans, and failures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Level(str, Enum):
    """Three-step scale used for task effort and impact."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ErrorKind(str, Enum):
    """Normalized failure kinds surfaced to callers of the gateway."""

    EMPTY_INPUT = "empty_input"
    INVALID_IMAGE = "invalid_image"
    RATE_LIMITED = "rate_limited"
    NETWORK_FAILURE = "network_failure"
    AUTH_FAILURE = "auth_failure"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_RESPONSE_STRUCTURE = "invalid_response_structure"
    GENERIC_FAILURE = "generic_failure"


@dataclass(slots=True, frozen=True)
class ImagePayload:
    """One base64-encoded image attached to an analysis request."""

    mime_type: str
    data: str

    def to_dict(self) -> dict[str, str]:
        return {"mimeType": self.mime_type, "data": self.data}


@dataclass(slots=True)
class Task:
    """Single actionable task produced by the analysis service."""

    id: int
    text: str
    cluster: str
    effort: Level
    impact: Level
    dependencies: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "task": self.text,
            "cluster": self.cluster,
            "effort": self.effort.value,
            "impact": self.impact.value,
            "dependencies": list(self.dependencies),
        }


@dataclass(slots=True)
class AnalysisResult:
    """Task graph returned by the analysis service.

    `tasks` keeps the service output order. `next_action_id` is expected to
    point at exactly one task, but a dangling pointer is tolerated and simply
    yields no `next_action`.
    """

    tasks: list[Task]
    next_action_id: int

    @property
    def next_action(self) -> Task | None:
        return self.find_task(self.next_action_id)

    def find_task(self, task_id: int) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def clusters(self) -> dict[str, list[Task]]:
        """Group tasks by cluster name, preserving first-seen cluster order."""

        grouped: dict[str, list[Task]] = {}
        for task in self.tasks:
            grouped.setdefault(task.cluster, []).append(task)
        return grouped

    def dangling_dependencies(self) -> dict[int, list[int]]:
        """Return dependency ids that reference no task in this result."""

        known = {task.id for task in self.tasks}
        dangling: dict[int, list[int]] = {}
        for task in self.tasks:
            missing = [dep for dep in task.dependencies if dep not in known]
            if missing:
                dangling[task.id] = missing
        return dangling

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "nextActionId": self.next_action_id,
        }


class AnalysisError(RuntimeError):
    """User-safe failure of one analysis call.

    `str(error)` is always a pre-approved message. The underlying cause, if
    any, is chained as `__cause__` for logging only.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        retry_after_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.retry_after_seconds = retry_after_seconds
