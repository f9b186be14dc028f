"""Structural validation of analysis responses from the backend proxy."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from unscatter.models import AnalysisResult, Level, Task

_LEVELS = {level.value for level in Level}


@dataclass(slots=True)
class ValidationResult:
    """Result of response validation."""

    is_valid: bool
    error_summary: str | None
    result: AnalysisResult | None


def validate_response_text(raw: str) -> ValidationResult:
    """Parse a JSON response body and validate it as an analysis result."""

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as error:
        return _invalid(f"Response is not valid JSON: {error}")
    return validate_response_payload(payload)


def validate_response_payload(payload: Any) -> ValidationResult:  # noqa: PLR0911
    """Validate a decoded response payload and build an `AnalysisResult`."""

    if not isinstance(payload, dict):
        return _invalid("Invalid structure: response must be a JSON object.")

    raw_tasks = payload.get("tasks")
    if not isinstance(raw_tasks, list):
        return _invalid("Invalid structure: tasks must be an array.")
    next_action_id = payload.get("nextActionId")
    if not _is_int(next_action_id):
        return _invalid("Invalid structure: nextActionId must be an integer.")

    tasks: list[Task] = []
    for index, item in enumerate(raw_tasks):
        task = _parse_task(item)
        if isinstance(task, str):
            return _invalid(f"Invalid structure: tasks[{index}] {task}")
        tasks.append(task)

    return ValidationResult(
        is_valid=True,
        error_summary=None,
        result=AnalysisResult(tasks=tasks, next_action_id=next_action_id),
    )


def _parse_task(item: Any) -> Task | str:  # noqa: PLR0911
    if not isinstance(item, dict):
        return "must be an object."
    task_id = item.get("id")
    if not _is_int(task_id):
        return "id must be an integer."
    text = item.get("task")
    if not isinstance(text, str):
        return "task must be a string."
    cluster = item.get("cluster")
    if not isinstance(cluster, str):
        return "cluster must be a string."
    effort = item.get("effort")
    if effort not in _LEVELS:
        return "effort must be one of low, medium, high."
    impact = item.get("impact")
    if impact not in _LEVELS:
        return "impact must be one of low, medium, high."
    dependencies = item.get("dependencies", [])
    if not isinstance(dependencies, list) or not all(_is_int(dep) for dep in dependencies):
        return "dependencies must be an array of integers."
    return Task(
        id=task_id,
        text=text,
        cluster=cluster,
        effort=Level(effort),
        impact=Level(impact),
        dependencies=list(dependencies),
    )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _invalid(summary: str) -> ValidationResult:
    return ValidationResult(is_valid=False, error_summary=summary, result=None)
