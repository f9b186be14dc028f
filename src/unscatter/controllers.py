"""Controllers for analysis CLI commands."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path

import httpx

from unscatter.config import Settings
from unscatter.governance import AnalysisGateway
from unscatter.governance.images import load_image_file
from unscatter.http.client import HealthStatus
from unscatter.models import AnalysisResult, ImagePayload


@dataclass(slots=True)
class AnalyzeCommand:
    """CLI input for one analysis request."""

    text: str
    image_paths: tuple[Path, ...] = ()
    output_format: str = "text"


@dataclass(slots=True)
class HealthCommand:
    """CLI input for the backend health probe."""

    base_url: str | None = None


@dataclass(slots=True)
class HealthReport:
    """Health probe report to render in CLI."""

    lines: list[str]
    success: bool


class AnalysisCliController:
    """Builds a gateway from settings and renders its results as text lines."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.transport = transport

    def analyze(self, command: AnalyzeCommand) -> list[str]:
        """Run one analysis; raises `AnalysisError` with a user-safe message."""

        settings = Settings.from_env()
        images = [load_image_file(path) for path in command.image_paths]
        result = asyncio.run(self._analyze(settings, command.text, images))
        if command.output_format == "json":
            return [json.dumps(result.to_dict(), indent=2, ensure_ascii=False)]
        return render_plan_lines(result)

    def health(self, command: HealthCommand) -> HealthReport:
        settings = Settings.from_env()
        if command.base_url:
            settings.api.base_url = command.base_url
            settings.validate()
        status = asyncio.run(self._health(settings))
        return HealthReport(
            lines=[_render_health(settings.api.base_url, status)],
            success=status.ok,
        )

    async def _analyze(
        self,
        settings: Settings,
        text: str,
        images: list[ImagePayload],
    ) -> AnalysisResult:
        async with AnalysisGateway.from_settings(settings, transport=self.transport) as gateway:
            return await gateway.analyze(text, images)

    async def _health(self, settings: Settings) -> HealthStatus:
        async with AnalysisGateway.from_settings(settings, transport=self.transport) as gateway:
            return await gateway.check_health()


def render_plan_lines(result: AnalysisResult) -> list[str]:
    """Render a task plan as clustered, human-readable lines."""

    lines: list[str] = []
    next_action = result.next_action
    if next_action is not None:
        lines.append(f"Next action: #{next_action.id} {next_action.text}")
    else:
        lines.append(f"Next action: #{result.next_action_id} (not found in task list)")

    for cluster, tasks in result.clusters().items():
        lines.append("")
        lines.append(f"[{cluster}]")
        for task in tasks:
            marker = "*" if task.id == result.next_action_id else "-"
            line = (
                f"  {marker} #{task.id} {task.text} "
                f"(effort={task.effort.value}, impact={task.impact.value})"
            )
            if task.dependencies:
                line += " after " + ", ".join(f"#{dep}" for dep in task.dependencies)
            lines.append(line)

    dangling = result.dangling_dependencies()
    if dangling:
        lines.append("")
        for task_id, missing in sorted(dangling.items()):
            lines.append(
                f"Warning: task #{task_id} depends on unknown task(s) "
                + ", ".join(f"#{dep}" for dep in missing),
            )
    return lines


def _render_health(base_url: str, status: HealthStatus) -> str:
    if status.ok:
        return f"Backend {base_url}: ok (timestamp={status.timestamp or 'n/a'})"
    return f"Backend {base_url}: unavailable ({status.error or status.status or 'unknown'})"
