"""CLI entrypoint for unscatter."""

import logging
from pathlib import Path
from typing import TextIO

import rich_click as click

from unscatter import __version__
from unscatter.controllers import AnalysisCliController, AnalyzeCommand, HealthCommand
from unscatter.models import AnalysisError

click.rich_click.USE_MARKDOWN = True
ANALYSIS_CONTROLLER = AnalysisCliController()


@click.group()
@click.version_option(version=__version__, prog_name="unscatter")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log request details.")
def unscatter(verbose: bool) -> None:
    """Turn scattered notes into a prioritized task plan."""

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )


@unscatter.command("analyze")
@click.argument("text", required=False, default="")
@click.option(
    "--file",
    "text_file",
    type=click.File("r", encoding="utf-8"),
    default=None,
    help="Read input text from a file, or `-` for stdin. Appended after TEXT.",
)
@click.option(
    "--image",
    "image_paths",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="PNG, JPG, or WEBP image to include. Can be repeated.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format.",
)
def analyze(
    text: str,
    text_file: TextIO | None,
    image_paths: tuple[Path, ...],
    output_format: str,
) -> None:
    """Analyze notes and images into clustered tasks with a next action."""

    parts = [text]
    if text_file is not None:
        parts.append(text_file.read())
    try:
        lines = ANALYSIS_CONTROLLER.analyze(
            AnalyzeCommand(
                text="\n".join(part for part in parts if part),
                image_paths=image_paths,
                output_format=output_format,
            ),
        )
    except (AnalysisError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@unscatter.command("health")
@click.option("--base-url", default=None, help="Override UNSCATTER_API_URL for this probe.")
def health(base_url: str | None) -> None:
    """Probe the backend proxy health endpoint."""

    try:
        report = ANALYSIS_CONTROLLER.health(HealthCommand(base_url=base_url))
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(report.lines)
    if not report.success:
        raise click.ClickException("Backend health check failed.")


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    unscatter()
