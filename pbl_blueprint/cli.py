"""Command-line interface for the PBL Blueprint authoring core."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from pbl_blueprint.config.settings import get_settings
from pbl_blueprint.extraction import ContentExtractor, join_items
from pbl_blueprint.extraction.fields import render_item
from pbl_blueprint.flow import (
    STAGE_ORDER,
    StageController,
    StageTransitionError,
    TurnResult,
    blueprint_status,
    progress,
    spec_for,
)
from pbl_blueprint.models import (
    ArtifactKind,
    BlueprintData,
    ExtractionConfig,
    ExtractionResult,
    StageAction,
)

# Configure structlog for CLI
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="pbl-blueprint",
    help="PBL Blueprint - extract and walk project-based-learning blueprints",
    add_completion=False,
)
console = Console()

# ExtractionConfig field holding the minimum for each list kind
MINIMUM_FIELDS = {
    ArtifactKind.PHASES: "min_phases",
    ArtifactKind.ACTIVITIES: "min_activities",
    ArtifactKind.RESOURCES: "min_resources",
    ArtifactKind.MILESTONES: "min_milestones",
    ArtifactKind.RUBRIC: "min_rubric_criteria",
}


def _configure_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(level=level)


def _read_text(path: Path) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


@app.command()
def extract(
    kind: ArtifactKind = typer.Argument(..., help="Artifact kind to extract"),
    text_path: Path = typer.Argument(
        ...,
        help="Path to a text file holding the response",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    minimum: Optional[int] = typer.Option(
        None,
        "--min",
        "-m",
        min=0,
        help="Minimum item count for list kinds (default from settings)",
    ),
    keep_markdown: bool = typer.Option(
        False,
        "--keep-markdown",
        help="Do not strip markdown emphasis before extraction",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the extraction result as JSON",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log every strategy attempt",
    ),
) -> None:
    """Extract one artifact kind from a text file."""
    _configure_logging(verbose)

    changes = {"clean_markdown": not keep_markdown, "verbose": verbose}
    if minimum is not None:
        if kind not in MINIMUM_FIELDS:
            console.print(f"[red]Error:[/red] --min only applies to list kinds, not {kind.value}")
            raise typer.Exit(code=2)
        changes[MINIMUM_FIELDS[kind]] = minimum

    extractor = ContentExtractor()
    extractor.update_config(**changes)
    result = extractor.extract(kind, _read_text(text_path))

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return

    _display_extraction(kind, result)


@app.command()
def session(
    script_path: Path = typer.Argument(
        ...,
        help='JSON list of steps, e.g. [{"action": "submit", "text": "..."}]',
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    blueprint_path: Optional[Path] = typer.Option(
        None,
        "--blueprint",
        "-b",
        help="Resume from an existing blueprint JSON file",
        exists=True,
        dir_okay=False,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the final blueprint JSON here",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Replay a scripted authoring conversation through the stage controller."""
    _configure_logging(verbose)

    try:
        steps = json.loads(_read_text(script_path))
        if not isinstance(steps, list):
            raise ValueError("script must be a JSON list of steps")

        extractor = ContentExtractor()
        if blueprint_path is not None:
            blueprint = BlueprintData.model_validate_json(_read_text(blueprint_path))
            controller = StageController.resume(blueprint, extractor)
        else:
            controller = StageController(extractor)
    except (ValueError, ValidationError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    console.print(
        Panel.fit(
            "[bold blue]PBL Blueprint Session[/bold blue]\n"
            f"Starting at {controller.stage.value}",
            border_style="blue",
        )
    )

    for number, step in enumerate(steps, 1):
        action = step.get("action", "")
        argument = step.get("stage") if action == StageAction.EDIT.value else step.get("text")
        try:
            turn = controller.perform(action, argument)
        except (StageTransitionError, ValueError) as e:
            console.print(f"\n[red]Step {number} failed:[/red] {escape(str(e))}")
            sys.exit(1)
        _display_turn(number, action, turn)

    snapshot = controller.snapshot()
    console.print(
        f"\n[bold]Final stage:[/bold] {controller.stage.value} "
        f"({progress(controller.stage).overall_percentage}% overall, "
        f"status {blueprint_status(snapshot).value})"
    )

    if output is not None:
        with open(output, "w", encoding="utf-8") as f:
            f.write(snapshot.model_dump_json(indent=2))
        console.print(f"[green]Blueprint saved to:[/green] {output}")


@app.command()
def stages() -> None:
    """List the authoring stages in order."""
    settings = get_settings()

    table = Table(title="Authoring Stages")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Stage")
    table.add_column("Phase")
    table.add_column("Role")
    table.add_column("Artifact")
    table.add_column("Floor", justify="right")

    for number, stage in enumerate(STAGE_ORDER, 1):
        spec = spec_for(stage)
        floor = ""
        if spec.is_data:
            value = settings.free_text_acceptance_floor if spec.free_text else settings.acceptance_floor
            floor = f"{value:.2f}"
        artifact = spec.artifact.value if spec.artifact else ""
        if spec.optional:
            artifact = f"{artifact} (optional)"
        table.add_row(str(number), stage.value, spec.phase.value, spec.role.value, artifact, floor)

    console.print(table)


@app.command()
def info() -> None:
    """Display system information and configuration."""
    from pbl_blueprint import __version__

    settings = get_settings()
    config = ExtractionConfig.from_settings(settings)

    console.print(
        Panel.fit(
            "[bold blue]PBL Blueprint[/bold blue]",
            border_style="blue",
        )
    )

    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="dim")
    table.add_column("Value")

    table.add_row("Version", __version__)
    table.add_row("Min Phases", str(config.min_phases))
    table.add_row("Min Activities", str(config.min_activities))
    table.add_row("Min Resources", str(config.min_resources))
    table.add_row("Min Milestones", str(config.min_milestones))
    table.add_row("Min Rubric Criteria", str(config.min_rubric_criteria))
    table.add_row("Clean Markdown", str(config.clean_markdown))
    table.add_row("Acceptance Floor", f"{settings.acceptance_floor:.2f}")
    table.add_row("Free-text Floor", f"{settings.free_text_acceptance_floor:.2f}")
    table.add_row("Log Level", settings.log_level)

    console.print(table)


def _display_extraction(kind: ArtifactKind, result: ExtractionResult) -> None:
    """Display an extraction result.

    Args:
        kind: The artifact kind that was extracted.
        result: The extraction result.
    """
    console.print(
        f"\n[bold]{kind.value}[/bold]  "
        f"[dim]format:[/dim] {result.format.value}  "
        f"[dim]confidence:[/dim] {result.confidence:.2f}  "
        f"[dim]items:[/dim] {result.count}"
    )

    if result.count:
        table = Table(show_header=False, box=None)
        table.add_column("#", style="dim", justify="right")
        table.add_column("Item")
        items = result.items if kind.is_list else (result.items,)
        for i, item in enumerate(items, 1):
            table.add_row(str(i), escape(render_item(kind, item)))
        console.print(table)

    if result.warnings:
        console.print("\n[yellow]Warnings:[/yellow]")
        for warning in result.warnings:
            console.print(f"  - {escape(warning)}")

    if result.count and kind.is_list:
        console.print(f"\n[dim]Normalized:[/dim]\n{escape(join_items(result, kind))}")


def _display_turn(number: int, action: str, turn: TurnResult) -> None:
    confidence = ""
    if turn.extraction is not None:
        confidence = f" (confidence {turn.extraction.confidence:.2f})"

    console.print(
        f"\n[bold]{number}. {escape(action)}[/bold] "
        f"{turn.previous_stage.value} -> {turn.stage.value} "
        f"[cyan]{turn.outcome.value}[/cyan]{confidence}"
    )
    for warning in turn.warnings:
        console.print(f"  [yellow]![/yellow] {escape(warning)}")
    if turn.editable_default:
        console.print(f"  [dim]Current value:[/dim] {escape(turn.editable_default)}")
    if turn.prompt:
        console.print(f"  [dim]{escape(turn.prompt)}[/dim]")


if __name__ == "__main__":
    app()
