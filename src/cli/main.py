"""
Typer CLI for the exercise engine.

Commands:
    exengine kinds                  - List accepted raw kinds and their canonical kind
    exengine check FILE             - Normalize and shape-check every exercise in FILE
    exengine normalize FILE         - Write canonical definitions as JSON
    exengine play FILE              - Run a session in the terminal
    exengine info                   - Show configuration
    exengine version                - Show version information

FILE is JSON: a list of raw exercises, or an object with an "exercises" list.

Usage:
    exengine --help
    exengine check lessons/phonics.json
    exengine normalize lessons/phonics.json --output phonics.canonical.json
    exengine --verbose play lessons/phonics.json
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from config import get_settings
from src.exercises.adapters import ALIASES, CANONICAL_KINDS, RawKind, normalize
from src.exercises.controller import SessionController
from src.exercises.errors import ExerciseEngineError
from src.exercises.schema import ExerciseDefinition, ExerciseKind
from src.exercises.session import SessionState

__version__ = "0.1.0"

app = typer.Typer(
    help="exengine: normalize, check and run exercise definitions",
    no_args_is_help=True,
)

console = Console()

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Exercise engine command line."""
    level = "DEBUG" if verbose else get_settings().log_level
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)


# ========================================
# Helpers
# ========================================


def _read_exercises(path: Path) -> list[dict]:
    """Load the raw exercise list from a JSON file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        rprint(f"[red]✗[/red] Cannot read {path}: {e}")
        raise typer.Exit(code=1)

    if isinstance(data, dict):
        data = data.get("exercises")
    if not isinstance(data, list):
        rprint(f"[red]✗[/red] {path} must hold a list of exercises or an object with an 'exercises' list")
        raise typer.Exit(code=1)
    return data


def _normalize_all(raws: list[dict]) -> tuple[list[ExerciseDefinition], list[tuple[int, str]]]:
    definitions = []
    failures = []
    for i, raw in enumerate(raws):
        try:
            definitions.append(normalize(raw))
        except ExerciseEngineError as e:
            failures.append((i, str(e)))
    return definitions, failures


# ========================================
# KINDS / CHECK / NORMALIZE
# ========================================


@app.command("kinds")
def show_kinds() -> None:
    """List accepted raw kinds, their aliases and canonical kind."""
    policy = get_settings().get_retry_policy()

    table = Table(title="Accepted exercise kinds")
    table.add_column("Raw kind", style="cyan")
    table.add_column("Aliases", style="dim")
    table.add_column("Canonical kind", style="green")
    table.add_column("Retries", justify="right")

    for raw_kind in RawKind:
        canonical = CANONICAL_KINDS[raw_kind]
        aliases = sorted(alias for alias, target in ALIASES.items() if target == raw_kind)
        table.add_row(raw_kind.value, ", ".join(aliases), canonical.value, str(policy[canonical.value]))

    for kind in ExerciseKind:
        table.add_row(kind.value, "", f"{kind.value} (as-is)", str(policy[kind.value]))

    console.print(table)


@app.command("check")
def check_file(
    path: Path = typer.Argument(..., help="JSON file with raw exercises"),
) -> None:
    """Normalize and shape-check every exercise in a file."""
    raws = _read_exercises(path)
    definitions, failures = _normalize_all(raws)

    table = Table(title=f"{path.name}: {len(definitions)}/{len(raws)} valid")
    table.add_column("ID", style="cyan")
    table.add_column("Kind", style="green")
    table.add_column("Subtype")
    table.add_column("Elements", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Warnings", style="yellow")

    for definition in definitions:
        weight = "auto" if definition.scoring_weight is None else f"{definition.scoring_weight:g}"
        table.add_row(
            definition.id,
            definition.kind.value,
            definition.subtype,
            str(len(definition.elements)),
            weight,
            "; ".join(definition.authoring_warnings),
        )
    console.print(table)

    for index, message in failures:
        rprint(f"[red]✗[/red] exercise #{index}: {message}")
    if failures:
        raise typer.Exit(code=1)
    rprint(f"[green]✓[/green] All {len(definitions)} exercises are valid")


@app.command("normalize")
def normalize_file(
    path: Path = typer.Argument(..., help="JSON file with raw exercises"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout"),
) -> None:
    """Write canonical definitions as JSON (reloadable as-is)."""
    definitions, failures = _normalize_all(_read_exercises(path))
    if failures:
        for index, message in failures:
            rprint(f"[red]✗[/red] exercise #{index}: {message}")
        raise typer.Exit(code=1)

    payload = json.dumps(
        {"exercises": [d.model_dump(mode="json") for d in definitions]},
        indent=2,
        ensure_ascii=False,
    )
    if output:
        output.write_text(payload, encoding="utf-8")
        rprint(f"[green]✓[/green] Wrote {len(definitions)} definitions to {output}")
    else:
        typer.echo(payload)


# ========================================
# PLAY
# ========================================


def _parse_answer(kind: str, text: str) -> Any:
    """
    Turn typed input into an answer of the right shape.

    Ids are comma-separated; a position mapping is written as
    `zone=id,id; zone=id`.
    """
    if kind in (ExerciseKind.SINGLE_CHOICE.value, ExerciseKind.FREE_TEXT.value):
        return text.strip()
    if kind == ExerciseKind.POSITION_MAPPING.value:
        mapping: dict[str, set[str]] = {}
        for part in text.split(";"):
            if "=" not in part:
                continue
            zone, ids = part.split("=", 1)
            mapping[zone.strip()] = {i.strip() for i in ids.split(",") if i.strip()}
        return mapping
    ids = [i.strip() for i in text.split(",") if i.strip()]
    if kind == ExerciseKind.ORDERED_SEQUENCE.value:
        return ids
    return set(ids)


def _present(view: dict, hints: tuple[str, ...]) -> None:
    lines = [f"[bold]{view['prompt']}[/bold]", f"[dim]{view['instruction']}[/dim]", ""]
    for element in view["elements"]:
        lines.append(f"  [cyan]{element['id']}[/cyan]  {element['content']}")
    if view["zones"]:
        lines.append("")
        lines.append("Zones: " + ", ".join(z["id"] for z in view["zones"]))
    for i, hint in enumerate(hints, start=1):
        lines.append(f"[yellow]Hint {i}:[/yellow] {hint}")
    console.print(Panel("\n".join(lines), title=view["kind"], border_style="cyan"))


@app.command("play")
def play_file(
    path: Path = typer.Argument(..., help="JSON file with raw exercises"),
    shuffle: bool = typer.Option(False, "--shuffle", help="Shuffle exercise order"),
    seed: int | None = typer.Option(None, "--seed", help="Shuffle seed"),
) -> None:
    """Run a session in the terminal. Type 'h' for a hint, 'q' to quit."""
    controller = SessionController(shuffle=shuffle, seed=seed)
    try:
        snapshot = controller.load(_read_exercises(path))
    except ExerciseEngineError as e:
        rprint(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    while snapshot.state not in (SessionState.COMPLETED, SessionState.ABORTED):
        view = snapshot.current_definition
        if snapshot.state == SessionState.PRESENTING:
            _present(view, snapshot.hints)
            text = Prompt.ask(f"[{snapshot.current_index + 1}/{snapshot.total}] answer")
            if text.strip().lower() == "q":
                snapshot = controller.abort()
            elif text.strip().lower() == "h":
                before = len(snapshot.hints)
                snapshot = controller.hint()
                if len(snapshot.hints) == before:
                    rprint("[dim]No more hints available[/dim]")
            else:
                try:
                    snapshot = controller.submit(_parse_answer(view["kind"], text))
                except ExerciseEngineError as e:
                    rprint(f"[red]{e}[/red]")
            continue

        feedback = snapshot.feedback
        if feedback.correct:
            rprint(f"[green]✓ Correct![/green] {feedback.explanation}")
        else:
            rprint(f"[red]✗ Incorrect.[/red] {feedback.explanation}")
            if feedback.retries_left and Prompt.ask("Try again?", choices=["y", "n"], default="y") == "y":
                snapshot = controller.retry()
                continue
            rprint(f"[dim]Expected: {feedback.expected}[/dim]")
        snapshot = controller.acknowledge()

    if snapshot.state == SessionState.ABORTED:
        rprint("[yellow]Session aborted[/yellow]")
        return

    results = controller.results()
    table = Table(title="Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Score", f"{results.score:g} / {results.max_score:g}")
    table.add_row("Accuracy", f"{results.accuracy:.0%} ({results.correct_count}/{results.total_count})")
    table.add_row("Grade", results.grade)
    table.add_row("Longest streak", str(results.longest_streak))
    table.add_row("Time", f"{results.elapsed_seconds:.1f}s")
    console.print(table)


# ========================================
# INFO COMMANDS
# ========================================


@app.command("info")
def show_info() -> None:
    """Show configuration."""
    settings = get_settings()
    config = settings.get_session_config()

    table = Table(title="exengine Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Log Level", settings.log_level)
    table.add_row("Total points", f"{config['total_points']:g}")
    table.add_row("Default difficulty", config["default_difficulty"])
    table.add_row("Shuffle", str(config["shuffle"]))
    table.add_row("Shuffle seed", str(config["seed"]))
    for kind, limit in config["retry_policy"].items():
        table.add_row(f"Retries: {kind}", str(limit))

    console.print(table)


@app.command("version")
def show_version() -> None:
    """Show version information."""
    rprint(f"[bold]exengine[/bold] v{__version__}")


def run() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
