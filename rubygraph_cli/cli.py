"""Typer-based CLI for rubygraph class and call graph extraction."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .ast_provider import GrammarUnavailableError
from .config import DEFAULT_RENDERING_POLICIES, DEFAULT_SCAN_PATHS
from .config_manager import AnalysisSettings, load_settings, save_settings
from .graph_export import export_dot, export_json, export_mermaid
from .orchestrator import Analyzer, SourceUnit

app = typer.Typer(
    help="🔎 rubygraph — static class and call graphs for Ruby code.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console(stderr=True)

EXPORTERS = {
    "dot": export_dot,
    "mermaid": export_mermaid,
    "json": export_json,
}


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"rubygraph v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log per-file details."),
):
    """rubygraph: derive a class diagram graph from Ruby source."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command("analyze")
def analyze(
    root: Path = typer.Argument(..., help="Project root to scan."),
    paths: Optional[List[str]] = typer.Option(
        None, "--path", "-p", help="Directory relative to ROOT to scan (repeatable). Defaults to app/ and lib/."
    ),
    fmt: str = typer.Option("dot", "--format", "-f", help="Output format: dot, mermaid, json."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the diagram here instead of stdout."),
    workers: Optional[int] = typer.Option(None, min=1, help="Parallel extraction workers."),
    focus: str = typer.Option("", help="Only show classes matching this name and their neighbours."),
    literal_defaults: Optional[bool] = typer.Option(
        None, "--literal-defaults/--placeholder-defaults",
        help="Render parameter default values verbatim instead of '...'.",
    ),
):
    """Analyze a Ruby project and export its class graph."""
    if not root.exists():
        raise typer.BadParameter(f"Path '{root}' does not exist.")
    exporter = EXPORTERS.get(fmt)
    if exporter is None:
        raise typer.BadParameter(f"Unknown format '{fmt}'. Choose from: {', '.join(EXPORTERS)}.")

    settings = load_settings().with_overrides(
        workers=workers,
        default_rendering=None if literal_defaults is None else ("literal" if literal_defaults else "placeholder"),
    )
    analyzer = _make_analyzer(settings)
    result = analyzer.analyze_project(root.resolve(), paths)
    graph = result.graph

    if fmt == "json":
        text = exporter(graph, output, focus=focus)
    else:
        text = exporter(graph, output, focus=focus, label_limit=settings.label_limit)

    if output is None:
        typer.echo(text, nl=False)
    else:
        console.print(f"Wrote {fmt} diagram to [bold]{output}[/bold]")

    console.print(
        f"Classes: {len(graph.entities)} | Relationships: {len(graph.relationships)} | "
        f"Specializations: {len(graph.specializations)} | Skipped: {len(result.failures)}"
    )
    if graph.is_empty():
        console.print("[yellow]No classes found.[/yellow]")


@app.command("inspect")
def inspect(
    file_path: Path = typer.Argument(..., help="Ruby file to inspect."),
    literal_defaults: bool = typer.Option(False, "--literal-defaults", help="Render default values verbatim."),
):
    """Show the class descriptor and constant calls found in one file."""
    if not file_path.is_file():
        raise typer.BadParameter(f"File '{file_path}' does not exist.")

    settings = load_settings()
    if literal_defaults:
        settings = settings.with_overrides(default_rendering="literal")
    analyzer = _make_analyzer(settings)
    unit = analyzer.analyze_unit(SourceUnit.from_path(file_path))

    out = Console()
    if unit.error is not None:
        out.print(f"[red]Skipped:[/red] {unit.error}")
        raise typer.Exit(code=1)

    descriptor = unit.descriptor
    if descriptor is None:
        out.print("No class declaration found.")
    else:
        out.print(f"[bold]{descriptor.qualified_name}[/bold]"
                  + (f" < {descriptor.superclass_name}" if descriptor.superclass_name else ""))
        methods = Table(title="Public methods")
        methods.add_column("Signature")
        methods.add_column("Level")
        for method in descriptor.methods:
            methods.add_row(method.rendered_signature, "class" if method.is_class_level else "instance")
        out.print(methods)

    calls = Table(title="Constant calls")
    calls.add_column("From")
    calls.add_column("Target")
    for call in unit.calls:
        calls.add_row(call.source_method or "?", f"{call.target_class_name}.{call.target_method}")
    out.print(calls)


@app.command("config")
def configure(
    default_rendering: Optional[str] = typer.Option(
        None, "--default-rendering", help="Default value rendering: placeholder or literal."
    ),
    workers: Optional[int] = typer.Option(None, min=1, help="Parallel extraction workers."),
    max_call_details: Optional[int] = typer.Option(None, min=1, help="Call details kept per relationship."),
    label_limit: Optional[int] = typer.Option(None, min=1, help="Call details shown on a diagram edge."),
    scan_paths: Optional[List[str]] = typer.Option(
        None, "--scan-path", help="Directory scanned by default (repeatable, replaces the stored list)."
    ),
):
    """Show the stored analysis settings, or update them.

    Examples:
        rubygraph config
        rubygraph config --default-rendering literal --workers 4
        rubygraph config --scan-path app --scan-path lib --scan-path engines
    """
    if default_rendering is not None and default_rendering not in DEFAULT_RENDERING_POLICIES:
        raise typer.BadParameter(
            f"Unknown rendering '{default_rendering}'. Choose from: {', '.join(DEFAULT_RENDERING_POLICIES)}."
        )

    settings = load_settings()
    updated = settings.with_overrides(
        default_rendering=default_rendering,
        workers=workers,
        max_call_details=max_call_details,
        label_limit=label_limit,
        scan_paths=list(scan_paths) if scan_paths else None,
    )
    if updated != settings:
        path = save_settings(updated)
        console.print(f"Saved settings to [bold]{path}[/bold]")

    table = Table(title="Analysis settings")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("default_rendering", updated.default_rendering)
    table.add_row("workers", str(updated.workers or "auto"))
    table.add_row("max_call_details", str(updated.max_call_details))
    table.add_row("label_limit", str(updated.label_limit))
    table.add_row("scan_paths", ", ".join(updated.scan_paths or DEFAULT_SCAN_PATHS))
    Console().print(table)


def _make_analyzer(settings: AnalysisSettings) -> Analyzer:
    try:
        return Analyzer(settings)
    except GrammarUnavailableError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
