"""Validate command: gate a quiz graph before export."""

from pathlib import Path

import typer

from ...resolver import ResolveSettings, resolve
from ..app import app, console, get_json_mode
from ..utils import ExitCode, Output, load_graph_or_exit, parse_total


@app.command("validate")
def validate_command(
    graph_file: Path = typer.Argument(..., help="Graph file (.yaml or .json)"),
    total: float | None = typer.Option(
        None, "--total", "-t", help="Song count (default: from the graph)"
    ),
    total_range: str | None = typer.Option(
        None, "--total-range", help="Ranged song count as MIN:MAX"
    ),
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as errors"),
):
    """
    Validate every filter node and the graph structure.

    EXIT CODES:
        0 = Success (graph can be exported)
        1 = Validation error (invalid filter, router or modifier)
        3 = File not found

    EXAMPLES:
        quizflow validate quiz.yaml
        quizflow validate quiz.yaml --strict
        quizflow --json validate quiz.json
    """
    out = Output(console=console, json_mode=get_json_mode())
    target = parse_total(total, total_range)
    graph = load_graph_or_exit(graph_file, out)

    result = resolve(graph, ResolveSettings(target_total=target))

    out.success(
        f"Loaded graph: {len(graph.nodes)} node(s), {len(graph.edges)} edge(s)",
        graph_file=str(graph_file),
        node_count=len(graph.nodes),
        edge_count=len(graph.edges),
        exportable=result.is_exportable,
        invalid_filters=[r.node_id for r in result.invalid_filters],
    )
    out.blank()

    warning_count = 0
    for report in result.filters.values():
        for issue in report.issues:
            out.issue(issue)
            if issue.severity.value == "warning":
                warning_count += 1
    for issue in result.graph_issues:
        out.issue(issue)
        if issue.severity.value == "warning":
            warning_count += 1

    if strict and warning_count and out.exit_code == ExitCode.SUCCESS:
        out.error(
            f"{warning_count} warning(s) treated as errors (--strict)",
            exit_code=ExitCode.VALIDATION_ERROR,
        )

    if out.exit_code == ExitCode.SUCCESS:
        out.blank()
        if warning_count:
            out.text(f"[green]Validation passed[/green] with {warning_count} warning(s)")
        else:
            out.text("[green]Validation passed[/green]")

    raise typer.Exit(out.finish())
