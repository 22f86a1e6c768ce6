"""Resolve command: print route badges, modifier flags and filter predictions."""

from pathlib import Path

import typer

from ...core.models import ResolutionResult
from ...resolver import ResolveSettings, resolve
from ..app import app, console, get_json_mode
from ..utils import Output, format_number, load_graph_or_exit, parse_total


@app.command("resolve")
def resolve_command(
    graph_file: Path = typer.Argument(..., help="Graph file (.yaml or .json)"),
    total: float | None = typer.Option(
        None, "--total", "-t", help="Song count (default: from the graph)"
    ),
    total_range: str | None = typer.Option(
        None, "--total-range", help="Ranged song count as MIN:MAX"
    ),
):
    """
    Resolve a quiz graph and show what each node receives.

    EXIT CODES:
        0 = Success
        1 = Graph could not be loaded
        3 = File not found

    EXAMPLES:
        quizflow resolve quiz.yaml
        quizflow resolve quiz.yaml --total 40
        quizflow resolve quiz.yaml --total-range 15:25
        quizflow --json resolve quiz.json
    """
    out = Output(console=console, json_mode=get_json_mode())
    target = parse_total(total, total_range)
    graph = load_graph_or_exit(graph_file, out)

    result = resolve(graph, ResolveSettings(target_total=target))

    out.success(
        f"Resolved {len(graph.nodes)} node(s), target {result.target_total.describe()} songs",
        graph_file=str(graph_file),
        target_total=result.target_total.model_dump(exclude_none=True),
        exportable=result.is_exportable,
    )
    out.blank()
    render_resolution(result, graph_node_order=graph.node_ids, out=out)

    raise typer.Exit(out.finish())


def render_resolution(
    result: ResolutionResult, graph_node_order: list[str], out: Output
) -> None:
    """Print node annotations, filter reports and graph issues."""
    node_rows = []
    for node_id in graph_node_order:
        badges = result.badges_for(node_id)
        node_rows.append(
            [
                node_id,
                ", ".join(b.label for b in badges) or "-",
                "yes" if result.is_modified(node_id) else "",
            ]
        )
    out.table("Nodes", ["Node", "Routes", "Modified"], node_rows)

    filter_rows = []
    for report in result.filters.values():
        mode = report.mode.value + (" (locked)" if report.percentage_mode_locked else "")
        filter_rows.append(
            [
                report.node_id,
                mode,
                format_number(report.target),
                "yes" if report.is_valid else "no",
                report.validation_message,
            ]
        )
    if filter_rows:
        out.blank()
        out.table("Filters", ["Node", "Mode", "Target", "Valid", "Message"], filter_rows)

    allocation_rows = []
    for report in result.filters.values():
        for allocation in report.predicted_allocation.allocations:
            allocation_rows.append(
                [report.node_id, allocation.label, allocation.describe(report.unit)]
            )
    if allocation_rows:
        out.blank()
        out.table("Allocations", ["Node", "Entry", "Predicted"], allocation_rows)

    if result.graph_issues:
        out.blank()
        for issue in result.graph_issues:
            # Reported only; `quizflow validate` is the gate
            out.warning(
                issue.message,
                location=issue.location,
                category=issue.category,
                suggestion=issue.suggestion,
            )
