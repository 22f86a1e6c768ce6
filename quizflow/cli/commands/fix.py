"""Fix command: apply the quick-fix to one filter node of a graph file."""

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.markup import escape

from ...allocation import quick_fix_node
from ...config import get_config
from ..app import app, console, get_json_mode
from ..utils import Output, load_graph_or_exit, parse_total


@app.command("fix")
def fix_command(
    graph_file: Path = typer.Argument(..., help="Graph file (.yaml or .json)"),
    node_id: str = typer.Argument(..., help="Id of the filter node to fix"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write the fixed graph here (default: overwrite input)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the fixes without writing"),
    total: float | None = typer.Option(
        None, "--total", "-t", help="Song count (default: from the graph)"
    ),
    total_range: str | None = typer.Option(
        None, "--total-range", help="Ranged song count as MIN:MAX"
    ),
):
    """
    Quick-fix one filter node so its entries match the target total.

    EXIT CODES:
        0 = Node is valid after the fix
        1 = Node could not be fixed (or is not a filter node)
        3 = File not found

    EXAMPLES:
        quizflow fix quiz.yaml genres-1
        quizflow fix quiz.yaml genres-1 -o quiz.fixed.yaml
        quizflow fix quiz.yaml genres-1 --dry-run
    """
    out = Output(console=console, json_mode=get_json_mode())
    target = parse_total(total, total_range)
    graph = load_graph_or_exit(graph_file, out)
    config = get_config()

    try:
        new_graph, result = quick_fix_node(
            graph,
            node_id,
            song_count=target,
            epsilon=config.allocation.epsilon,
            default_song_count=config.allocation.default_song_count,
        )
    except KeyError:
        out.error(
            f"Unknown node: {node_id}",
            suggestion=f"Node ids in this graph: {', '.join(graph.node_ids)}",
        )
        raise typer.Exit(out.finish())
    except (ValueError, ValidationError) as e:
        out.error(str(e))
        raise typer.Exit(out.finish())

    out.set_data(
        "fixes",
        [
            {
                "label": f.label,
                "field": f.field,
                "original": f.original,
                "fixed": f.fixed,
                "reason": f.reason,
            }
            for f in result.fixes
        ],
    )
    out.text(escape(result.summary()))
    out.blank()

    if not result.fixed:
        out.error(f"{node_id} is still invalid: {result.message}")
        raise typer.Exit(out.finish())

    if dry_run or not result.fixes:
        out.success(f"{node_id}: {result.message}", node_id=node_id, written=None)
        raise typer.Exit(out.finish())

    destination = output or graph_file
    try:
        new_graph.save(destination)
    except OSError as e:
        out.error(f"Failed to write {destination}: {e}")
        raise typer.Exit(out.finish())

    out.success(
        f"{node_id}: {result.message}, saved to {destination}",
        node_id=node_id,
        written=str(destination),
    )
    raise typer.Exit(out.finish())
