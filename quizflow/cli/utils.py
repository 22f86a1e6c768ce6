"""CLI utilities for dual-mode output (human-friendly + machine-readable).

This module provides utilities for CLI commands to support both:
- Human mode (default): Rich formatting with colors and tables
- Machine mode (--json): Structured JSON output for scripts

Example:
    from ..utils import Output, ExitCode

    @app.command()
    def my_command():
        out = Output(console=console, json_mode=get_json_mode())
        out.success("Loaded graph", graph_file="quiz.yaml", node_count=12)
        out.table("Filters", ["Node", "Valid"], [["genres-1", "yes"]])
        return out.finish()
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
import yaml
from pydantic import BaseModel, PrivateAttr, ConfigDict, ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.models import ConfigGraph, Severity, ValidationIssue


class ExitCode:
    """Standardized exit codes for CLI commands.

    Scripts can check $? and know exactly what failed:
        0 = Success
        1 = Validation error (invalid graph, filter or settings)
        3 = File not found
    """

    SUCCESS = 0
    VALIDATION_ERROR = 1
    FILE_NOT_FOUND = 3


class Output(BaseModel):
    """Dual-mode output handler for CLI commands.

    In human mode: Uses Rich for pretty terminal output with colors and formatting.
    In JSON mode: Collects structured data and outputs JSON at the end.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    console: Console
    json_mode: bool = False

    _data: dict[str, Any] = PrivateAttr()
    _exit_code: int = PrivateAttr(default=ExitCode.SUCCESS)

    def model_post_init(self, __context: Any) -> None:
        # Ensure _data is a fresh dict for each instance
        self._data = {
            "status": "success",
            "warnings": [],
            "errors": [],
        }

    @property
    def exit_code(self) -> int:
        return self._exit_code

    def success(self, message: str, **data: Any) -> None:
        """Output a success message with optional data."""
        if self.json_mode:
            self._data.update(data)
        else:
            self.console.print(f"[green]✓[/green] {escape(message)}")

    def warning(
        self,
        message: str,
        *,
        location: str | None = None,
        category: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Output a warning message."""
        self._report("warnings", "[yellow]⚠[/yellow]", message, location, category, suggestion)

    def error(
        self,
        message: str,
        *,
        location: str | None = None,
        category: str | None = None,
        suggestion: str | None = None,
        exit_code: int = ExitCode.VALIDATION_ERROR,
    ) -> None:
        """Output an error message and set exit code."""
        self._exit_code = exit_code
        self._data["status"] = "error"
        self._report("errors", "[red]✗[/red]", message, location, category, suggestion)

    def issue(self, issue: ValidationIssue) -> None:
        """Output a ValidationIssue as an error or a warning."""
        emit = self.error if issue.severity == Severity.ERROR else self.warning
        emit(
            issue.message,
            location=issue.location,
            category=issue.category,
            suggestion=issue.suggestion,
        )

    def _report(
        self,
        key: str,
        marker: str,
        message: str,
        location: str | None,
        category: str | None,
        suggestion: str | None,
    ) -> None:
        if self.json_mode:
            fields = {
                "message": message,
                "location": location,
                "category": category,
                "suggestion": suggestion,
            }
            self._data[key].append({k: v for k, v in fields.items() if v})
            return

        prefix = f"[dim]{escape(location)}:[/dim] " if location else ""
        self.console.print(f"{marker} {prefix}{escape(message)}")
        if suggestion:
            self.console.print(f"  [dim]→ {escape(suggestion)}[/dim]")

    def text(self, message: str) -> None:
        """Output plain text (human mode only)."""
        if not self.json_mode:
            self.console.print(message)

    def blank(self) -> None:
        """Output a blank line (human mode only)."""
        if not self.json_mode:
            self.console.print()

    def table(
        self,
        title: str,
        columns: list[str],
        rows: list[list[str]],
    ) -> None:
        """Output a table; in JSON mode it is stored under the snake_cased title."""
        key = title.lower().replace(" ", "_")

        if self.json_mode:
            self._data[key] = [dict(zip(columns, row)) for row in rows]
        else:
            table = Table(title=title, show_header=True, header_style="bold")
            for col in columns:
                table.add_column(col)
            for row in rows:
                table.add_row(*(escape(cell) for cell in row))
            self.console.print(table)

    def set_data(self, key: str, value: Any) -> None:
        """Set arbitrary data in JSON output."""
        self._data[key] = value

    def finish(self) -> int:
        """Finalize output and return exit code.

        In JSON mode, prints the accumulated data as JSON to stdout.
        Returns the exit code that should be passed to sys.exit().
        """
        if self.json_mode:
            # Add exit_code to JSON for programmatic access
            self._data["exit_code"] = self._exit_code
            print(json.dumps(self._data, indent=2, default=str))

        return self._exit_code


def load_graph_or_exit(graph_file: Path, out: Output) -> ConfigGraph:
    """Load a graph file, finishing with the matching exit code on failure."""
    if not graph_file.exists():
        out.error(
            f"File not found: {graph_file}",
            exit_code=ExitCode.FILE_NOT_FOUND,
            suggestion=f"Check the file path: {graph_file.absolute()}",
        )
        raise typer.Exit(out.finish())

    try:
        return ConfigGraph.load(graph_file)
    except (ValidationError, ValueError, OSError, yaml.YAMLError) as e:
        out.error(f"Failed to load graph: {e}", exit_code=ExitCode.VALIDATION_ERROR)
        raise typer.Exit(out.finish())


def parse_total(total: float | None, total_range: str | None) -> Any:
    """Turn --total / --total-range into a target total (None when unset)."""
    if total is not None and total_range is not None:
        raise typer.BadParameter("Use either --total or --total-range, not both")
    if total_range is not None:
        low, sep, high = total_range.partition(":")
        try:
            if not sep:
                raise ValueError(total_range)
            return {"min": float(low), "max": float(high)}
        except ValueError:
            raise typer.BadParameter(
                f"Invalid range {total_range!r}, expected MIN:MAX (e.g. 15:25)"
            )
    return total


def format_number(number: float | None) -> str:
    if number is None:
        return "-"
    if float(number).is_integer():
        return str(int(number))
    return f"{number:.2f}".rstrip("0").rstrip(".")
