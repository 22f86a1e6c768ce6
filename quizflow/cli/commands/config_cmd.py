"""Config command for viewing and managing quizflow configuration."""

import typer

from ..app import app, console
from ...config import (
    get_config,
    reset_config,
    CONFIG_FILE,
)


VALID_KEYS = {
    "allocation.epsilon",
    "allocation.default_song_count",
    "allocation.cache_size",
    "graph.flow_edge_prefix",
}

INT_FIELDS = {
    "default_song_count",
    "cache_size",
}

FLOAT_FIELDS = {
    "epsilon",
}


@app.command("config")
def config_command(
    action: str = typer.Argument(
        ...,
        help="Action: show, set, reset",
    ),
    key: str | None = typer.Argument(
        None,
        help="Config key (e.g. allocation.epsilon, graph.flow_edge_prefix)",
    ),
    value: str | None = typer.Argument(
        None,
        help="Value to set",
    ),
):
    """View or modify quizflow configuration.

    Examples:
        quizflow config show
        quizflow config set allocation.epsilon 0.5
        quizflow config set allocation.default_song_count 40
        quizflow config reset
    """
    if action == "show":
        _show_config()
    elif action == "set":
        if not key or value is None:
            console.print("[red]Usage:[/red] quizflow config set <key> <value>")
            console.print()
            console.print("Available keys:")
            for k in sorted(VALID_KEYS):
                console.print(f"  {k}")
            raise typer.Exit(1)
        _set_config(key, value)
    elif action == "reset":
        _reset_config()
    else:
        console.print(f"[red]Unknown action:[/red] {action}")
        console.print("Valid actions: show, set, reset")
        raise typer.Exit(1)


def _show_config():
    """Display current resolved configuration."""
    config = get_config()

    console.print()
    console.print("[bold]Quizflow Configuration[/bold]")
    console.print("─" * 40)

    console.print()
    console.print("[bold cyan]Allocation[/bold cyan]")
    console.print(f"  epsilon            = {config.allocation.epsilon}")
    console.print(f"  default_song_count = {config.allocation.default_song_count}")
    console.print(f"  cache_size         = {config.allocation.cache_size}")

    console.print()
    console.print("[bold cyan]Graph[/bold cyan]")
    console.print(f"  flow_edge_prefix   = {config.graph.flow_edge_prefix}")

    console.print()
    if CONFIG_FILE.exists():
        console.print(f"Config file: {CONFIG_FILE}")
    else:
        console.print(f"Config file: [dim]not created yet[/dim] ({CONFIG_FILE})")
    console.print()


def _set_config(key: str, value: str):
    """Set a config value and save."""
    if key not in VALID_KEYS:
        console.print(f"[red]Unknown key:[/red] {key}")
        console.print()
        console.print("Available keys:")
        for k in sorted(VALID_KEYS):
            console.print(f"  {k}")
        raise typer.Exit(1)

    config = get_config()

    zone, field_name = key.split(".", 1)
    target = config.allocation if zone == "allocation" else config.graph

    # Type coercion
    if field_name in INT_FIELDS:
        try:
            setattr(target, field_name, int(value))
        except ValueError:
            console.print(f"[red]Invalid integer value:[/red] {value}")
            raise typer.Exit(1)
    elif field_name in FLOAT_FIELDS:
        try:
            setattr(target, field_name, float(value))
        except ValueError:
            console.print(f"[red]Invalid number value:[/red] {value}")
            raise typer.Exit(1)
    else:
        setattr(target, field_name, value)

    config.save()
    reset_config()  # Clear cached singleton so next get_config() reloads

    console.print(f"[green]✓[/green] Set {key} = {value}")
    console.print(f"  Saved to {CONFIG_FILE}")


def _reset_config():
    """Reset config to defaults."""
    if CONFIG_FILE.exists():
        CONFIG_FILE.unlink()
        reset_config()
        console.print("[green]✓[/green] Config reset to defaults")
        console.print(f"  Removed {CONFIG_FILE}")
    else:
        console.print("Config already at defaults (no config file exists)")
