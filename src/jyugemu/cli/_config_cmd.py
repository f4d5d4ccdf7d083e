"""jyugemu config show / init - inspect and write the configuration."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape

from jyugemu.cli._context import AppContext
from jyugemu.core.config import JyugemuConfig, config_file_path, config_to_dict
from jyugemu.core.constants import ExitCode
from jyugemu.core.exceptions import ConfigError


def cmd_config_show(app: AppContext, as_json: bool, console: Console) -> None:
    data: dict[str, Any] = config_to_dict(app.config)
    data["_config_path"] = str(app.config.config_path) if app.config.config_path else None
    data["_history_path"] = str(app.history_path)

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    console.print("[bold]jyugemu configuration[/bold]\n")
    console.print(f"  Config file:  {data['_config_path'] or '[dim](defaults)[/dim]'}")
    console.print(f"  History file: {data['_history_path']}\n")
    for section in ("store", "history", "session", "logging"):
        console.print(f"[cyan]\\[{section}][/cyan]")
        for key, value in data[section].items():
            console.print(f"  {key:<28} {value!r}")
        console.print()


def cmd_config_init(
    config_path: Path | None,
    force: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Write the built-in defaults to the config file."""
    from jyugemu.core.config import save_config

    target = config_path or config_file_path()
    if target.exists() and not force:
        err_console.print(
            f"[red]✗ Config file already exists at {escape(str(target))}.[/red] "
            "Use [cyan]--force[/cyan] to overwrite."
        )
        sys.exit(ExitCode.CONFIG_ERROR)

    try:
        written = save_config(config_to_dict(JyugemuConfig()), target)
    except ConfigError as exc:
        err_console.print(f"[red]✗ {escape(str(exc))}[/red]")
        sys.exit(ExitCode.CONFIG_ERROR)

    console.print(f"[green]✓ Config written to[/green] {escape(str(written))}")
