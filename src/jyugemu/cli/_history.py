"""jyugemu history - display, filter and limit recorded commands."""

from __future__ import annotations

import json
import sys

import click
from rich.console import Console
from rich.markup import escape

from jyugemu.cli._context import AppContext
from jyugemu.core.constants import ExitCode
from jyugemu.core.exceptions import StoreError
from jyugemu.core.query import format_table, select_for_display


def cmd_history(
    app: AppContext,
    limit: int | None,
    needle: str,
    as_json: bool,
    console: Console,
    err_console: Console,
) -> None:
    store = app.store()
    app.require_history(store, err_console)

    try:
        records = store.read()
    except StoreError as exc:
        err_console.print(f"[red]✗ Failed to display history:[/red] {escape(str(exc))}")
        sys.exit(ExitCode.STORE_ERROR)

    if limit is None:
        limit = app.config.history.default_limit
    selected = select_for_display(records, limit=limit, needle=needle)

    # Plain echo: command text may contain rich markup characters.
    if as_json:
        click.echo(json.dumps([r.to_dict() for r in selected], indent=2, ensure_ascii=False))
    else:
        click.echo(format_table(selected))
