"""jyugemu backup - move the history file aside."""

from __future__ import annotations

import sys

from rich.console import Console
from rich.markup import escape

from jyugemu.cli._context import AppContext
from jyugemu.core.constants import ExitCode
from jyugemu.core.exceptions import StoreError


def cmd_backup(app: AppContext, console: Console, err_console: Console) -> None:
    store = app.store()
    try:
        backup_path = store.backup()
    except StoreError as exc:
        err_console.print(f"[red]✗ Backup failed:[/red] {escape(str(exc))}")
        sys.exit(ExitCode.STORE_ERROR)

    if backup_path is None:
        console.print(f"Nothing to back up: {escape(str(store.path))} does not exist.")
        return
    console.print(f"[green]✓ History file moved to[/green] {escape(str(backup_path))}")
    console.print("Run [cyan]jyugemu init[/cyan] to start a fresh history file.")
