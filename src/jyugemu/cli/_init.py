"""jyugemu init - create the history file."""

from __future__ import annotations

import sys

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

from jyugemu.cli._context import AppContext
from jyugemu.core.constants import ExitCode
from jyugemu.core.exceptions import StoreError


def cmd_init(
    app: AppContext,
    force: bool,
    assume_yes: bool,
    console: Console,
    err_console: Console,
) -> None:
    store = app.store()
    path = escape(str(store.path))

    if store.exists and not force:
        if not assume_yes:
            try:
                confirmed = Confirm.ask(
                    f"History file already exists at {path}. Overwrite?",
                    default=False,
                    console=console,
                )
            except EOFError:
                confirmed = False
            if not confirmed:
                console.print("Initialization cancelled.")
                return
        # The existing file is backed up before it is replaced.
        force = True

    try:
        backup_path = store.initialize(force=force)
    except StoreError as exc:
        err_console.print(f"[red]✗ Failed to initialize history file:[/red] {escape(str(exc))}")
        sys.exit(ExitCode.STORE_ERROR)

    console.print(f"[green]✓ History file initialized at[/green] {path}")
    if backup_path is not None:
        console.print(f"  Previous history saved to {escape(str(backup_path))}")
    console.print("\nUsage:")
    console.print("  [cyan]jyugemu start[/cyan]    - Start a monitored shell session")
    console.print("  [cyan]jyugemu history[/cyan]  - Display command history")
    console.print('  [cyan]jyugemu history --limit 20 --filter "npm"[/cyan]  - Filter history')
