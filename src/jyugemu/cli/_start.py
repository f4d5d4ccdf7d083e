"""jyugemu start - run a monitored shell session."""

from __future__ import annotations

import sys

from rich.console import Console
from rich.markup import escape

from jyugemu.cli._context import AppContext
from jyugemu.core.constants import ExitCode
from jyugemu.core.exceptions import SessionError


def cmd_start(app: AppContext, shell: str | None, console: Console, err_console: Console) -> None:
    from jyugemu.core.session import SessionManager

    store = app.store()
    app.require_history(store, err_console)

    try:
        session = SessionManager(
            app.history_path,
            shell=shell or app.config.session.shell or None,
            store=store,
        )
    except SessionError as exc:
        err_console.print(f"[red]✗ {escape(str(exc))}[/red]")
        sys.exit(ExitCode.SESSION_ERROR)

    console.print(
        f"Starting monitored [cyan]{session.shell}[/cyan] session (ID: {session.session_id})"
    )
    console.print('Type "exit" to end the session and return to the original shell.\n')

    try:
        exit_code = session.start()
    except SessionError as exc:
        err_console.print(f"[red]✗ Failed to start monitored session:[/red] {escape(str(exc))}")
        sys.exit(ExitCode.SESSION_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(0)

    console.print(f"\nMonitored session ended (exit code {exit_code}).")
