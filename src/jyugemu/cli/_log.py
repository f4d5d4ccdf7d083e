"""jyugemu log - append one record; called by the shell hook after each command."""

from __future__ import annotations

import os
import sys

from rich.console import Console
from rich.markup import escape

from jyugemu.cli._context import AppContext
from jyugemu.core.constants import ExitCode
from jyugemu.core.exceptions import StoreError
from jyugemu.core.session import capture_command


def cmd_log(
    app: AppContext,
    command: str,
    exit_code: int,
    cwd: str,
    note: str | None,
    err_console: Console,
) -> None:
    try:
        capture_command(app.store(), command, exit_code, cwd or os.getcwd(), note=note)
    except StoreError as exc:
        err_console.print(f"[red]✗ Failed to log command:[/red] {escape(str(exc))}")
        sys.exit(ExitCode.STORE_ERROR)
