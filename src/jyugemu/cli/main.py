"""
jyugemu CLI entry point.

Commands:
  jyugemu init [--force]                 - create the history file
  jyugemu start [--shell SHELL]          - start a monitored shell session
  jyugemu history [-l N] [-f TEXT]       - show recorded commands
  jyugemu log --exit-code N -- COMMAND   - append one record (used by the shell hook)
  jyugemu backup                         - move the history file aside
  jyugemu config show                    - show the effective configuration
  jyugemu config init [--force]          - write a default config file
  jyugemu version                        - show version information
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console

from jyugemu import __version__

if TYPE_CHECKING:
    from jyugemu.cli._context import CliOptions

console = Console()
err_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "--version", "-V", message="jyugemu %(version)s")
@click.option(
    "--file",
    "history_file",
    default="",
    help="History file path (default: ./jyugemu.json or store.path from config)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.jyugemu/config.toml or $JYUGEMU_CONFIG)",
)
@click.pass_context
def cli(ctx: click.Context, history_file: str, config_path: Path | None) -> None:
    """jyugemu - command-history logger for interactive shell sessions."""
    from jyugemu.cli._context import CliOptions

    ctx.obj = CliOptions(history_file=history_file, config_path=config_path)


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


@cli.command()
@click.option(
    "--force", "-f", is_flag=True, default=False, help="Back up and overwrite an existing file"
)
@click.option("--yes", "-y", is_flag=True, default=False, help="Do not ask for confirmation")
@click.pass_obj
def init(opts: CliOptions, force: bool, yes: bool) -> None:
    """Initialize a new command history file."""
    from jyugemu.cli._init import cmd_init

    cmd_init(
        opts.app(err_console),
        force=force,
        assume_yes=yes,
        console=console,
        err_console=err_console,
    )


# ---------------------------------------------------------------------------
# start
# ---------------------------------------------------------------------------


@cli.command()
@click.option(
    "--shell",
    type=click.Choice(["bash", "zsh", "powershell"]),
    default=None,
    help="Shell to launch (default: session.shell from config, then $SHELL)",
)
@click.pass_obj
def start(opts: CliOptions, shell: str | None) -> None:
    """Start a monitored shell session with command logging."""
    from jyugemu.cli._start import cmd_start

    cmd_start(opts.app(err_console), shell=shell, console=console, err_console=err_console)


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


@cli.command()
@click.option(
    "--limit", "-l", type=int, default=None, help="Number of recent entries to show (0 = all)"
)
@click.option("--filter", "-f", "needle", default="", help="Filter by command substring")
@click.option("--json", "as_json", is_flag=True, default=False)
@click.pass_obj
def history(opts: CliOptions, limit: int | None, needle: str, as_json: bool) -> None:
    """Display command history."""
    from jyugemu.cli._history import cmd_history

    cmd_history(
        opts.app(err_console),
        limit=limit,
        needle=needle,
        as_json=as_json,
        console=console,
        err_console=err_console,
    )


# ---------------------------------------------------------------------------
# log
# ---------------------------------------------------------------------------


@cli.command(context_settings={"ignore_unknown_options": True})
@click.option("--exit-code", type=int, required=True, help="Exit code of the command")
@click.option("--cwd", default="", help="Working directory (default: current directory)")
@click.option("--note", default=None, help="Free-form note stored with the record")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
def log(
    opts: CliOptions, exit_code: int, cwd: str, note: str | None, command: tuple[str, ...]
) -> None:
    """Append one command record to the history file."""
    from jyugemu.cli._log import cmd_log

    cmd_log(
        opts.app(err_console),
        command=" ".join(command),
        exit_code=exit_code,
        cwd=cwd,
        note=note,
        err_console=err_console,
    )


# ---------------------------------------------------------------------------
# backup
# ---------------------------------------------------------------------------


@cli.command()
@click.pass_obj
def backup(opts: CliOptions) -> None:
    """Move the history file aside to a timestamped backup."""
    from jyugemu.cli._backup import cmd_backup

    cmd_backup(opts.app(err_console), console=console, err_console=err_console)


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


@cli.group()
def config() -> None:
    """Configuration inspection and setup."""


@config.command("show")
@click.option("--json", "as_json", is_flag=True, default=False)
@click.pass_obj
def config_show(opts: CliOptions, as_json: bool) -> None:
    """Show the effective configuration."""
    from jyugemu.cli._config_cmd import cmd_config_show

    cmd_config_show(opts.app(err_console), as_json=as_json, console=console)


@config.command("init")
@click.option("--force", "-f", is_flag=True, default=False, help="Overwrite an existing file")
@click.pass_obj
def config_init(opts: CliOptions, force: bool) -> None:
    """Write a config file populated with the defaults."""
    from jyugemu.cli._config_cmd import cmd_config_init

    cmd_config_init(opts.config_path, force=force, console=console, err_console=err_console)


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False)
def version(as_json: bool) -> None:
    """Show version information."""
    import platform
    import sys as _sys

    if as_json:
        import json

        click.echo(
            json.dumps(
                {
                    "jyugemu": __version__,
                    "python": _sys.version.split()[0],
                    "platform": _sys.platform,
                    "arch": platform.machine(),
                },
                indent=2,
            )
        )
    else:
        console.print(f"jyugemu {__version__}")
        console.print(f"Python {_sys.version.split()[0]}")
        console.print(f"Platform: {_sys.platform} {platform.machine()}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
