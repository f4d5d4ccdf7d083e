"""Per-invocation CLI state: effective config and the history store."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from jyugemu.core.config import JyugemuConfig
from jyugemu.core.constants import ExitCode
from jyugemu.core.store.history import HistoryStore


@dataclass
class AppContext:
    config: JyugemuConfig
    history_path: Path

    def store(self) -> HistoryStore:
        return HistoryStore(
            self.history_path,
            lock_timeout=self.config.store.lock_timeout_seconds,
            poll_interval=self.config.store.lock_poll_interval_seconds,
        )

    def require_history(self, store: HistoryStore, err_console: Console) -> None:
        """Exit with NOT_INITIALIZED when the history file has not been created."""
        if not store.exists:
            err_console.print(
                f"[red]✗ History file not found at {escape(str(store.path))}.[/red] "
                "Run [cyan]jyugemu init[/cyan] first."
            )
            sys.exit(ExitCode.NOT_INITIALIZED)


@dataclass
class CliOptions:
    """Global options from the root group. Config is loaded on first use."""

    history_file: str = ""
    config_path: Path | None = None
    _app: AppContext | None = field(default=None, repr=False)

    def app(self, err_console: Console) -> AppContext:
        if self._app is None:
            self._app = build_context(self.history_file, self.config_path, err_console)
        return self._app


def build_context(history_file: str, config_path: Path | None, err_console: Console) -> AppContext:
    from jyugemu.core.config import load_config
    from jyugemu.core.exceptions import ConfigError
    from jyugemu.core.log import configure_logging

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        err_console.print(f"[red]Config error:[/red] {escape(str(exc))}")
        sys.exit(ExitCode.CONFIG_ERROR)

    configure_logging(config.logging.level, config.logging.format)

    path = Path(history_file).expanduser().resolve() if history_file else config.history_path
    return AppContext(config=config, history_path=path)
