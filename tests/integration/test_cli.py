"""Integration tests for the jyugemu CLI, driven through click's CliRunner."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from jyugemu.cli.main import cli
from jyugemu.core.constants import ExitCode
from jyugemu.core.store.history import HistoryStore


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _invoke(runner: CliRunner, history_path: Path, *args: str, **kwargs):
    return runner.invoke(cli, ["--file", str(history_path), *args], **kwargs)


def _log(runner: CliRunner, history_path: Path, command: str, exit_code: int = 0) -> None:
    result = _invoke(
        runner, history_path, "log", "--exit-code", str(exit_code), "--cwd", "/proj", "--", command
    )
    assert result.exit_code == 0, result.output


# ---------------------------------------------------------------------------
# jyugemu init
# ---------------------------------------------------------------------------


class TestInit:
    def test_creates_empty_history(self, runner: CliRunner, history_path: Path) -> None:
        result = _invoke(runner, history_path, "init", catch_exceptions=False)
        assert result.exit_code == 0
        assert "History file initialized" in result.output
        assert "jyugemu start" in result.output
        assert json.loads(history_path.read_text()) == {"history": []}

    def test_existing_declined(self, runner: CliRunner, history_path: Path) -> None:
        _invoke(runner, history_path, "init")
        _log(runner, history_path, "ls")
        result = _invoke(runner, history_path, "init", input="n\n")
        assert result.exit_code == 0
        assert "Initialization cancelled." in result.output
        assert len(HistoryStore(history_path).read()) == 1
        assert HistoryStore(history_path).list_backups() == []

    def test_existing_no_input_cancels(self, runner: CliRunner, history_path: Path) -> None:
        _invoke(runner, history_path, "init")
        result = _invoke(runner, history_path, "init", input="")
        assert result.exit_code == 0
        assert "Initialization cancelled." in result.output

    def test_existing_confirmed(self, runner: CliRunner, history_path: Path) -> None:
        _invoke(runner, history_path, "init")
        _log(runner, history_path, "ls")
        result = _invoke(runner, history_path, "init", input="y\n")
        assert result.exit_code == 0
        store = HistoryStore(history_path)
        assert store.read() == []
        backups = store.list_backups()
        assert len(backups) == 1
        assert "ls" in backups[0].read_text()
        assert "Previous history saved to" in result.output

    def test_reports_the_backup_it_made(self, runner: CliRunner, history_path: Path) -> None:
        _invoke(runner, history_path, "init")
        stray = history_path.with_name(history_path.name + ".backup.9999-12-31")
        stray.write_text("{}")
        result = _invoke(runner, history_path, "init", "--yes", catch_exceptions=False)
        assert result.exit_code == 0
        (made,) = [p for p in HistoryStore(history_path).list_backups() if p != stray]
        flat = "".join(result.output.split())
        assert str(made) in flat
        assert str(stray) not in flat

    @pytest.mark.parametrize("flag", ["--force", "-f", "--yes", "-y"])
    def test_existing_without_prompt(
        self, runner: CliRunner, history_path: Path, flag: str
    ) -> None:
        _invoke(runner, history_path, "init")
        _log(runner, history_path, "ls")
        result = _invoke(runner, history_path, "init", flag, catch_exceptions=False)
        assert result.exit_code == 0
        assert "Overwrite?" not in result.output
        assert HistoryStore(history_path).read() == []
        assert len(HistoryStore(history_path).list_backups()) == 1

    def test_unwritable_location(self, runner: CliRunner, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        result = _invoke(runner, blocker / "jyugemu.json", "init")
        assert result.exit_code == ExitCode.STORE_ERROR
        assert "Failed to initialize" in result.output


# ---------------------------------------------------------------------------
# jyugemu log / history
# ---------------------------------------------------------------------------


class TestHistory:
    def test_not_initialized(self, runner: CliRunner, history_path: Path) -> None:
        result = _invoke(runner, history_path, "history")
        assert result.exit_code == ExitCode.NOT_INITIALIZED
        assert "History file not found" in result.output

    def test_empty(self, runner: CliRunner, history_path: Path) -> None:
        _invoke(runner, history_path, "init")
        result = _invoke(runner, history_path, "history", catch_exceptions=False)
        assert result.exit_code == 0
        assert result.output.strip() == "No command history found."

    def test_table(self, runner: CliRunner, history_path: Path) -> None:
        _invoke(runner, history_path, "init")
        _log(runner, history_path, "npm install")
        _log(runner, history_path, "git status", exit_code=1)
        result = _invoke(runner, history_path, "history", catch_exceptions=False)
        assert result.exit_code == 0
        lines = result.output.rstrip("\n").split("\n")
        assert lines[0].startswith("Timestamp")
        assert len(lines) == 4
        assert "npm install" in lines[2]
        assert "git status" in lines[3]

    def test_filter(self, runner: CliRunner, history_path: Path) -> None:
        _invoke(runner, history_path, "init")
        for cmd in ("npm install", "git status", "npm run build"):
            _log(runner, history_path, cmd)
        result = _invoke(runner, history_path, "history", "--filter", "NPM", "--json")
        assert result.exit_code == 0
        assert [r["command"] for r in json.loads(result.output)] == [
            "npm install",
            "npm run build",
        ]

    def test_limit(self, runner: CliRunner, history_path: Path) -> None:
        _invoke(runner, history_path, "init")
        for i in range(5):
            _log(runner, history_path, f"echo {i}")
        result = _invoke(runner, history_path, "history", "-l", "2", "--json")
        assert [r["command"] for r in json.loads(result.output)] == ["echo 3", "echo 4"]

    def test_limit_zero_shows_all(self, runner: CliRunner, history_path: Path) -> None:
        _invoke(runner, history_path, "init")
        for i in range(3):
            _log(runner, history_path, f"echo {i}")
        result = _invoke(runner, history_path, "history", "--limit", "0", "--json")
        assert len(json.loads(result.output)) == 3

    def test_default_limit_from_config(
        self, runner: CliRunner, history_path: Path, tmp_path: Path
    ) -> None:
        cfg = tmp_path / "config.toml"
        cfg.write_text("[history]\ndefault_limit = 1\n")
        _invoke(runner, history_path, "init")
        _log(runner, history_path, "first")
        _log(runner, history_path, "second")
        result = runner.invoke(
            cli, ["--config", str(cfg), "--file", str(history_path), "history", "--json"]
        )
        assert [r["command"] for r in json.loads(result.output)] == ["second"]

    def test_corrupted(self, runner: CliRunner, history_path: Path) -> None:
        history_path.write_text("{not json")
        result = _invoke(runner, history_path, "history")
        assert result.exit_code == ExitCode.STORE_ERROR
        assert "corrupted" in result.output

    def test_markup_in_command_is_literal(self, runner: CliRunner, history_path: Path) -> None:
        _invoke(runner, history_path, "init")
        _log(runner, history_path, "echo [red]hi[/red]")
        result = _invoke(runner, history_path, "history")
        assert "echo [red]hi[/red]" in result.output


class TestLog:
    def test_record_fields(self, runner: CliRunner, history_path: Path) -> None:
        _invoke(runner, history_path, "init")
        result = _invoke(
            runner,
            history_path,
            "log",
            "--exit-code",
            "2",
            "--cwd",
            "/w",
            "--note",
            "retry",
            "--",
            "git",
            "commit",
            "--amend",
            catch_exceptions=False,
        )
        assert result.exit_code == 0
        (record,) = HistoryStore(history_path).read()
        assert record.command == "git commit --amend"
        assert record.exit_code == 2
        assert record.cwd == "/w"
        assert record.note == "retry"

    def test_cwd_defaults_to_current_directory(
        self, runner: CliRunner, history_path: Path, tmp_path: Path, monkeypatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        _invoke(runner, history_path, "log", "--exit-code", "0", "--", "pwd")
        (record,) = HistoryStore(history_path).read()
        assert Path(record.cwd).resolve() == tmp_path.resolve()

    def test_exit_code_required(self, runner: CliRunner, history_path: Path) -> None:
        result = _invoke(runner, history_path, "log", "--", "ls")
        assert result.exit_code != 0
        assert not history_path.exists()

    def test_corrupted_file_not_overwritten(self, runner: CliRunner, history_path: Path) -> None:
        history_path.write_text("garbage")
        result = _invoke(runner, history_path, "log", "--exit-code", "0", "--", "ls")
        assert result.exit_code == ExitCode.STORE_ERROR
        assert history_path.read_text() == "garbage"


# ---------------------------------------------------------------------------
# jyugemu backup
# ---------------------------------------------------------------------------


class TestBackup:
    def test_nothing_to_back_up(self, runner: CliRunner, history_path: Path) -> None:
        result = _invoke(runner, history_path, "backup")
        assert result.exit_code == 0
        assert "Nothing to back up" in result.output

    def test_recovers_corrupted_file(self, runner: CliRunner, history_path: Path) -> None:
        history_path.write_text("garbage")
        result = _invoke(runner, history_path, "backup", catch_exceptions=False)
        assert result.exit_code == 0
        assert not history_path.exists()
        (backup,) = HistoryStore(history_path).list_backups()
        assert backup.read_text() == "garbage"

        assert _invoke(runner, history_path, "init").exit_code == 0
        _log(runner, history_path, "ls")
        assert len(HistoryStore(history_path).read()) == 1


# ---------------------------------------------------------------------------
# jyugemu start
# ---------------------------------------------------------------------------


class TestStart:
    def test_not_initialized(self, runner: CliRunner, history_path: Path) -> None:
        result = _invoke(runner, history_path, "start", "--shell", "bash")
        assert result.exit_code == ExitCode.NOT_INITIALIZED

    def test_runs_session(self, runner: CliRunner, history_path: Path, monkeypatch) -> None:
        from jyugemu.core import session as session_mod

        calls: list[str] = []
        monkeypatch.setattr(
            session_mod.SessionManager, "start", lambda self: calls.append(self.shell) or 0
        )
        _invoke(runner, history_path, "init")
        result = _invoke(runner, history_path, "start", "--shell", "zsh", catch_exceptions=False)
        assert result.exit_code == 0
        assert calls == ["zsh"]
        assert "Monitored session ended" in result.output

    def test_missing_shell(self, runner: CliRunner, history_path: Path, monkeypatch) -> None:
        from jyugemu.core import session as session_mod

        monkeypatch.setattr(session_mod.shutil, "which", lambda name: None)
        _invoke(runner, history_path, "init")
        result = _invoke(runner, history_path, "start", "--shell", "bash")
        assert result.exit_code == ExitCode.SESSION_ERROR

    def test_unknown_shell_rejected(self, runner: CliRunner, history_path: Path) -> None:
        result = _invoke(runner, history_path, "start", "--shell", "fish")
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# jyugemu config show / version
# ---------------------------------------------------------------------------


class TestConfigShow:
    def test_json(self, runner: CliRunner, history_path: Path) -> None:
        result = _invoke(runner, history_path, "config", "show", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["_history_path"] == str(history_path.resolve())
        assert data["_config_path"] is None
        assert data["history"]["default_limit"] == 50

    def test_text(self, runner: CliRunner, history_path: Path) -> None:
        result = _invoke(runner, history_path, "config", "show")
        assert result.exit_code == 0
        assert "[store]" in result.output
        assert "lock_timeout_seconds" in result.output

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        cfg = tmp_path / "config.toml"
        cfg.write_text("[history]\ndefault_limit = -5\n")
        result = runner.invoke(cli, ["--config", str(cfg), "config", "show"])
        assert result.exit_code == ExitCode.CONFIG_ERROR
        assert "Config error" in result.output


class TestVersion:
    def test_json(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["jyugemu"] == "0.1.0"

    def test_flag(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "jyugemu 0.1.0" in result.output

    def test_ignores_broken_config(self, runner: CliRunner, tmp_path: Path) -> None:
        cfg = tmp_path / "config.toml"
        cfg.write_text("[store\n")
        result = runner.invoke(cli, ["--config", str(cfg), "version", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["jyugemu"] == "0.1.0"


class TestConfigInit:
    def test_writes_defaults(self, runner: CliRunner, tmp_path: Path) -> None:
        from jyugemu.core.config import load_config

        cfg = tmp_path / "sub" / "config.toml"
        result = runner.invoke(cli, ["--config", str(cfg), "config", "init"])
        assert result.exit_code == 0, result.output
        assert "Config written to" in result.output
        loaded = load_config(cfg)
        assert loaded.history.default_limit == 50
        assert loaded.store.lock_timeout_seconds == 5.0
        assert cfg.stat().st_mode & 0o777 == 0o600

    def test_uses_env_location(self, runner: CliRunner, tmp_path: Path, monkeypatch) -> None:
        cfg = tmp_path / "env-config.toml"
        monkeypatch.setenv("JYUGEMU_CONFIG", str(cfg))
        result = runner.invoke(cli, ["config", "init"])
        assert result.exit_code == 0
        assert cfg.exists()

    def test_existing_requires_force(self, runner: CliRunner, tmp_path: Path) -> None:
        cfg = tmp_path / "config.toml"
        cfg.write_text("[history]\ndefault_limit = 7\n")
        result = runner.invoke(cli, ["--config", str(cfg), "config", "init"])
        assert result.exit_code == ExitCode.CONFIG_ERROR
        assert "already exists" in result.output
        assert "default_limit = 7" in cfg.read_text()

    def test_force_replaces_broken_file(self, runner: CliRunner, tmp_path: Path) -> None:
        cfg = tmp_path / "config.toml"
        cfg.write_text("[store\n")
        result = runner.invoke(cli, ["--config", str(cfg), "config", "init", "--force"])
        assert result.exit_code == 0, result.output
        shown = runner.invoke(cli, ["--config", str(cfg), "config", "show", "--json"])
        assert shown.exit_code == 0
        assert json.loads(shown.output)["_config_path"] == str(cfg)
