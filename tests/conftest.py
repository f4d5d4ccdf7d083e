"""Shared fixtures for the jyugemu test suite."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from jyugemu.core.models import CommandRecord

_ENV_VARS = (
    "JYUGEMU_CONFIG",
    "JYUGEMU_HISTORY_FILE",
    "JYUGEMU_LOCK_TIMEOUT",
    "JYUGEMU_LOG_LEVEL",
    "JYUGEMU_SHELL",
)


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's ~/.jyugemu/config.toml and JYUGEMU_* vars out of tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("JYUGEMU_CONFIG", str(tmp_path / "no-such-config.toml"))


@pytest.fixture
def make_record() -> Callable[..., CommandRecord]:
    counter = iter(range(10_000))

    def _make(command: str = "echo hi", exit_code: int = 0, **overrides: object) -> CommandRecord:
        n = next(counter)
        fields: dict[str, object] = {
            "timestamp": f"2025-12-25T01:{n // 60 % 60:02d}:{n % 60:02d}.221Z",
            "user": "alice",
            "command": command,
            "exit_code": exit_code,
            "cwd": "/proj",
        }
        fields.update(overrides)
        return CommandRecord(**fields)

    return _make


@pytest.fixture
def history_path(tmp_path: Path) -> Path:
    return tmp_path / "jyugemu.json"
