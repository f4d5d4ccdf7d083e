"""
Monitored shell sessions.

``jyugemu start`` runs an interactive subshell with a small prompt hook
installed. After every command the hook calls back into the CLI::

    jyugemu --file <history> log --exit-code <rc> --cwd <pwd> -- <command>

so each record goes through ``HistoryStore.append`` and its lock, even when
several monitored shells share one history file.

Supported shells: bash (PROMPT_COMMAND), zsh (preexec/precmd hooks) and
PowerShell (prompt function).
"""

from __future__ import annotations

import logging
import os
import random
import shlex
import shutil
import string
import subprocess
import sys
import tempfile
import time
from pathlib import Path

from pydantic import ValidationError

from jyugemu.core.exceptions import RecordValidationError, SessionError
from jyugemu.core.models import CommandRecord
from jyugemu.core.store.history import HistoryStore

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase

_BASH_HOOK = """\
# jyugemu hook for session {session_id}
[ -f "$HOME/.bashrc" ] && source "$HOME/.bashrc"
# Every command must add a history entry, repeats and leading-space lines included.
HISTCONTROL=
HISTIGNORE=
set -o history
__jyugemu_last_histno=""
__jyugemu_ready=""
__jyugemu_log() {{
    local rc=$?
    local entry histno cmd
    entry=$(HISTTIMEFORMAT= builtin history 1)
    histno=$(printf '%s\\n' "$entry" | awk '{{print $1}}')
    cmd=$(printf '%s\\n' "$entry" | sed -E 's/^ *[0-9]+[* ] //')
    if [ -z "$__jyugemu_ready" ]; then
        __jyugemu_ready=1
        __jyugemu_last_histno="$histno"
        return $rc
    fi
    if [ -n "$histno" ] && [ "$histno" != "$__jyugemu_last_histno" ]; then
        __jyugemu_last_histno="$histno"
        case "$cmd" in
            ""|*__jyugemu_*) ;;
            *) {log_command} --exit-code "$rc" --cwd "$PWD" -- "$cmd" >/dev/null 2>&1 ;;
        esac
    fi
    return $rc
}}
PROMPT_COMMAND="__jyugemu_log${{PROMPT_COMMAND:+; $PROMPT_COMMAND}}"
echo "jyugemu command logging initialized for session {session_id}"
echo "Commands will be logged to: {history_path_display}"
"""

_ZSH_HOOK = """\
# jyugemu hook for session {session_id}
if [[ -n "$JYUGEMU_ORIG_ZDOTDIR" ]]; then
    ZDOTDIR="$JYUGEMU_ORIG_ZDOTDIR"
else
    unset ZDOTDIR
fi
unset JYUGEMU_ORIG_ZDOTDIR
[ -f "${{ZDOTDIR:-$HOME}}/.zshenv" ] && source "${{ZDOTDIR:-$HOME}}/.zshenv"
[ -f "${{ZDOTDIR:-$HOME}}/.zshrc" ] && source "${{ZDOTDIR:-$HOME}}/.zshrc"
__jyugemu_cmd=""
__jyugemu_pending=""
__jyugemu_preexec() {{
    __jyugemu_cmd="$1"
    __jyugemu_pending=1
}}
__jyugemu_precmd() {{
    local rc=$?
    if [[ -n "$__jyugemu_pending" ]]; then
        __jyugemu_pending=""
        if [[ -n "${{__jyugemu_cmd//[[:space:]]/}}" && "$__jyugemu_cmd" != *__jyugemu_* ]]; then
            {log_command} --exit-code "$rc" --cwd "$PWD" -- "$__jyugemu_cmd" >/dev/null 2>&1
        fi
    fi
    return $rc
}}
autoload -Uz add-zsh-hook
add-zsh-hook preexec __jyugemu_preexec
add-zsh-hook precmd __jyugemu_precmd
echo "jyugemu command logging initialized for session {session_id}"
echo "Commands will be logged to: {history_path_display}"
"""

_POWERSHELL_HOOK = """\
# jyugemu hook for session {session_id}
$global:JyugemuLastHistoryId = -1

function global:prompt {{
    $rc = $LASTEXITCODE
    if ($null -eq $rc) {{ $rc = 0 }}
    $lastCmd = Get-History -Count 1 -ErrorAction SilentlyContinue
    if ($lastCmd -and $lastCmd.Id -ne $global:JyugemuLastHistoryId) {{
        $global:JyugemuLastHistoryId = $lastCmd.Id
        $line = $lastCmd.CommandLine
        if (-not [string]::IsNullOrWhiteSpace($line)) {{
            try {{
                {log_command} --exit-code $rc --cwd (Get-Location).Path '--' $line | Out-Null
            }} catch {{
                Write-Warning "Failed to log command: $_"
            }}
        }}
    }}
    $global:LASTEXITCODE = $rc
    "PS $(Get-Location)> "
}}

Write-Host "jyugemu command logging initialized for session {session_id}" -ForegroundColor Green
Write-Host "Commands will be logged to: {history_path_display}" -ForegroundColor Gray
"""


def generate_session_id() -> str:
    """Base36 millisecond time plus a random suffix, e.g. ``m4x1k2pq-a9f3zq``."""
    n = int(time.time() * 1000)
    stamp = ""
    while n:
        n, rem = divmod(n, 36)
        stamp = _BASE36[rem] + stamp
    suffix = "".join(random.choices(_BASE36, k=6))
    return f"{stamp or '0'}-{suffix}"


def default_shell() -> str:
    if sys.platform == "win32":
        return "powershell"
    name = Path(os.environ.get("SHELL", "")).name
    return name if name in ("bash", "zsh") else "bash"


def _powershell_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def cli_invocation() -> list[str]:
    """argv prefix that runs this jyugemu installation."""
    exe = shutil.which("jyugemu")
    if exe:
        return [exe]
    return [sys.executable, "-m", "jyugemu"]


def capture_command(
    store: HistoryStore,
    command: str,
    exit_code: int,
    cwd: str,
    note: str | None = None,
) -> CommandRecord:
    """Build a record for a finished command and append it to ``store``."""
    try:
        record = CommandRecord.now(command=command, exit_code=exit_code, cwd=cwd, note=note)
    except ValidationError as exc:
        raise RecordValidationError(f"Invalid command record: {exc}") from exc
    store.append(record)
    return record


class SessionManager:
    """
    One monitored shell session.

    Lifecycle::

        session = SessionManager(history_path)
        exit_code = session.start()   # blocks until the shell exits
    """

    def __init__(
        self,
        history_path: Path,
        session_id: str | None = None,
        shell: str | None = None,
        store: HistoryStore | None = None,
        invocation: list[str] | None = None,
    ) -> None:
        self.history_path = Path(history_path)
        self.session_id = session_id or generate_session_id()
        self.shell = (shell or default_shell()).lower()
        if self.shell not in ("bash", "zsh", "powershell"):
            raise SessionError(f"Unsupported shell: {self.shell}")
        self.store = store or HistoryStore(self.history_path)
        self._invocation = invocation or cli_invocation()

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def capture_command(
        self, command: str, exit_code: int, cwd: str, note: str | None = None
    ) -> CommandRecord:
        return capture_command(self.store, command, exit_code, cwd, note=note)

    # ------------------------------------------------------------------
    # Hook script
    # ------------------------------------------------------------------

    def log_command_prefix(self) -> str:
        """The hook's callback command, quoted for the target shell."""
        argv = [*self._invocation, "--file", str(self.history_path), "log"]
        if self.shell == "powershell":
            return "& " + " ".join(_powershell_quote(a) for a in argv)
        return shlex.join(argv)

    def build_hook_script(self) -> str:
        template = {
            "bash": _BASH_HOOK,
            "zsh": _ZSH_HOOK,
            "powershell": _POWERSHELL_HOOK,
        }[self.shell]
        display = str(self.history_path).replace('"', "'")
        if self.shell == "powershell":
            display = display.replace("`", "``").replace("$", "`$")
        return template.format(
            session_id=self.session_id,
            log_command=self.log_command_prefix(),
            history_path_display=display,
        )

    # ------------------------------------------------------------------
    # Subshell
    # ------------------------------------------------------------------

    def _shell_executable(self) -> str:
        candidates = {
            "bash": ["bash"],
            "zsh": ["zsh"],
            "powershell": ["pwsh", "powershell.exe", "powershell"],
        }[self.shell]
        for name in candidates:
            found = shutil.which(name)
            if found:
                return found
        raise SessionError(f"Shell not found on PATH: {' / '.join(candidates)}")

    def build_command(self, script_path: Path) -> tuple[list[str], dict[str, str]]:
        """argv and environment that start the shell with the hook installed."""
        exe = self._shell_executable()
        env = dict(os.environ)
        env["JYUGEMU_SESSION_ID"] = self.session_id
        if self.shell == "bash":
            return [exe, "--rcfile", str(script_path), "-i"], env
        if self.shell == "zsh":
            env.pop("JYUGEMU_ORIG_ZDOTDIR", None)
            if env.get("ZDOTDIR"):
                env["JYUGEMU_ORIG_ZDOTDIR"] = env["ZDOTDIR"]
            env["ZDOTDIR"] = str(script_path.parent)
            return [exe, "-i"], env
        return [
            exe,
            "-NoExit",
            "-NoProfile",
            "-ExecutionPolicy",
            "Bypass",
            "-File",
            str(script_path),
        ], env

    def _write_hook(self, workdir: Path) -> Path:
        name = {"bash": "jyugemu-hook.bash", "zsh": ".zshrc", "powershell": "jyugemu-hook.ps1"}[
            self.shell
        ]
        script_path = workdir / name
        script_path.write_text(self.build_hook_script(), encoding="utf-8")
        logger.debug("Hook script written: %s", script_path)
        return script_path

    def start(self) -> int:
        """Run the monitored shell in the foreground and return its exit code."""
        with tempfile.TemporaryDirectory(prefix=f"jyugemu-{self.session_id}-") as tmp:
            script_path = self._write_hook(Path(tmp))
            argv, env = self.build_command(script_path)
            logger.info("Starting %s session %s", self.shell, self.session_id)
            try:
                proc = subprocess.run(argv, env=env, check=False)
            except OSError as exc:
                raise SessionError(f"Failed to start {self.shell}: {exc}") from exc
        logger.info("Session %s exited with code %d", self.session_id, proc.returncode)
        return proc.returncode
