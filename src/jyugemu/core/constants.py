"""jyugemu constants: filesystem layout, timeouts, and limits."""

from __future__ import annotations

from enum import IntEnum

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    NOT_INITIALIZED = 3
    STORE_ERROR = 4
    SESSION_ERROR = 5


# ---------------------------------------------------------------------------
# Filesystem layout
# ---------------------------------------------------------------------------

JYUGEMU_DIR_NAME = ".jyugemu"
CONFIG_FILENAME = "config.toml"
HISTORY_FILENAME = "jyugemu.json"

LOCK_SUFFIX = ".lock"
TMP_SUFFIX = ".tmp"
BACKUP_INFIX = ".backup."

# ---------------------------------------------------------------------------
# Timeouts and limits
# ---------------------------------------------------------------------------

LOCK_TIMEOUT_SECONDS = 5.0
LOCK_POLL_INTERVAL_SECONDS = 0.01  # 10 ms between lock attempts
MAX_LOCK_TIMEOUT_SECONDS = 300.0
DEFAULT_HISTORY_LIMIT = 50

NO_HISTORY_MESSAGE = "No command history found."
