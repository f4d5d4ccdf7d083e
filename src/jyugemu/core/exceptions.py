"""jyugemu exception hierarchy."""

from __future__ import annotations


class JyugemuError(Exception):
    """Base exception for all jyugemu errors."""


class ConfigError(JyugemuError):
    """Raised when the configuration is invalid or cannot be read."""


class ConfigNotFoundError(ConfigError):
    """Raised when an explicitly requested configuration file does not exist."""


class SessionError(JyugemuError):
    """Raised when a monitored shell session cannot be started."""


# ---------------------------------------------------------------------------
# History store
# ---------------------------------------------------------------------------


class StoreError(JyugemuError):
    """Base class for history store failures."""


class AlreadyExistsError(StoreError):
    """Raised when initializing over an existing history file without force."""


class WriteError(StoreError):
    """Raised when the history file cannot be serialized, written or renamed."""


class ReadError(StoreError):
    """Raised when the existing history file cannot be loaded for an append."""


class CorruptedFileError(ReadError):
    """Raised when the history file exists but does not decode."""


class LockError(StoreError):
    """Raised when the lock file cannot be created."""


class LockTimeoutError(LockError):
    """Raised when the lock stays held past the acquisition timeout."""


class BackupError(StoreError):
    """Raised when the history file cannot be copied aside or removed."""


class RecordValidationError(StoreError):
    """Raised when a record is missing required fields or is malformed."""
