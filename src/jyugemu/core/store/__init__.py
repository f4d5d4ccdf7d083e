"""Persistent history store: atomic JSON file plus advisory lock file."""

from jyugemu.core.store.history import HistoryStore
from jyugemu.core.store.lock import LockFile, LockReleaseResult

__all__ = ["HistoryStore", "LockFile", "LockReleaseResult"]
