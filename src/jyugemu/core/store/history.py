"""
Persistent history store.

``HistoryStore`` owns one JSON history file and its sibling artifacts:

    <path>                    the history document
    <path>.lock               present only while an append is in progress
    <path>.tmp                present only while a write is in progress
    <path>.backup.<stamp>     one per backup, kept until deleted by hand

Writes go to ``<path>.tmp`` and are renamed over ``<path>``, so readers see
either the old document or the new one, never a partial file. Appends are
serialized across processes by the lock file; reads never take the lock.

A history file that does not decode is reported, never repaired. Recovery is
an explicit ``backup()`` followed by ``initialize()``.
"""

from __future__ import annotations

import glob
import logging
import os
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from jyugemu.core.constants import (
    BACKUP_INFIX,
    LOCK_POLL_INTERVAL_SECONDS,
    LOCK_SUFFIX,
    LOCK_TIMEOUT_SECONDS,
    TMP_SUFFIX,
)
from jyugemu.core.exceptions import (
    AlreadyExistsError,
    BackupError,
    CorruptedFileError,
    ReadError,
    RecordValidationError,
    WriteError,
)
from jyugemu.core.models import CommandRecord, HistoryFile, utc_timestamp
from jyugemu.core.store.lock import LockFile

logger = logging.getLogger(__name__)


class HistoryStore:
    """
    Append-only command history backed by a single JSON file.

    Usage::

        store = HistoryStore(Path("jyugemu.json"))
        store.initialize()
        store.append(CommandRecord.now("git status", 0, "/proj"))
        records = store.read(limit=20)
    """

    def __init__(
        self,
        path: Path | str,
        lock_timeout: float = LOCK_TIMEOUT_SECONDS,
        poll_interval: float = LOCK_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + LOCK_SUFFIX)
        self.tmp_path = self.path.with_name(self.path.name + TMP_SUFFIX)
        self._lock = LockFile(self.lock_path, timeout=lock_timeout, poll_interval=poll_interval)

    @property
    def exists(self) -> bool:
        return self.path.exists()

    @property
    def lock_timeout(self) -> float:
        return self._lock.timeout

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def initialize(self, force: bool = False) -> Path | None:
        """
        Create an empty history file.

        An existing file is only replaced when ``force`` is true, and is
        backed up first. Returns the backup path, or None when nothing was
        replaced.
        """
        backup_path = None
        if self.path.exists():
            if not force:
                raise AlreadyExistsError(
                    f"History file already exists at {self.path}. Use --force to overwrite."
                )
            backup_path = self.backup()

        self._atomic_write(HistoryFile())
        logger.info("History file initialized: %s", self.path)
        return backup_path

    def append(self, record: CommandRecord | Mapping[str, Any]) -> None:
        """Append one record under the write lock."""
        record = _coerce_record(record)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WriteError(f"Cannot create directory for {self.path}: {exc}") from exc

        self._lock.acquire()
        try:
            document = self._load()
            document.history.append(record)
            self._atomic_write(document)
            logger.debug("Appended record to %s (%d total)", self.path, len(document.history))
        finally:
            result = self._lock.release()
            if not result.ok:
                logger.warning(
                    "Failed to release lock file %s: %s", self.lock_path, result.error
                )

    def read(self, limit: int | None = None) -> list[CommandRecord]:
        """
        Return stored records in append order.

        With a positive ``limit`` smaller than the record count, only the
        last ``limit`` records are returned. A missing file reads as empty.
        """
        records = self._load().history
        if limit is not None and 0 < limit < len(records):
            return records[-limit:]
        return records

    def backup(self) -> Path | None:
        """
        Move the history file aside to ``<path>.backup.<timestamp>``.

        Returns the backup path, or None when there was nothing to back up.
        The copy completes before the original is removed.
        """
        if not self.path.exists():
            return None

        backup_path = self._next_backup_path()
        try:
            shutil.copy2(self.path, backup_path)
        except OSError as exc:
            raise BackupError(f"Failed to backup history file {self.path}: {exc}") from exc

        try:
            self.path.unlink()
        except OSError as exc:
            raise BackupError(
                f"Backed up {self.path} to {backup_path} but could not remove the original: {exc}"
            ) from exc

        logger.info("History file backed up: %s -> %s", self.path, backup_path)
        return backup_path

    def list_backups(self) -> list[Path]:
        """Backup files for this history file, oldest first."""
        pattern = glob.escape(self.path.name) + BACKUP_INFIX + "*"
        return sorted(self.path.parent.glob(pattern))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self) -> HistoryFile:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return HistoryFile()
        except OSError as exc:
            raise ReadError(f"Failed to read history file {self.path}: {exc}") from exc

        try:
            return HistoryFile.model_validate_json(raw.decode("utf-8-sig"))
        except ValueError as exc:
            raise CorruptedFileError(
                f"History file {self.path} is corrupted: {exc}. "
                "Run 'jyugemu backup' and 'jyugemu init' to start a fresh file."
            ) from exc

    def _atomic_write(self, document: HistoryFile) -> None:
        try:
            payload = document.to_json()
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.tmp_path.write_text(payload, encoding="utf-8")
            os.replace(self.tmp_path, self.path)
        except (OSError, ValueError, TypeError) as exc:
            self._discard_tmp()
            raise WriteError(f"Failed to write history file {self.path}: {exc}") from exc

    def _discard_tmp(self) -> None:
        try:
            self.tmp_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.debug("Could not remove temp file %s: %s", self.tmp_path, exc)

    def _next_backup_path(self) -> Path:
        stamp = utc_timestamp().replace(":", "-").replace(".", "-")
        base = self.path.with_name(f"{self.path.name}{BACKUP_INFIX}{stamp}")
        candidate = base
        n = 1
        while candidate.exists():
            candidate = base.with_name(f"{base.name}-{n}")
            n += 1
        return candidate


def _coerce_record(record: CommandRecord | Mapping[str, Any]) -> CommandRecord:
    if isinstance(record, CommandRecord):
        return record
    try:
        return CommandRecord.model_validate(dict(record))
    except (ValidationError, TypeError) as exc:
        raise RecordValidationError(f"Invalid command record: {exc}") from exc
