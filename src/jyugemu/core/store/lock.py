"""
Advisory lock file for the history store.

The lock is the existence of ``<history>.lock``. Whoever creates it owns the
write critical section until the file is removed. The file holds the owner's
PID for diagnostics only; nothing checks whether that process is alive.

Lifecycle::

    lock = LockFile(path.with_name(path.name + ".lock"))
    lock.acquire()          # polls until free or raises LockTimeoutError
    try:
        ...
    finally:
        result = lock.release()
        if not result.ok:
            logger.warning(...)

A process that dies while holding the lock leaves a stale file behind.
Every later writer then times out until the file is removed by hand.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path

from jyugemu.core.constants import LOCK_POLL_INTERVAL_SECONDS, LOCK_TIMEOUT_SECONDS
from jyugemu.core.exceptions import LockError, LockTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockReleaseResult:
    """Outcome of ``LockFile.release``. Release never raises."""

    ok: bool
    error: OSError | None = None


class LockFile:
    def __init__(
        self,
        lock_path: Path,
        timeout: float = LOCK_TIMEOUT_SECONDS,
        poll_interval: float = LOCK_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.lock_path = Path(lock_path)
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._held = False

    @property
    def acquired(self) -> bool:
        return self._held

    @property
    def holder_pid(self) -> int | None:
        """PID recorded in the lock file, or None if there is no readable lock."""
        try:
            return int(self.lock_path.read_text(encoding="utf-8").strip())
        except (OSError, ValueError):
            return None

    def acquire(self) -> None:
        """
        Create the lock file, polling while another writer holds it.

        Raises LockTimeoutError once ``timeout`` seconds have passed since the
        first attempt. Arrival order does not decide who gets the lock next.
        """
        started = time.monotonic()
        while True:
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
            except FileExistsError:
                if time.monotonic() - started > self.timeout:
                    raise LockTimeoutError(
                        f"Failed to acquire lock {self.lock_path}: timeout after "
                        f"{self.timeout:g}s (held by pid {self.holder_pid or 'unknown'}). "
                        "If no jyugemu process is running, delete the lock file."
                    ) from None
                time.sleep(self.poll_interval)
                continue
            except OSError as exc:
                raise LockError(f"Failed to create lock file {self.lock_path}: {exc}") from exc

            try:
                with os.fdopen(fd, "w", encoding="ascii") as fh:
                    fh.write(str(os.getpid()))
            except OSError as exc:
                self.lock_path.unlink(missing_ok=True)
                raise LockError(f"Failed to write lock file {self.lock_path}: {exc}") from exc
            self._held = True
            logger.debug("Lock acquired: %s", self.lock_path)
            return

    def release(self) -> LockReleaseResult:
        """Remove the lock file. Failures are returned, not raised."""
        self._held = False
        try:
            self.lock_path.unlink(missing_ok=True)
        except OSError as exc:
            return LockReleaseResult(ok=False, error=exc)
        logger.debug("Lock released: %s", self.lock_path)
        return LockReleaseResult(ok=True)

    def __enter__(self) -> LockFile:
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        result = self.release()
        if not result.ok:
            logger.warning("Failed to release lock file %s: %s", self.lock_path, result.error)
