"""
History data model.

A ``CommandRecord`` is one executed command; a ``HistoryFile`` is the whole
on-disk document::

    {
      "history": [
        {"timestamp": "2025-12-25T01:03:14.221Z", "user": "alice",
         "command": "npm install", "exit_code": 0, "cwd": "/proj"}
      ]
    }
"""

from __future__ import annotations

import getpass
import json
import re
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

_TIMESTAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{3})?Z?")


def utc_timestamp(now: datetime | None = None) -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    dt = (now or datetime.now(UTC)).astimezone(UTC)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


class CommandRecord(BaseModel):
    """One logged command execution."""

    # Unknown keys written by other tools are kept so a rewrite never drops them.
    model_config = ConfigDict(extra="allow", frozen=True)

    timestamp: str
    user: str = Field(min_length=1)
    command: str
    exit_code: StrictInt
    cwd: str
    note: str | None = None

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: str) -> str:
        if not _TIMESTAMP_RE.fullmatch(v):
            raise ValueError(
                f"Invalid timestamp {v!r}. Expected ISO-8601: YYYY-MM-DDTHH:mm:ss[.sss][Z]"
            )
        return v

    @classmethod
    def now(
        cls,
        command: str,
        exit_code: int,
        cwd: str,
        user: str | None = None,
        note: str | None = None,
    ) -> CommandRecord:
        """Build a record stamped with the current time and OS user."""
        return cls(
            timestamp=utc_timestamp(),
            user=user or current_user(),
            command=command,
            exit_code=exit_code,
            cwd=cwd,
            note=note,
        )

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump()
        if data.get("note") is None:
            data.pop("note", None)
        return data


class HistoryFile(BaseModel):
    """The whole history document."""

    model_config = ConfigDict(extra="allow")

    history: list[CommandRecord] = Field(default_factory=list)

    def to_json(self) -> str:
        data = self.model_dump()
        data["history"] = [r.to_dict() for r in self.history]
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
