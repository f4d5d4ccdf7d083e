"""
Query layer over loaded history records.

Pure functions: no I/O, no shared state. The display policy used by
``jyugemu history`` is::

    select_for_display(store.read(), limit=50, needle="npm")

i.e. filter first, then keep the trailing ``limit`` records, then format.
"""

from __future__ import annotations

from collections.abc import Sequence

from jyugemu.core.constants import NO_HISTORY_MESSAGE
from jyugemu.core.models import CommandRecord

COLUMNS = ("Timestamp", "Command", "Exit Code", "Directory", "User")
CELL_SEPARATOR = " | "
RULE_SEPARATOR = "-+-"


def filter_records(records: Sequence[CommandRecord], needle: str | None) -> list[CommandRecord]:
    """Records whose command contains ``needle``, case-insensitively."""
    if not needle or not needle.strip():
        return list(records)
    lowered = needle.lower()
    return [r for r in records if lowered in r.command.lower()]


def tail(records: Sequence[CommandRecord], limit: int | None) -> list[CommandRecord]:
    """The last ``limit`` records; all of them when ``limit`` is unset or not positive."""
    if limit is not None and 0 < limit < len(records):
        return list(records[-limit:])
    return list(records)


def select_for_display(
    records: Sequence[CommandRecord],
    limit: int | None = None,
    needle: str | None = None,
) -> list[CommandRecord]:
    return tail(filter_records(records, needle), limit)


def _row(record: CommandRecord) -> tuple[str, ...]:
    return (record.timestamp, record.command, str(record.exit_code), record.cwd, record.user)


def format_table(records: Sequence[CommandRecord]) -> str:
    """Render records as a column-aligned text table."""
    if not records:
        return NO_HISTORY_MESSAGE

    rows = [_row(r) for r in records]
    widths = [
        max(len(header), *(len(row[i]) for row in rows)) for i, header in enumerate(COLUMNS)
    ]

    lines = [
        CELL_SEPARATOR.join(h.ljust(w) for h, w in zip(COLUMNS, widths)),
        RULE_SEPARATOR.join("-" * w for w in widths),
    ]
    for row in rows:
        lines.append(CELL_SEPARATOR.join(cell.ljust(w) for cell, w in zip(row, widths)))
    return "\n".join(lines)
