"""Append-only journal of user-facing transcription log entries.

The journal is the observable log sequence of a TranscriptionService: load,
invoke and completion milestones plus every failure. Entries are also
mirrored to structlog so they show up in the process log.

Backend libraries sometimes warn about conditions that are normal for this
runtime. Instead of intercepting a global output stream, callers pass a
severity-remapping predicate that the journal applies to every entry.
"""

from __future__ import annotations

import re
import time
from typing import TYPE_CHECKING

from murmur._types import LogEntry, LogLevel
from murmur.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    SeverityRemap = Callable[[LogLevel, str], LogLevel]

logger = get_logger("journal")

_STRUCTLOG_METHOD = {
    LogLevel.INFO: "info",
    LogLevel.WARN: "warning",
    LogLevel.ERROR: "error",
}


class LogJournal:
    """Ordered, unbounded log of entries until ``clear()``.

    Args:
        remap: Optional predicate ``(level, message) -> level`` applied before
            an entry is stored.
        clock: Wall-clock source in epoch seconds (for deterministic tests).
    """

    def __init__(
        self,
        remap: SeverityRemap | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._entries: list[LogEntry] = []
        self._remap = remap
        self._clock = clock

    def record(self, level: LogLevel, message: str, *, mirror: bool = True) -> LogEntry:
        """Append an entry and return it."""
        if self._remap is not None:
            level = self._remap(level, message)
        entry = LogEntry(timestamp=self._clock(), level=level, message=message)
        self._entries.append(entry)
        if mirror:
            getattr(logger, _STRUCTLOG_METHOD[level])("journal_entry", message=message)
        return entry

    def info(self, message: str) -> LogEntry:
        return self.record(LogLevel.INFO, message)

    def warn(self, message: str) -> LogEntry:
        return self.record(LogLevel.WARN, message)

    def error(self, message: str) -> LogEntry:
        return self.record(LogLevel.ERROR, message)

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        """Snapshot of all entries, oldest first."""
        return tuple(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def downgrade_matching(pattern: str, to_level: LogLevel = LogLevel.INFO) -> SeverityRemap:
    """Build a remap that downgrades warnings whose message matches ``pattern``.

    Errors are never downgraded.

    Example::

        journal = LogJournal(remap=downgrade_matching(r"onnxruntime.*VerifyEachNodeIsAssignedToAnEp"))
    """
    compiled = re.compile(pattern, re.IGNORECASE)

    def _remap(level: LogLevel, message: str) -> LogLevel:
        if level is LogLevel.WARN and compiled.search(message):
            return to_level
        return level

    return _remap
