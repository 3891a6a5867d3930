"""Command log sinks for child processes launched by the runner.

Contains:
- CommandRecord: One executed command with its outcome
- CommandLog: Base sink interface, injected into ProcessRunner at construction
- MemoryCommandLog: Append-only in-memory log (e.g. for a terminal view)
- LoggingCommandLog: Forwards each record to structlog
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog

from hunkwork.git.exceptions import truncate_output

logger = structlog.get_logger()


@dataclass(frozen=True)
class CommandRecord:
    """A single executed child process."""

    args: tuple[str, ...]
    cwd: Optional[Path]
    exit_code: int
    duration_ms: float
    stdout: str = ""
    stderr: str = ""
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def command_line(self) -> str:
        return " ".join(self.args)

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class CommandLog:
    """Sink receiving every command the runner executes."""

    def record(self, entry: CommandRecord) -> None:
        raise NotImplementedError


class MemoryCommandLog(CommandLog):
    """Append-only in-memory command log."""

    def __init__(self, max_entries: Optional[int] = None):
        self._entries: list[CommandRecord] = []
        self._max_entries = max_entries

    def record(self, entry: CommandRecord) -> None:
        self._entries.append(entry)
        if self._max_entries is not None and len(self._entries) > self._max_entries:
            del self._entries[: len(self._entries) - self._max_entries]

    @property
    def entries(self) -> tuple[CommandRecord, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class LoggingCommandLog(CommandLog):
    """Forward command records to structlog."""

    def __init__(self, max_output_chars: int = 500):
        self._max_output_chars = max_output_chars

    def record(self, entry: CommandRecord) -> None:
        if entry.success:
            logger.debug(
                "command_executed",
                command=entry.command_line,
                cwd=str(entry.cwd) if entry.cwd else None,
                duration_ms=round(entry.duration_ms, 1),
            )
            return
        # Includes lookups that are allowed to fail, e.g. rev-parse --verify -q
        logger.debug(
            "command_failed",
            command=entry.command_line,
            cwd=str(entry.cwd) if entry.cwd else None,
            exit_code=entry.exit_code,
            stderr=truncate_output(entry.stderr, self._max_output_chars),
        )
