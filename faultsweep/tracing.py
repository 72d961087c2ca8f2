"""Tracing and log files for sweeps."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal

from rich.console import Console

EventKind = Literal["call", "pass", "fail", "inject", "run", "sweep"]

_stderr = Console(stderr=True, highlight=False)


@dataclass
class TraceEvent:
    """A single traced event."""

    kind: EventKind
    detail: str
    threshold: int | None = None

    def __str__(self) -> str:
        return f"faultsweep:{self.kind}:{self.detail}"


@dataclass
class Tracer:
    """Collects sweep events and optionally echoes them to stderr."""

    verbose: bool = False
    console: Console = field(default_factory=lambda: _stderr, repr=False)
    events: list[TraceEvent] = field(default_factory=list)

    def event(self, kind: EventKind, detail: str, threshold: int | None = None) -> TraceEvent:
        entry = TraceEvent(kind=kind, detail=detail, threshold=threshold)
        self.events.append(entry)
        if self.verbose:
            style = {"inject": "yellow", "fail": "red", "pass": "green"}.get(kind, "dim")
            self.console.print(f"[{style}]{entry}[/{style}]")
        return entry

    def of_kind(self, kind: EventKind) -> list[TraceEvent]:
        """Events of one kind, in order."""
        return [e for e in self.events if e.kind == kind]

    def clear(self) -> None:
        self.events = []

    def render(self) -> str:
        """All events, one per line."""
        return "\n".join(str(e) for e in self.events)


def get_log_dir(name: str, log_root: Path) -> Path:
    """Get the log directory for a named sweep."""
    log_dir = log_root / name
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def get_next_log_number(name: str, log_root: Path) -> int:
    """Get the next log file number for a named sweep."""
    log_dir = get_log_dir(name, log_root)
    numbers = []
    for f in log_dir.glob("*.log"):
        # "001-sweep.log" -> 1
        try:
            numbers.append(int(f.stem.split("-")[0]))
        except (ValueError, IndexError):
            pass
    return max(numbers, default=0) + 1


def write_log(
    name: str,
    log_type: str,
    summary: str,
    tracer: Tracer,
    log_root: Path,
) -> Path:
    """Write the traced events of a sweep to a numbered log file.

    Args:
        name: Name of the swept routine
        log_type: Type of log (e.g., "sweep", "run", "each")
        summary: One-line outcome of the sweep
        tracer: Tracer holding the events to write
        log_root: Directory that holds per-routine log directories

    Returns:
        Path to the log file
    """
    log_dir = get_log_dir(name, log_root)
    log_num = get_next_log_number(name, log_root)
    log_file = log_dir / f"{log_num:03d}-{log_type}.log"

    timestamp = datetime.now().isoformat()

    content = f"""=== FAULTSWEEP LOG ===
Routine: {name}
Time: {timestamp}
Result: {summary}
Events: {len(tracer.events)}
---
{tracer.render()}
=== END ===
"""

    log_file.write_text(content)
    return log_file


def read_latest_log(name: str, log_root: Path) -> str | None:
    """Read the latest log file for a routine."""
    log_dir = get_log_dir(name, log_root)
    logs = sorted(log_dir.glob("*.log"))
    if not logs:
        return None
    return logs[-1].read_text()
