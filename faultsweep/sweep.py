"""Sweep driver: run a routine once per threshold until it completes.

A routine with N checked operations needs thresholds 0..N to take every
early-exit path once; at threshold N it runs to completion and every higher
threshold would repeat that same run, so :meth:`SweepDriver.sweep` stops at
the first success. :meth:`SweepDriver.sweep_each` runs the whole range
regardless of outcome for callers that want every record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable

from faultsweep.checked import Err, Ok, Status, is_success
from faultsweep.counter import FaultCounter, activate
from faultsweep.errors import CheckFailed, SweepExhausted
from faultsweep.tracing import Tracer, write_log

Routine = Callable[[], Any]
Hook = Callable[["RunRecord"], None]


@dataclass
class RunRecord:
    """Outcome of one routine invocation within a sweep."""

    threshold: int | None
    status: int
    checks: int = 0
    injected: int = 0
    error: str | None = None
    leaked: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return is_success(self.status)

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON storage."""
        return {
            "threshold": self.threshold,
            "status": int(self.status),
            "checks": self.checks,
            "injected": self.injected,
            "error": self.error,
            "leaked": list(self.leaked),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RunRecord":
        """Deserialize from dictionary."""
        return cls(
            threshold=data.get("threshold"),
            status=data["status"],
            checks=data.get("checks", 0),
            injected=data.get("injected", 0),
            error=data.get("error"),
            leaked=list(data.get("leaked", [])),
        )


def _normalize(outcome: Any, routine: Routine) -> int:
    if isinstance(outcome, Ok):
        return Status.OK
    if isinstance(outcome, Err):
        return Status.FAILED
    if is_success(outcome):
        return Status.OK
    if isinstance(outcome, bool):
        return Status.FAILED
    try:
        return int(outcome)
    except (TypeError, ValueError):
        raise TypeError(
            f"routine {routine_name(routine)} returned {outcome!r}, expected a status"
        ) from None


def routine_name(routine: Routine) -> str:
    """Name used for a routine in logs and reports."""
    name = getattr(routine, "__name__", None)
    if name is None and hasattr(routine, "func"):
        # functools.partial
        name = getattr(routine.func, "__name__", None)
    return name or type(routine).__name__


class SweepDriver:
    """Arms a fault counter with increasing thresholds and runs a routine.

    Each driver owns its counter. The counter is only active while the
    routine runs, and every entry point disarms it on every exit path.
    """

    def __init__(
        self,
        counter: FaultCounter | None = None,
        hooks: Iterable[Hook] = (),
        tracer: Tracer | None = None,
        log_root: Path | None = None,
    ):
        self.counter = counter if counter is not None else FaultCounter()
        if tracer is not None:
            self.counter.tracer = tracer
        self.hooks: list[Hook] = list(hooks)
        self.log_root = log_root
        self.runs: list[RunRecord] = []

    @property
    def tracer(self) -> Tracer | None:
        return self.counter.tracer

    def add_hook(self, hook: Hook) -> None:
        """Call ``hook(record)`` after every run."""
        self.hooks.append(hook)

    def remove_hook(self, hook: Hook) -> None:
        self.hooks.remove(hook)

    def _invoke(self, routine: Routine, threshold: int | None) -> RunRecord:
        error = None
        with activate(self.counter):
            try:
                outcome = routine()
            except CheckFailed as e:
                outcome = Status.FAILED
                error = str(e)

        record = RunRecord(
            threshold=threshold,
            status=_normalize(outcome, routine),
            checks=self.counter.checks,
            injected=self.counter.injected,
            error=error,
        )
        self.runs.append(record)
        if self.tracer is not None:
            self.tracer.event("run", f"threshold={threshold} status={int(record.status)}", threshold=threshold)

        for hook in self.hooks:
            hook(record)
        return record

    def _finish(self, routine: Routine, log_type: str, summary: str) -> None:
        if self.tracer is None:
            return
        self.tracer.event("sweep", summary)
        if self.log_root is not None:
            write_log(routine_name(routine), log_type, summary, self.tracer, self.log_root)

    def run(self, routine: Routine) -> int:
        """Invoke the routine once with injection disabled."""
        self.counter.reset()
        try:
            record = self._invoke(routine, None)
        finally:
            self.counter.disarm()
        self._finish(routine, "run", f"status={int(record.status)} checks={record.checks}")
        return record.status

    def sweep(self, min_threshold: int, max_threshold: int, routine: Routine) -> int:
        """Sweep thresholds ``min..max`` inclusive, stopping at the first success.

        Returns ``Status.OK`` if some threshold let the routine complete,
        otherwise the status of the last run (``Status.FAILED`` for an
        empty range). A negative ``min`` starts the sweep at 0.
        """
        status: int = Status.FAILED
        try:
            for threshold in range(_first_threshold(min_threshold), max_threshold + 1):
                self.counter.arm(threshold)
                record = self._invoke(routine, threshold)
                status = record.status
                if record.succeeded:
                    break
        finally:
            self.counter.disarm()
        self._finish(routine, "sweep", f"range={min_threshold}..{max_threshold} status={int(status)}")
        return status

    def sweep_max(self, max_threshold: int, routine: Routine) -> int:
        """Sweep thresholds ``0..max``."""
        return self.sweep(0, max_threshold, routine)

    def sweep_each(self, min_threshold: int, max_threshold: int, routine: Routine) -> list[RunRecord]:
        """Run every threshold in ``min..max`` regardless of outcome."""
        records = []
        try:
            for threshold in range(_first_threshold(min_threshold), max_threshold + 1):
                self.counter.arm(threshold)
                records.append(self._invoke(routine, threshold))
        finally:
            self.counter.disarm()
        passed = sum(1 for r in records if r.succeeded)
        self._finish(routine, "each", f"range={min_threshold}..{max_threshold} passed={passed}/{len(records)}")
        return records

    def require(self, min_threshold: int, max_threshold: int, routine: Routine) -> int:
        """Like :meth:`sweep`, but raise ``SweepExhausted`` when no run succeeds."""
        start = len(self.runs)
        status = self.sweep(min_threshold, max_threshold, routine)
        if not is_success(status):
            raise SweepExhausted(min_threshold, max_threshold, self.runs[start:])
        return status


def _first_threshold(min_threshold: int) -> int:
    # a negative threshold fails at the first check, the same run as 0
    return max(min_threshold, 0)


def run(routine: Routine) -> int:
    """Invoke ``routine`` once without injection."""
    return SweepDriver().run(routine)


def run_max(max_threshold: int, routine: Routine) -> int:
    """Sweep ``0..max`` on a fresh driver, stopping at the first success."""
    return SweepDriver().sweep_max(max_threshold, routine)


def run_range(min_threshold: int, max_threshold: int, routine: Routine) -> int:
    """Sweep ``min..max`` on a fresh driver, stopping at the first success."""
    return SweepDriver().sweep(min_threshold, max_threshold, routine)


def run_each(min_threshold: int, max_threshold: int, routine: Routine) -> list[RunRecord]:
    """Run every threshold in ``min..max`` on a fresh driver."""
    return SweepDriver().sweep_each(min_threshold, max_threshold, routine)
