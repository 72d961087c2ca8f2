"""Fault counter: the trigger that decides which checked call fails.

A counter armed with threshold ``k`` lets ``k`` checks through and reports a
failure on the next one. Injection position is purely ordinal: the ``k``-th
checked call in program order fails, whatever operation it happens to be.

Each sweep owns its counter. The counter a routine should consult is found
through :func:`active_counter`, which is scoped to the current context, so
sweeps running in separate threads never see each other's state.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from faultsweep.tracing import Tracer

_active: ContextVar["FaultCounter | None"] = ContextVar("faultsweep_active_counter", default=None)


@dataclass
class FaultCounter:
    """Armed flag plus a countdown of checks still allowed to succeed."""

    armed: bool = False
    remaining: int = 0
    checks: int = 0
    injected: int = 0
    tracer: "Tracer | None" = field(default=None, repr=False, compare=False)

    def arm(self, threshold: int) -> None:
        """Let ``threshold`` checks succeed, then fail the next one."""
        if threshold < 0:
            raise ValueError(f"threshold must be >= 0, got {threshold}")
        self.remaining = threshold
        self.armed = True
        self.checks = 0
        self.injected = 0

    def check(self) -> bool:
        """Return True if this call should fail.

        Disarmed checks are counted but never touch the countdown.
        """
        self.checks += 1
        if not self.armed:
            return False
        self.remaining -= 1
        if self.remaining < 0:
            self.injected += 1
            return True
        return False

    def disarm(self) -> None:
        self.armed = False
        self.remaining = 0

    def reset(self) -> None:
        """Disarm and forget the counts of the previous run."""
        self.disarm()
        self.checks = 0
        self.injected = 0

    def peek(self) -> int | None:
        """Remaining countdown, or None when disarmed."""
        if self.armed:
            return self.remaining
        return None

    @property
    def threshold(self) -> int | None:
        """Threshold the counter was last armed with, while armed."""
        if not self.armed:
            return None
        return self.remaining + self.checks

    @contextmanager
    def armed_at(self, threshold: int) -> Iterator["FaultCounter"]:
        """Arm for the duration of a ``with`` block."""
        self.arm(threshold)
        try:
            yield self
        finally:
            self.disarm()


def active_counter() -> FaultCounter | None:
    """Counter installed for the current context, if any."""
    return _active.get()


@contextmanager
def activate(counter: FaultCounter) -> Iterator[FaultCounter]:
    """Install ``counter`` as the active counter for a ``with`` block."""
    token = _active.set(counter)
    try:
        yield counter
    finally:
        _active.reset(token)


def check() -> bool:
    """Consult the active counter. No active counter means no failure."""
    counter = _active.get()
    if counter is None:
        return False
    return counter.check()
