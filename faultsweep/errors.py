"""Exceptions raised by faultsweep."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from faultsweep.sweep import RunRecord


class FaultSweepError(Exception):
    """Base class for faultsweep errors."""

    pass


class CheckFailed(FaultSweepError):
    """A checked operation failed.

    Routines must handle this the same way whether the failure was real or
    injected, so callers only ever need to catch this class.
    """

    def __init__(self, what: str = "", cause: BaseException | None = None):
        self.what = what
        self.cause = cause
        message = what or "checked operation failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class InjectedFault(CheckFailed):
    """Failure manufactured by a fault counter."""

    def __init__(self, what: str = "", threshold: int | None = None):
        self.threshold = threshold
        super().__init__(what or "injected fault")


class SweepExhausted(FaultSweepError):
    """No threshold in the swept range let the routine complete."""

    def __init__(self, min_threshold: int, max_threshold: int, records: list["RunRecord"] | None = None):
        self.min_threshold = min_threshold
        self.max_threshold = max_threshold
        self.records = list(records or [])
        super().__init__(
            f"sweep {min_threshold}..{max_threshold} exhausted without a successful run "
            f"({len(self.records)} runs)"
        )


class LeakDetected(FaultSweepError):
    """A run returned while still holding resources."""

    def __init__(self, handles: list[str], threshold: int | None = None):
        self.handles = list(handles)
        self.threshold = threshold
        where = f" at threshold {threshold}" if threshold is not None else ""
        super().__init__(f"{len(self.handles)} resource(s) leaked{where}: {', '.join(self.handles)}")


class DoubleRelease(FaultSweepError):
    """A resource was released that is not held."""

    def __init__(self, handle: str):
        self.handle = handle
        super().__init__(f"released a resource that is not held: {handle}")
