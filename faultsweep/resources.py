"""Resource ledger for catching leaks on early-exit paths.

Tests instrument the acquire/release pair of each resource a routine uses.
After every run of a sweep, the ledger's hook records whatever is still held
on the run record, so a leak is pinned to the exact threshold whose exit path
forgot to release it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from faultsweep.errors import DoubleRelease, LeakDetected
from faultsweep.sweep import Hook, Routine, RunRecord, SweepDriver


@dataclass
class _Entry:
    kind: str
    handle: Any

    @property
    def label(self) -> str:
        return f"{self.kind}:{self.handle}"


@dataclass
class ResourceLedger:
    """Counts acquisitions and releases of tracked resources."""

    entries: list[_Entry] = field(default_factory=list)
    acquired_total: int = 0
    released_total: int = 0

    def acquired(self, kind: str, handle: Any) -> Any:
        """Record that ``handle`` is now held. Returns the handle."""
        self.entries.append(_Entry(kind, handle))
        self.acquired_total += 1
        return handle

    def released(self, kind: str, handle: Any) -> None:
        """Record that ``handle`` was released."""
        for i, entry in enumerate(self.entries):
            if entry.kind == kind and (entry.handle is handle or entry.handle == handle):
                del self.entries[i]
                self.released_total += 1
                return
        raise DoubleRelease(f"{kind}:{handle}")

    def held(self) -> list[str]:
        """Labels of everything still held, oldest first."""
        return [e.label for e in self.entries]

    def counts(self) -> dict[str, int]:
        """Number of held resources per kind."""
        result: dict[str, int] = {}
        for entry in self.entries:
            result[entry.kind] = result.get(entry.kind, 0) + 1
        return result

    def reset(self) -> None:
        self.entries = []
        self.acquired_total = 0
        self.released_total = 0

    def track(
        self,
        acquire: Callable[..., Any],
        release: Callable[[Any], Any],
        kind: str | None = None,
    ) -> tuple[Callable[..., Any], Callable[[Any], Any]]:
        """Wrap an acquire/release pair so the ledger sees every call.

        The acquire wrapper records its return value; a raising acquire
        records nothing. The release wrapper records before delegating so a
        failing release still counts as released.
        """
        kind = kind or getattr(acquire, "__name__", "resource")

        def tracked_acquire(*args: Any, **kwargs: Any) -> Any:
            return self.acquired(kind, acquire(*args, **kwargs))

        def tracked_release(handle: Any) -> Any:
            self.released(kind, handle)
            return release(handle)

        for wrapper, wrapped in ((tracked_acquire, acquire), (tracked_release, release)):
            wrapper.__name__ = getattr(wrapped, "__name__", wrapper.__name__)
            wrapper.__qualname__ = getattr(wrapped, "__qualname__", wrapper.__name__)
        return tracked_acquire, tracked_release

    def assert_clean(self, threshold: int | None = None) -> None:
        """Raise LeakDetected if anything is still held."""
        held = self.held()
        if held:
            raise LeakDetected(held, threshold)

    def hook(self, strict: bool = True) -> Hook:
        """Build an after-run hook for a sweep driver.

        The hook copies leaked handles onto the run record and resets the
        ledger for the next run. With ``strict`` it raises LeakDetected on
        the first leaking run, which aborts the sweep.
        """

        def after_run(record: RunRecord) -> None:
            leaked = self.held()
            record.leaked = leaked
            self.reset()
            if leaked and strict:
                raise LeakDetected(leaked, record.threshold)

        return after_run


def find_leaks(
    min_threshold: int,
    max_threshold: int,
    routine: Routine,
    ledger: ResourceLedger,
) -> dict[int, list[str]]:
    """Run every threshold in the range and map leaking thresholds to their leaks."""
    driver = SweepDriver(hooks=[ledger.hook(strict=False)])
    records = driver.sweep_each(min_threshold, max_threshold, routine)
    return {r.threshold: r.leaked for r in records if r.leaked}


def sweep_clean(
    min_threshold: int,
    max_threshold: int,
    routine: Routine,
    ledger: ResourceLedger,
    driver: SweepDriver | None = None,
) -> int:
    """Sweep until success, failing on the first run that leaks.

    Raises:
        LeakDetected: A run left resources held
        SweepExhausted: No threshold in the range let the routine complete
    """
    driver = driver or SweepDriver()
    hook = ledger.hook(strict=True)
    driver.add_hook(hook)
    try:
        return driver.require(min_threshold, max_threshold, routine)
    finally:
        driver.remove_hook(hook)
