"""Shared pytest fixtures for faultsweep tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from faultsweep.counter import FaultCounter
from faultsweep.resources import ResourceLedger
from faultsweep.sweep import SweepDriver
from faultsweep.tracing import Tracer
from tests.fixtures.routines import StepRoutine


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test isolation."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def counter() -> FaultCounter:
    """A disarmed counter."""
    return FaultCounter()


@pytest.fixture
def tracer() -> Tracer:
    """A quiet tracer that only records events."""
    return Tracer(verbose=False)


@pytest.fixture
def driver(tracer: Tracer) -> SweepDriver:
    """A driver with its own counter and a recording tracer."""
    return SweepDriver(tracer=tracer)


@pytest.fixture
def ledger() -> ResourceLedger:
    """An empty resource ledger."""
    return ResourceLedger()


@pytest.fixture
def three_steps(ledger: ResourceLedger) -> StepRoutine:
    """Routine that acquires three handles, one checked operation each."""
    return StepRoutine(ledger, steps=3)
