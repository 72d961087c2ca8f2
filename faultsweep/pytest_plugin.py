"""Pytest fixtures for sweeping routines.

Enable in a conftest.py with::

    pytest_plugins = ["faultsweep.pytest_plugin"]
"""

from __future__ import annotations

from typing import Generator

import pytest

from faultsweep.config import SweepConfig, load_config
from faultsweep.display import print_sweep
from faultsweep.resources import ResourceLedger
from faultsweep.sweep import SweepDriver


def pytest_addoption(parser):
    group = parser.getgroup("faultsweep")
    group.addoption(
        "--faultsweep-verbose",
        action="store_true",
        default=False,
        help="Echo checked calls and injected faults to stderr.",
    )
    group.addoption(
        "--faultsweep-max",
        type=int,
        default=None,
        help="Default for sweep_config.max_threshold.",
    )


@pytest.fixture
def sweep_config(request) -> SweepConfig:
    """Environment configuration, overridden by command-line options."""
    config = load_config()
    if request.config.getoption("--faultsweep-verbose"):
        config.verbose = True
    max_threshold = request.config.getoption("--faultsweep-max")
    if max_threshold is not None:
        config.max_threshold = max_threshold
    return config


@pytest.fixture
def resource_ledger() -> ResourceLedger:
    """Fresh ledger for tracking acquisitions in a routine."""
    return ResourceLedger()


@pytest.fixture
def fault_sweep(sweep_config: SweepConfig, request) -> Generator[SweepDriver, None, None]:
    """Driver with a fresh counter; prints its runs when the test fails."""
    driver = sweep_config.make_driver()
    yield driver
    report = getattr(request.node, "rep_call", None)
    if report is not None and report.failed and sweep_config.verbose:
        print_sweep(driver.runs, title=request.node.name)
    assert not driver.counter.armed, "sweep left the fault counter armed"


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    if report.when == "call":
        item.rep_call = report
