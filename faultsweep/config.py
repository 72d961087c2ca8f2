"""Configuration for faultsweep."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from faultsweep.sweep import Hook, SweepDriver
from faultsweep.tracing import Tracer

ENV_VERBOSE = "FAULTSWEEP_VERBOSE"
ENV_LOG_DIR = "FAULTSWEEP_LOG_DIR"
ENV_MAX = "FAULTSWEEP_MAX"
DEFAULT_MAX_THRESHOLD = 100

_TRUE = ("1", "true", "yes", "on")


@dataclass
class SweepConfig:
    """Settings shared by every sweep in a test session."""

    verbose: bool = False
    log_dir: Path | None = None
    max_threshold: int = DEFAULT_MAX_THRESHOLD
    hooks: list[Hook] = field(default_factory=list, repr=False, compare=False)

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON storage."""
        return {
            "verbose": self.verbose,
            "log_dir": str(self.log_dir) if self.log_dir else None,
            "max_threshold": self.max_threshold,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SweepConfig":
        """Deserialize from dictionary."""
        return cls(
            verbose=data.get("verbose", False),
            log_dir=Path(data["log_dir"]) if data.get("log_dir") else None,
            max_threshold=data.get("max_threshold", DEFAULT_MAX_THRESHOLD),
        )

    def make_driver(self, hooks: Iterable[Hook] = ()) -> SweepDriver:
        """Build a driver with a fresh counter and tracer."""
        return SweepDriver(
            hooks=[*self.hooks, *hooks],
            tracer=Tracer(verbose=self.verbose),
            log_root=self.log_dir,
        )


def _parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def load_config(environ: Mapping[str, str] | None = None) -> SweepConfig:
    """Read configuration from the environment."""
    env = os.environ if environ is None else environ

    log_dir = env.get(ENV_LOG_DIR, "").strip()
    return SweepConfig(
        verbose=env.get(ENV_VERBOSE, "").strip().lower() in _TRUE,
        log_dir=Path(log_dir) if log_dir else None,
        max_threshold=_parse_int(env.get(ENV_MAX), DEFAULT_MAX_THRESHOLD),
    )
