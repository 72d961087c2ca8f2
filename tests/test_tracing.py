"""Tests for faultsweep.tracing module."""

from __future__ import annotations

import io
from pathlib import Path

from rich.console import Console

from faultsweep.tracing import (
    TraceEvent,
    Tracer,
    get_log_dir,
    get_next_log_number,
    read_latest_log,
    write_log,
)


def _capturing_tracer() -> tuple[Tracer, io.StringIO]:
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=False, color_system=None, width=200)
    return Tracer(verbose=True, console=console), buffer


class TestTraceEvent:
    """Test TraceEvent formatting."""

    def test_str_format(self):
        event = TraceEvent(kind="inject", detail="open")
        assert str(event) == "faultsweep:inject:open"

    def test_threshold_defaults_to_none(self):
        assert TraceEvent(kind="call", detail="x").threshold is None


class TestTracer:
    """Test Tracer event collection."""

    def test_records_events_in_order(self):
        tracer = Tracer()
        tracer.event("call", "a")
        tracer.event("pass", "a")
        tracer.event("call", "b")

        assert [str(e) for e in tracer.events] == [
            "faultsweep:call:a",
            "faultsweep:pass:a",
            "faultsweep:call:b",
        ]

    def test_of_kind_filters(self):
        tracer = Tracer()
        tracer.event("call", "a")
        tracer.event("fail", "a", threshold=0)
        tracer.event("call", "b")

        assert [e.detail for e in tracer.of_kind("call")] == ["a", "b"]
        assert tracer.of_kind("fail")[0].threshold == 0

    def test_clear(self):
        tracer = Tracer()
        tracer.event("call", "a")
        tracer.clear()
        assert tracer.events == []

    def test_render_one_event_per_line(self):
        tracer = Tracer()
        tracer.event("run", "threshold=0 status=-1")
        tracer.event("sweep", "done")

        assert tracer.render() == "faultsweep:run:threshold=0 status=-1\nfaultsweep:sweep:done"

    def test_quiet_tracer_prints_nothing(self):
        buffer = io.StringIO()
        tracer = Tracer(verbose=False, console=Console(file=buffer))
        tracer.event("inject", "open")
        assert buffer.getvalue() == ""

    def test_verbose_tracer_echoes_events(self):
        tracer, buffer = _capturing_tracer()
        tracer.event("inject", "open")
        tracer.event("pass", "close")

        output = buffer.getvalue()
        assert "faultsweep:inject:open" in output
        assert "faultsweep:pass:close" in output

    def test_tracers_do_not_share_events(self):
        first, second = Tracer(), Tracer()
        first.event("call", "a")
        assert second.events == []


class TestGetLogDir:
    """Test get_log_dir function."""

    def test_creates_directory(self, temp_dir: Path):
        log_dir = get_log_dir("open_files", temp_dir)

        assert log_dir.is_dir()
        assert log_dir == temp_dir / "open_files"

    def test_is_idempotent(self, temp_dir: Path):
        get_log_dir("open_files", temp_dir)
        assert get_log_dir("open_files", temp_dir).exists()


class TestGetNextLogNumber:
    """Test get_next_log_number function."""

    def test_returns_1_when_no_logs(self, temp_dir: Path):
        assert get_next_log_number("open_files", temp_dir) == 1

    def test_increments_after_existing_logs(self, temp_dir: Path):
        log_dir = get_log_dir("open_files", temp_dir)
        (log_dir / "001-sweep.log").write_text("test")
        (log_dir / "002-each.log").write_text("test")

        assert get_next_log_number("open_files", temp_dir) == 3

    def test_ignores_unnumbered_files(self, temp_dir: Path):
        log_dir = get_log_dir("open_files", temp_dir)
        (log_dir / "notes.log").write_text("test")
        (log_dir / "004-sweep.log").write_text("test")

        assert get_next_log_number("open_files", temp_dir) == 5


class TestWriteLog:
    """Test write_log function."""

    def test_creates_numbered_file(self, temp_dir: Path):
        log_path = write_log("open_files", "sweep", "status=0", Tracer(), temp_dir)

        assert log_path.exists()
        assert log_path.name == "001-sweep.log"

    def test_content_format(self, temp_dir: Path):
        tracer = Tracer()
        tracer.event("call", "open")
        tracer.event("inject", "open", threshold=0)

        content = write_log("open_files", "sweep", "range=0..3 status=0", tracer, temp_dir).read_text()

        assert content.startswith("=== FAULTSWEEP LOG ===\n")
        assert "Routine: open_files" in content
        assert "Result: range=0..3 status=0" in content
        assert "Events: 2" in content
        assert "faultsweep:call:open\nfaultsweep:inject:open" in content
        assert content.endswith("=== END ===\n")

    def test_successive_logs_are_numbered(self, temp_dir: Path):
        write_log("open_files", "sweep", "first", Tracer(), temp_dir)
        second = write_log("open_files", "each", "second", Tracer(), temp_dir)

        assert second.name == "002-each.log"


class TestReadLatestLog:
    """Test read_latest_log function."""

    def test_returns_none_without_logs(self, temp_dir: Path):
        assert read_latest_log("open_files", temp_dir) is None

    def test_returns_most_recent(self, temp_dir: Path):
        write_log("open_files", "sweep", "first", Tracer(), temp_dir)
        write_log("open_files", "sweep", "second", Tracer(), temp_dir)

        content = read_latest_log("open_files", temp_dir)
        assert "Result: second" in content
