"""Display formatting for sweep results."""

from rich.console import Console
from rich.table import Table
from rich.text import Text

from faultsweep.sweep import RunRecord

console = Console()


def get_status_icon(record: RunRecord) -> str:
    """Get icon for a run outcome."""
    if record.leaked:
        return "[red]![/red]"
    if record.succeeded:
        return "[green]✓[/green]"
    if record.injected:
        return "[yellow]✗[/yellow]"
    return "[red]✗[/red]"


def get_status_style(record: RunRecord) -> str:
    """Get style for a run outcome."""
    if record.leaked:
        return "red"
    if record.succeeded:
        return "green"
    if record.injected:
        return "yellow"
    return "red"


def describe_outcome(record: RunRecord) -> str:
    if record.leaked:
        return "leaked"
    if record.succeeded:
        return "ok"
    if record.injected:
        return "injected"
    return "failed"


def print_sweep(records: list[RunRecord], title: str = "Sweep") -> None:
    """Print one row per run."""
    if not records:
        console.print("[dim]No runs.[/dim]")
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("K", justify="right")
    table.add_column("Outcome")
    table.add_column("Checks", justify="right")
    table.add_column("Leaked")
    table.add_column("Error")

    for record in records:
        table.add_row(
            get_status_icon(record),
            "-" if record.threshold is None else str(record.threshold),
            Text(describe_outcome(record), style=get_status_style(record)),
            str(record.checks),
            ", ".join(record.leaked) or "-",
            record.error or "-",
        )

    console.print(table)


def print_summary(records: list[RunRecord]) -> None:
    """Print a one-line verdict for a sweep."""
    leaks = [r for r in records if r.leaked]
    if leaks:
        thresholds = ", ".join(str(r.threshold) for r in leaks)
        print_error(f"Leaks at threshold {thresholds}")
    elif records and records[-1].succeeded:
        console.print(f"[green]✓[/green] Completed after [bold]{len(records)}[/bold] runs")
    else:
        print_error(f"No successful run in {len(records)} attempts")


def print_error(message: str) -> None:
    """Print error message."""
    console.print(f"[red]✗[/red] {message}")


def print_info(message: str) -> None:
    """Print info message."""
    console.print(f"[blue]ℹ[/blue] {message}")
