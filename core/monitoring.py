"""End-of-cycle summary table.

Renders one row per account (address, proxy, IP, login, check-in, points)
with Rich, followed by a one-line success/failure count.
"""

import logging
from typing import TYPE_CHECKING, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from core.proxy_manager import mask_proxy

if TYPE_CHECKING:
    from core.orchestrator import CycleReport

logger = logging.getLogger(__name__)

CHECK_IN_LABELS = {
    "completed": "[green]done[/green]",
    "already_checked_in": "[yellow]already[/yellow]",
    "failed": "[red]failed[/red]",
}


def build_summary_table(report: "CycleReport") -> Table:
    """Build the per-account summary table for *report*."""
    table = Table(
        title="Cycle Summary",
        box=box.ROUNDED,
        show_lines=False,
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Address", style="cyan", no_wrap=True)
    table.add_column("Proxy")
    table.add_column("IP")
    table.add_column("Login", justify="center")
    table.add_column("Check-in", justify="center")
    table.add_column("Points", justify="right")
    table.add_column("Error", style="red")

    for account in report.accounts:
        check_in = "-"
        if account.check_in is not None:
            check_in = CHECK_IN_LABELS.get(
                account.check_in.value, account.check_in.value,
            )
        table.add_row(
            str(account.index + 1),
            account.address or "?",
            mask_proxy(account.proxy) if account.proxy else "direct",
            account.ip or "-",
            "[green]yes[/green]" if account.logged_in else "[red]no[/red]",
            check_in,
            str(account.points),
            account.error or "",
        )
    return table


def render_cycle_summary(
    report: "CycleReport", console: Optional[Console] = None,
) -> None:
    """Print the summary table and totals to *console*."""
    console = console or Console()
    console.print(build_summary_table(report))
    console.print(
        f"[bold]{report.succeeded}[/bold] succeeded, "
        f"[bold]{report.failed}[/bold] failed "
        f"out of {len(report.accounts)} account(s)"
    )
    logger.info(
        "Cycle summary: %d succeeded, %d failed",
        report.succeeded, report.failed,
    )
