"""Rich-based rendering of build plans and execution reports."""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from targetgraph.runtime.executor import ExecutionReport, TargetState
from targetgraph.runtime.orchestrator import BuildPlan

logger = logging.getLogger("targetgraph.runtime.display")

_STATE_STYLES = {
    TargetState.SUCCEEDED: "green",
    TargetState.FAILED: "bold red",
    TargetState.SKIPPED: "yellow",
    TargetState.RUNNING: "cyan",
    TargetState.PENDING: "dim",
}


class ReportRenderer:
    """Render plans and reports to a Rich console.

    Args:
        console: Console to print to; defaults to stderr so that stdout stays
            reserved for exported data.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(stderr=True)

    def render_plan(self, plan: BuildPlan, show_properties: bool = False) -> None:
        table = Table(title="Build order", show_lines=False)
        table.add_column("#", justify="right")
        table.add_column("Target")
        table.add_column("Package")
        table.add_column("Depends on")
        if show_properties:
            table.add_column("Effective properties")

        for index, target in enumerate(plan.resolved.order, start=1):
            row = [
                str(index),
                target.name,
                target.package,
                ", ".join(plan.resolved.dependencies(target.name)),
            ]
            if show_properties:
                properties = plan.properties.get(target.name)
                values = properties.values if properties else {}
                row.append(
                    "\n".join(f"{key}: {' '.join(items)}" for key, items in values.items())
                )
            table.add_row(*row)

        self.console.print(table)

    def render_report(self, report: ExecutionReport) -> None:
        table = Table(title="Execution report")
        table.add_column("Target")
        table.add_column("State")
        table.add_column("Time", justify="right")
        table.add_column("Detail")

        for outcome in report.outcomes:
            detail = ""
            if outcome.state is TargetState.SKIPPED:
                detail = f"dependency {outcome.skipped_because} did not succeed"
            elif outcome.error is not None:
                detail = str(outcome.error)
            elif outcome.up_to_date:
                detail = "up to date"
            table.add_row(
                outcome.name,
                Text(str(outcome.state), style=_STATE_STYLES[outcome.state]),
                f"{outcome.execution_time:.2f}s",
                detail,
            )

        self.console.print(table)

        failure = report.failure
        if failure is not None:
            # Verbatim output so failures can be diagnosed without re-running.
            self.console.print(
                Panel(
                    Text(failure.output or "(no output)"),
                    title=f"First failure: {failure.name}",
                    border_style="red",
                )
            )
